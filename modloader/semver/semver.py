# modloader/semver/semver.py
from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import total_ordering
from typing import Literal

__all__ = [
    "SemVersion", "parseSemVersion", "VersionComparator",
    "VersionRange", "parseVersionRange", "ANY_VERSION",
]



SEMVER_PATTERN_RE = re.compile(
    r"^v?(?P<major>0|[1-9]\d*)"
    r"\.(?P<minor>0|[1-9]\d*)"
    r"\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>(?:0|[1-9]\d*|[0-9A-Za-z-]*[A-Za-z-][0-9A-Za-z-]*)"
    r"(?:\.(?:0|[1-9]\d*|[0-9A-Za-z-]*[A-Za-z-][0-9A-Za-z-]*))*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)

# ">= 1.2.0" -> ">=1.2.0"
_OPERATOR_GAP_RE = re.compile(r"(<=|>=|==|<|>|=)\s+")
_UNICODE_OPERATORS = {"≥": ">=", "≤": "<=", "＝": "="}

Operator = Literal["<", "<=", ">", ">=", "=="]



@total_ordering
@dataclass(frozen=True)
class SemVersion:
    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: tuple[str, ...] = ()

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.patch}"
        prerelease = f"-{'.'.join(self.prerelease)}" if self.prerelease else ""
        build = f"+{'.'.join(self.build)}" if self.build else ""
        return f"{base}{prerelease}{build}"

    def _prereleaseCmpKey(self) -> tuple:
        # Numeric identifiers sort before alphanumeric ones: (0, int) < (1, str).
        parts: list[tuple[int, int | str]] = []
        for ident in self.prerelease:
            if ident.isdigit():
                parts.append((0, int(ident)))
            else:
                parts.append((1, ident))
        return tuple(parts)

    def _cmpKey(self) -> tuple:
        # Build metadata is ignored; a release outranks any of its prereleases.
        releaseFlag = 1 if not self.prerelease else 0
        return (self.major, self.minor, self.patch, releaseFlag, self._prereleaseCmpKey())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemVersion):
            return NotImplemented
        return self._cmpKey() == other._cmpKey()

    def __hash__(self) -> int:
        return hash(self._cmpKey())

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemVersion):
            return NotImplemented
        return self._cmpKey() < other._cmpKey()



def parseSemVersion(raw: str) -> SemVersion:
    """
    Parse a semantic version string into SemVersion.

    Accepted forms (examples):
        "1"             -> 1.0.0
        "1.2"           -> 1.2.0
        "1.2.3"         -> 1.2.3
        "1.2.3-alpha.1"
        "1.2.3+build.1"
        "v1.2.3"

    Rejected:
        ".1", "1.", "1..3", "1.2.3.4", "01.2.3" (leading zeroes), etc.
    """
    if raw is None:
        raise ValueError("Version string cannot be None")

    if not isinstance(raw, str):
        raise TypeError(f"Version string must be a string type, got {type(raw).__name__}")

    raw = raw.strip()
    if not raw:
        raise ValueError("Version string cannot be empty or whitespace only")

    if raw.startswith("v") and len(raw) > 1 and "0" <= raw[1] <= "9":
        raw = raw[1:]

    # Split into numeric core and "-prerelease+build" suffix
    sepIndex = len(raw)
    for ch in ("-", "+"):
        idx = raw.find(ch)
        if idx != -1 and idx < sepIndex:
            sepIndex = idx

    core = raw[:sepIndex]
    suffix = raw[sepIndex:]

    coreParts = core.split(".")
    if not 1 <= len(coreParts) <= 3:
        raise ValueError(f"Invalid version core {core!r} in {raw!r}")

    numericParts: list[int] = []
    for part in coreParts:
        if not re.fullmatch(r"0|[1-9]\d*", part):
            raise ValueError(f"Invalid numeric component {part!r} in version {raw!r}")
        numericParts.append(int(part))

    while len(numericParts) < 3:
        numericParts.append(0)

    major, minor, patch = numericParts
    mtch = SEMVER_PATTERN_RE.match(f"{major}.{minor}.{patch}{suffix}")
    if not mtch:
        raise ValueError(f"Invalid semantic version {raw!r}")

    prereleaseGroup = mtch.group("prerelease")
    buildGroup = mtch.group("build")
    return SemVersion(
        major=major,
        minor=minor,
        patch=patch,
        prerelease=tuple(prereleaseGroup.split(".")) if prereleaseGroup is not None else (),
        build=tuple(buildGroup.split(".")) if buildGroup is not None else (),
    )



@dataclass(frozen=True)
class VersionComparator:
    operator: Operator
    version: SemVersion

    def accepts(self, version: SemVersion) -> bool:
        if self.operator == "==":
            return version == self.version
        if self.operator == ">=":
            return version >= self.version
        if self.operator == "<=":
            return version <= self.version
        if self.operator == ">":
            return version > self.version
        if self.operator == "<":
            return version < self.version
        raise ValueError(f"Unknown operator {self.operator!r}")

    def __str__(self) -> str:
        return f"{self.operator}{self.version}"



@dataclass(frozen=True)
class VersionRange:
    """
    A predicate over semantic versions. All comparators are AND-ed; an empty
    comparator list accepts any version.

    `expression` keeps the text the range was written as, so diagnostics can
    quote it back exactly.
    """
    comparators: tuple[VersionComparator, ...] = ()
    expression: str = field(default="*", compare=False)

    @property
    def isAny(self) -> bool:
        return not self.comparators

    def matches(self, version: SemVersion | str) -> bool:
        if isinstance(version, str):
            version = parseSemVersion(version)
        return all(comparator.accepts(version) for comparator in self.comparators)

    def __str__(self) -> str:
        return self.expression



ANY_VERSION = VersionRange()



def _caretToComparators(version: SemVersion) -> tuple[VersionComparator, VersionComparator]:
    """
    ^M.m.p:
      M > 0            -> >=M.m.p <(M+1).0.0
      M == 0, m > 0    -> >=0.m.p <0.(m+1).0
      M == 0, m == 0   -> >=0.0.p <0.0.(p+1)
    """
    major, minor, patch = version.major, version.minor, version.patch
    if major > 0:
        upperVersion = SemVersion(major + 1, 0, 0)
    elif minor > 0:
        upperVersion = SemVersion(0, minor + 1, 0)
    else:
        upperVersion = SemVersion(0, 0, patch + 1)
    return VersionComparator(">=", version), VersionComparator("<", upperVersion)



def _tildeToComparators(version: SemVersion) -> tuple[VersionComparator, VersionComparator]:
    """
    ~M.m.p -> >=M.m.p <M.(m+1).0, or >=M.0.0 <(M+1).0.0 when only the major is given.
    """
    major, minor, patch = version.major, version.minor, version.patch
    if minor > 0 or patch > 0:
        upperVersion = SemVersion(major, minor + 1, 0)
    else:
        upperVersion = SemVersion(major + 1, 0, 0)
    return VersionComparator(">=", version), VersionComparator("<", upperVersion)



def _normalizeExpression(raw: str) -> str:
    text = raw
    for symbol, replacement in _UNICODE_OPERATORS.items():
        text = text.replace(symbol, replacement)
    text = text.replace(",", " ")
    return _OPERATOR_GAP_RE.sub(r"\1", text).strip()



def parseVersionRange(rawRange: str | None) -> VersionRange:
    """
    Parse a range expression into a VersionRange.

    Accepted forms:

        None, "", or "*"        -> any version

        "1.2.3"                 -> == 1.2.3
        ">=1.2.0"               -> >= 1.2.0
        ">=1.2.0 <2.0.0"        -> >=1.2.0 AND <2.0.0
        ">=1.2.0, <2.0.0"       -> same; commas separate like whitespace
        "≥1.2.0, <2.0.0"        -> same; unicode comparison signs are accepted

        "^1.2.3"                -> >=1.2.3 AND <2.0.0 (with 0.x semantics)
        "~1.2.3"                -> >=1.2.3 AND <1.3.0

        "1.2.3 - 2.0.0"         -> >=1.2.3 AND <=2.0.0

    Raises ValueError on malformed input.
    """
    if rawRange is None:
        return ANY_VERSION
    if not isinstance(rawRange, str):
        raise TypeError(f"Version range must be a string or None, got {type(rawRange).__name__}")

    expression = rawRange.strip()
    text = _normalizeExpression(expression)
    if not text or text == "*":
        return VersionRange(expression=expression or "*")

    # Hyphen range: <left> - <right>
    mtch = re.match(r"^(?P<left>\S+)\s+-\s+(?P<right>\S+)$", text)
    if mtch:
        versionLeft = parseSemVersion(mtch.group("left"))
        versionRight = parseSemVersion(mtch.group("right"))
        if versionRight < versionLeft:
            raise ValueError(f"Invalid hyphen range {expression!r}: upper < lower")
        return VersionRange(
            comparators=(VersionComparator(">=", versionLeft), VersionComparator("<=", versionRight)),
            expression=expression,
        )

    comparators: list[VersionComparator] = []
    for token in text.split():
        if token == "*":
            continue

        if token[0] in ("^", "~"):
            if len(token) == 1:
                raise ValueError(f"Missing version after {token[0]!r} in range {expression!r}")
            parsedVersion = parseSemVersion(token[1:])
            if token[0] == "^":
                comparators.extend(_caretToComparators(parsedVersion))
            else:
                comparators.extend(_tildeToComparators(parsedVersion))
            continue

        op: str | None = None
        for candidate in ("<=", ">=", "==", "<", ">", "="):
            if token.startswith(candidate):
                op = candidate
                break
        if op is not None:
            versionPart = token[len(op):]
            if not versionPart:
                raise ValueError(f"Missing version after operator {op!r} in range {expression!r}")
            canonOp: Operator = "==" if op == "=" else op  # type: ignore[assignment]
            comparators.append(VersionComparator(canonOp, parseSemVersion(versionPart)))
            continue

        comparators.append(VersionComparator("==", parseSemVersion(token)))

    return VersionRange(comparators=tuple(comparators), expression=expression)
