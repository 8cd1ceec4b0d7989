# modloader/mods/descriptor.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any

import json5
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from modloader.core.errors import InvalidManifestError
from modloader.mods.constants import LEGACY_ORDER_LAST_KEY, ORDER_LOAD_LAST, RAW_MOD_VERSION
from modloader.semver.semver import SemVersion, VersionRange, parseSemVersion, parseVersionRange

__all__ = [
    "ManifestObject", "ModManifest", "DeclaredObject", "ModDescriptor",
    "parseDescriptor", "createDummyDescriptor",
]



class ManifestObject(BaseModel):
    """One payload object an archive declares in its data.json."""
    model_config = ConfigDict(extra="ignore")

    type: str
    path: str



class ModManifest(BaseModel):
    """Represents a validated data.json document."""
    model_config = ConfigDict(extra="ignore")

    modid: str = Field(min_length=1)
    name: str | None = None
    version: str
    description: str = ""
    authors: list[str] = Field(default_factory=list)
    objects: list[ManifestObject] | None = None
    dependencies: dict[str, str] = Field(default_factory=dict)
    optionalDependencies: dict[str, str] = Field(default_factory=dict)
    orderConstraints: list[str] = Field(default_factory=list)

    @field_validator("modid")
    @classmethod
    def _modIdIsPlainName(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("modid must not be blank")
        # modid doubles as the per-mod config file name
        if "/" in value or "\\" in value or value in (".", ".."):
            raise ValueError(f"modid must not contain path separators or be a relative path: {value!r}")
        return value

    @field_validator("version")
    @classmethod
    def _versionIsSemVer(cls, value: str) -> str:
        parseSemVersion(value)
        return value



@dataclass(frozen=True, slots=True)
class DeclaredObject:
    type: str
    path: str



@dataclass(slots=True)
class ModDescriptor:
    modId: str
    name: str
    version: SemVersion
    description: str = ""
    authors: tuple[str, ...] = ()
    dependencies: dict[str, VersionRange] = field(default_factory=dict)
    optionalDependencies: dict[str, VersionRange] = field(default_factory=dict)
    orderConstraints: frozenset[str] = frozenset()
    # None means the manifest carried no `objects` array at all
    objects: tuple[DeclaredObject, ...] | None = None



def _formatValidationError(err: ValidationError) -> str:
    parts: list[str] = []
    for item in err.errors():
        loc = ".".join(str(part) for part in item.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {item.get('msg', 'invalid value')}")
    return "; ".join(parts)



def _compileRanges(ranges: dict[str, str], *, section: str, modId: str) -> dict[str, VersionRange]:
    compiled: dict[str, VersionRange] = {}
    for depModId, expression in ranges.items():
        try:
            compiled[depModId] = parseVersionRange(expression)
        except (TypeError, ValueError) as err:
            raise InvalidManifestError(
                f"invalid version range for {section}.{depModId}: {err}",
                modIds=(modId,),
            ) from err
    return compiled



def parseDescriptor(document: str | bytes) -> ModDescriptor:
    """
    Parse a lenient-JSON (JSON5) manifest into a ModDescriptor.

    The legacy pseudo-dependency "@ORDER:LAST" is turned into the load-last
    order constraint and never ends up as a real dependency.

    Raises InvalidManifestError for syntax errors, wrong field types,
    unparsable versions or ranges.
    """
    if isinstance(document, bytes):
        try:
            document = document.decode("utf-8-sig")
        except UnicodeDecodeError as err:
            raise InvalidManifestError(f"manifest is not valid UTF-8: {err}") from err

    try:
        raw: Any = json5.loads(document)
    except ValueError as err:
        raise InvalidManifestError(f"malformed manifest: {err}") from err

    if not isinstance(raw, dict):
        raise InvalidManifestError(f"manifest must be an object, got {type(raw).__name__}")

    try:
        manifest = ModManifest.model_validate(raw)
    except ValidationError as err:
        raise InvalidManifestError(
            f"invalid manifest: {_formatValidationError(err)}",
            modIds=(raw["modid"],) if isinstance(raw.get("modid"), str) else (),
        ) from err

    constraints = set(manifest.orderConstraints)
    requiredRanges = dict(manifest.dependencies)
    if requiredRanges.pop(LEGACY_ORDER_LAST_KEY, None) is not None:
        constraints.add(ORDER_LOAD_LAST)

    objects = None
    if manifest.objects is not None:
        objects = tuple(DeclaredObject(obj.type, obj.path) for obj in manifest.objects)

    return ModDescriptor(
        modId=manifest.modid,
        name=manifest.name or manifest.modid,
        version=parseSemVersion(manifest.version),
        description=manifest.description,
        authors=tuple(manifest.authors),
        dependencies=_compileRanges(requiredRanges, section="dependencies", modId=manifest.modid),
        optionalDependencies=_compileRanges(
            manifest.optionalDependencies, section="optionalDependencies", modId=manifest.modid
        ),
        orderConstraints=frozenset(constraints),
        objects=objects,
    )



def createDummyDescriptor(modId: str, *, orderConstraints: frozenset[str] = frozenset()) -> ModDescriptor:
    """Placeholder identity for mods that ship without a manifest (raw mods)."""
    return ModDescriptor(
        modId=modId,
        name=modId,
        version=parseSemVersion(RAW_MOD_VERSION),
        orderConstraints=orderConstraints,
    )
