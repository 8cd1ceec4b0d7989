# modloader/mods/registry.py
from __future__ import annotations
import logging
import zipfile
from collections.abc import Iterator
from pathlib import Path

from modloader.core.errors import ErrorKind, ModLoaderError
from modloader.core.logging import setLogContext
from modloader.mods.archive import ZipArchive
from modloader.mods.constants import (
    ARCHIVE_EXTENSIONS,
    BUILTIN_MOD_ID,
    MANIFEST_FILE_NAME,
    ORDER_LOAD_LAST,
    PAK_PRIORITY_SUFFIX,
    RAW_MODULE_EXTENSIONS,
    RAW_PAK_EXTENSIONS,
)
from modloader.mods.descriptor import ModDescriptor, createDummyDescriptor, parseDescriptor
from modloader.mods.diagnostics import Diagnostics
from modloader.mods.entry import LoadingEntry
from modloader.semver.semver import parseSemVersion

logger = logging.getLogger(__name__)

__all__ = ["ModRegistry", "createBuiltinEntry", "modIdFromRawFile"]



def createBuiltinEntry() -> LoadingEntry:
    from modloader import __version__

    descriptor = ModDescriptor(
        modId=BUILTIN_MOD_ID,
        name="Mod Loader",
        version=parseSemVersion(__version__),
        description="Mod resolution and loading layer",
        authors=("modloader contributors",),
    )
    return LoadingEntry(
        descriptor=descriptor,
        sourceLocation=Path(f"<builtin:{BUILTIN_MOD_ID}>"),
        isBuiltin=True,
    )



def modIdFromRawFile(path: Path) -> str:
    """
    Infers a modId from a loose file name.

      Foo-Win64-Shipping.dll -> Foo   (module: everything before the first '-')
      Foo_p.pak              -> Foo   (asset package: one trailing priority suffix removed)
    """
    stem = path.stem
    suffix = path.suffix.lower()
    if suffix in RAW_MODULE_EXTENSIONS:
        return stem.split("-", 1)[0]
    if suffix in RAW_PAK_EXTENSIONS and stem.endswith(PAK_PRIORITY_SUFFIX):
        return stem[:-len(PAK_PRIORITY_SUFFIX)]
    return stem



class ModRegistry:
    """
    modId -> LoadingEntry, in registration order.

    The built-in engine entry is always first. Every other modId may be
    claimed once; later claims are rejected and reported, the first entry
    stays intact.
    """
    def __init__(self, builtin: LoadingEntry | None = None) -> None:
        self._entries: dict[str, LoadingEntry] = {}
        builtinEntry = builtin or createBuiltinEntry()
        self._entries[builtinEntry.modId] = builtinEntry

    # ----- Lookup -----

    def __contains__(self, modId: object) -> bool:
        entry = self._entries.get(modId) if isinstance(modId, str) else None
        return entry is not None and entry.isValid

    def __iter__(self) -> Iterator[LoadingEntry]:
        return iter(self.entries())

    def __len__(self) -> int:
        return len(self.entries())

    def get(self, modId: str) -> LoadingEntry | None:
        entry = self._entries.get(modId)
        return entry if entry is not None and entry.isValid else None

    def entries(self) -> list[LoadingEntry]:
        """Valid entries in registration order."""
        return [entry for entry in self._entries.values() if entry.isValid]

    def invalidate(self, modId: str) -> None:
        entry = self._entries.get(modId)
        if entry is not None and not entry.isBuiltin:
            entry.isValid = False

    # ----- Registration -----

    def register(self, entry: LoadingEntry, diagnostics: Diagnostics) -> LoadingEntry | None:
        existing = self._entries.get(entry.modId)
        if existing is None:
            self._entries[entry.modId] = entry
            logger.debug("Registered mod '%s' from '%s'", entry.modId, entry.sourceLocation)
            return entry

        if existing.isRawMod:
            message = (
                f"Found packed mod '{entry.modId}' at {entry.sourceLocation} "
                f"conflicting with raw mod file {existing.sourceLocation}"
            )
            kind = ErrorKind.RAW_MOD_CONFLICT
        else:
            message = (
                f"Found duplicate mods with same mod ID {entry.modId}: "
                f"{entry.sourceLocation} and {existing.sourceLocation}"
            )
            kind = ErrorKind.DUPLICATE_MOD_ID
        logger.error(message)
        diagnostics.fatal(kind, message, (entry.modId,))
        return None

    def registerRaw(self, modId: str, filePath: Path, diagnostics: Diagnostics) -> LoadingEntry | None:
        """
        Registers a loose module or asset package. A module and an asset
        package with the same inferred id merge into one raw entry.
        """
        entry = self._entries.get(modId)
        if entry is None:
            entry = LoadingEntry(
                descriptor=createDummyDescriptor(modId, orderConstraints=frozenset({ORDER_LOAD_LAST})),
                sourceLocation=filePath,
                isRawMod=True,
            )
            self._entries[modId] = entry
        elif not entry.isRawMod:
            message = f"Found raw mod file conflicting with packed mod '{modId}': {filePath} and {entry.sourceLocation}"
            logger.error(message)
            diagnostics.fatal(ErrorKind.RAW_MOD_CONFLICT, message, (modId,))
            return None

        if filePath.suffix.lower() in RAW_MODULE_EXTENSIONS:
            if entry.dynamicModulePath is not None:
                message = f"Raw mod '{modId}' can only have one module: {filePath} and {entry.dynamicModulePath}"
                logger.error(message)
                diagnostics.fatal(ErrorKind.DUPLICATE_MODULE, message, (modId,))
                return None
            entry.dynamicModulePath = filePath
        else:
            entry.orderedPakPaths.append(filePath)
        return entry

    # ----- Discovery -----

    def discover(self, modsDir: str | Path, *, devMode: bool, diagnostics: Diagnostics) -> None:
        """
        Scans `modsDir` (non-recursive) and registers every candidate.

        Files are visited in case-insensitive name order so registration order,
        and with it tie-breaking in the final sort, is reproducible.
        """
        modsDir = Path(modsDir)
        if not modsDir.is_dir():
            logger.warning("Mods directory '%s' does not exist; nothing to discover", modsDir)
            return

        files = sorted(
            (path for path in modsDir.iterdir() if path.is_file()),
            key=lambda path: (path.name.lower(), path.name),
        )
        for filePath in files:
            suffix = filePath.suffix.lower()
            if suffix in ARCHIVE_EXTENSIONS:
                self._discoverArchive(filePath, diagnostics)
            elif suffix in RAW_MODULE_EXTENSIONS or suffix in RAW_PAK_EXTENSIONS:
                self._discoverRaw(filePath, devMode=devMode, diagnostics=diagnostics)
            else:
                logger.debug("Ignoring '%s': not a mod file", filePath)

        logger.info("Mods discovered: %d (modsDir=%s)", len(self) - 1, modsDir)

    def _discoverArchive(self, filePath: Path, diagnostics: Diagnostics) -> None:
        prefix = f"Failed to load zip mod from {filePath}: "
        try:
            with ZipArchive(filePath) as archive:
                document = archive.read(MANIFEST_FILE_NAME)
        except (zipfile.BadZipFile, OSError) as err:
            message = f"{prefix}cannot open archive: {err}"
            logger.error(message)
            diagnostics.fatal(ErrorKind.INVALID_MANIFEST, message)
            return
        except ModLoaderError as err:
            message = f"{prefix}{err.message}"
            logger.error(message)
            diagnostics.fatal(ErrorKind.INVALID_MANIFEST, message)
            return

        if document is None:
            message = f"{prefix}{MANIFEST_FILE_NAME} entry is missing in archive"
            logger.error(message)
            diagnostics.fatal(ErrorKind.INVALID_MANIFEST, message)
            return

        try:
            descriptor = parseDescriptor(document)
        except ModLoaderError as err:
            logger.error("%scouldn't parse %s: %s", prefix, MANIFEST_FILE_NAME, err.message)
            diagnostics.fromError(err, prefix=f"{prefix}couldn't parse {MANIFEST_FILE_NAME}: ")
            return

        setLogContext(modId=descriptor.modId)
        try:
            self.register(LoadingEntry(descriptor=descriptor, sourceLocation=filePath), diagnostics)
        finally:
            setLogContext(modId=None)

    def _discoverRaw(self, filePath: Path, *, devMode: bool, diagnostics: Diagnostics) -> None:
        if not devMode:
            logger.error("Found raw mod in mods directory: %s", filePath)
            logger.error("Raw mods are not supported in production mode and can be used only for development")
            diagnostics.fatal(ErrorKind.RAW_MOD_REJECTED, f"Found unsupported raw mod file: {filePath}")
            return

        modId = modIdFromRawFile(filePath)
        if not modId:
            message = f"Cannot infer a mod id from raw mod file name: {filePath}"
            logger.error(message)
            diagnostics.fatal(ErrorKind.RAW_MOD_REJECTED, message)
            return

        logger.warning("Loading development raw mod: %s", filePath)
        logger.warning("Dependencies and versioning won't work!")
        self.registerRaw(modId, filePath, diagnostics)
