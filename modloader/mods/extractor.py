# modloader/mods/extractor.py
from __future__ import annotations
import logging
from collections.abc import Callable
from pathlib import Path

from modloader.core.errors import (
    DuplicateModuleError,
    InvalidManifestError,
    MissingObjectError,
    UnknownObjectTypeError,
    UnsupportedFeatureError,
)
from modloader.mods.archive import Archive
from modloader.mods.cache import ContentCache
from modloader.mods.constants import OBJECT_CONFIG, OBJECT_CORE_MOD, OBJECT_MODULE, OBJECT_PAK
from modloader.mods.entry import LoadingEntry

logger = logging.getLogger(__name__)

__all__ = ["ArchiveExtractor"]



class ArchiveExtractor:
    """
    Materializes the objects an archive declares.

    Payloads ("pak", "sml_mod") go through the content cache so identical
    bytes from different archives share one file. Config files bypass the
    cache and land in a fixed per-mod location, written at most once.
    """
    def __init__(self, cache: ContentCache, configFileFor: Callable[[str], Path]) -> None:
        self.cache = cache
        self.configFileFor = configFileFor

    def extractObject(self, archive: Archive, declaredType: str, internalPath: str, entry: LoadingEntry) -> None:
        modId = entry.modId
        try:
            data = archive.read(internalPath)
        except MissingObjectError as err:
            raise MissingObjectError(err.message, modIds=(modId,)) from err
        if data is None:
            raise MissingObjectError(
                f"object '{internalPath}' declared in data.json is missing in archive",
                modIds=(modId,),
            )

        if declaredType == OBJECT_CONFIG:
            self._extractConfig(modId, data)
            return

        if declaredType == OBJECT_CORE_MOD:
            raise UnsupportedFeatureError(
                f"core mods are not supported (object '{internalPath}')",
                modIds=(modId,),
            )
        if declaredType not in (OBJECT_PAK, OBJECT_MODULE):
            raise UnknownObjectTypeError(
                f"unknown archive object type '{declaredType}' for '{internalPath}'",
                modIds=(modId,),
            )

        if declaredType == OBJECT_MODULE and entry.dynamicModulePath is not None:
            raise DuplicateModuleError(
                f"mod can only have one module; '{internalPath}' is a second one",
                modIds=(modId,),
            )

        digest = self.cache.put(data)
        cachedPath = self.cache.locate(digest)
        if declaredType == OBJECT_PAK:
            entry.orderedPakPaths.append(cachedPath)
        else:
            entry.dynamicModulePath = cachedPath
        logger.debug("Extracted %s '%s' of '%s' -> %s", declaredType, internalPath, modId, digest)

    def _extractConfig(self, modId: str, data: bytes) -> None:
        configPath = self.configFileFor(modId)
        if configPath.exists():
            # First write wins; user edits survive later loads
            logger.debug("Config for '%s' already present at '%s'", modId, configPath)
            return
        configPath.parent.mkdir(parents=True, exist_ok=True)
        configPath.write_bytes(data)
        logger.info("Extracted default config for '%s' to '%s'", modId, configPath)

    def extractArchiveObjects(self, archive: Archive, entry: LoadingEntry) -> None:
        """
        Extracts every declared object in manifest order.

        The first failure propagates; the caller isolates it to this mod.
        """
        objects = entry.descriptor.objects
        if objects is None:
            raise InvalidManifestError("missing `objects` array in data.json", modIds=(entry.modId,))
        for obj in objects:
            self.extractObject(archive, obj.type, obj.path, entry)
