# modloader/mods/orchestrator.py
from __future__ import annotations
import logging
import zipfile
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, TypeAlias

from modloader.app.settings import ModLoaderPaths, settingsBool
from modloader.core.errors import ErrorKind, ModLoaderError, ModLoadingHalted, NotLoadedError
from modloader.core.logging import clearLogContext, getDiagnosticsLogger, getModLogger, setLogContext
from modloader.mods.archive import ZipArchive
from modloader.mods.cache import ContentCache, DiskContentCache
from modloader.mods.descriptor import ModDescriptor
from modloader.mods.diagnostics import Diagnostics
from modloader.mods.entry import LoadingEntry
from modloader.mods.extractor import ArchiveExtractor
from modloader.mods.registry import ModRegistry
from modloader.mods.resolver import DependencyResolver
from modloader.mods.sorter import LoadOrderSorter

logger = logging.getLogger(__name__)

__all__ = [
    "ModuleLoader", "HasModule", "PakOnly", "ModuleSlot", "LoadedMod",
    "ModOrchestrator", "STAGES",
]

STAGE_DISCOVERY = "mod discovery"
STAGE_EXTRACTION = "mod extraction"
STAGE_DEPENDENCIES = "dependency resolution"
STAGE_SORT = "load order sorting"
STAGE_INITIALIZATION = "mod initialization"
STAGES = (STAGE_DISCOVERY, STAGE_EXTRACTION, STAGE_DEPENDENCIES, STAGE_SORT, STAGE_INITIALIZATION)



class ModuleLoader(Protocol):
    """
    Brings resolved payloads into the running process.

    loadDynamicModule raises (or returns None) when the module cannot be loaded.
    """
    def loadDynamicModule(self, path: Path) -> Any: ...
    def mountAssetPackage(self, path: Path) -> None: ...



@dataclass(frozen=True, slots=True)
class HasModule:
    handle: Any



@dataclass(frozen=True, slots=True)
class PakOnly:
    pass



ModuleSlot: TypeAlias = HasModule | PakOnly



@dataclass(frozen=True, slots=True)
class LoadedMod:
    descriptor: ModDescriptor
    module: ModuleSlot

    @property
    def modId(self) -> str:
        return self.descriptor.modId



class ModOrchestrator:
    """
    Runs discovery -> extraction -> dependency resolution -> sort -> handoff.

    Each stage gets its own diagnostics batch. Informational diagnostics are
    logged and the run goes on; any fatal one is reported with the whole batch
    and raises ModLoadingHalted before the next stage starts.
    """
    def __init__(
        self,
        paths: ModLoaderPaths,
        loader: ModuleLoader,
        *,
        cache: ContentCache | None = None,
        devMode: bool | Callable[[], bool] | None = None,
        builtinModule: Any = None,
        sink: logging.Logger | None = None,
    ) -> None:
        self.paths = paths
        self.loader = loader
        self.cache: ContentCache = cache if cache is not None else DiskContentCache(paths.cacheDir)
        self.registry = ModRegistry()
        self.extractor = ArchiveExtractor(self.cache, paths.configFileFor)
        self.resolver = DependencyResolver()
        self.sorter = LoadOrderSorter()
        self.builtinModule = builtinModule
        self.sink = sink or getDiagnosticsLogger()
        self._devMode = devMode
        self.history: list[Diagnostics] = []
        self.sortedEntries: list[LoadingEntry] = []
        self._loadedMods: dict[str, LoadedMod] = {}
        self._loadedOrder: list[str] = []

    def isDevMode(self) -> bool:
        if self._devMode is None:
            return settingsBool("debug.devModeEnabled", False)
        if callable(self._devMode):
            return bool(self._devMode())
        return bool(self._devMode)

    # ----- Stage plumbing -----

    def _beginStage(self, stage: str) -> Diagnostics:
        setLogContext(stage=stage)
        logger.info("Stage '%s' started", stage)
        diagnostics = Diagnostics(stage=stage)
        self.history.append(diagnostics)
        return diagnostics

    def _checkStageErrors(self, diagnostics: Diagnostics) -> None:
        diagnostics.logTo(self.sink)
        fatals = diagnostics.fatals
        if fatals:
            halted = ModLoadingHalted(diagnostics.stage, fatals)
            self.sink.critical(str(halted))
            clearLogContext()
            raise halted

    # ----- Stages -----

    def discoverMods(self) -> None:
        diagnostics = self._beginStage(STAGE_DISCOVERY)
        self.registry = ModRegistry()
        self.registry.discover(self.paths.modsDir, devMode=self.isDevMode(), diagnostics=diagnostics)
        self._checkStageErrors(diagnostics)

    def extractMods(self) -> None:
        diagnostics = self._beginStage(STAGE_EXTRACTION)
        for entry in self.registry.entries():
            if entry.isBuiltin or entry.isRawMod:
                continue
            setLogContext(modId=entry.modId)
            try:
                with ZipArchive(entry.sourceLocation) as archive:
                    self.extractor.extractArchiveObjects(archive, entry)
            except ModLoaderError as err:
                self.registry.invalidate(entry.modId)
                logger.error("Failed to extract data objects of '%s': %s", entry.modId, err.message)
                diagnostics.fromError(err, prefix=f"Failed to extract data objects from {entry.sourceLocation}: ")
            except (OSError, zipfile.BadZipFile) as err:
                self.registry.invalidate(entry.modId)
                logger.error("Failed to read archive '%s': %s", entry.sourceLocation, err)
                diagnostics.fatal(
                    ErrorKind.MISSING_OBJECT,
                    f"Failed to extract data objects from {entry.sourceLocation}: {err}",
                    (entry.modId,),
                )
            finally:
                setLogContext(modId=None)
        self._checkStageErrors(diagnostics)

    def resolveAndSort(self) -> list[LoadingEntry]:
        diagnostics = self._beginStage(STAGE_DEPENDENCIES)
        graph = self.resolver.resolve(self.registry.entries(), diagnostics)
        self._checkStageErrors(diagnostics)
        assert graph is not None

        diagnostics = self._beginStage(STAGE_SORT)
        ordered = self.sorter.sort(graph, diagnostics)
        self._checkStageErrors(diagnostics)
        assert ordered is not None

        self.sortedEntries = ordered
        logger.info("Final mod load order: %s", ", ".join(entry.modId for entry in ordered))
        return ordered

    def resolve(self) -> list[LoadingEntry]:
        """Runs every stage up to and including the sort; returns the final order."""
        self.history = []
        self.sortedEntries = []
        self._loadedMods.clear()
        self._loadedOrder.clear()
        self.discoverMods()
        self.extractMods()
        return self.resolveAndSort()

    def initializeMods(self) -> None:
        """
        Hands the ordered entries to the loader: modules first, then the loaded
        mod list, then asset packages, so packages can already see every mod.
        """
        diagnostics = self._beginStage(STAGE_INITIALIZATION)

        logger.info("Loading mod modules into the process...")
        handles: dict[str, Any] = {}
        for entry in self.sortedEntries:
            if entry.dynamicModulePath is None:
                continue
            try:
                handle = self.loader.loadDynamicModule(entry.dynamicModulePath)
                if handle is None:
                    raise RuntimeError("module not loaded")
            except Exception as err:
                message = f"Failed to load module {entry.modId}: {err}"
                logger.error(message)
                diagnostics.fatal(ErrorKind.MODULE_LOAD_FAILED, message, (entry.modId,))
                continue
            handles[entry.modId] = handle
            getModLogger(entry.modId).info("Module loaded from '%s'", entry.dynamicModulePath)

        logger.info("Populating mod list...")
        self._loadedMods.clear()
        self._loadedOrder.clear()
        for entry in self.sortedEntries:
            handle = self.builtinModule if entry.isBuiltin else handles.get(entry.modId)
            slot: ModuleSlot = HasModule(handle) if handle is not None else PakOnly()
            self._loadedMods[entry.modId] = LoadedMod(entry.descriptor, slot)
            self._loadedOrder.append(entry.modId)

        logger.info("Mounting mod asset packages...")
        for entry in self.sortedEntries:
            for pakPath in entry.orderedPakPaths:
                self.loader.mountAssetPackage(pakPath)
                getModLogger(entry.modId).debug("Asset package mounted from '%s'", pakPath)

        self._checkStageErrors(diagnostics)
        clearLogContext()

    def run(self) -> list[LoadedMod]:
        self.resolve()
        self.initializeMods()
        return [self._loadedMods[modId] for modId in self._loadedOrder]

    # ----- Consumer queries -----

    def getLoadedMods(self) -> list[str]:
        return list(self._loadedOrder)

    def isModLoaded(self, modId: str) -> bool:
        return modId in self._loadedMods

    def getLoadedMod(self, modId: str) -> LoadedMod:
        loaded = self._loadedMods.get(modId)
        if loaded is None:
            raise NotLoadedError(f"Mod with provided ID is not loaded: {modId}", modIds=(modId,))
        return loaded
