from .cache import ContentCache, DiskContentCache, InMemoryContentCache
from .descriptor import ModDescriptor, parseDescriptor
from .diagnostics import Diagnostic, Diagnostics, Severity
from .entry import LoadingEntry
from .extractor import ArchiveExtractor
from .orchestrator import HasModule, LoadedMod, ModOrchestrator, ModuleLoader, PakOnly
from .registry import ModRegistry
from .resolver import DependencyGraph, DependencyResolver
from .sorter import LoadOrderSorter

__all__ = [
    "ContentCache",
    "DiskContentCache",
    "InMemoryContentCache",
    "ModDescriptor",
    "parseDescriptor",
    "Diagnostic",
    "Diagnostics",
    "Severity",
    "LoadingEntry",
    "ArchiveExtractor",
    "HasModule",
    "LoadedMod",
    "ModOrchestrator",
    "ModuleLoader",
    "PakOnly",
    "ModRegistry",
    "DependencyGraph",
    "DependencyResolver",
    "LoadOrderSorter",
]
