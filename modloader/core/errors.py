# modloader/core/errors.py
from __future__ import annotations

from collections.abc import Iterable, Sequence
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from modloader.mods.diagnostics import Diagnostic

__all__ = [
    "ErrorKind", "ModLoaderError",
    "InvalidManifestError", "MissingObjectError", "UnknownObjectTypeError",
    "UnsupportedFeatureError", "DuplicateModuleError", "NotLoadedError",
    "ModLoadingHalted",
]



class ErrorKind(str, Enum):
    INVALID_MANIFEST = "InvalidManifest"
    MISSING_OBJECT = "MissingObject"
    UNKNOWN_OBJECT_TYPE = "UnknownObjectType"
    UNSUPPORTED_FEATURE = "UnsupportedFeature"
    DUPLICATE_MODULE = "DuplicateModule"
    DUPLICATE_MOD_ID = "DuplicateModId"
    RAW_MOD_CONFLICT = "RawModConflict"
    RAW_MOD_REJECTED = "RawModRejected"
    MISSING_DEPENDENCY = "MissingDependency"
    VERSION_MISMATCH = "VersionMismatch"
    CYCLE_DETECTED = "CycleDetected"
    NOT_LOADED = "NotLoaded"
    MODULE_LOAD_FAILED = "ModuleLoadFailed"

    def __str__(self) -> str:
        return self.value



class ModLoaderError(Exception):
    """
    Base class for errors raised by a single resolution operation.

    Stage drivers catch these at the mod boundary and turn them into
    diagnostics, so one broken mod never stops its siblings from being processed.
    """
    kind: ErrorKind = ErrorKind.INVALID_MANIFEST

    def __init__(self, message: str, *, modIds: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.message = message
        self.modIds: tuple[str, ...] = tuple(modIds)



class InvalidManifestError(ModLoaderError):
    kind = ErrorKind.INVALID_MANIFEST



class MissingObjectError(ModLoaderError):
    kind = ErrorKind.MISSING_OBJECT



class UnknownObjectTypeError(ModLoaderError):
    kind = ErrorKind.UNKNOWN_OBJECT_TYPE



class UnsupportedFeatureError(ModLoaderError):
    kind = ErrorKind.UNSUPPORTED_FEATURE



class DuplicateModuleError(ModLoaderError):
    kind = ErrorKind.DUPLICATE_MODULE



class NotLoadedError(ModLoaderError, LookupError):
    """Raised by consumer queries for a modId that is not part of the loaded set."""
    kind = ErrorKind.NOT_LOADED



class ModLoadingHalted(RuntimeError):
    """
    Raised when a loading stage ends with fatal diagnostics.

    Carries the stage name and the whole diagnostic batch so the hosting
    process can report everything at once before terminating.
    """
    def __init__(self, stage: str, diagnostics: Sequence[Diagnostic]) -> None:
        lines = [f"Errors occurred during mod loading stage '{stage}'. Loading cannot continue:"]
        lines.extend(diag.message for diag in diagnostics)
        super().__init__("\n".join(lines))
        self.stage = stage
        self.diagnostics: tuple[Diagnostic, ...] = tuple(diagnostics)
