# modloader/mods/diagnostics.py
from __future__ import annotations
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum

from modloader.core.errors import ErrorKind, ModLoaderError

__all__ = ["Severity", "Diagnostic", "Diagnostics"]



class Severity(str, Enum):
    FATAL = "fatal"
    INFO = "info"



@dataclass(frozen=True, slots=True)
class Diagnostic:
    severity: Severity
    kind: ErrorKind
    message: str
    modIds: tuple[str, ...] = ()

    @property
    def isFatal(self) -> bool:
        return self.severity is Severity.FATAL

    def __str__(self) -> str:
        return f"[{self.kind}] {self.message}"



@dataclass
class Diagnostics:
    """
    Diagnostics collected during one stage.

    Stages only append; the orchestrator decides at stage end whether the
    batch is fatal.
    """
    stage: str = ""
    items: list[Diagnostic] = field(default_factory=list)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def fatal(self, kind: ErrorKind, message: str, modIds: Iterable[str] = ()) -> Diagnostic:
        diag = Diagnostic(Severity.FATAL, kind, message, tuple(modIds))
        self.items.append(diag)
        return diag

    def info(self, kind: ErrorKind, message: str, modIds: Iterable[str] = ()) -> Diagnostic:
        diag = Diagnostic(Severity.INFO, kind, message, tuple(modIds))
        self.items.append(diag)
        return diag

    def fromError(self, err: ModLoaderError, *, prefix: str = "") -> Diagnostic:
        message = f"{prefix}{err.message}" if prefix else err.message
        return self.fatal(err.kind, message, err.modIds)

    @property
    def fatals(self) -> list[Diagnostic]:
        return [diag for diag in self.items if diag.isFatal]

    @property
    def hasFatal(self) -> bool:
        return any(diag.isFatal for diag in self.items)

    def ofKind(self, kind: ErrorKind) -> list[Diagnostic]:
        return [diag for diag in self.items if diag.kind is kind]

    def logTo(self, sink: logging.Logger) -> None:
        """Writes the informational part of the batch; fatal reports are written by the orchestrator."""
        for diag in self.items:
            if not diag.isFatal:
                sink.warning("%s: %s", self.stage or "mods", diag)
