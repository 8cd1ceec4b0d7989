# modloader/mods/entry.py
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path

from modloader.mods.constants import ORDER_LOAD_LAST
from modloader.mods.descriptor import ModDescriptor

__all__ = ["LoadingEntry"]



@dataclass(slots=True)
class LoadingEntry:
    """
    In-progress record for one mod.

    Created at discovery, filled in during extraction (payload paths),
    read-only from dependency resolution onwards.
    """
    descriptor: ModDescriptor
    sourceLocation: Path        # archive/raw file (or virtual path) the mod came from
    isValid: bool = True
    isRawMod: bool = False
    isBuiltin: bool = False
    dynamicModulePath: Path | None = None
    orderedPakPaths: list[Path] = field(default_factory=list)

    @property
    def modId(self) -> str:
        return self.descriptor.modId

    @property
    def loadLast(self) -> bool:
        return ORDER_LOAD_LAST in self.descriptor.orderConstraints
