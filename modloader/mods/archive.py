# modloader/mods/archive.py
from __future__ import annotations
import zipfile
import zlib
from pathlib import Path
from typing import Protocol

from modloader.core.errors import MissingObjectError

__all__ = ["Archive", "ZipArchive", "MemoryArchive"]

# Failures zipfile lets through when a member's stored bytes are damaged,
# encrypted or use a compression method it cannot decode.
_MEMBER_READ_ERRORS = (zipfile.BadZipFile, zlib.error, RuntimeError, NotImplementedError, EOFError, OSError)



class Archive(Protocol):
    """The only archive capability the engine needs: find a member by name and read it."""
    def read(self, name: str) -> bytes | None: ...



class ZipArchive:
    """
    Read-only view over a .zip/.smod package.

    `read` returns None for an absent member and raises MissingObjectError
    for a member that is present but cannot be decoded.
    """
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._zip = zipfile.ZipFile(self.path, "r")
        # Member lookup tolerates Windows separators and a leading "./"
        self._members: dict[str, str] = {}
        for info in self._zip.infolist():
            if not info.is_dir():
                self._members.setdefault(self._normalize(info.filename), info.filename)

    @staticmethod
    def _normalize(name: str) -> str:
        name = name.replace("\\", "/")
        while name.startswith("./"):
            name = name[2:]
        return name.lstrip("/")

    def read(self, name: str) -> bytes | None:
        member = self._members.get(self._normalize(name))
        if member is None:
            return None
        try:
            return self._zip.read(member)
        except _MEMBER_READ_ERRORS as err:
            raise MissingObjectError(
                f"cannot read '{member}' from {self.path}: {type(err).__name__}: {err}"
            ) from err

    def close(self) -> None:
        self._zip.close()

    def __enter__(self) -> ZipArchive:
        return self

    def __exit__(self, *exc) -> None:
        self.close()



class MemoryArchive:
    """Archive backed by a name -> bytes mapping."""
    def __init__(self, files: dict[str, bytes]) -> None:
        self.files = dict(files)

    def read(self, name: str) -> bytes | None:
        return self.files.get(name)
