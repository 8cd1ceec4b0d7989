# modloader/mods/cache.py
from __future__ import annotations
import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from threading import Lock
from typing import Protocol, runtime_checkable

from modloader.core.hashing import sha256Bytes, sha256File

logger = logging.getLogger(__name__)

__all__ = ["ContentCache", "DiskContentCache", "InMemoryContentCache"]



@runtime_checkable
class ContentCache(Protocol):
    """
    Content-addressed store for extracted payloads.

    Keys are hex SHA-256 digests of the stored bytes. An entry whose bytes no
    longer hash to its key counts as absent.
    """
    def put(self, data: bytes) -> str: ...
    def get(self, digest: str) -> bytes | None: ...
    def verify(self, digest: str) -> bool: ...
    def locate(self, digest: str) -> Path: ...



class DiskContentCache:
    """
    Cache directory whose files are named by the hex digest of their content.

    `put` for the same digest is serialized by a per-digest lock: the first
    caller materializes the file, later callers wait and then reuse it. A
    digest's lock is dropped once no caller holds or waits for it.
    """
    def __init__(self, cacheDir: str | Path) -> None:
        self.cacheDir = Path(cacheDir)
        self._locksGuard = Lock()
        # digest -> [lock, number of callers holding or waiting for it]
        self._locks: dict[str, list] = {}

    @contextmanager
    def _digestLock(self, digest: str) -> Iterator[None]:
        with self._locksGuard:
            slot = self._locks.get(digest)
            if slot is None:
                slot = self._locks[digest] = [Lock(), 0]
            slot[1] += 1
        try:
            with slot[0]:
                yield
        finally:
            with self._locksGuard:
                slot[1] -= 1
                if slot[1] == 0:
                    del self._locks[digest]

    def locate(self, digest: str) -> Path:
        return self.cacheDir / digest

    def verify(self, digest: str) -> bool:
        path = self.locate(digest)
        if not path.is_file():
            return False
        try:
            return sha256File(path) == digest
        except OSError as err:
            logger.warning("Cannot read cache entry '%s': %s", path, err)
            return False

    def get(self, digest: str) -> bytes | None:
        if not self.verify(digest):
            return None
        return self.locate(digest).read_bytes()

    def put(self, data: bytes) -> str:
        digest = sha256Bytes(data)
        with self._digestLock(digest):
            if self.verify(digest):
                logger.debug("Cache hit for %s", digest)
                return digest
            path = self.locate(digest)
            if path.exists():
                logger.warning("Cache entry '%s' is corrupted; rebuilding", path)
            self._write(path, data)
        return digest

    def _write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        # Atomic write
        tmpPath = path.with_name(f"{path.name}.{os.getpid()}.tmp")
        try:
            with open(tmpPath, "wb") as fl:
                fl.write(data)
            os.replace(tmpPath, path)
        finally:
            tmpPath.unlink(missing_ok=True)
        logger.debug("Cached %d bytes at '%s'", len(data), path)



class InMemoryContentCache:
    """Dict-backed cache with virtual locations; used where no disk is wanted."""
    def __init__(self, root: str | Path = "memory-cache") -> None:
        self.root = Path(root)
        self.entries: dict[str, bytes] = {}
        self.writes = 0

    def locate(self, digest: str) -> Path:
        return self.root / digest

    def verify(self, digest: str) -> bool:
        data = self.entries.get(digest)
        return data is not None and sha256Bytes(data) == digest

    def get(self, digest: str) -> bytes | None:
        return self.entries[digest] if self.verify(digest) else None

    def put(self, data: bytes) -> str:
        digest = sha256Bytes(data)
        if not self.verify(digest):
            self.entries[digest] = bytes(data)
            self.writes += 1
        return digest
