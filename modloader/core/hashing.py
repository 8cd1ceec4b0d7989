# modloader/core/hashing.py
from __future__ import annotations

import hashlib
from pathlib import Path

__all__ = ["sha256Bytes", "sha256File"]



def sha256Bytes(data: bytes) -> str:
    """Returns the SHA-256 hex digest of an in-memory payload."""
    return hashlib.sha256(data).hexdigest()



def sha256File(path: str | Path) -> str:
    """Returns a SHA-256 hex digest of the file content, read in chunks."""
    sha = hashlib.sha256()
    with Path(path).open("rb") as file:
        for chunk in iter(lambda: file.read(8192), b""):
            sha.update(chunk)

    return sha.hexdigest()
