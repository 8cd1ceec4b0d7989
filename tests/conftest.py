import sys
import zipfile
from pathlib import Path
from typing import Any

import json5
import pytest

from modloader.app import settings as settingsModule



def pytest_configure(config: pytest.Config) -> None:
    if sys.flags.optimize:
        raise RuntimeError("Assertions are disabled (optimize > 0)")



@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keeps the developer's ~/.modloader/settings.json5 out of every test."""
    monkeypatch.setenv(settingsModule.SETTINGS_ENV_VAR, str(tmp_path / "no-such-settings.json5"))
    settingsModule.loadSettings.cache_clear()
    yield
    settingsModule.loadSettings.cache_clear()



class RecordingLoader:
    """ModuleLoader double that remembers every call."""
    def __init__(self, failOn: set[str] | None = None) -> None:
        self.loaded: list[Path] = []
        self.mounted: list[Path] = []
        self.failOn = failOn or set()

    def loadDynamicModule(self, path: Path) -> Any:
        if path.name in self.failOn:
            raise OSError(f"cannot load {path.name}")
        self.loaded.append(path)
        return f"handle:{path.name}"

    def mountAssetPackage(self, path: Path) -> None:
        self.mounted.append(path)



@pytest.fixture()
def recording_loader() -> RecordingLoader:
    return RecordingLoader()



def write_mod_archive(
    target: Path,
    manifest: dict[str, Any] | str | None,
    files: dict[str, bytes] | None = None,
    compression: int = zipfile.ZIP_STORED,
) -> Path:
    """
    Writes a .zip/.smod mod package. `manifest` may be a dict (dumped as JSON5),
    raw text (written verbatim) or None (no data.json at all).
    """
    target.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(target, "w", compression=compression) as archive:
        if isinstance(manifest, dict):
            archive.writestr("data.json", json5.dumps(manifest, indent=2))
        elif isinstance(manifest, str):
            archive.writestr("data.json", manifest)
        for name, data in (files or {}).items():
            archive.writestr(name, data)
    return target



@pytest.fixture()
def mod_archive():
    return write_mod_archive



def clobber_member(archivePath: Path, member: str) -> None:
    """
    Overwrites the first bytes of `member`'s stored data in place. On a deflated
    member this yields an invalid block type when the member is read.
    """
    with zipfile.ZipFile(archivePath) as archive:
        info = archive.getinfo(member)
    with archivePath.open("r+b") as fl:
        fl.seek(info.header_offset + 26)
        nameLength = int.from_bytes(fl.read(2), "little")
        extraLength = int.from_bytes(fl.read(2), "little")
        fl.seek(info.header_offset + 30 + nameLength + extraLength)
        fl.write(b"\xff" * min(4, info.compress_size))



@pytest.fixture()
def corrupt_member():
    return clobber_member
