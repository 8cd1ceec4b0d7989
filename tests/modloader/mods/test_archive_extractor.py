# tests/modloader/mods/test_archive_extractor.py
from __future__ import annotations
import zipfile
from pathlib import Path

import pytest

from modloader.core.errors import (
    DuplicateModuleError,
    ErrorKind,
    InvalidManifestError,
    MissingObjectError,
    UnknownObjectTypeError,
    UnsupportedFeatureError,
)
from modloader.mods.archive import MemoryArchive, ZipArchive
from modloader.mods.cache import DiskContentCache, InMemoryContentCache
from modloader.mods.descriptor import parseDescriptor
from modloader.mods.entry import LoadingEntry
from modloader.mods.extractor import ArchiveExtractor


def _entry(modId: str = "Demo", objects: str = "[]") -> LoadingEntry:
    descriptor = parseDescriptor(f'{{"modid": "{modId}", "version": "1.0.0", "objects": {objects}}}')
    return LoadingEntry(descriptor=descriptor, sourceLocation=Path(f"{modId}.zip"))


@pytest.fixture()
def configs_dir(tmp_path) -> Path:
    return tmp_path / "configs"


@pytest.fixture()
def extractor(configs_dir) -> ArchiveExtractor:
    return ArchiveExtractor(InMemoryContentCache(), lambda modId: configs_dir / f"{modId}.cfg")


def test_pak_objects_are_cached_and_appended_in_order(extractor):
    archive = MemoryArchive({"a.pak": b"AAA", "b.pak": b"BBB"})
    entry = _entry()

    extractor.extractObject(archive, "pak", "a.pak", entry)
    extractor.extractObject(archive, "pak", "b.pak", entry)

    cache = extractor.cache
    assert [cache.get(path.name) for path in entry.orderedPakPaths] == [b"AAA", b"BBB"]
    assert entry.dynamicModulePath is None


def test_module_object_sets_module_path(extractor):
    archive = MemoryArchive({"Demo.dll": b"MZ"})
    entry = _entry()
    extractor.extractObject(archive, "sml_mod", "Demo.dll", entry)
    assert entry.dynamicModulePath is not None
    assert extractor.cache.get(entry.dynamicModulePath.name) == b"MZ"


def test_second_module_is_rejected(extractor):
    archive = MemoryArchive({"one.dll": b"1", "two.dll": b"2"})
    entry = _entry()
    extractor.extractObject(archive, "sml_mod", "one.dll", entry)
    with pytest.raises(DuplicateModuleError) as excInfo:
        extractor.extractObject(archive, "sml_mod", "two.dll", entry)
    assert excInfo.value.kind is ErrorKind.DUPLICATE_MODULE


def test_missing_object(extractor):
    with pytest.raises(MissingObjectError) as excInfo:
        extractor.extractObject(MemoryArchive({}), "pak", "ghost.pak", _entry())
    assert excInfo.value.modIds == ("Demo",)


def test_core_mods_are_unsupported(extractor):
    with pytest.raises(UnsupportedFeatureError):
        extractor.extractObject(MemoryArchive({"core.bin": b"x"}), "core_mod", "core.bin", _entry())


def test_unknown_object_type(extractor):
    with pytest.raises(UnknownObjectTypeError):
        extractor.extractObject(MemoryArchive({"x.txt": b"x"}), "texture", "x.txt", _entry())


def test_config_written_once_and_never_cached(extractor, configs_dir):
    entry = _entry()
    extractor.extractObject(MemoryArchive({"config.cfg": b"first"}), "config", "config.cfg", entry)
    extractor.extractObject(MemoryArchive({"config.cfg": b"second"}), "config", "config.cfg", entry)

    assert (configs_dir / "Demo.cfg").read_bytes() == b"first"
    assert extractor.cache.entries == {}
    assert entry.orderedPakPaths == []


def test_existing_user_config_is_preserved(extractor, configs_dir):
    configs_dir.mkdir()
    (configs_dir / "Demo.cfg").write_bytes(b"user edited")
    extractor.extractObject(MemoryArchive({"config.cfg": b"default"}), "config", "config.cfg", _entry())
    assert (configs_dir / "Demo.cfg").read_bytes() == b"user edited"


def test_extract_archive_objects_requires_objects_array(extractor):
    entry = LoadingEntry(descriptor=parseDescriptor('{"modid": "NoObjects", "version": "1.0.0"}'), sourceLocation=Path("x.zip"))
    with pytest.raises(InvalidManifestError):
        extractor.extractArchiveObjects(MemoryArchive({}), entry)


def test_extract_archive_objects_stops_at_first_failure(extractor):
    entry = _entry(objects='[{"type": "pak", "path": "ok.pak"}, {"type": "pak", "path": "gone.pak"}, {"type": "pak", "path": "later.pak"}]')
    archive = MemoryArchive({"ok.pak": b"ok", "later.pak": b"later"})
    with pytest.raises(MissingObjectError):
        extractor.extractArchiveObjects(archive, entry)
    assert len(entry.orderedPakPaths) == 1


def test_identical_payloads_from_two_archives_share_one_cache_entry(tmp_path, mod_archive, monkeypatch):
    cache = DiskContentCache(tmp_path / "cache")
    writes: list = []
    original = cache._write
    monkeypatch.setattr(cache, "_write", lambda path, data: (writes.append(path), original(path, data)))
    extractor = ArchiveExtractor(cache, lambda modId: tmp_path / "configs" / f"{modId}.cfg")

    objects = '[{"type": "pak", "path": "shared.pak"}]'
    entries = []
    for name in ("First", "Second"):
        path = mod_archive(tmp_path / f"{name}.zip", None, {"shared.pak": b"identical payload"})
        entry = _entry(name, objects)
        with ZipArchive(path) as archive:
            extractor.extractArchiveObjects(archive, entry)
        entries.append(entry)

    assert entries[0].orderedPakPaths == entries[1].orderedPakPaths
    assert len(writes) == 1
    assert len(list((tmp_path / "cache").iterdir())) == 1


def test_undecodable_payload_is_a_missing_object(tmp_path, mod_archive, corrupt_member, extractor):
    path = mod_archive(tmp_path / "Demo.zip", None, {"big.pak": b"asset " * 500}, compression=zipfile.ZIP_DEFLATED)
    corrupt_member(path, "big.pak")

    entry = _entry()
    with ZipArchive(path) as archive:
        with pytest.raises(MissingObjectError) as excInfo:
            extractor.extractObject(archive, "pak", "big.pak", entry)

    assert excInfo.value.modIds == ("Demo",)
    assert "big.pak" in excInfo.value.message
    assert entry.orderedPakPaths == []
