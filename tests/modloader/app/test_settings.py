# tests/modloader/app/test_settings.py
from __future__ import annotations
from pathlib import Path

import pytest

from modloader.app import settings as settingsModule
from modloader.app.settings import (
    ModLoaderPaths,
    SETTINGS_DEFAULTS,
    deepMerge,
    loadSettings,
    settings,
    settingsBool,
)


@pytest.fixture()
def user_settings(tmp_path, monkeypatch):
    """Writes a user settings file and points the loader at it."""
    def write(text: str) -> Path:
        target = tmp_path / "user-settings.json5"
        target.write_text(text, encoding="utf-8")
        monkeypatch.setenv(settingsModule.SETTINGS_ENV_VAR, str(target))
        loadSettings.cache_clear()
        return target
    return write


# -------- deepMerge --------

def test_deep_merge_nested_dicts():
    left = {"a": 1, "b": {"x": 1, "y": 2}}
    right = {"b": {"y": 5, "z": 9}, "c": 7}
    assert deepMerge(left, right) == {"a": 1, "b": {"x": 1, "y": 5, "z": 9}, "c": 7}


def test_deep_merge_non_dict_replaces():
    assert deepMerge({"a": {"x": 1}}, {"a": [1, 2]}) == {"a": [1, 2]}
    assert deepMerge([1, 2], [3]) == [3]


def test_deep_merge_does_not_mutate_inputs():
    left = {"b": {"x": 1}}
    right = {"b": {"y": 2}}
    deepMerge(left, right)
    assert left == {"b": {"x": 1}}
    assert right == {"b": {"y": 2}}


# -------- loadSettings --------

def test_defaults_without_user_file():
    assert settings("debug.devModeEnabled") is False
    assert settings("paths.modsDir") == SETTINGS_DEFAULTS["paths"]["modsDir"]
    assert settings("nope.missing", "fallback") == "fallback"


def test_user_file_overrides_defaults(user_settings, tmp_path):
    user_settings(f"""
    {{
        // comments and trailing commas are fine
        paths: {{ modsDir: "{(tmp_path / 'my-mods').as_posix()}", }},
        debug: {{ devModeEnabled: true }},
    }}
    """)
    assert settingsBool("debug.devModeEnabled") is True
    assert settings("paths.modsDir") == (tmp_path / "my-mods").as_posix()
    # untouched keys keep their defaults
    assert settings("paths.cacheDir") == SETTINGS_DEFAULTS["paths"]["cacheDir"]


def test_malformed_user_file_is_ignored(user_settings, caplog):
    user_settings("{ this is not json5")
    with caplog.at_level("ERROR"):
        assert settings("debug.devModeEnabled") is False
    assert any("Failed to parse" in rec.getMessage() for rec in caplog.records)


def test_non_object_user_file_is_ignored(user_settings):
    user_settings("[1, 2, 3]")
    assert loadSettings()["debug"] == {"devModeEnabled": False}


def test_settings_are_cached(user_settings):
    target = user_settings("{debug: {devModeEnabled: true}}")
    assert settingsBool("debug.devModeEnabled") is True
    target.write_text("{debug: {devModeEnabled: false}}", encoding="utf-8")
    assert settingsBool("debug.devModeEnabled") is True
    loadSettings.cache_clear()
    assert settingsBool("debug.devModeEnabled") is False


@pytest.mark.parametrize(
    "raw, expected",
    [("true", True), ('"yes"', True), ('"On"', True), ('"1"', True), ('"off"', False), ("0", False), ("1", True)],
)
def test_settings_bool_coercion(user_settings, raw, expected):
    user_settings(f"{{debug: {{devModeEnabled: {raw}}}}}")
    assert settingsBool("debug.devModeEnabled") is expected


# -------- ModLoaderPaths --------

def test_paths_from_settings(user_settings, tmp_path):
    user_settings(f"""{{paths: {{
        modsDir: "{(tmp_path / 'm').as_posix()}",
        cacheDir: "{(tmp_path / 'c').as_posix()}",
        configsDir: "{(tmp_path / 'cfg').as_posix()}",
    }}}}""")
    paths = ModLoaderPaths.fromSettings()
    assert paths == ModLoaderPaths(tmp_path / "m", tmp_path / "c", tmp_path / "cfg")
    assert paths.configFileFor("Foo") == tmp_path / "cfg" / "Foo.cfg"
