# modloader/app/settings.py
from __future__ import annotations
import json5, os
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from functools import lru_cache

from modloader.app.paths import ROOT_DIR

import logging
logger = logging.getLogger(__name__)

__all__ = [
    "SETTINGS_DEFAULTS", "SETTINGS_ENV_VAR", "userSettingsPath", "loadUserSettings",
    "loadSettings", "deepMerge", "settings", "settingsBool", "ModLoaderPaths",
]


SETTINGS_ENV_VAR = "MODLOADER_SETTINGS"
SETTINGS_DEFAULTS: dict[str, Any] = {
    "__source": "MODLOADER_DEFAULTS",
    "paths": {
        "modsDir": str(ROOT_DIR / "mods"),
        "cacheDir": str(ROOT_DIR / "cache"),
        "configsDir": str(ROOT_DIR / "configs"),
    },
    "debug": {"devModeEnabled": False},
    "logging": {"file": None},
}



def userSettingsPath() -> Path:
    override = os.environ.get(SETTINGS_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path(os.path.expanduser("~/.modloader/settings.json5"))



def loadUserSettings() -> dict[str, Any]:
    filePath = userSettingsPath()
    if filePath.exists():
        try:
            loaded = json5.loads(filePath.read_text(encoding="utf-8"))
        except Exception as err:
            logger.error("Failed to parse '%s': %s", filePath, err)
            return {}
        if isinstance(loaded, dict):
            return loaded
        logger.error("Ignoring '%s': top level must be an object, got %s", filePath, type(loaded).__name__)
    return {}



@lru_cache(maxsize=1)
def loadSettings() -> dict[str, Any]:
    return deepMerge(SETTINGS_DEFAULTS, loadUserSettings())



def deepMerge(first: Any, second: Any) -> Any:
    """
    Returns a new value where keys from `second` override/extend `first`.
    Only merges recursively when BOTH sides are dicts; any other right-hand
    value replaces the left one.
    """
    if isinstance(first, dict) and isinstance(second, dict):
        out: dict[str, Any] = dict(first)
        for key, value in second.items():
            out[key] = deepMerge(out[key], value) if key in out else value
        return out
    return second



def _getByPath(obj: Any, path: str) -> Any:
    current = obj
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return None
        current = current[part]
    return current

# ---------- Ergonomic accessors over merged settings ----------

def settings(path: str, default: Any = None) -> Any:
    """Returns value at dotted `path` from merged settings, or `default` if missing."""
    val = _getByPath(loadSettings(), path)
    return default if val is None else val



def settingsBool(path: str, default: bool = False) -> bool:
    """Returns bool value at `path` or `default` if missing."""
    val = _getByPath(loadSettings(), path)
    if isinstance(val, bool):
        return val
    if val is None:
        return default
    if isinstance(val, str):
        return val.strip().lower() in ("1", "true", "yes", "on")
    return bool(val)

# --------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ModLoaderPaths:
    """Directory layout used by one resolution run."""
    modsDir: Path               # scanned for archives and (dev only) raw mods
    cacheDir: Path              # content-addressed payloads, named by hex digest
    configsDir: Path            # one extracted config file per modId

    @classmethod
    def fromSettings(cls) -> ModLoaderPaths:
        return cls(
            modsDir=Path(settings("paths.modsDir")).expanduser(),
            cacheDir=Path(settings("paths.cacheDir")).expanduser(),
            configsDir=Path(settings("paths.configsDir")).expanduser(),
        )

    def configFileFor(self, modId: str) -> Path:
        return self.configsDir / f"{modId}.cfg"
