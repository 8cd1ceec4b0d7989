# modloader/mods/constants.py
from __future__ import annotations

__all__ = [
    "ARCHIVE_EXTENSIONS", "RAW_MODULE_EXTENSIONS", "RAW_PAK_EXTENSIONS",
    "MANIFEST_FILE_NAME", "PAK_PRIORITY_SUFFIX",
    "OBJECT_CONFIG", "OBJECT_PAK", "OBJECT_MODULE", "OBJECT_CORE_MOD",
    "ORDER_LOAD_LAST", "LEGACY_ORDER_LAST_KEY",
    "BUILTIN_MOD_ID", "RAW_MOD_VERSION",
]



# Packaged mods: an archive holding data.json plus the objects it declares.
ARCHIVE_EXTENSIONS = {".zip", ".smod"}
MANIFEST_FILE_NAME = "data.json"

# Loose development artifacts, accepted only in development mode.
RAW_MODULE_EXTENSIONS = {".dll", ".so", ".dylib"}
RAW_PAK_EXTENSIONS = {".pak"}
PAK_PRIORITY_SUFFIX = "_p"

# Declared object types inside data.json
OBJECT_CONFIG = "config"
OBJECT_PAK = "pak"
OBJECT_MODULE = "sml_mod"
OBJECT_CORE_MOD = "core_mod"

# Order constraint tags
ORDER_LOAD_LAST = "load-last"
LEGACY_ORDER_LAST_KEY = "@ORDER:LAST"

BUILTIN_MOD_ID = "modloader"
RAW_MOD_VERSION = "1.0.0"
