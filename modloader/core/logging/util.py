# modloader/core/logging/util.py
from __future__ import annotations

import logging



def getModLogger(modId: str) -> logging.Logger:
    return logging.getLogger(f"mods.{str(modId).strip()}")

def getDiagnosticsLogger() -> logging.Logger:
    return logging.getLogger("modloader.diagnostics")
