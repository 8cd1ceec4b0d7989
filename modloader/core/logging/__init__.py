# modloader/core/logging/__init__.py
from __future__ import annotations

from .context import setLogContext, clearLogContext, getLogContext
from .setup import configureLogging
from .util import getModLogger, getDiagnosticsLogger

__all__ = [
    "configureLogging",
    "getModLogger",
    "getDiagnosticsLogger",
    "setLogContext",
    "clearLogContext",
    "getLogContext",
]
