# modloader/core/logging/setup.py
from __future__ import annotations
import logging
import logging.handlers
from pathlib import Path

from .formatters import DevFormatter, JsonFormatter

__all__ = ["configureLogging"]



def configureLogging(*, devMode: bool | None = None, logFile: str | Path | None = None) -> None:
    """
    Initiate the global logging configuration.

    Dev:
      - Console pretty logs (DEBUG)
      - JSON file log (DEBUG), when a log file is configured

    Prod:
      - Console INFO
      - JSON file log INFO with rotation, when a log file is configured

    Missing arguments are read from settings ("debug.devModeEnabled", "logging.file").
    """
    from modloader.app.settings import settings, settingsBool

    if devMode is None:
        devMode = settingsBool("debug.devModeEnabled", False)
    if logFile is None:
        logFile = settings("logging.file", None)
    rootLevel = logging.DEBUG if devMode else logging.INFO

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(rootLevel)

    consoleHandler = logging.StreamHandler()
    consoleHandler.setLevel(rootLevel)
    consoleHandler.setFormatter(DevFormatter())
    root.addHandler(consoleHandler)

    if logFile:
        fileHandler = logging.handlers.RotatingFileHandler(
            str(logFile),
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8"
        )
        fileHandler.setLevel(rootLevel)
        fileHandler.setFormatter(JsonFormatter())
        root.addHandler(fileHandler)
