# tests/modloader/core/test_logging.py
from __future__ import annotations
import json
import logging
import logging.handlers
import sys

import pytest

from modloader.core.logging import (
    clearLogContext,
    configureLogging,
    getDiagnosticsLogger,
    getLogContext,
    getModLogger,
    setLogContext,
)
from modloader.core.logging.formatters import DevFormatter, JsonFormatter


@pytest.fixture(autouse=True)
def clean_context():
    clearLogContext()
    yield
    clearLogContext()


@pytest.fixture()
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(msg: str = "hello %s", args=("world",), exc_info=None) -> logging.LogRecord:
    return logging.LogRecord("modloader.test", logging.WARNING, __file__, 1, msg, args, exc_info)


def test_context_set_update_and_remove():
    setLogContext(stage="mod discovery", modId="Foo")
    setLogContext(modId=None)
    assert getLogContext() == {"stage": "mod discovery"}
    clearLogContext()
    assert getLogContext() is None


def test_dev_formatter_appends_context():
    assert DevFormatter().format(_record()) == "WARNING: [modloader.test] hello world"
    setLogContext(stage="mod extraction", modId="Foo")
    assert DevFormatter().format(_record()).endswith("hello world [mod extraction/Foo]")


def test_json_formatter_emits_one_object_per_record():
    setLogContext(stage="load order sorting")
    try:
        raise ValueError("boom")
    except ValueError:
        line = JsonFormatter().format(_record(exc_info=sys.exc_info()))

    payload = json.loads(line)
    assert "\n" not in line
    assert payload["level"] == "warning"
    assert payload["logger"] == "modloader.test"
    assert payload["msg"] == "hello world"
    assert payload["ctx"] == {"stage": "load order sorting"}
    assert payload["exc"]["type"] == "ValueError"
    assert payload["exc"]["message"] == "boom"


def test_named_loggers():
    assert getModLogger(" Foo ").name == "mods.Foo"
    assert getDiagnosticsLogger().name == "modloader.diagnostics"


def test_configure_logging_dev_with_file(restore_root_logger, tmp_path):
    logFile = tmp_path / "modloader.log"
    configureLogging(devMode=True, logFile=logFile)

    root = restore_root_logger
    assert root.level == logging.DEBUG
    fileHandlers = [h for h in root.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
    assert len(fileHandlers) == 1
    assert isinstance(fileHandlers[0].formatter, JsonFormatter)

    logging.getLogger("modloader.test").debug("written")
    fileHandlers[0].flush()
    assert json.loads(logFile.read_text(encoding="utf-8").splitlines()[-1])["msg"] == "written"


def test_configure_logging_prod_reads_settings(restore_root_logger):
    configureLogging()
    root = restore_root_logger
    assert root.level == logging.INFO
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, DevFormatter)
