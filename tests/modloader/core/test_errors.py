# tests/modloader/core/test_errors.py
from __future__ import annotations
import hashlib

from modloader.core.errors import ErrorKind, MissingObjectError, ModLoadingHalted
from modloader.core.hashing import sha256Bytes, sha256File
from modloader.mods.diagnostics import Diagnostics, Severity


def test_error_carries_kind_and_mod_ids():
    err = MissingObjectError("gone", modIds=["A"])
    assert err.kind is ErrorKind.MISSING_OBJECT
    assert err.modIds == ("A",)
    assert str(err) == "gone"


def test_halt_message_lists_every_fatal():
    diagnostics = Diagnostics(stage="mod extraction")
    diagnostics.fatal(ErrorKind.MISSING_OBJECT, "first")
    diagnostics.info(ErrorKind.MISSING_DEPENDENCY, "just a note")
    diagnostics.fromError(MissingObjectError("second", modIds=("B",)), prefix="B: ")

    halted = ModLoadingHalted(diagnostics.stage, diagnostics.fatals)
    assert str(halted).splitlines() == [
        "Errors occurred during mod loading stage 'mod extraction'. Loading cannot continue:",
        "first",
        "B: second",
    ]
    assert [diag.severity for diag in diagnostics] == [Severity.FATAL, Severity.INFO, Severity.FATAL]
    assert halted.diagnostics[1].modIds == ("B",)


def test_hashing_helpers_agree(tmp_path):
    data = b"x" * 20000
    target = tmp_path / "blob"
    target.write_bytes(data)
    assert sha256Bytes(data) == sha256File(target) == hashlib.sha256(data).hexdigest()
