# modloader/core/logging/context.py
from __future__ import annotations
import contextvars

# Ambient fields attached to every record: the running stage and the mod being processed.
_logContextVar: contextvars.ContextVar[dict[str, object] | None] = contextvars.ContextVar("modloader.logctx", default=None)

def setLogContext(**kvs):
    """Set or update per-log context values (stage, modId, etc.). None removes a key."""
    current = dict(_logContextVar.get() or {}) # use copy
    for key, value in kvs.items():
        if value is None:
            current.pop(key, None)
        else:
            current[key] = value
    _logContextVar.set(current)

def clearLogContext():
    """Clear context after a run has finished."""
    _logContextVar.set(None)

def getLogContext():
    """Return current context dict or None."""
    return _logContextVar.get()
