"""
Structured event emission
=========================

Every heatgraph stage reports progress through an injected emitter:

    emit(kind: str, payload: dict)

The emitter is supplied by the pipeline driver (a UI stream, a test
collector, ...). Log events are also mirrored to the stdlib ``logging``
hierarchy under ``heatgraph.*`` so that library users who never pass an
emitter still see warnings.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

# Event emitter signature
EmitFn = Callable[[str, Dict[str, Any]], None]


def DEFAULT_EMIT(kind: str, payload: Optional[Dict[str, Any]] = None) -> None:
    """Fallback no-op event emitter."""
    return None


_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def log_event(
    emit: Optional[EmitFn],
    level: str,
    msg: str,
    *,
    logger: Optional[logging.Logger] = None,
    **fields: Any,
) -> None:
    """
    Emit a structured log event and mirror it to ``logging``.

    Parameters
    ----------
    emit : callable or None
        Pipeline emitter, typically ``emit("log", {...})``.
    level : str
        Log severity: "info", "warn", "error".
    msg : str
        Human readable message.
    logger : logging.Logger, optional
        Logger to mirror into; defaults to the ``heatgraph`` root logger.
    fields : dict
        Additional structured metadata.
    """
    payload: Dict[str, Any] = {"level": level, "msg": msg, "ts": time.time()}
    payload.update(fields)

    (logger or logging.getLogger("heatgraph")).log(
        _LEVELS.get(level, logging.INFO), "%s %s", msg, fields if fields else ""
    )

    if emit is None:
        return
    try:
        emit("log", payload)
    except Exception:
        # A broken emitter must not break the pipeline
        logging.getLogger("heatgraph").exception("Emitter failed for log event: %s", msg)


# ---------------------------------------------------------------------------
# Collector used by tests and by callers that want to inspect a run
# ---------------------------------------------------------------------------

@dataclass
class EventRecorder:
    """
    Emitter that stores every event it receives.

    Usage::

        rec = EventRecorder()
        ingest_repository(files, emit=rec)
        rec.messages("warn")
    """

    events: list = field(default_factory=list)

    def __call__(self, kind: str, payload: Optional[Dict[str, Any]] = None) -> None:
        self.events.append((kind, dict(payload or {})))

    def messages(self, level: Optional[str] = None) -> list:
        return [
            p.get("msg", "")
            for kind, p in self.events
            if kind == "log" and (level is None or p.get("level") == level)
        ]

    def of_kind(self, kind: str) -> list:
        return [p for k, p in self.events if k == kind]


__all__ = ["EmitFn", "DEFAULT_EMIT", "log_event", "EventRecorder"]
