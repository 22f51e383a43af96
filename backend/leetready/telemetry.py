"""Structured sync events: logged as JSON lines and fanned out to listeners."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from threading import RLock
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from pydantic import BaseModel

logger = logging.getLogger("leetready.telemetry")

Listener = Callable[["TelemetryEvent"], None]


@dataclass(frozen=True)
class TelemetryEvent:
    name: str
    payload: Dict[str, Any]


_listeners: List[Listener] = []
_lock = RLock()


def register_listener(listener: Listener) -> Callable[[], None]:
    """Register an in-process listener and return a function that removes it."""
    with _lock:
        _listeners.append(listener)

    def _remove() -> None:
        with _lock:
            if listener in _listeners:
                _listeners.remove(listener)

    return _remove


def clear_listeners() -> None:
    with _lock:
        _listeners.clear()


@contextmanager
def capture_events(names: Optional[Sequence[str]] = None) -> Iterator[List[TelemetryEvent]]:
    """Collect events emitted inside the block, optionally only those named."""
    captured: List[TelemetryEvent] = []
    wanted = set(names) if names else None

    def _collect(event: TelemetryEvent) -> None:
        if wanted is None or event.name in wanted:
            captured.append(event)

    remove = register_listener(_collect)
    try:
        yield captured
    finally:
        remove()


def emit_event(name: str, **fields: Any) -> None:
    payload = {key: _sanitize(value) for key, value in fields.items()}
    event = TelemetryEvent(name=name, payload=payload)

    with _lock:
        listeners = list(_listeners)

    for listener in listeners:
        try:
            listener(event)
        except Exception:  # noqa: BLE001
            logger.exception("Telemetry listener failed for %s", name)

    logger.info("TELEMETRY %s", json.dumps({"event": name, **payload}, default=str))


def _sanitize(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    return value


__all__ = [
    "TelemetryEvent",
    "capture_events",
    "clear_listeners",
    "emit_event",
    "register_listener",
]
