"""Structured lifecycle events.

Every component takes an optional ``EventHook``; the default forwards events
to the ``convsync.events`` logger.
"""

import logging
from typing import Any, Callable

EventHook = Callable[[str, dict[str, Any]], None]

logger = logging.getLogger("convsync.events")

# Events that describe a recovered failure are logged at warning level.
_FAILURE_EVENTS = {
    "load.remote_failed",
    "load.fallback",
    "send.failed",
    "store.read_failed",
    "store.write_failed",
    "store.corrupt",
}


def log_event(event: str, fields: dict[str, Any]) -> None:
    """Default hook: write the event through stdlib logging."""
    level = logging.WARNING if event in _FAILURE_EVENTS else logging.INFO
    logger.log(level, "%s %s", event, fields)


class EventRecorder:
    """Hook that keeps every event in memory. Handy in tests and the CLI."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def __call__(self, event: str, fields: dict[str, Any]) -> None:
        self.events.append((event, dict(fields)))

    def names(self) -> list[str]:
        return [name for name, _ in self.events]


def emit(hook: EventHook, event: str, fields: dict[str, Any]) -> None:
    """Call ``hook``; a failing hook is logged and never reaches the caller."""
    try:
        hook(event, fields)
    except Exception:
        logger.exception("Event hook failed on %s", event)
