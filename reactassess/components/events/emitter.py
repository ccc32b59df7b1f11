"""Domain event emission.

Core services call ``emit`` synchronously after a state change; where the
event goes (log line, queue, webhook) is up to the implementation.
"""

from __future__ import annotations

import enum
import json
import logging
from typing import Any, Dict, Protocol

logger = logging.getLogger(__name__)


class EventType(str, enum.Enum):
    EXERCISE_SCORED = "exercise_scored"
    EXERCISE_SELECTED = "exercise_selected"
    EXERCISE_POOL_EXHAUSTED = "exercise_pool_exhausted"
    PROFILE_GENERATED = "profile_generated"
    NARRATIVE_FAILED = "narrative_failed"


class EventEmitter(Protocol):
    def emit(self, event_type: EventType, payload: Dict[str, Any]) -> None: ...


class LoggingEventEmitter:
    """Writes each event as one structured log line; delivery problems are logged, not raised."""

    def __init__(self, log: logging.Logger | None = None):
        self._log = log or logger

    def emit(self, event_type: EventType, payload: Dict[str, Any]) -> None:
        try:
            body = json.dumps(payload, default=str, sort_keys=True)
        except (TypeError, ValueError) as exc:
            self._log.warning("Could not serialize %s event payload: %s", event_type.value, exc)
            body = "{}"
        self._log.info("event=%s payload=%s", event_type.value, body)


class NullEventEmitter:
    def emit(self, event_type: EventType, payload: Dict[str, Any]) -> None:
        return None


def make_event_emitter(enabled: bool = True) -> EventEmitter:
    return LoggingEventEmitter() if enabled else NullEventEmitter()
