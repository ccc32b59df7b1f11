"""Turn raw capture-layer records into validated telemetry events.

The sandbox writes one JSON object per line to its terminal log. A broken
line (partial flush, bad JSON, wrong types) is skipped and counted; it never
aborts the parse.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable

from pydantic import ValidationError

from .schemas import TelemetryEvent, TelemetryLog

logger = logging.getLogger(__name__)


def coerce_events(entries: Iterable[Any] | None) -> TelemetryLog:
    events: list[TelemetryEvent] = []
    skipped = 0
    for entry in entries or []:
        if isinstance(entry, TelemetryEvent):
            events.append(entry)
            continue
        if not isinstance(entry, dict):
            skipped += 1
            continue
        try:
            events.append(TelemetryEvent.model_validate(entry))
        except ValidationError:
            skipped += 1
    if skipped:
        logger.warning("Skipped %d malformed telemetry entries", skipped)
    return TelemetryLog(events=events, skipped_entries=skipped)


def parse_jsonl_log(content: str | None) -> TelemetryLog:
    """Parse JSONL terminal log text; blank lines are ignored, bad lines counted."""
    raw_entries: list[Any] = []
    bad_lines = 0
    for line in (content or "").splitlines():
        if not line.strip():
            continue
        try:
            raw_entries.append(json.loads(line))
        except json.JSONDecodeError:
            bad_lines += 1

    log = coerce_events(raw_entries)
    if bad_lines:
        logger.warning("Skipped %d undecodable terminal log lines", bad_lines)
    return TelemetryLog(events=log.events, skipped_entries=log.skipped_entries + bad_lines)
