"""AI-reliance score (0-1, higher = more reliant on assistant output)."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from ..telemetry.schemas import BehavioralMetrics
from .rules import PARTIAL_ACCEPTANCE_LINE_SHARE, RELIANCE_BLEND_POLICY, TERMINAL_RELIANCE_WEIGHTS
from .schemas import AcceptanceType, AssistantAcceptance
from .signals import Signal, blend, blend_with_policy

logger = logging.getLogger(__name__)

ACCEPTANCE_EVENT_TYPE = "claude_output_accepted"


def _line_count(text: str) -> int:
    return len(text.split("\n"))


def extract_acceptances(events: Iterable[Any] | None) -> List[AssistantAcceptance]:
    """Accept typed acceptances or stored ``{event_type, payload}`` dicts.

    Events of any other type are ignored.
    """
    acceptances: List[AssistantAcceptance] = []
    for event in events or []:
        if isinstance(event, AssistantAcceptance):
            acceptances.append(event)
            continue
        if isinstance(event, dict):
            event_type, payload = event.get("event_type"), event.get("payload")
        else:
            event_type, payload = getattr(event, "event_type", None), getattr(event, "payload", None)
        if event_type != ACCEPTANCE_EVENT_TYPE:
            continue
        try:
            acceptances.append(AssistantAcceptance.model_validate(payload or {}))
        except ValidationError as exc:
            logger.warning("Ignoring malformed acceptance payload: %s", exc.errors()[:1])
    return acceptances


def event_reliance_estimate(acceptances: List[AssistantAcceptance], final_code: str) -> float:
    if not final_code or not final_code.strip() or not acceptances:
        return 0.0

    accepted_lines = 0
    for acceptance in acceptances:
        if not acceptance.original:
            continue
        if acceptance.acceptance_type is AcceptanceType.FULL:
            accepted_lines += _line_count(acceptance.original)
        elif acceptance.acceptance_type is AcceptanceType.PARTIAL:
            accepted_lines += int(_line_count(acceptance.original) * PARTIAL_ACCEPTANCE_LINE_SHARE)

    return min(accepted_lines / _line_count(final_code), 1.0)


def terminal_reliance_estimate(metrics: BehavioralMetrics) -> float:
    if metrics.session_count == 0:
        return 0.0
    return min(
        blend(
            [
                Signal(
                    "time_in_assistant_ratio",
                    metrics.time_in_assistant_ratio,
                    TERMINAL_RELIANCE_WEIGHTS["time_in_assistant_ratio"],
                ),
                Signal(
                    "assistant_output_ratio",
                    metrics.assistant_output_ratio,
                    TERMINAL_RELIANCE_WEIGHTS["assistant_output_ratio"],
                ),
                Signal(
                    "assistant_typing_share",
                    1.0 - metrics.manual_activity_ratio,
                    TERMINAL_RELIANCE_WEIGHTS["assistant_typing_share"],
                ),
            ]
        ),
        1.0,
    )


def ai_reliance_score(
    events: Iterable[Any] | None,
    final_code: str,
    metrics: Optional[BehavioralMetrics] = None,
) -> float:
    """Combine terminal and acceptance-event evidence of assistant reliance.

    The terminal estimate dominates when telemetry exists; acceptance events
    count as evidence only when at least one was recorded.
    """
    acceptances = extract_acceptances(events)
    values = {
        "terminal": terminal_reliance_estimate(metrics) if metrics is not None else None,
        "event": event_reliance_estimate(acceptances, final_code) if acceptances else None,
    }
    return max(0.0, min(blend_with_policy(RELIANCE_BLEND_POLICY, values), 1.0))
