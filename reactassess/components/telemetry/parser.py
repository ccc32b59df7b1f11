"""Terminal I/O analyzer for assistant-CLI behavioral scoring.

Parses captured terminal input/output into assistant sessions and derives
how the candidate split their time between the assistant and plain shell
work. Everything here is a pure function of the event list; re-parsing a
longer log simply recomputes from scratch.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Sequence

from ...platform.config import TerminalParserConfig, settings
from .loader import coerce_events
from .schemas import AssistantSession, BehavioralMetrics, Direction
from .state_machine import (
    CommandEntered,
    ParserState,
    SessionClosed,
    finish,
    transition,
)

logger = logging.getLogger(__name__)

PROMPTS_PER_SESSION_FOR_FULL_ITERATION = 5.0
DETAILED_PROMPT_LENGTH_CHARS = 80.0


def _ratio(numerator: float, denominator: float, default: float = 0.0) -> float:
    if denominator <= 0:
        return default
    return max(0.0, min(numerator / denominator, 1.0))


def _build_metrics(
    *,
    total_input_chars: int,
    total_output_chars: int,
    total_duration_ms: int,
    command_count: int,
    sessions: List[AssistantSession],
    skipped_entries: int,
) -> BehavioralMetrics:
    assistant_duration_ms = sum(s.duration_ms for s in sessions)
    assistant_prompt_count = sum(s.prompt_count for s in sessions)
    assistant_input_chars = sum(s.input_chars for s in sessions)
    assistant_output_chars = sum(s.output_chars for s in sessions)

    average_prompt_length = (
        assistant_input_chars / assistant_prompt_count if assistant_prompt_count > 0 else 0.0
    )
    prompts_per_session = assistant_prompt_count / len(sessions) if sessions else 0.0

    return BehavioralMetrics(
        total_input_chars=total_input_chars,
        total_output_chars=total_output_chars,
        total_duration_ms=total_duration_ms,
        command_count=command_count,
        sessions=sessions,
        session_count=len(sessions),
        assistant_duration_ms=assistant_duration_ms,
        assistant_prompt_count=assistant_prompt_count,
        assistant_input_chars=assistant_input_chars,
        assistant_output_chars=assistant_output_chars,
        time_in_assistant_ratio=_ratio(assistant_duration_ms, total_duration_ms),
        assistant_output_ratio=_ratio(assistant_output_chars, total_output_chars),
        # No typing at all means the work happened in the editor.
        manual_activity_ratio=_ratio(
            total_input_chars - assistant_input_chars, total_input_chars, default=1.0
        ),
        average_prompt_length=average_prompt_length,
        iteration_score=min(prompts_per_session / PROMPTS_PER_SESSION_FOR_FULL_ITERATION, 1.0),
        skipped_entries=skipped_entries,
    )


def analyze_terminal_log(
    entries: Iterable[Any] | None,
    config: TerminalParserConfig | None = None,
) -> BehavioralMetrics:
    """Build ``BehavioralMetrics`` from raw or validated telemetry entries."""
    config = config or settings.terminal_parser_config
    log = coerce_events(entries)
    if not log.events:
        return BehavioralMetrics.empty(skipped_entries=log.skipped_entries)

    ordered = sorted(log.events, key=lambda event: event.timestamp)
    total_duration_ms = ordered[-1].timestamp - ordered[0].timestamp

    total_input_chars = 0
    total_output_chars = 0
    command_count = 0
    sessions: List[AssistantSession] = []
    state = ParserState()

    for event in ordered:
        if event.direction is Direction.IN:
            total_input_chars += len(event.text)
        else:
            total_output_chars += len(event.text)

        state, effects = transition(state, event, config)
        for effect in effects:
            if isinstance(effect, CommandEntered):
                command_count += 1
            elif isinstance(effect, SessionClosed):
                sessions.append(effect.session)

    trailing = finish(state, ordered[-1].timestamp)
    if trailing is not None:
        sessions.append(trailing)

    metrics = _build_metrics(
        total_input_chars=total_input_chars,
        total_output_chars=total_output_chars,
        total_duration_ms=total_duration_ms,
        command_count=command_count,
        sessions=sessions,
        skipped_entries=log.skipped_entries,
    )
    logger.debug(
        "Analyzed terminal log events=%d sessions=%d commands=%d",
        len(ordered),
        metrics.session_count,
        command_count,
    )
    return metrics


def prompt_sophistication_score(metrics: BehavioralMetrics) -> float:
    """0-1 estimate of how deliberately the candidate prompted the assistant.

    Longer prompts, multi-turn refinement, and a handful of focused sessions
    score higher. Returns a neutral 0.5 when the assistant was never used.
    """
    if metrics.session_count == 0:
        return 0.5

    length_score = min(metrics.average_prompt_length / DETAILED_PROMPT_LENGTH_CHARS, 1.0)
    sessions = metrics.session_count
    if 1 <= sessions <= 5:
        strategic_score = 1.0
    else:
        strategic_score = max(0.3, 1.0 - (sessions - 5) * 0.1)

    return min(length_score * 0.4 + metrics.iteration_score * 0.35 + strategic_score * 0.25, 1.0)


def merge_metrics(parts: Sequence[BehavioralMetrics]) -> BehavioralMetrics:
    """Combine metrics of independently parsed logs.

    Totals add up and assistant sessions are concatenated; the idle time
    between logs is not counted towards any duration.
    """
    if not parts:
        return BehavioralMetrics.empty()
    if len(parts) == 1:
        return parts[0]
    return _build_metrics(
        total_input_chars=sum(m.total_input_chars for m in parts),
        total_output_chars=sum(m.total_output_chars for m in parts),
        total_duration_ms=sum(m.total_duration_ms for m in parts),
        command_count=sum(m.command_count for m in parts),
        sessions=[s for m in parts for s in m.sessions],
        skipped_entries=sum(m.skipped_entries for m in parts),
    )


def analyze_terminal_sessions(
    logs: Mapping[str, Iterable[Any]],
    config: TerminalParserConfig | None = None,
) -> BehavioralMetrics:
    """Parse each sandbox session's log on its own, then merge.

    An assistant left open at the end of one log closes there instead of
    swallowing the next session's shell commands.
    """
    return merge_metrics([analyze_terminal_log(entries, config) for entries in logs.values()])
