"""Fast code-quality score (0-1) used between exercises.

Regex and arithmetic only, no model call, so it can run on every submission.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Mapping, Optional, Pattern

from ..telemetry.schemas import BehavioralMetrics
from .rules import (
    BEHAVIOR_WEIGHTS,
    COMMANDS_FOR_FULL_ACTIVITY,
    FUNCTION_DEFINITION_PATTERN,
    QUALITY_BALANCE_FULL,
    QUALITY_BALANCE_PARTIAL,
    QUALITY_BLEND_POLICY,
    QUALITY_DECOMPOSITION_FULL,
    QUALITY_DECOMPOSITION_PARTIAL,
    QUALITY_LENGTH_FULL,
    QUALITY_LENGTH_OVERSIZED,
    QUALITY_LINE_BAND,
    QUALITY_TOPIC_WEIGHT,
    TOPIC_PATTERNS,
)
from .schemas import TestRunResult
from .signals import Signal, blend, blend_with_policy


def _compile(patterns: Iterable[str | Pattern[str]]) -> List[Pattern[str]]:
    return [p if isinstance(p, re.Pattern) else re.compile(p) for p in patterns]


def _topic_patterns(
    topics: Iterable[str],
    overrides: Optional[Mapping[str, Iterable[str | Pattern[str]]]] = None,
) -> List[Pattern[str]]:
    patterns: List[Pattern[str]] = []
    for topic in topics or []:
        if overrides and topic in overrides:
            patterns.extend(_compile(overrides[topic]))
        else:
            patterns.extend(TOPIC_PATTERNS.get(topic, []))
    return patterns


def code_quality_breakdown(
    code: str,
    topics: Iterable[str],
    topic_patterns: Optional[Mapping[str, Iterable[str | Pattern[str]]]] = None,
) -> Dict[str, float]:
    """Per-heuristic contributions; their sum (capped at 1) is the heuristic score."""
    breakdown = {
        "topic_coverage": 0.0,
        "decomposition": 0.0,
        "length": 0.0,
        "balance": 0.0,
    }
    if not code or not code.strip():
        return breakdown

    patterns = _topic_patterns(topics, topic_patterns)
    if patterns:
        matched = sum(1 for p in patterns if p.search(code))
        breakdown["topic_coverage"] = matched / len(patterns) * QUALITY_TOPIC_WEIGHT

    function_count = len(FUNCTION_DEFINITION_PATTERN.findall(code))
    if function_count >= 3:
        breakdown["decomposition"] = QUALITY_DECOMPOSITION_FULL
    elif function_count == 2:
        breakdown["decomposition"] = QUALITY_DECOMPOSITION_PARTIAL

    line_count = len(code.split("\n"))
    low, high = QUALITY_LINE_BAND
    if low <= line_count <= high:
        breakdown["length"] = QUALITY_LENGTH_FULL
    elif line_count > high:
        breakdown["length"] = QUALITY_LENGTH_OVERSIZED

    # Rough compilability proxy
    brace_gap = abs(code.count("{") - code.count("}"))
    paren_gap = abs(code.count("(") - code.count(")"))
    if brace_gap <= 1 and paren_gap <= 1:
        breakdown["balance"] = QUALITY_BALANCE_FULL
    elif brace_gap <= 3 and paren_gap <= 3:
        breakdown["balance"] = QUALITY_BALANCE_PARTIAL

    return breakdown


def heuristic_quality_score(
    code: str,
    topics: Iterable[str],
    topic_patterns: Optional[Mapping[str, Iterable[str | Pattern[str]]]] = None,
) -> float:
    return min(sum(code_quality_breakdown(code, topics, topic_patterns).values()), 1.0)


def behavioral_quality_score(metrics: BehavioralMetrics) -> float:
    return blend(
        [
            Signal("iteration_score", metrics.iteration_score, BEHAVIOR_WEIGHTS["iteration_score"]),
            Signal(
                "manual_activity_ratio",
                metrics.manual_activity_ratio,
                BEHAVIOR_WEIGHTS["manual_activity_ratio"],
            ),
            Signal(
                "command_activity",
                min(metrics.command_count / COMMANDS_FOR_FULL_ACTIVITY, 1.0),
                BEHAVIOR_WEIGHTS["command_activity"],
            ),
        ]
    )


def code_quality_score(
    code: str,
    topics: Iterable[str],
    test_results: Optional[TestRunResult] = None,
    metrics: Optional[BehavioralMetrics] = None,
    topic_patterns: Optional[Mapping[str, Iterable[str | Pattern[str]]]] = None,
) -> float:
    """Blend heuristic, test and behavioral evidence into a 0-1 quality score.

    Empty or whitespace-only code is always 0 regardless of other signals.
    Tests count as evidence only when the run reported at least one test.
    """
    if not code or not code.strip():
        return 0.0

    values = {
        "heuristic": heuristic_quality_score(code, topics, topic_patterns),
        "tests": test_results.pass_ratio if test_results is not None else None,
        "behavior": behavioral_quality_score(metrics) if metrics is not None else None,
    }
    return max(0.0, min(blend_with_policy(QUALITY_BLEND_POLICY, values), 1.0))
