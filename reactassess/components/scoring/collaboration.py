"""Collaboration sub-score: how the candidate worked with the assistant.

Prompt quality and verification are on 1-5; the independence ratio splits
authored code into self-written, modified and verbatim-accepted shares.
The overall score maps those (plus prompt sophistication when terminal
telemetry exists) onto 1-10.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Optional

from .rules import COLLABORATION_BLEND_POLICY, PROMPT_DETAILED_LENGTH, PROMPT_SPECIFICITY_PATTERNS
from .schemas import CollaborationScore, IndependenceRatio
from .signals import blend_with_policy
from .technical import clamp10

_SPECIFICITY = [re.compile(p, re.IGNORECASE) for p in PROMPT_SPECIFICITY_PATTERNS]


def _clamp(value: float, lo: float, hi: float) -> float:
    return round(max(lo, min(hi, value)), 2)


def _event_type(event: Any) -> Optional[str]:
    if isinstance(event, dict):
        return event.get("event_type")
    return getattr(event, "event_type", None)


def _payload(event: Any) -> Dict[str, Any]:
    if isinstance(event, dict):
        payload = event.get("payload")
    else:
        payload = getattr(event, "payload", None)
    return payload if isinstance(payload, dict) else {}


def _of_type(events: List[Any], event_type: str) -> List[Any]:
    return [e for e in events if _event_type(e) == event_type]


def score_prompt_quality(events: List[Any]) -> float:
    prompts = _of_type(events, "prompt_sent")
    if not prompts:
        return 1.0

    total = 0
    for prompt in prompts:
        payload = _payload(prompt)
        text = str(payload.get("text") or payload.get("content") or "")
        quality = 0
        if len(text) > PROMPT_DETAILED_LENGTH:
            quality += 1
        if "```" in text:
            quality += 1
        if any(p.search(text) for p in _SPECIFICITY):
            quality += 1
        total += quality

    avg = total / len(prompts)
    return _clamp(1 + (avg / 3) * 4, 1, 5)


def _acceptance_counts(events: List[Any]) -> tuple[int, int]:
    acceptances = _of_type(events, "claude_output_accepted")
    modified = sum(1 for e in acceptances if _payload(e).get("modified") is True)
    return modified, len(acceptances) - modified


def score_verification(events: List[Any]) -> float:
    modified, verbatim = _acceptance_counts(events)
    total = modified + verbatim
    if total == 0:
        return 3.0  # neutral

    modification_rate = modified / total
    verbatim_rate = verbatim / total
    if verbatim_rate > 0.7:
        return _clamp(1 + (1 - verbatim_rate) * 3.33, 1, 2)
    if modification_rate > 0.5:
        return _clamp(3 + modification_rate * 4, 4, 5)
    return _clamp(2 + modification_rate * 3, 2, 4)


def compute_independence_ratio(events: List[Any]) -> IndependenceRatio:
    modified, verbatim = _acceptance_counts(events)
    code_changes = len(_of_type(events, "code_change"))
    # Code changes that were not acceptances of assistant output
    self_written = max(0, code_changes - (modified + verbatim))

    total = self_written + modified + verbatim
    if total == 0:
        return IndependenceRatio()
    return IndependenceRatio(
        self_written=round(self_written / total, 2),
        modified=round(modified / total, 2),
        verbatim_accepted=round(verbatim / total, 2),
    )


def _five_to_ten(value: float) -> float:
    return 1 + (value - 1) / 4 * 9


def calculate_collaboration_score(
    events: Iterable[Any] | None,
    prompt_sophistication: Optional[float] = None,
) -> CollaborationScore:
    """Score interaction events; ``prompt_sophistication`` (0-1) comes from terminal telemetry."""
    items = list(events or [])
    prompt_quality = score_prompt_quality(items)
    verification = score_verification(items)
    independence = compute_independence_ratio(items)

    components = {
        "prompt_quality": _five_to_ten(prompt_quality),
        "verification": _five_to_ten(verification),
        # Modifying assistant output still counts as half-owned work
        "independence": 1 + (independence.self_written + 0.5 * independence.modified) * 9,
        "prompt_sophistication": (
            1 + prompt_sophistication * 9 if prompt_sophistication is not None else None
        ),
    }
    overall = blend_with_policy(COLLABORATION_BLEND_POLICY, components)
    return CollaborationScore(
        overall=clamp10(overall),
        prompt_quality=prompt_quality,
        verification_score=verification,
        independence_ratio=independence,
        prompt_sophistication=(
            round(prompt_sophistication, 2) if prompt_sophistication is not None else None
        ),
        breakdown={name: clamp10(value) for name, value in components.items() if value is not None},
    )
