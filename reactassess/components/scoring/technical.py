"""Technical sub-score: exercise completion, quickfire accuracy, review detection.

Every component is normalized to 1-10 before weighting.
"""

from __future__ import annotations

from typing import List

from .rules import FAST_COMPLETION_BONUS, FAST_COMPLETION_RATIO, TECHNICAL_WEIGHTS
from .schemas import ChallengeOutcome, QuickfireOutcome, TechnicalScore
from .signals import Signal, blend


def clamp10(value: float) -> float:
    """Clamp to the 1-10 scale, rounded to two decimals."""
    return round(max(1.0, min(10.0, float(value))), 2)


def score_challenges(results: List[ChallengeOutcome]) -> float:
    if not results:
        return 1.0
    max_possible = sum(r.tier for r in results)
    if max_possible <= 0:
        return 1.0

    earned = 0.0
    for result in results:
        if not result.completed:
            continue
        points = float(result.tier)
        if result.time_limit_ms > 0 and result.time_used_ms / result.time_limit_ms < FAST_COMPLETION_RATIO:
            points *= FAST_COMPLETION_BONUS
        earned += points

    return 1 + (earned / max_possible) * 9


def score_quickfire(results: List[QuickfireOutcome]) -> float:
    if not results:
        return 1.0
    total_weight = sum(r.difficulty for r in results)
    if total_weight <= 0:
        return 1.0
    earned_weight = sum(r.difficulty for r in results if r.correct)
    return max(1.0, earned_weight / total_weight * 10)


def score_review(found: int, total: int) -> float:
    if total <= 0:
        return 1.0
    return max(1.0, found / total * 10)


def calculate_technical_score(
    challenge_results: List[ChallengeOutcome],
    quickfire_results: List[QuickfireOutcome],
    review_issues_found: int,
    review_issues_total: int,
) -> TechnicalScore:
    components = {
        "challenges": score_challenges(challenge_results),
        "quickfire": score_quickfire(quickfire_results),
        "review": score_review(review_issues_found, review_issues_total),
    }
    overall = blend(Signal(name, value, TECHNICAL_WEIGHTS[name]) for name, value in components.items())
    return TechnicalScore(
        overall=clamp10(overall),
        breakdown={name: clamp10(value) for name, value in components.items()},
    )
