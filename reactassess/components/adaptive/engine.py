"""Rule-based adaptive engine that picks the next exercise tier.

Rules are evaluated in order against the latest result; the first match
wins. Selection is pure: the caller owns and persists the result history.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Union

from .schemas import MAX_TIER, MIN_TIER, Exercise, ExerciseResult, NextExerciseDecision, PoolExhausted

ESCALATE_TIME_RATIO = 0.6
ESCALATE_MIN_QUALITY = 0.6
DEESCALATE_MAX_QUALITY = 0.4
HIGH_RELIANCE_RATIO = 0.7

SelectionOutcome = Union[NextExerciseDecision, PoolExhausted]


def pick_from_tier(
    available: Sequence[Exercise],
    target_tier: int,
    previous_topics: Sequence[str],
) -> Optional[Exercise]:
    """Novel topics first, then exact tier, then the closest tier in pool order."""
    if not available:
        return None
    seen = set(previous_topics)
    novel = [e for e in available if not any(t in seen for t in e.topics)]
    pool = novel or list(available)

    for exercise in pool:
        if exercise.tier == target_tier:
            return exercise
    # sorted() is stable, so ties keep pool order
    return sorted(pool, key=lambda e: abs(e.tier - target_tier))[0]


def _target(results: Sequence[ExerciseResult], current_tier: int) -> tuple[int, str, bool]:
    if not results:
        return current_tier, "First exercise: starting at the current tier", False

    latest = results[-1]
    ratio = latest.time_ratio

    if latest.completed and ratio < ESCALATE_TIME_RATIO and latest.quality_score > ESCALATE_MIN_QUALITY:
        return (
            min(current_tier + 1, MAX_TIER),
            f"Escalating: completed in {round(ratio * 100)}% of time with quality {latest.quality_score:.2f}",
            False,
        )

    if not latest.completed or latest.quality_score < DEESCALATE_MAX_QUALITY:
        why = "did not complete" if not latest.completed else f"low quality score {latest.quality_score:.2f}"
        return max(current_tier - 1, MIN_TIER), f"De-escalating: {why}", False

    if latest.completed and latest.reliance_ratio > HIGH_RELIANCE_RATIO:
        return (
            current_tier,
            f"Maintaining tier: high AI reliance ratio {latest.reliance_ratio:.2f}, flagging for deeper probing",
            True,
        )

    if latest.completed:
        return min(current_tier + 1, MAX_TIER), "Default path: completed, moving up", False
    return current_tier, "Default path: not completed, staying at tier", False


def select_next_exercise(
    results: Sequence[ExerciseResult],
    pool: Sequence[Exercise],
    current_tier: int,
) -> SelectionOutcome:
    """Decide the next exercise; an exhausted pool is a ``PoolExhausted`` value."""
    current_tier = max(MIN_TIER, min(current_tier, MAX_TIER))
    attempted = {r.exercise_id for r in results}
    available: List[Exercise] = [e for e in pool if e.id not in attempted]
    if not available:
        return PoolExhausted()

    target_tier, reason, flag = _target(results, current_tier)
    previous_topics = [topic for r in results for topic in r.topics]
    exercise = pick_from_tier(available, target_tier, previous_topics)
    if exercise is None:
        return PoolExhausted()
    return NextExerciseDecision(
        exercise_id=exercise.id,
        tier=exercise.tier,
        reason=reason,
        flag_high_reliance=flag,
    )
