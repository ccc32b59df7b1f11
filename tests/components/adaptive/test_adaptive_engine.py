"""Tests for rule-based next-exercise selection."""

import pytest

from reactassess.components.adaptive.catalog import BUILTIN_EXERCISES
from reactassess.components.adaptive.engine import pick_from_tier, select_next_exercise
from reactassess.components.adaptive.schemas import Exercise, ExerciseResult, NextExerciseDecision, PoolExhausted

POOL = BUILTIN_EXERCISES
IDS_BY_TIER = {e.tier: e.id for e in POOL}


def result(tier, completed=True, used=50, limit=100, quality=0.5, reliance=0.1, exercise_id=None, topics=()):
    return ExerciseResult(
        exercise_id=exercise_id or f"done-{tier}",
        tier=tier,
        completed=completed,
        time_used_ms=used,
        time_limit_ms=limit,
        quality_score=quality,
        reliance_ratio=reliance,
        topics=list(topics),
    )


class TestRules:
    def test_first_exercise_uses_current_tier(self):
        decision = select_next_exercise([], POOL, current_tier=3)
        assert isinstance(decision, NextExerciseDecision)
        assert decision.done is False
        assert decision.exercise_id == IDS_BY_TIER[3]
        assert decision.tier == 3
        assert decision.flag_high_reliance is False

    def test_fast_high_quality_escalates_one_tier(self):
        decision = select_next_exercise([result(3, used=10, quality=0.8)], POOL, current_tier=3)
        assert decision.tier == 4
        assert decision.reason.startswith("Escalating")
        assert "10%" in decision.reason

    def test_escalation_capped_at_top_tier(self):
        decision = select_next_exercise([result(5, used=10, quality=0.8)], POOL, current_tier=5)
        assert decision.tier == 5

    def test_incomplete_deescalates(self):
        decision = select_next_exercise([result(3, completed=False)], POOL, current_tier=3)
        assert decision.tier == 2
        assert "did not complete" in decision.reason

    def test_deescalation_floored_at_bottom_tier(self):
        decision = select_next_exercise([result(1, completed=False)], POOL, current_tier=1)
        assert decision.tier == 1

    def test_low_quality_deescalates_even_when_fast(self):
        decision = select_next_exercise([result(3, used=5, quality=0.3)], POOL, current_tier=3)
        assert decision.tier == 2
        assert "low quality" in decision.reason

    def test_high_reliance_holds_tier_and_flags(self):
        decision = select_next_exercise([result(3, used=70, quality=0.5, reliance=0.8)], POOL, current_tier=3)
        assert decision.tier == 3
        assert decision.flag_high_reliance is True

    def test_default_completed_moves_up(self):
        decision = select_next_exercise([result(2, used=80, quality=0.5)], POOL, current_tier=2)
        assert decision.tier == 3
        assert decision.reason.startswith("Default path")

    def test_missing_time_limit_never_escalates(self):
        decision = select_next_exercise([result(2, used=1, limit=0, quality=0.9)], POOL, current_tier=2)
        # Falls through to the default path instead
        assert decision.reason.startswith("Default path")

    def test_boundary_values_do_not_escalate(self):
        decision = select_next_exercise([result(3, used=60, quality=0.6)], POOL, current_tier=3)
        assert not decision.reason.startswith("Escalating")

    def test_only_latest_result_drives_the_rule(self):
        history = [result(1, completed=False), result(2, used=10, quality=0.9)]
        decision = select_next_exercise(history, POOL, current_tier=2)
        assert decision.tier == 3

    def test_out_of_range_current_tier_is_clamped(self):
        decision = select_next_exercise([], POOL, current_tier=9)
        assert decision.tier == 5


class TestPool:
    def test_attempted_exercises_are_excluded(self):
        history = [result(3, used=80, completed=False, exercise_id=IDS_BY_TIER[2])]
        decision = select_next_exercise(history, POOL, current_tier=3)
        assert decision.exercise_id != IDS_BY_TIER[2]
        # Tier 2 is gone, so the closest remaining tier wins
        assert decision.tier in (1, 3)

    def test_exhausted_pool(self):
        history = [result(e.tier, exercise_id=e.id) for e in POOL]
        decision = select_next_exercise(history, POOL, current_tier=3)
        assert isinstance(decision, PoolExhausted)
        assert decision.done is True
        assert decision.reason == "No more exercises available"

    def test_empty_pool(self):
        assert isinstance(select_next_exercise([], [], current_tier=1), PoolExhausted)

    @pytest.mark.parametrize("tier", [1, 2, 3, 4, 5])
    def test_selection_never_repeats(self, tier):
        history = [result(tier, exercise_id=IDS_BY_TIER[tier])]
        decision = select_next_exercise(history, POOL, current_tier=tier)
        assert decision.exercise_id != IDS_BY_TIER[tier]
        assert 1 <= decision.tier <= 5


class TestPickFromTier:
    def test_prefers_novel_topics(self):
        pool = [
            Exercise(id="seen", tier=2, topics=["forms"]),
            Exercise(id="fresh", tier=4, topics=["context"]),
        ]
        assert pick_from_tier(pool, 2, ["forms"]).id == "fresh"

    def test_falls_back_to_all_when_nothing_is_novel(self):
        pool = [
            Exercise(id="a", tier=1, topics=["forms"]),
            Exercise(id="b", tier=2, topics=["forms"]),
        ]
        assert pick_from_tier(pool, 2, ["forms"]).id == "b"

    def test_closest_tier_keeps_pool_order_on_ties(self):
        pool = [Exercise(id="low", tier=2), Exercise(id="high", tier=4)]
        assert pick_from_tier(pool, 3, []).id == "low"

    def test_empty_returns_none(self):
        assert pick_from_tier([], 3, []) is None
