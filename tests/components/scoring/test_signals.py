"""Tests for weighted signal blending and policy tables."""

import pytest

from reactassess.components.scoring.rules import (
    COLLABORATION_BLEND_POLICY,
    QUALITY_BLEND_POLICY,
    RELIANCE_BLEND_POLICY,
)
from reactassess.components.scoring.signals import (
    Signal,
    available_signals,
    blend,
    blend_with_policy,
    policy_as_dict,
    signals_for,
)


class TestBlend:
    def test_normalized_weighted_sum(self):
        assert blend([Signal("a", 1.0, 1.0), Signal("b", 0.0, 3.0)]) == pytest.approx(0.25)

    def test_unavailable_signals_are_ignored(self):
        assert blend([Signal("a", 0.8, 0.5), Signal("b", 0.0, 0.5, available=False)]) == pytest.approx(0.8)

    def test_no_weight_is_zero(self):
        assert blend([]) == 0.0
        assert blend([Signal("a", 1.0, 0.0)]) == 0.0


class TestPolicies:
    @pytest.mark.parametrize("policy", [QUALITY_BLEND_POLICY, RELIANCE_BLEND_POLICY, COLLABORATION_BLEND_POLICY])
    def test_every_row_sums_to_one_or_is_empty(self, policy):
        for weights in policy.values():
            total = sum(weights.values())
            assert total == pytest.approx(1.0) or total == 0.0

    def test_available_set_selects_row(self):
        values = {"heuristic": 0.5, "tests": None, "behavior": 1.0}
        assert available_signals(values) == frozenset({"heuristic", "behavior"})
        signals = {s.name: s for s in signals_for(QUALITY_BLEND_POLICY, values)}
        assert signals["behavior"].weight == 0.3
        assert signals["tests"].available is False
        assert blend_with_policy(QUALITY_BLEND_POLICY, values) == pytest.approx(0.7 * 0.5 + 0.3)

    def test_missing_row_raises(self):
        with pytest.raises(KeyError):
            signals_for(QUALITY_BLEND_POLICY, {"tests": 1.0})

    def test_policy_as_dict_labels(self):
        assert policy_as_dict(RELIANCE_BLEND_POLICY)["event+terminal"] == {"terminal": 0.7, "event": 0.3}
