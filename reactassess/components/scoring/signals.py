"""Weighted signal blending shared by every composite score.

A blend policy is plain data: a table keyed by the set of signals that are
available for a given candidate, mapping to the weight each one carries.
Missing signals simply select a different row instead of branching in code.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional

BlendPolicy = Mapping[FrozenSet[str], Mapping[str, float]]


@dataclass(frozen=True)
class Signal:
    name: str
    value: float
    weight: float
    available: bool = True

    @property
    def contribution(self) -> float:
        return self.value * self.weight if self.available else 0.0


def blend(signals: Iterable[Signal]) -> float:
    """Normalized weighted sum over available signals; 0.0 when none carry weight."""
    active = [s for s in signals if s.available and s.weight > 0]
    total_weight = sum(s.weight for s in active)
    if total_weight <= 0:
        return 0.0
    return sum(s.contribution for s in active) / total_weight


def available_signals(values: Mapping[str, Optional[float]]) -> FrozenSet[str]:
    return frozenset(name for name, value in values.items() if value is not None)


def signals_for(policy: BlendPolicy, values: Mapping[str, Optional[float]]) -> List[Signal]:
    """Build the signal list for ``values`` using the policy row for its available set.

    Raises ``KeyError`` when the policy has no row for the combination, which
    means the policy table itself is incomplete.
    """
    weights = policy[available_signals(values)]
    return [
        Signal(
            name=name,
            value=float(value) if value is not None else 0.0,
            weight=float(weights.get(name, 0.0)),
            available=value is not None,
        )
        for name, value in values.items()
    ]


def blend_with_policy(policy: BlendPolicy, values: Mapping[str, Optional[float]]) -> float:
    return blend(signals_for(policy, values))


def policy_as_dict(policy: BlendPolicy) -> Dict[str, Dict[str, float]]:
    """JSON-friendly view of a policy table (keys joined with ``+``)."""
    out: Dict[str, Dict[str, float]] = {}
    for key, weights in policy.items():
        label = "+".join(sorted(key)) or "none"
        out[label] = dict(weights)
    return out
