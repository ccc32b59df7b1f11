"""Pydantic models for scoring inputs and per-phase sub-scores."""

from __future__ import annotations

import enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class TestRunResult(BaseModel):
    __test__ = False  # not a pytest class

    passed: int = 0
    failed: int = 0
    total: int = 0

    @property
    def pass_ratio(self) -> Optional[float]:
        if self.total <= 0:
            return None
        return max(0.0, min(self.passed / self.total, 1.0))


class AcceptanceType(str, enum.Enum):
    FULL = "full"
    PARTIAL = "partial"
    REJECTED = "rejected"


class AssistantAcceptance(BaseModel):
    """Payload of a ``claude_output_accepted`` interaction event."""

    acceptance_type: AcceptanceType = AcceptanceType.FULL
    original: str = ""
    modified: bool = False


class ChallengeOutcome(BaseModel):
    tier: int
    completed: bool
    time_used_ms: int = 0
    time_limit_ms: int = 0


class QuickfireOutcome(BaseModel):
    correct: bool
    difficulty: float = 1.0


class TechnicalScore(BaseModel):
    overall: float = 1.0
    breakdown: Dict[str, float] = Field(default_factory=dict)


class IndependenceRatio(BaseModel):
    self_written: float = 1.0
    modified: float = 0.0
    verbatim_accepted: float = 0.0


class CollaborationScore(BaseModel):
    overall: float = 1.0
    prompt_quality: float = 1.0
    verification_score: float = 3.0
    independence_ratio: IndependenceRatio = Field(default_factory=IndependenceRatio)
    prompt_sophistication: Optional[float] = None
    breakdown: Dict[str, float] = Field(default_factory=dict)


class CommunicationScore(BaseModel):
    overall: float = 1.0
    clarity: float = 1.0
    constructiveness: float = 1.0
    specificity: float = 1.0


class PhaseScores(BaseModel):
    technical: TechnicalScore = Field(default_factory=TechnicalScore)
    collaboration: CollaborationScore = Field(default_factory=CollaborationScore)
    communication: CommunicationScore = Field(default_factory=CommunicationScore)

    def summary(self) -> Dict[str, Any]:
        return {
            "technical": self.technical.overall,
            "collaboration": self.collaboration.overall,
            "communication": self.communication.overall,
        }
