"""Pydantic models for the persisted candidate profile and its inputs."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field

from ..adaptive.schemas import ExerciseResult
from ..scoring.schemas import CollaborationScore, CommunicationScore, TechnicalScore
from ..storage.schemas import InteractionEvent, QuickfireResponse, ReviewComment, utcnow
from ..telemetry.schemas import TelemetryEvent


class Recommendation(str, enum.Enum):
    STRONG_HIRE = "strong_hire"
    HIRE = "hire"
    LEAN_HIRE = "lean_hire"
    NO_HIRE = "no_hire"

    @classmethod
    def parse(cls, raw: object) -> Optional["Recommendation"]:
        """Lenient label parsing (``"Strong Hire"``, ``"lean-hire"``); None when unrecognized."""
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            return None
        key = raw.strip().lower().replace("-", "_").replace(" ", "_")
        try:
            return cls(key)
        except ValueError:
            return None


class NarrativeStatus(str, enum.Enum):
    GENERATED = "generated"
    UNAVAILABLE = "unavailable"


class NarrativeVerdict(BaseModel):
    narrative: str = ""
    recommendation: Optional[str] = None
    labels: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("labels", "derivedLabels", "derived_labels"),
    )


class CandidateProfile(BaseModel):
    candidate_id: str
    technical: TechnicalScore
    collaboration: CollaborationScore
    communication: CommunicationScore
    narrative: str = ""
    narrative_status: NarrativeStatus = NarrativeStatus.UNAVAILABLE
    recommendation: Recommendation = Recommendation.NO_HIRE
    labels: List[str] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=utcnow)


class ProfileGenerationResult(BaseModel):
    profile: CandidateProfile
    narrative_error: Optional[str] = None


class SessionArtifacts(BaseModel):
    """Everything recorded for one candidate across their sessions."""

    candidate_id: str
    exercise_results: List[ExerciseResult] = Field(default_factory=list)
    events: List[InteractionEvent] = Field(default_factory=list)
    review_comments: List[ReviewComment] = Field(default_factory=list)
    quickfire_responses: List[QuickfireResponse] = Field(default_factory=list)
    terminal_entries: Dict[str, List[TelemetryEvent]] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (
            self.exercise_results
            or self.events
            or self.review_comments
            or self.quickfire_responses
            or self.terminal_entries
        )
