"""Pydantic models for exercises, per-exercise results and selection decisions."""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

MIN_TIER = 1
MAX_TIER = 5


class Exercise(BaseModel):
    id: str
    title: str = ""
    tier: int = Field(ge=MIN_TIER, le=MAX_TIER)
    time_limit_minutes: int = 0
    topics: List[str] = Field(default_factory=list)
    # Optional per-topic regex overrides for the quality heuristic
    topic_patterns: Optional[Dict[str, List[str]]] = None

    @property
    def time_limit_ms(self) -> int:
        return self.time_limit_minutes * 60 * 1000


class ExerciseResult(BaseModel):
    exercise_id: str
    tier: int = Field(ge=MIN_TIER, le=MAX_TIER)
    completed: bool
    time_used_ms: int = Field(default=0, ge=0)
    time_limit_ms: int = Field(default=0, ge=0)
    quality_score: float = Field(default=0.0, ge=0.0, le=1.0)
    reliance_ratio: float = Field(default=0.0, ge=0.0, le=1.0)
    topics: List[str] = Field(default_factory=list)

    @property
    def time_ratio(self) -> float:
        if self.time_limit_ms <= 0:
            return float("inf")
        return self.time_used_ms / self.time_limit_ms


class NextExerciseDecision(BaseModel):
    done: Literal[False] = False
    exercise_id: str
    tier: int
    reason: str
    flag_high_reliance: bool = False


class PoolExhausted(BaseModel):
    done: Literal[True] = True
    reason: str = "No more exercises available"


class SessionState(BaseModel):
    session_id: str
    candidate_id: str
    current_tier: int = Field(default=MIN_TIER, ge=MIN_TIER, le=MAX_TIER)
    results: List[ExerciseResult] = Field(default_factory=list)
    high_reliance_flag: bool = False
