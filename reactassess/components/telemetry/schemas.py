"""Pydantic models for terminal telemetry and the behavioral metrics derived from it."""

from __future__ import annotations

import enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class Direction(str, enum.Enum):
    IN = "in"  # candidate keystrokes
    OUT = "out"  # terminal output


class TelemetryEvent(BaseModel):
    """One captured terminal chunk.

    The sandbox capture layer writes ``{"ts", "dir", "data"}`` objects; both
    spellings are accepted.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: int = Field(alias="ts")
    direction: Direction = Field(alias="dir")
    text: str = Field(default="", alias="data")


class AssistantSession(BaseModel):
    start_time: int
    end_time: int
    duration_ms: int
    prompt_count: int
    input_chars: int
    output_chars: int


class BehavioralMetrics(BaseModel):
    # Overall terminal activity
    total_input_chars: int = 0
    total_output_chars: int = 0
    total_duration_ms: int = 0
    command_count: int = 0

    # Assistant sessions
    sessions: List[AssistantSession] = []
    session_count: int = 0
    assistant_duration_ms: int = 0
    assistant_prompt_count: int = 0
    assistant_input_chars: int = 0
    assistant_output_chars: int = 0

    # Derived (ratios are clamped to 0-1)
    time_in_assistant_ratio: float = 0.0
    assistant_output_ratio: float = 0.0
    manual_activity_ratio: float = 1.0
    average_prompt_length: float = 0.0
    iteration_score: float = 0.0

    skipped_entries: int = 0

    @classmethod
    def empty(cls, skipped_entries: int = 0) -> "BehavioralMetrics":
        # No input at all counts as fully manual work (editor-driven).
        return cls(skipped_entries=skipped_entries)


class TelemetryLog(BaseModel):
    events: List[TelemetryEvent] = []
    skipped_entries: int = 0
