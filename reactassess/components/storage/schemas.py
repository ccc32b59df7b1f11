"""Stored assessment artifacts as seen by the scoring core."""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InteractionEventType(str, enum.Enum):
    PROMPT_SENT = "prompt_sent"
    CLAUDE_RESPONSE = "claude_response"
    CODE_CHANGE = "code_change"
    CLAUDE_OUTPUT_ACCEPTED = "claude_output_accepted"
    CHALLENGE_STARTED = "challenge_started"
    CHALLENGE_SUBMITTED = "challenge_submitted"
    QUICKFIRE_ANSWERED = "quickfire_answered"
    REVIEW_COMMENT_ADDED = "review_comment_added"
    PHASE_TRANSITION = "phase_transition"


class InteractionEvent(BaseModel):
    session_id: str
    event_type: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)


class ReviewComment(BaseModel):
    session_id: str
    file_path: str = ""
    line_number: int = 0
    comment_text: str = ""
    issue_category: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class QuickfireResponse(BaseModel):
    session_id: str
    question_index: int
    difficulty: float = 1.0
    is_correct: Optional[bool] = None
    response_time_ms: Optional[int] = None
