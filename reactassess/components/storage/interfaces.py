"""Storage seams used by the core. Implementations live beside this module."""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol, Sequence

from ..adaptive.schemas import ExerciseResult, SessionState
from ..profile.schemas import CandidateProfile
from ..telemetry.schemas import TelemetryEvent
from .schemas import InteractionEvent, QuickfireResponse, ReviewComment


class ArtifactRepository(Protocol):
    async def list_exercise_results(self, candidate_id: str) -> List[ExerciseResult]: ...

    async def list_events(self, candidate_id: str) -> List[InteractionEvent]: ...

    async def list_review_comments(self, candidate_id: str) -> List[ReviewComment]: ...

    async def list_quickfire_responses(self, candidate_id: str) -> List[QuickfireResponse]: ...

    async def list_terminal_entries(self, candidate_id: str) -> Dict[str, List[TelemetryEvent]]:
        """Terminal logs keyed by session id; sessions without entries are omitted."""
        ...

    async def list_session_events(
        self, session_id: str, event_types: Optional[Sequence[str]] = None
    ) -> List[InteractionEvent]: ...

    async def list_session_terminal_entries(self, session_id: str) -> List[TelemetryEvent]: ...


class SessionStateStore(Protocol):
    async def get_session(self, session_id: str) -> Optional[SessionState]: ...

    async def save_session(self, state: SessionState) -> None: ...


class ProfileStore(Protocol):
    async def upsert_profile(self, profile: CandidateProfile) -> None: ...

    async def get_profile(self, candidate_id: str) -> Optional[CandidateProfile]: ...
