"""In-process store implementing every storage seam.

Used as the default backend and in tests. Reads return deep copies so
callers cannot mutate stored state without going through ``save_*``.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence

from ..adaptive.schemas import ExerciseResult, SessionState
from ..profile.schemas import CandidateProfile
from ..telemetry.schemas import TelemetryEvent
from .schemas import InteractionEvent, QuickfireResponse, ReviewComment


class MemoryStore:
    def __init__(self) -> None:
        self.sessions: Dict[str, SessionState] = {}
        self.events: Dict[str, List[InteractionEvent]] = defaultdict(list)
        self.review_comments: Dict[str, List[ReviewComment]] = defaultdict(list)
        self.quickfire_responses: Dict[str, List[QuickfireResponse]] = defaultdict(list)
        self.terminal_entries: Dict[str, List[TelemetryEvent]] = defaultdict(list)
        self.profiles: Dict[str, CandidateProfile] = {}
        self.profile_writes = 0

    # -- seeding ---------------------------------------------------------

    def add_events(self, events: Iterable[InteractionEvent]) -> None:
        for event in events:
            self.events[event.session_id].append(event)

    def add_review_comments(self, comments: Iterable[ReviewComment]) -> None:
        for comment in comments:
            self.review_comments[comment.session_id].append(comment)

    def add_quickfire_responses(self, responses: Iterable[QuickfireResponse]) -> None:
        for response in responses:
            self.quickfire_responses[response.session_id].append(response)

    def add_terminal_entries(self, session_id: str, entries: Iterable[TelemetryEvent]) -> None:
        self.terminal_entries[session_id].extend(entries)

    # -- ArtifactRepository ----------------------------------------------

    def _session_ids(self, candidate_id: str) -> List[str]:
        return [s.session_id for s in self.sessions.values() if s.candidate_id == candidate_id]

    async def list_exercise_results(self, candidate_id: str) -> List[ExerciseResult]:
        return [
            result.model_copy(deep=True)
            for session_id in self._session_ids(candidate_id)
            for result in self.sessions[session_id].results
        ]

    async def list_events(self, candidate_id: str) -> List[InteractionEvent]:
        events = [e for sid in self._session_ids(candidate_id) for e in self.events.get(sid, [])]
        return [e.model_copy(deep=True) for e in sorted(events, key=lambda e: e.created_at)]

    async def list_review_comments(self, candidate_id: str) -> List[ReviewComment]:
        comments = [c for sid in self._session_ids(candidate_id) for c in self.review_comments.get(sid, [])]
        return [c.model_copy(deep=True) for c in sorted(comments, key=lambda c: c.created_at)]

    async def list_quickfire_responses(self, candidate_id: str) -> List[QuickfireResponse]:
        responses = [
            r for sid in self._session_ids(candidate_id) for r in self.quickfire_responses.get(sid, [])
        ]
        return [r.model_copy(deep=True) for r in sorted(responses, key=lambda r: r.question_index)]

    async def list_terminal_entries(self, candidate_id: str) -> Dict[str, List[TelemetryEvent]]:
        return {
            sid: list(self.terminal_entries[sid])
            for sid in self._session_ids(candidate_id)
            if self.terminal_entries.get(sid)
        }

    async def list_session_events(
        self, session_id: str, event_types: Optional[Sequence[str]] = None
    ) -> List[InteractionEvent]:
        wanted = set(event_types) if event_types else None
        return [
            e.model_copy(deep=True)
            for e in self.events.get(session_id, [])
            if wanted is None or e.event_type in wanted
        ]

    async def list_session_terminal_entries(self, session_id: str) -> List[TelemetryEvent]:
        return list(self.terminal_entries.get(session_id, []))

    # -- SessionStateStore -----------------------------------------------

    async def get_session(self, session_id: str) -> Optional[SessionState]:
        state = self.sessions.get(session_id)
        return state.model_copy(deep=True) if state is not None else None

    async def save_session(self, state: SessionState) -> None:
        self.sessions[state.session_id] = state.model_copy(deep=True)

    # -- ProfileStore ----------------------------------------------------

    async def upsert_profile(self, profile: CandidateProfile) -> None:
        self.profiles[profile.candidate_id] = profile.model_copy(deep=True)
        self.profile_writes += 1

    async def get_profile(self, candidate_id: str) -> Optional[CandidateProfile]:
        profile = self.profiles.get(candidate_id)
        return profile.model_copy(deep=True) if profile is not None else None
