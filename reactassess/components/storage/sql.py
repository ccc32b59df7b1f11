"""SQLAlchemy-backed store.

Every call opens its own ``AsyncSession`` so the aggregator's concurrent
fetches never share a session. Writes are single-statement merges keyed by
primary key, which makes them idempotent overwrites.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from ...models import (
    AssessmentEventRecord,
    AssessmentSessionRecord,
    CandidateProfileRecord,
    QuickfireResponseRecord,
    ReviewCommentRecord,
    TerminalIoEntryRecord,
)
from ..adaptive.schemas import ExerciseResult, SessionState
from ..profile.schemas import CandidateProfile
from ..telemetry.schemas import TelemetryEvent
from .schemas import InteractionEvent, QuickfireResponse, ReviewComment

logger = logging.getLogger(__name__)


def _candidate_sessions(candidate_id: str):
    return select(AssessmentSessionRecord.id).where(AssessmentSessionRecord.candidate_id == candidate_id)


def _to_event(row: AssessmentEventRecord) -> InteractionEvent:
    return InteractionEvent(
        session_id=row.session_id,
        event_type=row.event_type,
        payload=row.payload or {},
        created_at=row.created_at,
    )


def _to_terminal(row: TerminalIoEntryRecord) -> TelemetryEvent:
    return TelemetryEvent(timestamp=row.ts, direction=row.direction, text=row.data or "")


def _to_session(row: AssessmentSessionRecord) -> SessionState:
    return SessionState(
        session_id=row.id,
        candidate_id=row.candidate_id,
        current_tier=row.current_tier or 1,
        results=[ExerciseResult.model_validate(r) for r in (row.exercise_results or [])],
        high_reliance_flag=bool(row.high_reliance_flag),
    )


class SqlAlchemyStore:
    def __init__(self, session_maker: async_sessionmaker):
        self._session_maker = session_maker

    # -- seeding ---------------------------------------------------------

    async def add_events(self, events: Iterable[InteractionEvent]) -> None:
        async with self._session_maker() as session:
            session.add_all(
                AssessmentEventRecord(
                    session_id=e.session_id,
                    event_type=e.event_type,
                    payload=e.payload,
                    created_at=e.created_at,
                )
                for e in events
            )
            await session.commit()

    async def add_review_comments(self, comments: Iterable[ReviewComment]) -> None:
        async with self._session_maker() as session:
            session.add_all(
                ReviewCommentRecord(
                    session_id=c.session_id,
                    file_path=c.file_path,
                    line_number=c.line_number,
                    comment_text=c.comment_text,
                    issue_category=c.issue_category,
                    created_at=c.created_at,
                )
                for c in comments
            )
            await session.commit()

    async def add_quickfire_responses(self, responses: Iterable[QuickfireResponse]) -> None:
        async with self._session_maker() as session:
            session.add_all(
                QuickfireResponseRecord(
                    session_id=r.session_id,
                    question_index=r.question_index,
                    difficulty=r.difficulty,
                    is_correct=r.is_correct,
                    response_time_ms=r.response_time_ms,
                )
                for r in responses
            )
            await session.commit()

    async def add_terminal_entries(self, session_id: str, entries: Iterable[TelemetryEvent]) -> None:
        async with self._session_maker() as session:
            session.add_all(
                TerminalIoEntryRecord(
                    session_id=session_id,
                    ts=e.timestamp,
                    direction=e.direction.value,
                    data=e.text,
                )
                for e in entries
            )
            await session.commit()

    # -- ArtifactRepository ----------------------------------------------

    async def list_exercise_results(self, candidate_id: str) -> List[ExerciseResult]:
        async with self._session_maker() as session:
            rows = await session.scalars(
                select(AssessmentSessionRecord)
                .where(AssessmentSessionRecord.candidate_id == candidate_id)
                .order_by(AssessmentSessionRecord.created_at, AssessmentSessionRecord.id)
            )
            return [result for row in rows for result in _to_session(row).results]

    async def list_events(self, candidate_id: str) -> List[InteractionEvent]:
        async with self._session_maker() as session:
            rows = await session.scalars(
                select(AssessmentEventRecord)
                .where(AssessmentEventRecord.session_id.in_(_candidate_sessions(candidate_id)))
                .order_by(AssessmentEventRecord.created_at, AssessmentEventRecord.id)
            )
            return [_to_event(row) for row in rows]

    async def list_review_comments(self, candidate_id: str) -> List[ReviewComment]:
        async with self._session_maker() as session:
            rows = await session.scalars(
                select(ReviewCommentRecord)
                .where(ReviewCommentRecord.session_id.in_(_candidate_sessions(candidate_id)))
                .order_by(ReviewCommentRecord.created_at, ReviewCommentRecord.id)
            )
            return [
                ReviewComment(
                    session_id=row.session_id,
                    file_path=row.file_path or "",
                    line_number=row.line_number or 0,
                    comment_text=row.comment_text or "",
                    issue_category=row.issue_category,
                    created_at=row.created_at,
                )
                for row in rows
            ]

    async def list_quickfire_responses(self, candidate_id: str) -> List[QuickfireResponse]:
        async with self._session_maker() as session:
            rows = await session.scalars(
                select(QuickfireResponseRecord)
                .where(QuickfireResponseRecord.session_id.in_(_candidate_sessions(candidate_id)))
                .order_by(QuickfireResponseRecord.question_index, QuickfireResponseRecord.id)
            )
            return [
                QuickfireResponse(
                    session_id=row.session_id,
                    question_index=row.question_index,
                    difficulty=row.difficulty if row.difficulty is not None else 1.0,
                    is_correct=row.is_correct,
                    response_time_ms=row.response_time_ms,
                )
                for row in rows
            ]

    async def list_terminal_entries(self, candidate_id: str) -> Dict[str, List[TelemetryEvent]]:
        async with self._session_maker() as session:
            rows = await session.scalars(
                select(TerminalIoEntryRecord)
                .where(TerminalIoEntryRecord.session_id.in_(_candidate_sessions(candidate_id)))
                .order_by(TerminalIoEntryRecord.id)
            )
            grouped: Dict[str, List[TelemetryEvent]] = {}
            for row in rows:
                grouped.setdefault(row.session_id, []).append(_to_terminal(row))
            return grouped

    async def list_session_events(
        self, session_id: str, event_types: Optional[Sequence[str]] = None
    ) -> List[InteractionEvent]:
        stmt = select(AssessmentEventRecord).where(AssessmentEventRecord.session_id == session_id)
        if event_types:
            stmt = stmt.where(AssessmentEventRecord.event_type.in_(list(event_types)))
        async with self._session_maker() as session:
            rows = await session.scalars(stmt.order_by(AssessmentEventRecord.created_at, AssessmentEventRecord.id))
            return [_to_event(row) for row in rows]

    async def list_session_terminal_entries(self, session_id: str) -> List[TelemetryEvent]:
        async with self._session_maker() as session:
            rows = await session.scalars(
                select(TerminalIoEntryRecord)
                .where(TerminalIoEntryRecord.session_id == session_id)
                .order_by(TerminalIoEntryRecord.id)
            )
            return [_to_terminal(row) for row in rows]

    # -- SessionStateStore -----------------------------------------------

    async def get_session(self, session_id: str) -> Optional[SessionState]:
        async with self._session_maker() as session:
            row = await session.get(AssessmentSessionRecord, session_id)
            return _to_session(row) if row is not None else None

    async def save_session(self, state: SessionState) -> None:
        async with self._session_maker() as session:
            await session.merge(
                AssessmentSessionRecord(
                    id=state.session_id,
                    candidate_id=state.candidate_id,
                    current_tier=state.current_tier,
                    exercise_results=[r.model_dump(mode="json") for r in state.results],
                    high_reliance_flag=state.high_reliance_flag,
                )
            )
            await session.commit()

    # -- ProfileStore ----------------------------------------------------

    async def upsert_profile(self, profile: CandidateProfile) -> None:
        async with self._session_maker() as session:
            await session.merge(
                CandidateProfileRecord(
                    candidate_id=profile.candidate_id,
                    scores={
                        "technical": profile.technical.model_dump(mode="json"),
                        "collaboration": profile.collaboration.model_dump(mode="json"),
                        "communication": profile.communication.model_dump(mode="json"),
                    },
                    narrative=profile.narrative,
                    narrative_status=profile.narrative_status.value,
                    recommendation=profile.recommendation.value,
                    labels=list(profile.labels),
                    generated_at=profile.generated_at,
                )
            )
            await session.commit()
        logger.debug("Upserted profile candidate_id=%s", profile.candidate_id)

    async def get_profile(self, candidate_id: str) -> Optional[CandidateProfile]:
        async with self._session_maker() as session:
            row = await session.get(CandidateProfileRecord, candidate_id)
            if row is None:
                return None
            scores = row.scores or {}
            return CandidateProfile(
                candidate_id=row.candidate_id,
                technical=scores.get("technical") or {},
                collaboration=scores.get("collaboration") or {},
                communication=scores.get("communication") or {},
                narrative=row.narrative or "",
                narrative_status=row.narrative_status,
                recommendation=row.recommendation,
                labels=row.labels or [],
                generated_at=row.generated_at,
            )
