"""Per-submission orchestration for the adaptive build phase.

Scores the submitted exercise, appends it to the session's result history,
asks the engine for the next exercise and persists the updated session in
one read-modify-write. Callers serialize submissions per session.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from pydantic import BaseModel, Field

from ...platform.config import TerminalParserConfig
from ..events.emitter import EventEmitter, EventType
from ..scoring.quality import code_quality_score
from ..scoring.reliance import ACCEPTANCE_EVENT_TYPE, ai_reliance_score
from ..scoring.schemas import TestRunResult
from ..storage.interfaces import ArtifactRepository, SessionStateStore
from ..telemetry.parser import analyze_terminal_log
from ..telemetry.schemas import BehavioralMetrics
from .catalog import ExerciseCatalog
from .engine import select_next_exercise
from .schemas import Exercise, ExerciseResult, NextExerciseDecision, PoolExhausted

logger = logging.getLogger(__name__)


class SessionNotFoundError(LookupError):
    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class ExerciseSubmission(BaseModel):
    exercise_id: str
    code: str = ""
    completed: bool = True
    time_used_ms: int = Field(default=0, ge=0)
    # Defaults to the catalog time limit
    time_limit_ms: Optional[int] = Field(default=None, ge=0)
    test_results: Optional[TestRunResult] = None
    # When omitted, the session's stored terminal log is parsed instead
    terminal_metrics: Optional[BehavioralMetrics] = None


class SubmissionOutcome(BaseModel):
    result: ExerciseResult
    decision: Union[NextExerciseDecision, PoolExhausted]
    next_exercise: Optional[Exercise] = None

    @property
    def done(self) -> bool:
        return self.decision.done


class AdaptiveSessionService:
    def __init__(
        self,
        sessions: SessionStateStore,
        artifacts: ArtifactRepository,
        catalog: ExerciseCatalog,
        emitter: EventEmitter,
        parser_config: Optional[TerminalParserConfig] = None,
    ):
        self.sessions = sessions
        self.artifacts = artifacts
        self.catalog = catalog
        self.emitter = emitter
        self.parser_config = parser_config

    async def _terminal_metrics(self, session_id: str, submission: ExerciseSubmission) -> Optional[BehavioralMetrics]:
        if submission.terminal_metrics is not None:
            return submission.terminal_metrics
        entries = await self.artifacts.list_session_terminal_entries(session_id)
        if not entries:
            return None
        return analyze_terminal_log(entries, self.parser_config)

    async def submit_exercise(self, session_id: str, submission: ExerciseSubmission) -> SubmissionOutcome:
        state = await self.sessions.get_session(session_id)
        if state is None:
            raise SessionNotFoundError(session_id)
        exercise = self.catalog.get(submission.exercise_id)

        acceptances = await self.artifacts.list_session_events(session_id, [ACCEPTANCE_EVENT_TYPE])
        metrics = await self._terminal_metrics(session_id, submission)

        result = ExerciseResult(
            exercise_id=exercise.id,
            tier=exercise.tier,
            completed=submission.completed,
            time_used_ms=submission.time_used_ms,
            time_limit_ms=(
                submission.time_limit_ms if submission.time_limit_ms is not None else exercise.time_limit_ms
            ),
            quality_score=code_quality_score(
                submission.code,
                exercise.topics,
                test_results=submission.test_results,
                metrics=metrics,
                topic_patterns=exercise.topic_patterns,
            ),
            reliance_ratio=ai_reliance_score(acceptances, submission.code, metrics),
            topics=list(exercise.topics),
        )
        self.emitter.emit(
            EventType.EXERCISE_SCORED,
            {"session_id": session_id, **result.model_dump(mode="json")},
        )

        results = [*state.results, result]
        decision = select_next_exercise(results, self.catalog.pool(), current_tier=exercise.tier)

        state.results = results
        next_exercise: Optional[Exercise] = None
        if isinstance(decision, NextExerciseDecision):
            state.current_tier = decision.tier
            state.high_reliance_flag = state.high_reliance_flag or decision.flag_high_reliance
            next_exercise = self.catalog.get(decision.exercise_id)
        await self.sessions.save_session(state)

        if isinstance(decision, PoolExhausted):
            logger.info("Exercise pool exhausted session_id=%s attempted=%d", session_id, len(results))
            self.emitter.emit(
                EventType.EXERCISE_POOL_EXHAUSTED,
                {"session_id": session_id, "attempted": len(results), "reason": decision.reason},
            )
        else:
            logger.info(
                "Selected next exercise session_id=%s exercise_id=%s tier=%d reason=%s",
                session_id,
                decision.exercise_id,
                decision.tier,
                decision.reason,
            )
            self.emitter.emit(
                EventType.EXERCISE_SELECTED,
                {"session_id": session_id, **decision.model_dump(mode="json")},
            )
        return SubmissionOutcome(result=result, decision=decision, next_exercise=next_exercise)
