"""Tests for the adaptive session service: scoring, selection and persistence of a submission."""

import pytest

from reactassess.components.adaptive.catalog import ExerciseNotFoundError
from reactassess.components.adaptive.schemas import ExerciseResult, PoolExhausted, SessionState
from reactassess.components.adaptive.service import (
    AdaptiveSessionService,
    ExerciseSubmission,
    SessionNotFoundError,
)
from reactassess.components.scoring.schemas import TestRunResult
from reactassess.components.storage.schemas import InteractionEvent
from reactassess.components.telemetry.schemas import TelemetryEvent

SESSION_ID = "s-1"


@pytest.fixture
def service(memory_store, catalog, emitter, parser_config):
    memory_store.sessions[SESSION_ID] = SessionState(session_id=SESSION_ID, candidate_id="c-1")
    return AdaptiveSessionService(memory_store, memory_store, catalog, emitter, parser_config)


def passing_submission(exercise_id="todo-list", **overrides):
    fields = {
        "exercise_id": exercise_id,
        "code": "const x = 1;",
        "completed": True,
        "time_used_ms": 60_000,
        "test_results": TestRunResult(passed=10, total=10),
    }
    fields.update(overrides)
    return ExerciseSubmission(**fields)


class TestSubmitExercise:
    async def test_unknown_session(self, service):
        with pytest.raises(SessionNotFoundError):
            await service.submit_exercise("missing", passing_submission())

    async def test_unknown_exercise(self, service):
        with pytest.raises(ExerciseNotFoundError):
            await service.submit_exercise(SESSION_ID, passing_submission("nope"))

    async def test_scores_selects_and_persists(self, service, memory_store, emitter):
        outcome = await service.submit_exercise(SESSION_ID, passing_submission())

        assert outcome.done is False
        assert outcome.result.exercise_id == "todo-list"
        assert outcome.result.time_limit_ms == 10 * 60 * 1000
        assert outcome.result.quality_score == pytest.approx(0.6 * 1.0 + 0.4 * 0.3)
        assert outcome.result.reliance_ratio == 0.0
        assert outcome.decision.tier == 2
        assert outcome.next_exercise.id == "data-dashboard"

        stored = memory_store.sessions[SESSION_ID]
        assert [r.exercise_id for r in stored.results] == ["todo-list"]
        assert stored.current_tier == 2
        assert emitter.types() == ["exercise_scored", "exercise_selected"]
        assert emitter.events[0][1]["session_id"] == SESSION_ID

    async def test_submission_time_limit_overrides_catalog(self, service):
        outcome = await service.submit_exercise(SESSION_ID, passing_submission(time_limit_ms=0))
        assert outcome.result.time_limit_ms == 0
        # Without a limit the escalation rule cannot fire
        assert not outcome.decision.reason.startswith("Escalating")

    async def test_exhausted_pool_still_persists_result(self, service, memory_store, catalog, emitter):
        state = memory_store.sessions[SESSION_ID]
        state.results = [
            ExerciseResult(exercise_id=e.id, tier=e.tier, completed=True) for e in catalog.pool() if e.tier < 5
        ]

        outcome = await service.submit_exercise(SESSION_ID, passing_submission("collaborative-counter"))

        assert outcome.done is True
        assert isinstance(outcome.decision, PoolExhausted)
        assert outcome.next_exercise is None
        assert len(memory_store.sessions[SESSION_ID].results) == 5
        assert emitter.types() == ["exercise_scored", "exercise_pool_exhausted"]

    async def test_acceptance_events_drive_reliance(self, service, memory_store):
        memory_store.add_events(
            [
                InteractionEvent(
                    session_id=SESSION_ID,
                    event_type="claude_output_accepted",
                    payload={"acceptance_type": "full", "original": "a\nb\nc\nd\ne"},
                ),
                InteractionEvent(session_id=SESSION_ID, event_type="prompt_sent", payload={"text": "hi"}),
            ]
        )
        code = "\n".join(f"line {i}" for i in range(10))
        outcome = await service.submit_exercise(SESSION_ID, passing_submission(code=code))
        assert outcome.result.reliance_ratio == pytest.approx(0.5)

    async def test_stored_terminal_log_is_parsed(self, service, memory_store):
        memory_store.add_terminal_entries(
            SESSION_ID,
            [
                TelemetryEvent(timestamp=0, direction="in", text="claude\r"),
                TelemetryEvent(timestamp=100, direction="in", text="write the whole thing\r"),
                TelemetryEvent(timestamp=1000, direction="out", text="x" * 500),
            ],
        )
        outcome = await service.submit_exercise(SESSION_ID, passing_submission())
        assert outcome.result.reliance_ratio > 0.5

    async def test_high_reliance_flag_is_sticky(self, service, memory_store):
        memory_store.sessions[SESSION_ID].high_reliance_flag = True
        await service.submit_exercise(SESSION_ID, passing_submission())
        assert memory_store.sessions[SESSION_ID].high_reliance_flag is True

    async def test_history_accumulates_across_submissions(self, service, memory_store):
        first = await service.submit_exercise(SESSION_ID, passing_submission())
        second = await service.submit_exercise(SESSION_ID, passing_submission(first.next_exercise.id))
        assert second.decision.exercise_id not in {"todo-list", first.next_exercise.id}
        assert len(memory_store.sessions[SESSION_ID].results) == 2
