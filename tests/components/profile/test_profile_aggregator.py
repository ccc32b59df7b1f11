"""Tests for candidate profile aggregation, narrative failure handling and persistence."""

import time
from datetime import timedelta

import pytest

from reactassess.components.adaptive.schemas import ExerciseResult, SessionState
from reactassess.components.profile.aggregator import (
    CandidateArtifactsNotFoundError,
    ProfileAggregator,
    derive_challenge_outcomes,
    derive_review_stats,
    deterministic_recommendation,
)
from reactassess.components.profile.schemas import (
    NarrativeStatus,
    NarrativeVerdict,
    Recommendation,
    SessionArtifacts,
)
from reactassess.components.scoring.schemas import (
    CollaborationScore,
    CommunicationScore,
    PhaseScores,
    TechnicalScore,
)
from reactassess.components.storage.schemas import InteractionEvent, QuickfireResponse, ReviewComment, utcnow
from reactassess.components.telemetry.schemas import TelemetryEvent

CANDIDATE_ID = "c-1"
SESSION_ID = "s-1"


class FailingNarrative:
    def generate(self, payload):
        raise RuntimeError("provider unavailable")


class SlowNarrative:
    def generate(self, payload):
        time.sleep(0.3)
        return NarrativeVerdict(narrative="too late")


@pytest.fixture
def seeded_store(memory_store):
    memory_store.sessions[SESSION_ID] = SessionState(
        session_id=SESSION_ID,
        candidate_id=CANDIDATE_ID,
        current_tier=3,
        results=[
            ExerciseResult(
                exercise_id="todo-list",
                tier=1,
                completed=True,
                time_used_ms=120_000,
                time_limit_ms=600_000,
                quality_score=0.8,
            ),
            ExerciseResult(
                exercise_id="data-dashboard",
                tier=2,
                completed=True,
                time_used_ms=500_000,
                time_limit_ms=720_000,
                quality_score=0.6,
            ),
        ],
    )
    memory_store.add_events(
        [
            InteractionEvent(session_id=SESSION_ID, event_type="prompt_sent", payload={"text": "How should I debounce this fetch?"}),
            InteractionEvent(
                session_id=SESSION_ID,
                event_type="claude_output_accepted",
                payload={"acceptance_type": "full", "modified": True},
            ),
            InteractionEvent(session_id=SESSION_ID, event_type="code_change"),
            InteractionEvent(session_id=SESSION_ID, event_type="code_change"),
            InteractionEvent(
                session_id=SESSION_ID,
                event_type="phase_transition",
                payload={"to_phase": "review", "total_issues": 4},
            ),
        ]
    )
    memory_store.add_review_comments(
        [
            ReviewComment(session_id=SESSION_ID, line_number=12, comment_text="Line 12: consider moving this into useMemo"),
            ReviewComment(session_id=SESSION_ID, line_number=30, comment_text="The effect never cleans up its subscription"),
        ]
    )
    memory_store.add_quickfire_responses(
        [
            QuickfireResponse(session_id=SESSION_ID, question_index=0, difficulty=1, is_correct=True),
            QuickfireResponse(session_id=SESSION_ID, question_index=1, difficulty=2, is_correct=False),
        ]
    )
    return memory_store


def make_aggregator(store, emitter, narrative, clock, **kwargs):
    return ProfileAggregator(store, store, emitter, narrative=narrative, clock=clock, **kwargs)


class TestGenerate:
    async def test_no_artifacts(self, memory_store, emitter, static_narrative, fixed_clock):
        aggregator = make_aggregator(memory_store, emitter, static_narrative, fixed_clock)
        with pytest.raises(CandidateArtifactsNotFoundError):
            await aggregator.generate("ghost")
        assert memory_store.profiles == {}
        assert static_narrative.payloads == []

    async def test_generated_profile(self, seeded_store, emitter, static_narrative, fixed_clock):
        aggregator = make_aggregator(seeded_store, emitter, static_narrative, fixed_clock)
        outcome = await aggregator.generate(CANDIDATE_ID)

        profile = outcome.profile
        assert outcome.narrative_error is None
        assert profile.narrative_status is NarrativeStatus.GENERATED
        assert profile.narrative.startswith("AI COLLABORATION PROFILE")
        assert profile.recommendation is Recommendation.HIRE
        assert profile.labels == ["verifies output"]
        assert profile.generated_at == fixed_clock()
        assert seeded_store.profiles[CANDIDATE_ID] == profile
        assert emitter.types() == ["profile_generated"]

    async def test_scores_from_artifacts(self, seeded_store, emitter, static_narrative, fixed_clock):
        outcome = await make_aggregator(seeded_store, emitter, static_narrative, fixed_clock).generate(CANDIDATE_ID)
        profile = outcome.profile

        assert profile.technical.breakdown["review"] == 5.0
        assert profile.technical.breakdown["quickfire"] == pytest.approx(3.33)
        assert profile.collaboration.independence_ratio.modified == 0.5
        assert profile.collaboration.prompt_sophistication is None
        assert profile.communication.specificity == 5.5

    async def test_payload_shape(self, seeded_store, emitter, static_narrative, fixed_clock):
        await make_aggregator(seeded_store, emitter, static_narrative, fixed_clock).generate(CANDIDATE_ID)
        payload = static_narrative.payloads[0]

        assert payload["candidate_id"] == CANDIDATE_ID
        assert set(payload["scores"]) == {"technical", "collaboration", "communication"}
        assert payload["review"] == {"issues_found": 2, "issues_total": 4}
        assert payload["quickfire"] == {"answered": 2, "correct": 1}
        assert payload["event_summary"]["prompts_sent"] == 1
        assert len(payload["exercise_results"]) == 2
        assert payload["score_based_recommendation"] in {r.value for r in Recommendation}
        assert "terminal" not in payload

    async def test_regeneration_is_idempotent(self, seeded_store, emitter, static_narrative, fixed_clock):
        aggregator = make_aggregator(seeded_store, emitter, static_narrative, fixed_clock)
        first = await aggregator.generate(CANDIDATE_ID)
        second = await aggregator.generate(CANDIDATE_ID)

        assert first.profile == second.profile
        assert list(seeded_store.profiles) == [CANDIDATE_ID]
        assert seeded_store.profile_writes == 2

    async def test_terminal_log_adds_prompt_sophistication(self, seeded_store, emitter, static_narrative, fixed_clock):
        seeded_store.add_terminal_entries(
            SESSION_ID,
            [
                TelemetryEvent(timestamp=0, direction="in", text="claude\r"),
                TelemetryEvent(timestamp=10, direction="in", text="add pagination to the list\r"),
                TelemetryEvent(timestamp=20, direction="out", text="done"),
            ],
        )
        outcome = await make_aggregator(seeded_store, emitter, static_narrative, fixed_clock).generate(CANDIDATE_ID)
        assert outcome.profile.collaboration.prompt_sophistication is not None
        assert "prompt_sophistication" in outcome.profile.collaboration.breakdown
        assert "terminal" in static_narrative.payloads[0]
        assert "sessions" not in static_narrative.payloads[0]["terminal"]

    async def test_terminal_sessions_are_parsed_separately(
        self, seeded_store, emitter, static_narrative, fixed_clock
    ):
        seeded_store.sessions["s-2"] = SessionState(session_id="s-2", candidate_id=CANDIDATE_ID)
        # The assistant is never exited in the first session.
        seeded_store.add_terminal_entries(
            SESSION_ID,
            [
                TelemetryEvent(timestamp=0, direction="in", text="claude\r"),
                TelemetryEvent(timestamp=100, direction="in", text="build a todo list\r"),
            ],
        )
        seeded_store.add_terminal_entries(
            "s-2",
            [
                TelemetryEvent(timestamp=3_600_000, direction="in", text="ls\r"),
                TelemetryEvent(timestamp=3_600_100, direction="in", text="npm test\r"),
                TelemetryEvent(timestamp=3_600_200, direction="in", text="git status\r"),
            ],
        )

        await make_aggregator(seeded_store, emitter, static_narrative, fixed_clock).generate(CANDIDATE_ID)

        terminal = static_narrative.payloads[0]["terminal"]
        assert terminal["command_count"] == 4
        assert terminal["assistant_prompt_count"] == 1
        assert terminal["session_count"] == 1
        assert terminal["assistant_duration_ms"] == 100
        assert terminal["total_duration_ms"] == 300


class TestNarrativeFailure:
    def assert_fallback(self, outcome, store, emitter):
        profile = outcome.profile
        assert profile.narrative == ""
        assert profile.narrative_status is NarrativeStatus.UNAVAILABLE
        assert profile.labels == []
        assert profile.recommendation is deterministic_recommendation(
            PhaseScores(
                technical=profile.technical,
                collaboration=profile.collaboration,
                communication=profile.communication,
            )
        )
        assert store.profiles[profile.candidate_id] == profile
        assert emitter.types() == ["narrative_failed", "profile_generated"]

    async def test_unconfigured_generator(self, seeded_store, emitter, fixed_clock):
        outcome = await make_aggregator(seeded_store, emitter, None, fixed_clock).generate(CANDIDATE_ID)
        assert outcome.narrative_error == "Narrative generator not configured"
        self.assert_fallback(outcome, seeded_store, emitter)

    async def test_provider_error(self, seeded_store, emitter, fixed_clock):
        outcome = await make_aggregator(seeded_store, emitter, FailingNarrative(), fixed_clock).generate(CANDIDATE_ID)
        assert "provider unavailable" in outcome.narrative_error
        self.assert_fallback(outcome, seeded_store, emitter)

    async def test_timeout(self, seeded_store, emitter, fixed_clock):
        aggregator = make_aggregator(seeded_store, emitter, SlowNarrative(), fixed_clock, timeout_seconds=0.05)
        outcome = await aggregator.generate(CANDIDATE_ID)
        assert "timed out" in outcome.narrative_error
        self.assert_fallback(outcome, seeded_store, emitter)

    async def test_empty_narrative_counts_as_failure(self, seeded_store, emitter, static_narrative, fixed_clock):
        static_narrative.verdict = NarrativeVerdict(narrative="   ", recommendation="hire")
        outcome = await make_aggregator(seeded_store, emitter, static_narrative, fixed_clock).generate(CANDIDATE_ID)
        assert outcome.narrative_error == "Narrative generator returned no text"
        self.assert_fallback(outcome, seeded_store, emitter)

    async def test_missing_reply_still_persists_scores(self, seeded_store, emitter, static_narrative, fixed_clock):
        static_narrative.verdict = None
        outcome = await make_aggregator(seeded_store, emitter, static_narrative, fixed_clock).generate(CANDIDATE_ID)
        assert outcome.narrative_error == "Narrative generator returned an unusable reply (NoneType)"
        self.assert_fallback(outcome, seeded_store, emitter)

    async def test_malformed_reply_still_persists_scores(self, seeded_store, emitter, static_narrative, fixed_clock):
        static_narrative.verdict = {"narrative": ["not", "text"]}
        outcome = await make_aggregator(seeded_store, emitter, static_narrative, fixed_clock).generate(CANDIDATE_ID)
        assert outcome.narrative_error == "Narrative generator returned an unusable reply (dict)"
        self.assert_fallback(outcome, seeded_store, emitter)

    async def test_plain_dict_reply_is_accepted(self, seeded_store, emitter, static_narrative, fixed_clock):
        static_narrative.verdict = {
            "narrative": "Reviews every suggestion before accepting it.",
            "derivedLabels": ["verifies output"],
            "recommendation": "lean hire",
        }
        outcome = await make_aggregator(seeded_store, emitter, static_narrative, fixed_clock).generate(CANDIDATE_ID)
        profile = outcome.profile
        assert outcome.narrative_error is None
        assert profile.narrative_status is NarrativeStatus.GENERATED
        assert profile.labels == ["verifies output"]
        assert profile.recommendation is Recommendation.LEAN_HIRE
        assert seeded_store.profiles[CANDIDATE_ID] == profile

    async def test_unrecognized_recommendation_uses_deterministic_label(
        self, seeded_store, emitter, static_narrative, fixed_clock
    ):
        static_narrative.verdict = NarrativeVerdict(narrative="Solid.", recommendation="maybe later")
        outcome = await make_aggregator(seeded_store, emitter, static_narrative, fixed_clock).generate(CANDIDATE_ID)
        profile = outcome.profile
        assert profile.narrative_status is NarrativeStatus.GENERATED
        assert profile.recommendation is deterministic_recommendation(
            PhaseScores(
                technical=profile.technical,
                collaboration=profile.collaboration,
                communication=profile.communication,
            )
        )


class TestDeterministicRecommendation:
    @pytest.mark.parametrize(
        "technical,collaboration,communication,expected",
        [
            (9.0, 8.0, 7.0, Recommendation.STRONG_HIRE),
            (6.0, 6.0, 6.0, Recommendation.LEAN_HIRE),
            (7.0, 7.0, 6.0, Recommendation.HIRE),
            (5.5, 5.0, 5.0, Recommendation.LEAN_HIRE),
            (4.0, 5.0, 5.0, Recommendation.NO_HIRE),
        ],
    )
    def test_thresholds(self, technical, collaboration, communication, expected):
        scores = PhaseScores(
            technical=TechnicalScore(overall=technical),
            collaboration=CollaborationScore(overall=collaboration),
            communication=CommunicationScore(overall=communication),
        )
        assert deterministic_recommendation(scores) is expected


class TestDerivation:
    def test_challenge_outcomes_from_event_pairs(self):
        started = utcnow()
        artifacts = SessionArtifacts(
            candidate_id=CANDIDATE_ID,
            events=[
                InteractionEvent(
                    session_id=SESSION_ID,
                    event_type="challenge_started",
                    payload={"challenge_id": "a", "tier": 2, "time_limit": 600},
                    created_at=started,
                ),
                InteractionEvent(
                    session_id=SESSION_ID,
                    event_type="challenge_submitted",
                    payload={"challenge_id": "a"},
                    created_at=started + timedelta(seconds=90),
                ),
                InteractionEvent(
                    session_id=SESSION_ID,
                    event_type="challenge_started",
                    payload={"challenge_id": "b", "tier": 3, "time_limit_ms": 900_000},
                    created_at=started,
                ),
            ],
        )
        done, abandoned = derive_challenge_outcomes(artifacts)
        assert (done.tier, done.completed, done.time_used_ms, done.time_limit_ms) == (2, True, 90_000, 600_000)
        assert (abandoned.tier, abandoned.completed, abandoned.time_used_ms) == (3, False, 900_000)

    def test_persisted_results_take_precedence(self):
        artifacts = SessionArtifacts(
            candidate_id=CANDIDATE_ID,
            exercise_results=[ExerciseResult(exercise_id="x", tier=4, completed=False)],
            events=[InteractionEvent(session_id=SESSION_ID, event_type="challenge_started", payload={"tier": 1})],
        )
        assert [o.tier for o in derive_challenge_outcomes(artifacts)] == [4]

    def test_review_stats(self):
        comments = [ReviewComment(session_id=SESSION_ID, comment_text="x")] * 3
        assert derive_review_stats([], comments) == (3, 3)
        transition = InteractionEvent(
            session_id=SESSION_ID,
            event_type="phase_transition",
            payload={"to_phase": "review", "total_issues": 2},
        )
        # Never report more found than total
        assert derive_review_stats([transition], comments) == (3, 3)
