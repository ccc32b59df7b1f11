"""Candidate profile aggregation.

Fetches every artifact recorded for a candidate concurrently, runs the three
phase sub-scorers, asks the narrative generator for prose and upserts one
profile row per candidate. A failed or slow narrative never blocks
persistence: the profile is stored with a deterministic recommendation and
the failure is returned to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError

from ...platform.config import TerminalParserConfig, settings
from ...platform.request_context import reset_candidate_id, set_candidate_id
from ..events.emitter import EventEmitter, EventType
from ..scoring.collaboration import calculate_collaboration_score
from ..scoring.communication import calculate_communication_score
from ..scoring.rules import RECOMMENDATION_FLOOR, RECOMMENDATION_THRESHOLDS, RECOMMENDATION_WEIGHTS
from ..scoring.schemas import ChallengeOutcome, PhaseScores, QuickfireOutcome
from ..scoring.technical import calculate_technical_score
from ..storage.interfaces import ArtifactRepository, ProfileStore
from ..storage.schemas import InteractionEvent, InteractionEventType, ReviewComment, utcnow
from ..telemetry.parser import analyze_terminal_sessions, prompt_sophistication_score
from ..telemetry.schemas import BehavioralMetrics
from .narrative import NarrativeGenerator
from .schemas import (
    CandidateProfile,
    NarrativeStatus,
    NarrativeVerdict,
    ProfileGenerationResult,
    Recommendation,
    SessionArtifacts,
)

logger = logging.getLogger(__name__)


class CandidateArtifactsNotFoundError(LookupError):
    def __init__(self, candidate_id: str):
        super().__init__(f"No assessment artifacts found for candidate {candidate_id}")
        self.candidate_id = candidate_id


def deterministic_recommendation(scores: PhaseScores) -> Recommendation:
    summary = scores.summary()
    composite = sum(summary[name] * weight for name, weight in RECOMMENDATION_WEIGHTS.items())
    for floor, label in RECOMMENDATION_THRESHOLDS:
        if composite >= floor:
            return Recommendation(label)
    return Recommendation(RECOMMENDATION_FLOOR)


# ---------------------------------------------------------------------------
# Artifact -> scoring input derivation
# ---------------------------------------------------------------------------


def _time_limit_ms(payload: Dict[str, Any]) -> int:
    if payload.get("time_limit_ms") is not None:
        return int(payload["time_limit_ms"])
    # Legacy payloads carry seconds
    return int(float(payload.get("time_limit") or 0) * 1000)


def derive_challenge_outcomes(artifacts: SessionArtifacts) -> List[ChallengeOutcome]:
    """Prefer persisted exercise results; fall back to start/submit event pairs."""
    if artifacts.exercise_results:
        return [
            ChallengeOutcome(
                tier=r.tier,
                completed=r.completed,
                time_used_ms=r.time_used_ms,
                time_limit_ms=r.time_limit_ms,
            )
            for r in artifacts.exercise_results
        ]

    starts = [e for e in artifacts.events if e.event_type == InteractionEventType.CHALLENGE_STARTED.value]
    submits = [e for e in artifacts.events if e.event_type == InteractionEventType.CHALLENGE_SUBMITTED.value]
    outcomes: List[ChallengeOutcome] = []
    for start in starts:
        exercise_id = start.payload.get("challenge_id") or start.payload.get("exercise_id")
        limit_ms = _time_limit_ms(start.payload)
        submit = next(
            (
                s
                for s in submits
                if (s.payload.get("challenge_id") or s.payload.get("exercise_id")) == exercise_id
            ),
            None,
        )
        if submit is not None:
            used_ms = max(0, int((submit.created_at - start.created_at).total_seconds() * 1000))
        else:
            used_ms = limit_ms
        outcomes.append(
            ChallengeOutcome(
                tier=int(start.payload.get("tier") or 1),
                completed=submit is not None,
                time_used_ms=used_ms,
                time_limit_ms=limit_ms,
            )
        )
    return outcomes


def derive_review_stats(events: List[InteractionEvent], comments: List[ReviewComment]) -> Tuple[int, int]:
    """Found = comments left; total = seeded issues announced on entering review."""
    review_entry = next(
        (
            e
            for e in events
            if e.event_type == InteractionEventType.PHASE_TRANSITION.value and e.payload.get("to_phase") == "review"
        ),
        None,
    )
    found = len(comments)
    total = found
    if review_entry is not None and review_entry.payload.get("total_issues") is not None:
        total = int(review_entry.payload["total_issues"])
    return found, max(total, found)


def _event_summary(events: List[InteractionEvent]) -> Dict[str, int]:
    def count(event_type: InteractionEventType) -> int:
        return sum(1 for e in events if e.event_type == event_type.value)

    return {
        "total_events": len(events),
        "prompts_sent": count(InteractionEventType.PROMPT_SENT),
        "assistant_responses": count(InteractionEventType.CLAUDE_RESPONSE),
        "code_changes": count(InteractionEventType.CODE_CHANGE),
        "output_acceptances": count(InteractionEventType.CLAUDE_OUTPUT_ACCEPTED),
    }


class ProfileAggregator:
    def __init__(
        self,
        artifacts: ArtifactRepository,
        profiles: ProfileStore,
        emitter: EventEmitter,
        narrative: Optional[NarrativeGenerator] = None,
        timeout_seconds: Optional[float] = None,
        clock: Callable[[], datetime] = utcnow,
        parser_config: Optional[TerminalParserConfig] = None,
    ):
        self.artifacts = artifacts
        self.profiles = profiles
        self.emitter = emitter
        self.narrative = narrative
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.NARRATIVE_TIMEOUT_SECONDS
        self.clock = clock
        self.parser_config = parser_config

    async def fetch_artifacts(self, candidate_id: str) -> SessionArtifacts:
        results, events, comments, quickfire, terminal = await asyncio.gather(
            self.artifacts.list_exercise_results(candidate_id),
            self.artifacts.list_events(candidate_id),
            self.artifacts.list_review_comments(candidate_id),
            self.artifacts.list_quickfire_responses(candidate_id),
            self.artifacts.list_terminal_entries(candidate_id),
        )
        return SessionArtifacts(
            candidate_id=candidate_id,
            exercise_results=results,
            events=events,
            review_comments=comments,
            quickfire_responses=quickfire,
            terminal_entries=terminal,
        )

    def score(self, artifacts: SessionArtifacts) -> Tuple[PhaseScores, Optional[BehavioralMetrics]]:
        metrics: Optional[BehavioralMetrics] = None
        if artifacts.terminal_entries:
            metrics = analyze_terminal_sessions(artifacts.terminal_entries, self.parser_config)

        found, total = derive_review_stats(artifacts.events, artifacts.review_comments)
        technical = calculate_technical_score(
            derive_challenge_outcomes(artifacts),
            [QuickfireOutcome(correct=r.is_correct is True, difficulty=r.difficulty) for r in artifacts.quickfire_responses],
            found,
            total,
        )
        collaboration = calculate_collaboration_score(
            artifacts.events,
            prompt_sophistication=prompt_sophistication_score(metrics) if metrics is not None else None,
        )
        communication = calculate_communication_score(artifacts.review_comments)
        scores = PhaseScores(technical=technical, collaboration=collaboration, communication=communication)
        return scores, metrics

    def build_payload(
        self,
        artifacts: SessionArtifacts,
        scores: PhaseScores,
        metrics: Optional[BehavioralMetrics],
        fallback: Recommendation,
    ) -> Dict[str, Any]:
        found, total = derive_review_stats(artifacts.events, artifacts.review_comments)
        payload: Dict[str, Any] = {
            "candidate_id": artifacts.candidate_id,
            "scores": {
                "technical": scores.technical.model_dump(mode="json"),
                "collaboration": scores.collaboration.model_dump(mode="json"),
                "communication": scores.communication.model_dump(mode="json"),
            },
            "exercise_results": [r.model_dump(mode="json") for r in artifacts.exercise_results],
            "quickfire": {
                "answered": len(artifacts.quickfire_responses),
                "correct": sum(1 for r in artifacts.quickfire_responses if r.is_correct is True),
            },
            "review": {"issues_found": found, "issues_total": total},
            "event_summary": _event_summary(artifacts.events),
            "score_based_recommendation": fallback.value,
        }
        if metrics is not None:
            payload["terminal"] = metrics.model_dump(mode="json", exclude={"sessions"})
        return payload

    async def _narrate(self, payload: Dict[str, Any]) -> Tuple[Optional[NarrativeVerdict], Optional[str]]:
        if self.narrative is None:
            return None, "Narrative generator not configured"
        try:
            # wait_for cannot cancel the worker thread; a timed-out call keeps
            # running until the generator's own client timeout fires.
            reply = await asyncio.wait_for(
                asyncio.to_thread(self.narrative.generate, payload),
                timeout=self.timeout_seconds,
            )
            verdict = NarrativeVerdict.model_validate(reply)
        except asyncio.TimeoutError:
            return None, f"Narrative generation timed out after {self.timeout_seconds:g}s"
        except ValidationError as exc:
            logger.warning("Narrative generator returned an unusable reply: %s", exc)
            return None, f"Narrative generator returned an unusable reply ({type(reply).__name__})"
        except Exception as exc:
            logger.exception("Narrative generation failed")
            return None, f"Narrative generation failed: {exc}"
        if not verdict.narrative.strip():
            return None, "Narrative generator returned no text"
        return verdict, None

    async def generate(self, candidate_id: str) -> ProfileGenerationResult:
        token = set_candidate_id(candidate_id)
        try:
            artifacts = await self.fetch_artifacts(candidate_id)
            if artifacts.is_empty:
                raise CandidateArtifactsNotFoundError(candidate_id)

            scores, metrics = self.score(artifacts)
            fallback = deterministic_recommendation(scores)
            verdict, error = await self._narrate(self.build_payload(artifacts, scores, metrics, fallback))

            if verdict is not None:
                recommendation = Recommendation.parse(verdict.recommendation) or fallback
                narrative, status, labels = verdict.narrative, NarrativeStatus.GENERATED, verdict.labels
            else:
                recommendation = fallback
                narrative, status, labels = "", NarrativeStatus.UNAVAILABLE, []
                logger.warning("Persisting profile without narrative: %s", error)
                self.emitter.emit(EventType.NARRATIVE_FAILED, {"candidate_id": candidate_id, "error": error})

            profile = CandidateProfile(
                candidate_id=candidate_id,
                technical=scores.technical,
                collaboration=scores.collaboration,
                communication=scores.communication,
                narrative=narrative,
                narrative_status=status,
                recommendation=recommendation,
                labels=labels,
                generated_at=self.clock(),
            )
            await self.profiles.upsert_profile(profile)

            logger.info(
                "Generated profile recommendation=%s narrative_status=%s",
                recommendation.value,
                status.value,
            )
            self.emitter.emit(
                EventType.PROFILE_GENERATED,
                {
                    "candidate_id": candidate_id,
                    "recommendation": recommendation.value,
                    "narrative_status": status.value,
                    **scores.summary(),
                },
            )
            return ProfileGenerationResult(profile=profile, narrative_error=error)
        finally:
            reset_candidate_id(token)
