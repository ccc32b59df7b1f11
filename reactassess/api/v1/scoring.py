"""Per-submission scoring endpoints and score metadata."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ...components.adaptive.catalog import ExerciseCatalog, ExerciseNotFoundError
from ...components.scoring.metadata import scoring_metadata_payload
from ...components.scoring.quality import code_quality_breakdown, code_quality_score
from ...components.scoring.reliance import ai_reliance_score
from ...components.scoring.schemas import TestRunResult
from ...components.telemetry.schemas import BehavioralMetrics
from ...deps import get_catalog

router = APIRouter(prefix="/scoring", tags=["Scoring"])


class QualityRequest(BaseModel):
    code: str = ""
    topics: List[str] = Field(default_factory=list)
    # When set, topics and pattern overrides come from the catalog entry
    exercise_id: Optional[str] = None
    topic_patterns: Optional[Dict[str, List[str]]] = None
    test_results: Optional[TestRunResult] = None
    metrics: Optional[BehavioralMetrics] = None


class RelianceRequest(BaseModel):
    events: List[Dict[str, Any]] = Field(default_factory=list)
    final_code: str = ""
    metrics: Optional[BehavioralMetrics] = None


@router.post("/quality")
def score_quality(data: QualityRequest, catalog: ExerciseCatalog = Depends(get_catalog)):
    topics, patterns = data.topics, data.topic_patterns
    if data.exercise_id:
        try:
            exercise = catalog.get(data.exercise_id)
        except ExerciseNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        topics = topics or exercise.topics
        patterns = patterns or exercise.topic_patterns

    score = code_quality_score(
        data.code,
        topics,
        test_results=data.test_results,
        metrics=data.metrics,
        topic_patterns=patterns,
    )
    return {
        "score": round(score, 4),
        "heuristics": code_quality_breakdown(data.code, topics, patterns),
    }


@router.post("/reliance")
def score_reliance(data: RelianceRequest):
    return {"score": round(ai_reliance_score(data.events, data.final_code, data.metrics), 4)}


@router.get("/metadata")
def get_scoring_metadata():
    return scoring_metadata_payload()
