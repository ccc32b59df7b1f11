"""Adaptive build-phase endpoint: score a submission and pick the next exercise."""

from fastapi import APIRouter, Depends, HTTPException

from ...components.adaptive.catalog import ExerciseNotFoundError
from ...components.adaptive.service import AdaptiveSessionService, ExerciseSubmission, SessionNotFoundError
from ...deps import get_session_service

router = APIRouter(prefix="/sessions", tags=["Sessions"])


@router.post("/{session_id}/next")
async def next_exercise(
    session_id: str,
    data: ExerciseSubmission,
    service: AdaptiveSessionService = Depends(get_session_service),
):
    try:
        outcome = await service.submit_exercise(session_id, data)
    except (SessionNotFoundError, ExerciseNotFoundError) as exc:
        raise HTTPException(status_code=404, detail=str(exc))

    body = {
        "done": outcome.done,
        "result": outcome.result.model_dump(mode="json"),
    }
    if outcome.done:
        body["reason"] = outcome.decision.reason
    else:
        body["decision"] = outcome.decision.model_dump(mode="json")
        body["exercise"] = outcome.next_exercise.model_dump(mode="json") if outcome.next_exercise else None
    return body
