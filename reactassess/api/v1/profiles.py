"""Candidate profile generation and retrieval."""

from fastapi import APIRouter, Depends, HTTPException

from ...components.profile.aggregator import CandidateArtifactsNotFoundError, ProfileAggregator
from ...components.profile.schemas import CandidateProfile, ProfileGenerationResult
from ...deps import Store, get_profile_aggregator, get_store

router = APIRouter(prefix="/candidates", tags=["Profiles"])


@router.post("/{candidate_id}/profile", response_model=ProfileGenerationResult)
async def generate_profile(
    candidate_id: str,
    aggregator: ProfileAggregator = Depends(get_profile_aggregator),
):
    """Score every artifact for the candidate and upsert their profile."""
    try:
        return await aggregator.generate(candidate_id)
    except CandidateArtifactsNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.get("/{candidate_id}/profile", response_model=CandidateProfile)
async def get_profile(candidate_id: str, store: Store = Depends(get_store)):
    profile = await store.get_profile(candidate_id)
    if profile is None:
        raise HTTPException(status_code=404, detail=f"No profile for candidate {candidate_id}")
    return profile
