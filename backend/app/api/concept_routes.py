"""
HTTP API routes for browsing published concepts.

Provides endpoints for:
- Listing all concepts or one user's concepts (newest first)
- Fetching a concept and its sound-effect assets
- Recording a finished playback (view count)
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from app.config import get_settings
from app.models.schemas import ConceptListing, SfxAsset, VideoConcept, ViewRecorded
from app.services.concept_repository import ConceptRepository
from app.services.stores import create_record_store
from app.services.view_counter import ViewCountUpdater

from .deps import get_repository

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["concepts"])


async def record_view(concept_id: str) -> None:
    """
    Background task counting one view.

    Args:
        concept_id: Concept whose playback finished
    """
    settings = get_settings()
    record_store = create_record_store(settings)
    try:
        await ViewCountUpdater(record_store, settings).on_playback_ended(concept_id)
    finally:
        await record_store.close()


@router.get("/concepts", response_model=list[ConceptListing])
async def list_concepts(
    repository: ConceptRepository = Depends(get_repository),
) -> list[ConceptListing]:
    """List all published concepts, newest first."""
    return await repository.list_concepts()


@router.get("/users/{user_id}/concepts", response_model=list[ConceptListing])
async def list_user_concepts(
    user_id: str,
    repository: ConceptRepository = Depends(get_repository),
) -> list[ConceptListing]:
    """List one user's published concepts, newest first."""
    return await repository.list_concepts(owner_id=user_id)


@router.get("/concepts/{concept_id}", response_model=VideoConcept)
async def get_concept(
    concept_id: str,
    repository: ConceptRepository = Depends(get_repository),
) -> VideoConcept:
    """
    Get one concept.

    Raises:
        404: Concept not found
    """
    concept = await repository.get_concept(concept_id)
    if concept is None:
        raise HTTPException(status_code=404, detail=f"Concept not found: {concept_id}")
    return concept


@router.get("/concepts/{concept_id}/sfx", response_model=list[SfxAsset])
async def list_concept_sfx(
    concept_id: str,
    repository: ConceptRepository = Depends(get_repository),
) -> list[SfxAsset]:
    """
    List sound-effect assets attached to a concept.

    Raises:
        404: Concept not found
    """
    if await repository.get_concept(concept_id) is None:
        raise HTTPException(status_code=404, detail=f"Concept not found: {concept_id}")
    return await repository.list_sfx_assets(concept_id)


@router.post("/concepts/{concept_id}/views", response_model=ViewRecorded, status_code=202)
async def playback_ended(concept_id: str, background_tasks: BackgroundTasks) -> ViewRecorded:
    """
    Notify that playback of a concept finished.

    Always accepted; the view count is updated in the background and
    failures are only logged.
    """
    background_tasks.add_task(record_view, concept_id)
    return ViewRecorded(concept_id=concept_id)
