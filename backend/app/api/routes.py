"""
HTTP API routes for the publish pipeline.

Provides endpoints for:
- Submitting a video concept for publishing
- Querying publish job status
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, UploadFile

from app.config import get_settings
from app.models.schemas import MediaFile, Owner, PublishJob, PublishRequest
from app.services.job_manager import get_job_manager
from app.services.pipeline import (
    PublishError,
    PublishOrchestrator,
    PublishProgress,
    ValidationError,
    validate_request,
)
from app.services.stores import create_object_store, create_record_store

from .deps import get_current_owner

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["publish"])

# Shown to the user for any fatal publish failure
RETRY_MESSAGE = "Failed to publish video concept. Please try again."


async def run_publish(job_id: str, request: PublishRequest, owner: Owner) -> None:
    """
    Background task to run the publish pipeline.

    Args:
        job_id: Job identifier for progress updates
        request: Validated submission
        owner: Acting user
    """
    job_manager = get_job_manager()
    settings = get_settings()
    object_store = create_object_store(settings)
    record_store = create_record_store(settings)
    orchestrator = PublishOrchestrator.from_stores(object_store, record_store, settings)

    async def progress_callback(progress: PublishProgress) -> None:
        """Forward progress to job manager."""
        await job_manager.update_progress(job_id, progress.stage, progress.percent, progress.message)

    try:
        result = await orchestrator.publish(request, owner, progress_callback)
        await job_manager.complete_job(job_id, result, settings.publish_reset_delay)

    except PublishError as e:
        logger.error(f"Job {job_id}: [{e.stage.value}] {e.message}")
        await job_manager.fail_job(job_id, RETRY_MESSAGE, e.stage, e.orphaned_urls)
    except ValidationError as e:
        await job_manager.fail_job(job_id, str(e))
    except Exception as e:
        logger.exception(f"Publish error for job {job_id}")
        await job_manager.fail_job(job_id, str(e))
    finally:
        await object_store.close()
        await record_store.close()


async def _read_media(upload: UploadFile | None) -> MediaFile | None:
    if upload is None or not upload.filename:
        return None
    data = await upload.read()
    return MediaFile(name=upload.filename, content_type=upload.content_type, data=data)


@router.post("/concepts", response_model=PublishJob, status_code=202)
async def publish_concept(
    background_tasks: BackgroundTasks,
    title: str = Form(""),
    description: str = Form(""),
    thumbnail: UploadFile | None = File(None),
    video: UploadFile | None = File(None),
    sfx: list[UploadFile] | None = File(None),
    owner: Owner = Depends(get_current_owner),
) -> PublishJob:
    """
    Submit a video concept for publishing.

    Validates the submission, creates a publish job and runs the
    pipeline in the background. Use WebSocket /ws/{job_id} to receive
    real-time progress updates.

    Returns:
        PublishJob with job_id for tracking

    Raises:
        401: Missing caller identity
        422: Missing title, description, thumbnail or video
    """
    sfx_files = []
    for upload in sfx or []:
        media = await _read_media(upload)
        if media is not None:
            sfx_files.append(media)

    request = PublishRequest(
        title=title,
        description=description,
        thumbnail=await _read_media(thumbnail),
        video=await _read_media(video),
        sfx_files=tuple(sfx_files),
    )

    try:
        validate_request(request, get_settings())
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors)

    job_manager = get_job_manager()
    job = job_manager.create_job(owner, request.title.strip())

    background_tasks.add_task(run_publish, job.job_id, request, owner)

    logger.info(f"Started publish job {job.job_id}: {request.title!r}")
    return job


@router.get("/jobs/{job_id}", response_model=PublishJob)
async def get_job_status(job_id: str) -> PublishJob:
    """
    Get publish job status.

    Raises:
        404: Job not found
    """
    job = get_job_manager().get_job(job_id)

    if not job:
        raise HTTPException(
            status_code=404,
            detail=f"Job not found: {job_id}",
        )

    return job


@router.get("/jobs", response_model=list[PublishJob])
async def list_jobs(owner: Owner = Depends(get_current_owner)) -> list[PublishJob]:
    """List the caller's publish jobs, newest first."""
    return get_job_manager().list_jobs(owner_id=owner.user_id)
