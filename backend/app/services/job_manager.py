"""
Background publish jobs.

Keeps publish jobs in process memory and pushes every state change to
the WebSocket subscribers of that job.
"""

import asyncio
import logging
import uuid
from datetime import datetime

from app.models.schemas import (
    FailureStage,
    Owner,
    ProgressMessage,
    PublishJob,
    PublishResult,
    PublishStage,
)

logger = logging.getLogger(__name__)

TERMINAL_STAGES = (PublishStage.DONE, PublishStage.FAILED)


class JobManager:
    """
    In-memory registry of publish jobs with progress fan-out.

    Jobs are lost on restart. Each subscriber gets its own queue of
    JSON-ready progress payloads.

    Example:
        manager = JobManager()
        job = manager.create_job(owner, "Sunset Timelapse")
        queue = manager.subscribe(job.job_id)

        await manager.update_progress(
            job.job_id, PublishStage.UPLOADING_VIDEO, 40, "Uploading main video content..."
        )
        payload = await queue.get()
    """

    def __init__(self):
        self._jobs: dict[str, PublishJob] = {}
        self._subscribers: dict[str, list[asyncio.Queue]] = {}

    def create_job(self, owner: Owner, title: str) -> PublishJob:
        """
        Register a new publish job in the IDLE stage.

        Args:
            owner: Acting user
            title: Concept title (for display)
        """
        job = PublishJob(job_id=uuid.uuid4().hex[:8], owner=owner, title=title)
        self._jobs[job.job_id] = job
        self._subscribers.setdefault(job.job_id, [])

        logger.info(f"Created job {job.job_id} for {owner.user_id}: {title!r}")
        return job

    def get_job(self, job_id: str) -> PublishJob | None:
        return self._jobs.get(job_id)

    def list_jobs(self, owner_id: str | None = None) -> list[PublishJob]:
        """Jobs newest first, optionally only those of one user."""
        jobs = [
            job for job in self._jobs.values()
            if owner_id is None or job.owner.user_id == owner_id
        ]
        return sorted(jobs, key=lambda j: j.created_at, reverse=True)

    def _require(self, job_id: str, action: str) -> PublishJob | None:
        job = self._jobs.get(job_id)
        if job is None:
            logger.warning(f"Ignoring {action} for unknown job {job_id}")
        return job

    async def update_progress(
        self,
        job_id: str,
        stage: PublishStage,
        progress: float,
        message: str,
    ) -> None:
        """
        Record a pipeline transition and broadcast it.

        DONE and FAILED only update the status text here; complete_job
        and fail_job set the terminal stage together with its result or
        error, so subscribers see exactly one terminal message.

        Args:
            job_id: Job identifier
            stage: Stage the pipeline entered
            progress: Percentage (0-100)
            message: Status text for the user
        """
        job = self._require(job_id, "progress update")
        if job is None:
            return

        if stage in TERMINAL_STAGES:
            job.message = message
            return

        job.stage, job.progress, job.message = stage, progress, message
        await self._broadcast(job_id, ProgressMessage(
            stage=stage,
            progress=progress,
            message=message,
            timestamp=datetime.now(),
        ))

    async def complete_job(
        self,
        job_id: str,
        result: PublishResult,
        reset_after_seconds: float | None = None,
    ) -> None:
        """
        Mark a job done and broadcast the result.

        Args:
            job_id: Job identifier
            result: Publish result
            reset_after_seconds: How long the caller should show the
                finished state before returning to the default view
        """
        job = self._require(job_id, "completion")
        if job is None:
            return

        job.stage = PublishStage.DONE
        job.progress = 100
        job.message = "Video concept published successfully!"
        job.completed_at = datetime.now()
        job.result = result
        job.reset_after_seconds = reset_after_seconds

        await self._broadcast(job_id, ProgressMessage(
            stage=job.stage,
            progress=job.progress,
            message=job.message,
            timestamp=job.completed_at,
            result=result,
            reset_after_seconds=reset_after_seconds,
        ))
        logger.info(
            f"Job {job_id} done: concept {result.concept.id}, "
            f"{result.sfx_uploaded} sound effects linked, {result.sfx_failed} not"
        )

    async def fail_job(
        self,
        job_id: str,
        error: str,
        failed_stage: FailureStage | None = None,
        orphaned_urls: list[str] | None = None,
    ) -> None:
        """
        Mark a job failed and broadcast the error.

        Progress drops to 0; the status message of the failed stage is kept.

        Args:
            job_id: Job identifier
            error: Error shown to the user
            failed_stage: Step where the run aborted
            orphaned_urls: Uploaded objects left without a record
        """
        job = self._require(job_id, "failure")
        if job is None:
            return

        job.stage = PublishStage.FAILED
        job.progress = 0
        job.error = error
        job.failed_stage = failed_stage
        job.orphaned_urls = list(orphaned_urls or [])
        job.completed_at = datetime.now()

        await self._broadcast(job_id, ProgressMessage(
            stage=job.stage,
            progress=0,
            message=job.message or error,
            timestamp=job.completed_at,
            error=error,
        ))
        stage = failed_stage.value if failed_stage else "unknown"
        logger.error(f"Job {job_id} failed at {stage}: {error}")

    def subscribe(self, job_id: str) -> asyncio.Queue:
        """Open a queue receiving this job's progress payloads."""
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.setdefault(job_id, []).append(queue)
        logger.debug(f"Subscriber added to job {job_id}")
        return queue

    def unsubscribe(self, job_id: str, queue: asyncio.Queue) -> None:
        """Close a subscription; a finished job's list goes with its last subscriber."""
        queues = self._subscribers.get(job_id, [])
        if queue in queues:
            queues.remove(queue)
            logger.debug(f"Subscriber removed from job {job_id}")

        job = self._jobs.get(job_id)
        if not queues and (job is None or job.stage in TERMINAL_STAGES):
            self._subscribers.pop(job_id, None)

    async def _broadcast(self, job_id: str, message: ProgressMessage) -> None:
        payload = message.model_dump(mode="json", exclude_none=True)
        for queue in self._subscribers.get(job_id, []):
            queue.put_nowait(payload)


job_manager = JobManager()


def get_job_manager() -> JobManager:
    """Process-wide job manager."""
    return job_manager
