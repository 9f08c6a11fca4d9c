from datetime import datetime, timedelta

import pytest

from app.models.schemas import FailureStage, Owner, PublishResult, PublishStage, VideoConcept
from app.services.job_manager import JobManager

BOB = Owner(user_id="user-2", username="bob")


def make_result() -> PublishResult:
    concept = VideoConcept(
        id="c1",
        title="Sunset Timelapse",
        description="A calm sunset",
        thumbnail_url="u1",
        video_url="u2",
        user_id="user-1",
        created_at=datetime(2026, 1, 1),
    )
    return PublishResult(concept=concept)


class TestJobLifecycle:
    """Creation and lookup."""

    def test_create_and_get(self, owner):
        manager = JobManager()
        job = manager.create_job(owner, "Sunset Timelapse")

        assert manager.get_job(job.job_id) is job
        assert job.stage == PublishStage.IDLE
        assert job.progress == 0

    def test_get_unknown(self):
        assert JobManager().get_job("missing") is None

    def test_list_by_owner_newest_first(self, owner):
        manager = JobManager()
        older = manager.create_job(owner, "one")
        manager.create_job(BOB, "two")
        newer = manager.create_job(owner, "three")
        older.created_at = newer.created_at - timedelta(seconds=5)

        jobs = manager.list_jobs(owner_id="user-1")

        assert [j.title for j in jobs] == ["three", "one"]
        assert len(manager.list_jobs()) == 3


@pytest.mark.asyncio
class TestJobBroadcast:
    """Progress updates reach subscribers."""

    async def test_update_progress(self, owner):
        manager = JobManager()
        job = manager.create_job(owner, "Sunset")
        queue = manager.subscribe(job.job_id)

        await manager.update_progress(
            job.job_id, PublishStage.UPLOADING_VIDEO, 40, "Uploading main video content..."
        )

        message = queue.get_nowait()
        assert message["stage"] == "uploading_video"
        assert message["progress"] == 40
        assert "result" not in message
        assert job.message == "Uploading main video content..."

    async def test_complete_job(self, owner):
        manager = JobManager()
        job = manager.create_job(owner, "Sunset")
        queue = manager.subscribe(job.job_id)

        await manager.complete_job(job.job_id, make_result(), reset_after_seconds=1.5)

        assert job.stage == PublishStage.DONE
        assert job.progress == 100
        assert job.completed_at is not None
        message = queue.get_nowait()
        assert message["result"]["concept"]["id"] == "c1"
        assert message["reset_after_seconds"] == 1.5

    async def test_fail_job_resets_progress_and_keeps_message(self, owner):
        manager = JobManager()
        job = manager.create_job(owner, "Sunset")
        await manager.update_progress(
            job.job_id, PublishStage.UPLOADING_VIDEO, 40, "Upload failed: main video could not be uploaded."
        )
        queue = manager.subscribe(job.job_id)

        await manager.fail_job(
            job.job_id, "Failed to publish video concept. Please try again.",
            FailureStage.VIDEO, ["memory://objects/x/sunset.jpg"],
        )

        assert job.stage == PublishStage.FAILED
        assert job.progress == 0
        assert job.failed_stage == FailureStage.VIDEO
        assert job.orphaned_urls == ["memory://objects/x/sunset.jpg"]
        message = queue.get_nowait()
        assert message["message"] == "Upload failed: main video could not be uploaded."
        assert message["error"].startswith("Failed to publish")

    async def test_unsubscribed_queue_gets_nothing(self, owner):
        manager = JobManager()
        job = manager.create_job(owner, "Sunset")
        queue = manager.subscribe(job.job_id)
        manager.unsubscribe(job.job_id, queue)

        await manager.update_progress(job.job_id, PublishStage.UPLOADING_THUMBNAIL, 20, "x")

        assert queue.empty()

    async def test_pipeline_terminal_stage_only_updates_message(self, owner):
        manager = JobManager()
        job = manager.create_job(owner, "Sunset")
        await manager.update_progress(job.job_id, PublishStage.UPLOADING_VIDEO, 40, "video")
        queue = manager.subscribe(job.job_id)

        await manager.update_progress(
            job.job_id, PublishStage.FAILED, 0, "Upload failed: main video could not be uploaded."
        )

        assert queue.empty()
        assert job.stage == PublishStage.UPLOADING_VIDEO
        assert job.message == "Upload failed: main video could not be uploaded."

    async def test_done_arrives_once_with_result(self, owner):
        manager = JobManager()
        job = manager.create_job(owner, "Sunset")
        queue = manager.subscribe(job.job_id)

        await manager.update_progress(
            job.job_id, PublishStage.DONE, 100, "Video concept published successfully!"
        )
        await manager.complete_job(job.job_id, make_result(), reset_after_seconds=1.5)

        assert queue.qsize() == 1
        message = queue.get_nowait()
        assert message["stage"] == "done"
        assert message["result"]["concept"]["id"] == "c1"

    async def test_finished_job_drops_subscriber_list(self, owner):
        manager = JobManager()
        job = manager.create_job(owner, "Sunset")
        queue = manager.subscribe(job.job_id)
        await manager.complete_job(job.job_id, make_result())

        manager.unsubscribe(job.job_id, queue)

        assert job.job_id not in manager._subscribers
        assert manager.get_job(job.job_id) is job

    async def test_running_job_keeps_subscriber_list(self, owner):
        manager = JobManager()
        job = manager.create_job(owner, "Sunset")
        queue = manager.subscribe(job.job_id)

        manager.unsubscribe(job.job_id, queue)

        assert manager._subscribers[job.job_id] == []

    async def test_unknown_job_is_ignored(self):
        await JobManager().update_progress("missing", PublishStage.DONE, 100, "x")
