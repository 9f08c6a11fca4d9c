import pytest

from app.models.schemas import PublishStage
from app.services.pipeline import ProgressTracker, PublishProgress


class TestPublishProgress:
    """Stage percentages and transition rules."""

    def test_initial_state_is_idle(self):
        progress = PublishProgress()
        assert progress.stage == PublishStage.IDLE
        assert progress.percent == 0
        assert progress.message == ""

    def test_success_path_percentages(self):
        progress = PublishProgress()
        percents = []
        for step in ("uploading_thumbnail", "uploading_video", "saving_concept", "done"):
            progress = getattr(progress, step)()
            percents.append(progress.percent)
        assert percents == [20, 40, 60, 100]
        assert progress.message == "Video concept published successfully!"

    def test_transitions_return_new_instances(self):
        idle = PublishProgress()
        thumb = idle.uploading_thumbnail()
        assert idle.stage == PublishStage.IDLE
        assert thumb.stage == PublishStage.UPLOADING_THUMBNAIL

    def test_sfx_percent_is_interpolated(self):
        progress = PublishProgress().uploading_thumbnail().uploading_video().saving_concept()
        progress = progress.uploading_sfx(0, 2)
        assert progress.percent == 60
        assert progress.message == "Uploading 2 sound effects..."

        progress = progress.uploading_sfx(1, 2)
        assert progress.percent == 75
        assert progress.message == "Uploaded 1/2 sound effects."

        progress = progress.uploading_sfx(2, 2)
        assert progress.percent == 90

    def test_sfx_message_counts_failures(self):
        progress = PublishProgress().saving_concept().uploading_sfx(3, 3, failed=1)
        assert progress.message == "Uploaded 2/3 sound effects. (1 failed)"
        assert progress.percent == 90

    def test_sfx_count_cannot_decrease(self):
        progress = PublishProgress().saving_concept().uploading_sfx(2, 3)
        with pytest.raises(ValueError):
            progress.uploading_sfx(1, 3)

    @pytest.mark.parametrize("processed,total,failed", [(3, 2, 0), (-1, 2, 0), (1, 0, 0), (1, 2, 2)])
    def test_invalid_sfx_counts(self, processed, total, failed):
        with pytest.raises(ValueError):
            PublishProgress().saving_concept().uploading_sfx(processed, total, failed)

    def test_backwards_transition_rejected(self):
        progress = PublishProgress().uploading_video()
        with pytest.raises(ValueError):
            progress.uploading_thumbnail()

    def test_failed_resets_percent_and_keeps_message(self):
        progress = PublishProgress().uploading_thumbnail().uploading_video()
        failed = progress.failed("Upload failed: main video could not be uploaded.")
        assert failed.stage == PublishStage.FAILED
        assert failed.percent == 0
        assert failed.message == "Upload failed: main video could not be uploaded."
        assert failed.is_terminal

    def test_terminal_states_are_final(self):
        done = PublishProgress().done()
        with pytest.raises(ValueError):
            done.failed("late failure")
        with pytest.raises(ValueError):
            done.uploading_video()

        failed = PublishProgress().uploading_thumbnail().failed("boom")
        with pytest.raises(ValueError):
            failed.uploading_video()


@pytest.mark.asyncio
class TestProgressTracker:
    """Callback forwarding."""

    async def test_transition_notifies_callback(self, progress_log):
        tracker = ProgressTracker(progress_log)
        await tracker.transition(tracker.state.uploading_thumbnail())
        await tracker.transition(tracker.state.uploading_video())

        assert [p.percent for p in progress_log.received] == [20, 40]
        assert tracker.state.stage == PublishStage.UPLOADING_VIDEO

    async def test_callback_error_is_swallowed(self):
        async def broken(progress):
            raise RuntimeError("socket closed")

        tracker = ProgressTracker(broken)
        state = await tracker.transition(tracker.state.uploading_thumbnail())
        assert state.stage == PublishStage.UPLOADING_THUMBNAIL

    async def test_no_callback(self):
        tracker = ProgressTracker()
        await tracker.transition(tracker.state.done())
        assert tracker.state.percent == 100
