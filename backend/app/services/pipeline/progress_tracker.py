"""
Progress tracking for the publish pipeline.

PublishProgress is an immutable value: each transition returns a new
instance. ProgressTracker holds the current value for one run and
forwards every transition to an optional async callback.
"""

import logging
from dataclasses import dataclass, replace
from typing import Awaitable, Callable

from app.models.schemas import PublishStage

logger = logging.getLogger(__name__)

# Success-path order; FAILED may follow any non-terminal stage
STAGE_ORDER = [
    PublishStage.IDLE,
    PublishStage.UPLOADING_THUMBNAIL,
    PublishStage.UPLOADING_VIDEO,
    PublishStage.SAVING_CONCEPT,
    PublishStage.UPLOADING_SFX,
    PublishStage.DONE,
]

# Percentage floor for each fixed stage
STAGE_PERCENT = {
    PublishStage.IDLE: 0,
    PublishStage.UPLOADING_THUMBNAIL: 20,
    PublishStage.UPLOADING_VIDEO: 40,
    PublishStage.SAVING_CONCEPT: 60,
    PublishStage.DONE: 100,
    PublishStage.FAILED: 0,
}

# UPLOADING_SFX spans 60-90%
SFX_BASE_PERCENT = 60
SFX_SPAN_PERCENT = 30

STAGE_MESSAGES = {
    PublishStage.IDLE: "",
    PublishStage.UPLOADING_THUMBNAIL: "Uploading thumbnail...",
    PublishStage.UPLOADING_VIDEO: "Uploading main video content...",
    PublishStage.SAVING_CONCEPT: "Saving video concept details...",
    PublishStage.DONE: "Video concept published successfully!",
}


@dataclass(frozen=True)
class PublishProgress:
    """
    Snapshot of a publish run's progress.

    Example:
        progress = PublishProgress()
        progress = progress.uploading_thumbnail()   # 20%
        progress = progress.uploading_sfx(1, 2)     # 75%
        progress = progress.failed("...")           # 0%, terminal
    """

    stage: PublishStage = PublishStage.IDLE
    percent: float = 0
    message: str = ""
    sfx_processed: int = 0
    sfx_total: int = 0

    @property
    def is_terminal(self) -> bool:
        """True once DONE or FAILED is reached."""
        return self.stage in (PublishStage.DONE, PublishStage.FAILED)

    def _advance(self, stage: PublishStage, **changes) -> "PublishProgress":
        if self.is_terminal:
            raise ValueError(f"Cannot leave terminal stage {self.stage.value}")
        if STAGE_ORDER.index(stage) < STAGE_ORDER.index(self.stage):
            raise ValueError(f"Cannot move backwards: {self.stage.value} -> {stage.value}")
        return replace(self, stage=stage, **changes)

    def _fixed(self, stage: PublishStage) -> "PublishProgress":
        return self._advance(
            stage,
            percent=STAGE_PERCENT[stage],
            message=STAGE_MESSAGES[stage],
        )

    def uploading_thumbnail(self) -> "PublishProgress":
        return self._fixed(PublishStage.UPLOADING_THUMBNAIL)

    def uploading_video(self) -> "PublishProgress":
        return self._fixed(PublishStage.UPLOADING_VIDEO)

    def saving_concept(self) -> "PublishProgress":
        return self._fixed(PublishStage.SAVING_CONCEPT)

    def uploading_sfx(self, processed: int, total: int, failed: int = 0) -> "PublishProgress":
        """
        Sound-effect progress after `processed` of `total` files.

        Args:
            processed: Files handled so far (succeeded or failed)
            total: Files requested
            failed: Files among `processed` that failed

        Raises:
            ValueError: On out-of-range counts or a decreasing count
        """
        if total <= 0 or not 0 <= processed <= total or not 0 <= failed <= processed:
            raise ValueError(f"Invalid sfx counts: processed={processed}, total={total}, failed={failed}")
        if self.stage == PublishStage.UPLOADING_SFX and processed < self.sfx_processed:
            raise ValueError(f"Sfx count went backwards: {self.sfx_processed} -> {processed}")

        if processed == 0:
            message = f"Uploading {total} sound effects..."
        else:
            message = f"Uploaded {processed - failed}/{total} sound effects."
        if failed:
            message = f"{message} ({failed} failed)"

        return self._advance(
            PublishStage.UPLOADING_SFX,
            percent=SFX_BASE_PERCENT + (processed / total) * SFX_SPAN_PERCENT,
            message=message,
            sfx_processed=processed,
            sfx_total=total,
        )

    def done(self) -> "PublishProgress":
        return self._fixed(PublishStage.DONE)

    def failed(self, message: str) -> "PublishProgress":
        """Jump to FAILED from any non-terminal stage; percent resets to 0."""
        if self.is_terminal:
            raise ValueError(f"Cannot fail from terminal stage {self.stage.value}")
        return replace(
            self,
            stage=PublishStage.FAILED,
            percent=STAGE_PERCENT[PublishStage.FAILED],
            message=message,
        )


# Signature: (progress) -> None
ProgressCallback = Callable[[PublishProgress], Awaitable[None]]


class ProgressTracker:
    """
    Holds the current PublishProgress for one run and reports changes.

    Callback errors are logged and never interrupt the pipeline.
    """

    def __init__(self, callback: ProgressCallback | None = None):
        self.state = PublishProgress()
        self._callback = callback

    async def transition(self, new_state: PublishProgress) -> PublishProgress:
        """
        Replace the current state and notify the callback.

        Args:
            new_state: State produced by a PublishProgress transition

        Returns:
            The new state
        """
        self.state = new_state
        logger.debug(f"Progress: {new_state.stage.value} {new_state.percent:.0f}% {new_state.message}")

        if self._callback is not None:
            try:
                await self._callback(new_state)
            except Exception as e:
                logger.warning(f"Progress callback error: {e}")

        return new_state
