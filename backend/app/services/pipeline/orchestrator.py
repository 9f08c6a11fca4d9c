"""
Publish orchestrator for video concepts.

Sequences the uploads and record creations for one submission:
thumbnail -> main video -> concept record -> sound effects.
Steps never run concurrently: the concept needs both media URLs and
every sound-effect asset needs the concept id.
"""

import logging
import time

from app.config import Settings, content_type_matches, get_settings, load_upload_slots
from app.models.schemas import (
    FailureStage,
    MediaFile,
    Owner,
    PublishRequest,
    PublishResult,
    SfxOutcome,
    SfxStatus,
    VideoConcept,
)
from app.services.asset_uploader import AssetUploader
from app.services.concept_repository import ConceptRepository
from app.services.stores.base import ObjectStore, RecordStore, StoreError, UploadFailure

from .progress_tracker import ProgressCallback, ProgressTracker

logger = logging.getLogger(__name__)

# Status text shown when the run aborts at a given step
FAILURE_MESSAGES = {
    FailureStage.THUMBNAIL: "Upload failed: thumbnail could not be uploaded.",
    FailureStage.VIDEO: "Upload failed: main video could not be uploaded.",
    FailureStage.CONCEPT_CREATE: "Upload failed: video concept details could not be saved.",
}


class ValidationError(Exception):
    """
    Submission is incomplete. Raised before any upload or store call.

    Attributes:
        errors: Human-readable problems, one per field
    """

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


class PublishError(Exception):
    """
    Fatal publish failure with context.

    Attributes:
        stage: Step where the run aborted
        message: Error description
        cause: Original UploadFailure / StoreError
        orphaned_urls: Objects uploaded before the failure that no record references
    """

    def __init__(
        self,
        stage: FailureStage,
        message: str,
        cause: Exception | None = None,
        orphaned_urls: list[str] | None = None,
    ):
        self.stage = stage
        self.message = message
        self.cause = cause
        self.orphaned_urls = orphaned_urls or []
        super().__init__(f"[{stage.value}] {message}")


def validate_request(request: PublishRequest, settings: Settings | None = None) -> None:
    """
    Check a submission without side effects.

    Args:
        request: Submission to check
        settings: Application settings (max_sfx_files)

    Raises:
        ValidationError: Listing every missing or invalid field
    """
    settings = settings or get_settings()

    errors = []
    if not request.title.strip():
        errors.append("Title is required")
    if not request.description.strip():
        errors.append("Description is required")
    if request.thumbnail is None or request.thumbnail.size == 0:
        errors.append("A thumbnail file is required")
    if request.video is None or request.video.size == 0:
        errors.append("A main video file is required")
    if len(request.sfx_files) > settings.max_sfx_files:
        errors.append(
            f"At most {settings.max_sfx_files} sound effects are allowed "
            f"(got {len(request.sfx_files)})"
        )

    if errors:
        logger.info(f"Rejected submission: {'; '.join(errors)}")
        raise ValidationError(errors)


class PublishOrchestrator:
    """
    Runs the publish pipeline, one submission per call.

    Instances hold no per-run state, so one orchestrator may serve
    concurrent submissions.

    Failure policy:
        - thumbnail / video / concept-create failures abort the run with
          PublishError; already uploaded objects stay orphaned and are
          listed in PublishError.orphaned_urls
        - sound-effect failures never fail the run; each file gets an
          SfxOutcome. With sfx_failure_policy="stop" the files after the
          first failure are marked SKIPPED instead of attempted

    Example:
        orchestrator = PublishOrchestrator.from_stores(object_store, record_store, settings)
        result = await orchestrator.publish(request, owner, progress_callback)
        print(result.concept.id, result.sfx_failed)
    """

    def __init__(
        self,
        uploader: AssetUploader,
        repository: ConceptRepository,
        settings: Settings | None = None,
    ):
        """
        Initialize publish orchestrator.

        Args:
            uploader: Asset uploader
            repository: Concept repository
            settings: Application settings (uses defaults if None)
        """
        self.settings = settings or get_settings()
        self.uploader = uploader
        self.repository = repository
        self.upload_slots = load_upload_slots(self.settings)

    @classmethod
    def from_stores(
        cls,
        object_store: ObjectStore,
        record_store: RecordStore,
        settings: Settings | None = None,
    ) -> "PublishOrchestrator":
        """Build an orchestrator with default uploader and repository."""
        settings = settings or get_settings()
        return cls(
            AssetUploader(object_store, settings),
            ConceptRepository(record_store, settings),
            settings,
        )

    # ═══════════════════════════════════════════════════════════════════════════
    # Validation
    # ═══════════════════════════════════════════════════════════════════════════

    def validate(self, request: PublishRequest) -> None:
        """Check a submission without side effects (see validate_request)."""
        validate_request(request, self.settings)

    def _check_slot(self, slot: str, file: MediaFile) -> None:
        patterns = self.upload_slots.get(slot)
        if patterns and not content_type_matches(file.content_type, patterns):
            logger.warning(
                f"{file.name}: content type {file.content_type!r} "
                f"does not match {slot} slot {patterns}"
            )

    # ═══════════════════════════════════════════════════════════════════════════
    # Full Pipeline
    # ═══════════════════════════════════════════════════════════════════════════

    async def publish(
        self,
        request: PublishRequest,
        owner: Owner,
        progress_callback: ProgressCallback | None = None,
    ) -> PublishResult:
        """
        Publish a video concept.

        Stages:
        1. Upload thumbnail
        2. Upload main video
        3. Create concept record
        4. Upload + link each sound effect (best effort)

        Args:
            request: Submission to publish
            owner: Acting user attached to the concept
            progress_callback: Optional async callback for progress updates

        Returns:
            PublishResult with the concept and per-file sound-effect outcomes

        Raises:
            ValidationError: Submission incomplete (nothing was uploaded)
            PublishError: Thumbnail, video or concept-create step failed
        """
        self.validate(request)

        tracker = ProgressTracker(progress_callback)
        uploaded: list[str] = []
        started_at = time.time()

        logger.info(
            f"Publishing {request.title!r} for {owner.user_id} "
            f"({len(request.sfx_files)} sound effects)"
        )

        # Stage 1: Thumbnail
        self._check_slot("thumbnail", request.thumbnail)
        await tracker.transition(tracker.state.uploading_thumbnail())
        try:
            thumbnail_url = await self.uploader.upload(request.thumbnail)
        except UploadFailure as e:
            raise await self._abort(tracker, FailureStage.THUMBNAIL, e, uploaded) from e
        uploaded.append(thumbnail_url)

        # Stage 2: Main video
        self._check_slot("video", request.video)
        await tracker.transition(tracker.state.uploading_video())
        try:
            video_url = await self.uploader.upload(request.video)
        except UploadFailure as e:
            raise await self._abort(tracker, FailureStage.VIDEO, e, uploaded) from e
        uploaded.append(video_url)

        # Stage 3: Concept record
        await tracker.transition(tracker.state.saving_concept())
        try:
            await self.repository.register_owner(owner)
            concept = await self.repository.create_concept(
                title=request.title.strip(),
                description=request.description.strip(),
                thumbnail_url=thumbnail_url,
                video_url=video_url,
                owner=owner,
            )
        except StoreError as e:
            raise await self._abort(tracker, FailureStage.CONCEPT_CREATE, e, uploaded) from e

        # Stage 4: Sound effects
        sfx_results: list[SfxOutcome] = []
        if request.sfx_files:
            sfx_results = await self._publish_sfx(tracker, concept, request.sfx_files)

        await tracker.transition(tracker.state.done())

        result = PublishResult(concept=concept, sfx_results=sfx_results)
        logger.info(
            f"Published concept {concept.id}: "
            f"{result.sfx_uploaded}/{len(sfx_results)} sound effects, "
            f"{time.time() - started_at:.1f}s"
        )
        return result

    async def _abort(
        self,
        tracker: ProgressTracker,
        stage: FailureStage,
        error: Exception,
        uploaded: list[str],
    ) -> PublishError:
        """Move progress to FAILED and build the PublishError to raise."""
        await tracker.transition(tracker.state.failed(FAILURE_MESSAGES[stage]))
        logger.error(f"Publish failed at {stage.value}: {error}")
        if uploaded:
            logger.warning(f"Orphaned uploads after {stage.value} failure: {', '.join(uploaded)}")
        return PublishError(stage, str(error), cause=error, orphaned_urls=list(uploaded))

    async def _publish_sfx(
        self,
        tracker: ProgressTracker,
        concept: VideoConcept,
        files: tuple[MediaFile, ...],
    ) -> list[SfxOutcome]:
        """
        Upload and link sound effects in submission order.

        Failures are recorded per file and never raised.
        """
        total = len(files)
        stop_on_failure = self.settings.sfx_failure_policy == "stop"
        results: list[SfxOutcome] = []
        failed = 0

        await tracker.transition(tracker.state.uploading_sfx(0, total))

        for index, file in enumerate(files):
            if stop_on_failure and failed:
                results.append(SfxOutcome(index=index, file_name=file.name, status=SfxStatus.SKIPPED))
                continue

            outcome = await self._publish_one_sfx(index, file, concept)
            results.append(outcome)
            if outcome.status == SfxStatus.FAILED:
                failed += 1

            await tracker.transition(tracker.state.uploading_sfx(index + 1, total, failed))

        if failed:
            logger.warning(f"Concept {concept.id}: {failed}/{total} sound effects failed")
        return results

    async def _publish_one_sfx(
        self,
        index: int,
        file: MediaFile,
        concept: VideoConcept,
    ) -> SfxOutcome:
        self._check_slot("sfx", file)

        try:
            url = await self.uploader.upload(file)
        except UploadFailure as e:
            logger.warning(f"Sound effect {file.name} upload failed: {e}")
            return SfxOutcome(index=index, file_name=file.name, status=SfxStatus.FAILED, error=str(e))

        try:
            asset = await self.repository.create_sfx_asset(concept.id, url, file.name)
        except StoreError as e:
            logger.warning(f"Sound effect {file.name} record failed, {url} orphaned: {e}")
            return SfxOutcome(
                index=index,
                file_name=file.name,
                status=SfxStatus.FAILED,
                url=url,
                error=str(e),
            )

        return SfxOutcome(
            index=index,
            file_name=file.name,
            status=SfxStatus.SUCCESS,
            url=url,
            asset_id=asset.id,
        )
