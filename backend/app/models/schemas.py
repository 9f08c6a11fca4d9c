"""
Pydantic models for the video concept publishing pipeline.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field


class PublishStage(str, Enum):
    """Stage of a publish run, in success-path order (FAILED is terminal)."""
    IDLE = "idle"
    UPLOADING_THUMBNAIL = "uploading_thumbnail"
    UPLOADING_VIDEO = "uploading_video"
    SAVING_CONCEPT = "saving_concept"
    UPLOADING_SFX = "uploading_sfx"
    DONE = "done"
    FAILED = "failed"


class FailureStage(str, Enum):
    """Step at which a publish run was aborted."""
    THUMBNAIL = "thumbnail"
    VIDEO = "video"
    CONCEPT_CREATE = "concept-create"


class SfxStatus(str, Enum):
    """Per-file outcome of the sound-effect step."""
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"  # Not attempted (sfx_failure_policy=stop)


# ═══════════════════════════════════════════════════════════════════════════
# Submission
# ═══════════════════════════════════════════════════════════════════════════


class MediaFile(BaseModel):
    """Binary payload selected for upload."""

    model_config = ConfigDict(frozen=True)

    name: str
    content_type: str | None = None
    data: bytes = Field(repr=False)

    @computed_field
    @property
    def size(self) -> int:
        """Payload size in bytes."""
        return len(self.data)


class Owner(BaseModel):
    """Acting user, supplied by the hosting environment's identity provider."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    username: str


class PublishRequest(BaseModel):
    """Immutable submission passed to the publish orchestrator.

    Fields are deliberately permissive: completeness is checked by the
    orchestrator before any upload, so an incomplete request can be built
    and rejected without side effects.
    """

    model_config = ConfigDict(frozen=True)

    title: str = ""
    description: str = ""
    thumbnail: MediaFile | None = None
    video: MediaFile | None = None
    sfx_files: tuple[MediaFile, ...] = ()


# ═══════════════════════════════════════════════════════════════════════════
# Persisted records
# ═══════════════════════════════════════════════════════════════════════════


class VideoConcept(BaseModel):
    """Published video concept (collection: videos)."""

    id: str
    title: str
    description: str
    thumbnail_url: str
    video_url: str
    user_id: str
    view_count: int = Field(default=0, ge=0)
    created_at: datetime


class ConceptListing(VideoConcept):
    """Video concept joined with its owner's display name."""

    username: str | None = None


class SfxAsset(BaseModel):
    """Sound-effect clip attached to a video concept (collection: sfx_assets)."""

    id: str
    video_concept_id: str
    sfx_url: str
    sfx_name: str


# ═══════════════════════════════════════════════════════════════════════════
# Pipeline results
# ═══════════════════════════════════════════════════════════════════════════


class SfxOutcome(BaseModel):
    """Result of uploading and linking one sound-effect file."""

    index: int = Field(..., ge=0, description="Position in the submitted list")
    file_name: str
    status: SfxStatus
    url: str | None = None
    asset_id: str | None = None
    error: str | None = None


class PublishResult(BaseModel):
    """Result of a successful publish run."""

    concept: VideoConcept
    sfx_results: list[SfxOutcome] = Field(default_factory=list)

    @computed_field
    @property
    def sfx_uploaded(self) -> int:
        """Number of sound effects linked to the concept."""
        return sum(1 for r in self.sfx_results if r.status == SfxStatus.SUCCESS)

    @computed_field
    @property
    def sfx_failed(self) -> int:
        """Number of sound effects that failed or were skipped."""
        return sum(1 for r in self.sfx_results if r.status != SfxStatus.SUCCESS)


class PublishJob(BaseModel):
    """Background publish job state."""

    job_id: str
    owner: Owner
    title: str
    stage: PublishStage = PublishStage.IDLE
    progress: float = Field(ge=0, le=100, default=0)
    message: str = ""
    error: str | None = None
    failed_stage: FailureStage | None = None
    orphaned_urls: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)
    completed_at: datetime | None = None
    result: PublishResult | None = None
    reset_after_seconds: float | None = None


# ═══════════════════════════════════════════════════════════════════════════
# API Response Models
# ═══════════════════════════════════════════════════════════════════════════


class ProgressMessage(BaseModel):
    """WebSocket progress message."""

    stage: PublishStage
    progress: float = Field(ge=0, le=100)
    message: str
    timestamp: datetime
    result: PublishResult | None = None
    error: str | None = None
    reset_after_seconds: float | None = None


class ViewRecorded(BaseModel):
    """Acknowledgement for a playback-ended notification."""

    concept_id: str
    accepted: bool = True
