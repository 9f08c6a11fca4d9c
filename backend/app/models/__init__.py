"""
Pydantic models for the video concept publishing pipeline.

Exports:
    - Submission models (MediaFile, Owner, PublishRequest)
    - Persisted records (VideoConcept, ConceptListing, SfxAsset)
    - Pipeline results and job state (PublishResult, PublishJob, ...)
"""

from app.models.schemas import (
    ConceptListing,
    FailureStage,
    MediaFile,
    Owner,
    ProgressMessage,
    PublishJob,
    PublishRequest,
    PublishResult,
    PublishStage,
    SfxAsset,
    SfxOutcome,
    SfxStatus,
    VideoConcept,
    ViewRecorded,
)

__all__ = [
    # Enums
    "PublishStage",
    "FailureStage",
    "SfxStatus",
    # Submission
    "MediaFile",
    "Owner",
    "PublishRequest",
    # Records
    "VideoConcept",
    "ConceptListing",
    "SfxAsset",
    # Results
    "SfxOutcome",
    "PublishResult",
    "PublishJob",
    "ProgressMessage",
    "ViewRecorded",
]
