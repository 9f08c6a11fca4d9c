"""
Publish pipeline for video concepts.

This package contains the pipeline components:
- orchestrator: Upload/record sequencing and failure policy
- progress_tracker: Immutable progress state and callback reporting

Example:
    from app.services.pipeline import PublishOrchestrator, PublishError

    orchestrator = PublishOrchestrator.from_stores(object_store, record_store, settings)
    try:
        result = await orchestrator.publish(request, owner)
    except PublishError as e:
        print(e.stage, e.orphaned_urls)
"""

from .orchestrator import (
    PublishError,
    PublishOrchestrator,
    ValidationError,
    validate_request,
)
from .progress_tracker import ProgressCallback, ProgressTracker, PublishProgress

__all__ = [
    # Main orchestrator
    "PublishOrchestrator",
    "PublishError",
    "ValidationError",
    "validate_request",
    # Progress
    "PublishProgress",
    "ProgressTracker",
    "ProgressCallback",
]
