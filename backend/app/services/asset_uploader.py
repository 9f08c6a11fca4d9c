"""
Asset uploader service.

Wraps the object store upload call for a single MediaFile.
"""

import asyncio
import logging
import time

from app.config import Settings
from app.models.schemas import MediaFile
from app.services.stores.base import ObjectStore, UploadFailure

logger = logging.getLogger(__name__)


class AssetUploader:
    """
    Uploads one file per call and returns its public URL.

    Content type is passed through untouched; routing files to the
    right slot is the caller's job. No retries, no deduplication.

    Example:
        uploader = AssetUploader(object_store, settings)
        url = await uploader.upload(MediaFile(name="a.jpg", data=b"..."))
    """

    def __init__(self, object_store: ObjectStore, settings: Settings):
        """
        Initialize uploader.

        Args:
            object_store: Object storage backend
            settings: Application settings (upload_timeout)
        """
        self.object_store = object_store
        self.settings = settings

    async def upload(self, file: MediaFile) -> str:
        """
        Upload a file to the object store.

        Args:
            file: Payload with name and advisory content type

        Returns:
            Public URL of the uploaded object

        Raises:
            UploadFailure: Empty payload, timeout or transport error
        """
        if file.size == 0:
            raise UploadFailure("Cannot upload empty file", filename=file.name)

        size_mb = file.size / 1024 / 1024
        logger.info(f"Uploading: {file.name} ({size_mb:.2f} MB, {file.content_type or 'unknown type'})")
        start_time = time.time()

        try:
            url = await asyncio.wait_for(
                self.object_store.upload(file.name, file.data, file.content_type),
                timeout=self.settings.upload_timeout,
            )
        except UploadFailure:
            raise
        except asyncio.TimeoutError as e:
            raise UploadFailure(
                f"Upload timed out after {self.settings.upload_timeout:.0f}s",
                filename=file.name,
                original_error=e,
            ) from e
        except Exception as e:
            raise UploadFailure(
                f"Upload failed: {e}",
                filename=file.name,
                original_error=e,
            ) from e

        logger.info(f"Uploaded: {file.name} in {time.time() - start_time:.1f}s")
        return url
