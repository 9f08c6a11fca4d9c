"""
HTTP object storage client.

Uploads binary payloads to the media storage service and returns
their public URLs. Uploads are never retried: a second call is a
second, independent upload.
"""

import logging
import time

import httpx

from app.config import Settings
from app.services.stores.base import StoreConfig, UploadFailure

logger = logging.getLogger(__name__)


class HttpObjectStore:
    """
    Async HTTP client for the object storage service.

    Wire format:
        POST {base_url}/upload  (multipart field "file") -> {"url": "..."}
        GET  {base_url}/health  -> 200

    Example:
        async with HttpObjectStore.from_settings(settings) as store:
            url = await store.upload("wind.mp3", data, "audio/mpeg")
    """

    backend = "http"

    def __init__(
        self,
        config: StoreConfig,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize object store client.

        Args:
            config: Store configuration with service URL and token
            http_client: Optional preconfigured client (used in tests)
        """
        self.config = config
        self.http_client = http_client or httpx.AsyncClient(
            timeout=config.timeout,
            headers=config.headers(),
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpObjectStore":
        """
        Create HttpObjectStore from application settings.

        Args:
            settings: Application settings

        Returns:
            Configured HttpObjectStore instance
        """
        config = StoreConfig(
            base_url=settings.object_store_url.rstrip("/"),
            timeout=settings.upload_timeout,
            api_token=settings.store_api_token,
        )
        return cls(config)

    async def __aenter__(self) -> "HttpObjectStore":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.http_client.aclose()

    async def check_health(self) -> bool:
        """
        Check availability of the object storage service.

        Returns:
            True if the service answers 200, False otherwise
        """
        try:
            response = await self.http_client.get(
                f"{self.config.base_url}/health",
                timeout=5.0,
            )
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.debug(f"Object store not available: {e}")
        return False

    async def upload(
        self,
        filename: str,
        data: bytes,
        content_type: str | None = None,
    ) -> str:
        """
        Upload a payload and return its public URL.

        Args:
            filename: Original file name
            data: Payload bytes
            content_type: Advisory MIME type

        Returns:
            Public URL of the stored object

        Raises:
            UploadFailure: On timeout, HTTP error or malformed response
        """
        files = {"file": (filename, data, content_type or "application/octet-stream")}
        start_time = time.time()

        try:
            response = await self.http_client.post(
                f"{self.config.base_url}/upload",
                files=files,
            )
            response.raise_for_status()
            url = response.json().get("url")

        except httpx.TimeoutException as e:
            elapsed = time.time() - start_time
            logger.error(f"Upload timeout for {filename} after {elapsed:.1f}s")
            raise UploadFailure(
                f"Upload timeout after {elapsed:.1f}s",
                filename=filename,
                backend=self.backend,
                original_error=e,
            ) from e

        except httpx.HTTPStatusError as e:
            logger.error(
                f"Upload HTTP error for {filename}: "
                f"{e.response.status_code} - {e.response.text[:200]}"
            )
            raise UploadFailure(
                f"Upload failed: HTTP {e.response.status_code}",
                filename=filename,
                backend=self.backend,
                original_error=e,
            ) from e

        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Upload failed for {filename}: {type(e).__name__}: {e}")
            raise UploadFailure(
                f"Upload failed: {e}",
                filename=filename,
                backend=self.backend,
                original_error=e,
            ) from e

        if not url:
            raise UploadFailure(
                "Upload response did not include a URL",
                filename=filename,
                backend=self.backend,
            )

        logger.debug(f"Stored {filename} in {time.time() - start_time:.1f}s -> {url}")
        return url
