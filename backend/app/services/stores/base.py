"""
Base protocols for external storage collaborators.

Defines the interfaces the publishing core consumes, allowing
interchangeable use of HTTP-backed services and in-memory backends:
- ObjectStore: binary uploads returning a public URL
- RecordStore: create/upsert/increment/get/query over named collections
"""

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

# Collection names in the record store
VIDEOS_COLLECTION = "videos"
SFX_ASSETS_COLLECTION = "sfx_assets"
USERS_COLLECTION = "users"


@dataclass
class StoreConfig:
    """
    Configuration for store client instances.

    Attributes:
        base_url: Service endpoint URL
        timeout: Request timeout in seconds
        api_token: Optional bearer token for authenticated services
    """

    base_url: str
    timeout: float = 30.0
    api_token: str | None = None

    def headers(self) -> dict[str, str]:
        """Default request headers (auth if configured)."""
        if self.api_token:
            return {"Authorization": f"Bearer {self.api_token}"}
        return {}


@runtime_checkable
class ObjectStore(Protocol):
    """
    Protocol for binary object storage.

    Example:
        async with HttpObjectStore.from_settings(settings) as store:
            url = await store.upload("sunset.jpg", data, "image/jpeg")
    """

    async def upload(
        self,
        filename: str,
        data: bytes,
        content_type: str | None = None,
    ) -> str:
        """
        Store a binary payload.

        Args:
            filename: Original file name
            data: Payload bytes
            content_type: Advisory MIME type

        Returns:
            Publicly dereferenceable URL

        Raises:
            UploadFailure: If the transfer fails
        """
        ...

    async def check_health(self) -> bool:
        """Return True if the service is reachable."""
        ...

    async def close(self) -> None:
        """Release resources."""
        ...


@runtime_checkable
class RecordStore(Protocol):
    """
    Protocol for the record store.

    Records are plain dicts. The store assigns "id" and "created_at"
    on create.
    """

    async def create(self, collection: str, fields: dict[str, Any]) -> dict[str, Any]:
        """Create a record and return it with its assigned id."""
        ...

    async def upsert(self, collection: str, record_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        """Create or merge fields into the record with the given id."""
        ...

    async def increment(
        self,
        collection: str,
        record_id: str,
        field: str,
        amount: int = 1,
    ) -> int:
        """Atomically add amount to a numeric field, returning the new value."""
        ...

    async def get(self, collection: str, record_id: str) -> dict[str, Any] | None:
        """Fetch a record by id (None if missing)."""
        ...

    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        """Return records matching all equality filters, optionally sorted."""
        ...

    async def check_health(self) -> bool:
        """Return True if the service is reachable."""
        ...

    async def close(self) -> None:
        """Release resources."""
        ...


class StorageError(Exception):
    """
    Base exception for storage collaborator errors.

    Attributes:
        message: Error description
        backend: Backend name (http, memory)
        original_error: Underlying exception if available
    """

    def __init__(
        self,
        message: str,
        backend: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.backend = backend
        self.original_error = original_error
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.backend:
            parts.append(f"backend={self.backend}")
        if self.original_error is not None:
            parts.append(f"cause={type(self.original_error).__name__}")
        return " | ".join(parts)


class UploadFailure(StorageError):
    """
    Raised when an object-store upload fails.

    Attributes:
        filename: Name of the file being uploaded
    """

    def __init__(self, message: str, filename: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.filename = filename


class StoreError(StorageError):
    """
    Raised when a record-store call fails.

    Attributes:
        collection: Target collection
        status_code: HTTP status code if available
    """

    def __init__(
        self,
        message: str,
        collection: str | None = None,
        status_code: int | None = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.collection = collection
        self.status_code = status_code
