"""
HTTP record store client.

Provides create/upsert/increment/get/query over named collections.
Idempotent reads are retried on transient errors; writes are sent once.
"""

import logging
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.config import Settings
from app.services.stores.base import StoreConfig, StoreError

logger = logging.getLogger(__name__)

# Retry configuration for transient errors (reads only)
RETRY_DECORATOR = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
    reraise=True,
)


class HttpRecordStore:
    """
    Async HTTP client for the record store service.

    Wire format (JSON bodies):
        POST /collections/{name}/records                   -> record
        PUT  /collections/{name}/records/{id}              -> record
        POST /collections/{name}/records/{id}/increment    -> {"value": n}
        GET  /collections/{name}/records/{id}              -> record | 404
        GET  /collections/{name}/records?k=v&order_by=f&direction=desc
                                                           -> {"items": [...]}

    Example:
        async with HttpRecordStore.from_settings(settings) as store:
            record = await store.create("videos", {"title": "Sunset"})
    """

    backend = "http"

    def __init__(
        self,
        config: StoreConfig,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize record store client.

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
    def from_settings(cls, settings: Settings) -> "HttpRecordStore":
        """
        Create HttpRecordStore from application settings.

        Args:
            settings: Application settings

        Returns:
            Configured HttpRecordStore instance
        """
        config = StoreConfig(
            base_url=settings.record_store_url.rstrip("/"),
            timeout=settings.store_timeout,
            api_token=settings.store_api_token,
        )
        return cls(config)

    async def __aenter__(self) -> "HttpRecordStore":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.http_client.aclose()

    async def check_health(self) -> bool:
        """Check availability of the record store service."""
        try:
            response = await self.http_client.get(
                f"{self.config.base_url}/health",
                timeout=5.0,
            )
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.debug(f"Record store not available: {e}")
        return False

    def _records_url(self, collection: str, record_id: str | None = None) -> str:
        url = f"{self.config.base_url}/collections/{collection}/records"
        if record_id is not None:
            url += f"/{record_id}"
        return url

    async def _send(
        self,
        method: str,
        url: str,
        collection: str,
        **kwargs,
    ) -> httpx.Response:
        """
        Send a request and translate failures into StoreError.

        Transient transport errors are re-raised untouched so the read
        retry decorator can see them.
        """
        try:
            response = await self.http_client.request(method, url, **kwargs)
            if response.status_code == 404 and method == "GET":
                return response
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Record store {method} {collection} failed: "
                f"{e.response.status_code} - {e.response.text[:200]}"
            )
            raise StoreError(
                f"Record store request failed: HTTP {e.response.status_code}",
                collection=collection,
                status_code=e.response.status_code,
                backend=self.backend,
                original_error=e,
            ) from e

    def _wrap_transport(self, e: httpx.HTTPError, collection: str) -> StoreError:
        logger.error(f"Record store transport error ({collection}): {type(e).__name__}: {e}")
        return StoreError(
            f"Record store unreachable: {e}",
            collection=collection,
            backend=self.backend,
            original_error=e,
        )

    async def create(self, collection: str, fields: dict[str, Any]) -> dict[str, Any]:
        """Create a record; the service assigns id and created_at."""
        try:
            response = await self._send(
                "POST", self._records_url(collection), collection, json=fields
            )
        except httpx.HTTPError as e:
            raise self._wrap_transport(e, collection) from e
        return response.json()

    async def upsert(self, collection: str, record_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        """Create or merge a record with a caller-chosen id."""
        try:
            response = await self._send(
                "PUT", self._records_url(collection, record_id), collection, json=fields
            )
        except httpx.HTTPError as e:
            raise self._wrap_transport(e, collection) from e
        return response.json()

    async def increment(
        self,
        collection: str,
        record_id: str,
        field: str,
        amount: int = 1,
    ) -> int:
        """Server-side atomic increment of a numeric field."""
        url = self._records_url(collection, record_id) + "/increment"
        try:
            response = await self._send(
                "POST", url, collection, json={"field": field, "amount": amount}
            )
        except httpx.HTTPError as e:
            raise self._wrap_transport(e, collection) from e
        return int(response.json()["value"])

    async def get(self, collection: str, record_id: str) -> dict[str, Any] | None:
        """Fetch a record by id, retrying transient errors."""
        try:
            response = await self._get_with_retry(self._records_url(collection, record_id), collection)
        except httpx.HTTPError as e:
            raise self._wrap_transport(e, collection) from e
        if response.status_code == 404:
            return None
        return response.json()

    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        """Query records by equality filters, retrying transient errors."""
        params: dict[str, Any] = dict(filters or {})
        if order_by:
            params["order_by"] = order_by
            params["direction"] = "desc" if descending else "asc"

        try:
            response = await self._get_with_retry(
                self._records_url(collection), collection, params=params
            )
        except httpx.HTTPError as e:
            raise self._wrap_transport(e, collection) from e
        if response.status_code == 404:
            return []
        return list(response.json().get("items", []))

    @RETRY_DECORATOR
    async def _get_with_retry(self, url: str, collection: str, **kwargs) -> httpx.Response:
        return await self._send("GET", url, collection, **kwargs)
