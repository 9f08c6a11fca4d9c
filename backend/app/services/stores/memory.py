"""
In-memory storage backends.

Process-local ObjectStore and RecordStore implementations used for
development (STORAGE_BACKEND=memory) and tests. State is lost on restart.
"""

import asyncio
import copy
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from app.services.stores.base import StoreError, UploadFailure

logger = logging.getLogger(__name__)


class InMemoryObjectStore:
    """
    Object store keeping payloads in a dict.

    Example:
        store = InMemoryObjectStore()
        url = await store.upload("sunset.jpg", b"...", "image/jpeg")
        assert store.objects[url] == b"..."
    """

    backend = "memory"

    def __init__(self, base_url: str = "memory://objects"):
        self.base_url = base_url.rstrip("/")
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str | None] = {}

    async def upload(
        self,
        filename: str,
        data: bytes,
        content_type: str | None = None,
    ) -> str:
        """Store payload under a fresh key and return its URL."""
        if not data:
            raise UploadFailure("Empty payload", filename=filename, backend=self.backend)

        url = f"{self.base_url}/{uuid.uuid4().hex}/{filename}"
        self.objects[url] = bytes(data)
        self.content_types[url] = content_type
        return url

    async def check_health(self) -> bool:
        return True

    async def close(self) -> None:
        pass


class InMemoryRecordStore:
    """
    Record store keeping collections as dicts of records.

    Assigns uuid ids and strictly increasing created_at timestamps,
    so sorting by created_at gives a total order. Increments are
    serialized by a lock, matching the atomic contract of the service.
    """

    backend = "memory"

    def __init__(self):
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = asyncio.Lock()
        self._last_created_at: datetime | None = None

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(name, {})

    def _next_created_at(self) -> datetime:
        now = datetime.now(timezone.utc)
        if self._last_created_at is not None and now <= self._last_created_at:
            now = self._last_created_at + timedelta(microseconds=1)
        self._last_created_at = now
        return now

    async def create(self, collection: str, fields: dict[str, Any]) -> dict[str, Any]:
        record = dict(fields)
        record["id"] = uuid.uuid4().hex
        record["created_at"] = self._next_created_at()
        self._collection(collection)[record["id"]] = record
        logger.debug(f"Created {collection}/{record['id']}")
        return copy.deepcopy(record)

    async def upsert(self, collection: str, record_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        records = self._collection(collection)
        record = records.get(record_id)
        if record is None:
            record = {"id": record_id, "created_at": self._next_created_at()}
            records[record_id] = record
        record.update({k: v for k, v in fields.items() if k != "id"})
        return copy.deepcopy(record)

    async def increment(
        self,
        collection: str,
        record_id: str,
        field: str,
        amount: int = 1,
    ) -> int:
        async with self._lock:
            record = self._collection(collection).get(record_id)
            if record is None:
                raise StoreError(
                    f"Record not found: {record_id}",
                    collection=collection,
                    status_code=404,
                    backend=self.backend,
                )
            value = int(record.get(field) or 0) + amount
            record[field] = value
            return value

    async def get(self, collection: str, record_id: str) -> dict[str, Any] | None:
        record = self._collection(collection).get(record_id)
        return copy.deepcopy(record) if record is not None else None

    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        filters = filters or {}
        rows = [
            copy.deepcopy(r)
            for r in self._collection(collection).values()
            if all(r.get(k) == v for k, v in filters.items())
        ]
        if order_by:
            rows.sort(key=lambda r: r[order_by], reverse=descending)
        return rows

    async def check_health(self) -> bool:
        return True

    async def close(self) -> None:
        pass
