"""
Storage backend selection.

Chooses HTTP or in-memory implementations from STORAGE_BACKEND.
In-memory backends are process singletons so that every request
sees the same data.
"""

import logging
from functools import lru_cache

from app.config import Settings
from app.services.stores.base import ObjectStore, RecordStore
from app.services.stores.memory import InMemoryObjectStore, InMemoryRecordStore
from app.services.stores.object_store import HttpObjectStore
from app.services.stores.record_store import HttpRecordStore

logger = logging.getLogger(__name__)


@lru_cache
def _memory_object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@lru_cache
def _memory_record_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


def create_object_store(settings: Settings) -> ObjectStore:
    """
    Create the object store configured for this process.

    Args:
        settings: Application settings

    Returns:
        ObjectStore implementation
    """
    if settings.storage_backend == "http":
        logger.debug(f"Using HTTP object store: {settings.object_store_url}")
        return HttpObjectStore.from_settings(settings)
    return _memory_object_store()


def create_record_store(settings: Settings) -> RecordStore:
    """
    Create the record store configured for this process.

    Args:
        settings: Application settings

    Returns:
        RecordStore implementation
    """
    if settings.storage_backend == "http":
        logger.debug(f"Using HTTP record store: {settings.record_store_url}")
        return HttpRecordStore.from_settings(settings)
    return _memory_record_store()


def reset_memory_stores() -> None:
    """Drop in-memory backend state (tests)."""
    _memory_object_store.cache_clear()
    _memory_record_store.cache_clear()
