"""
Storage collaborators for the publishing core.

This package provides a unified interface over the external services:
- ObjectStore: binary uploads (HttpObjectStore, InMemoryObjectStore)
- RecordStore: persisted records (HttpRecordStore, InMemoryRecordStore)

Usage:
    from app.services.stores import create_object_store, create_record_store

    object_store = create_object_store(settings)
    url = await object_store.upload("sunset.jpg", data, "image/jpeg")

    record_store = create_record_store(settings)
    record = await record_store.create("videos", {...})
"""

from app.services.stores.base import (
    SFX_ASSETS_COLLECTION,
    USERS_COLLECTION,
    VIDEOS_COLLECTION,
    ObjectStore,
    RecordStore,
    StorageError,
    StoreConfig,
    StoreError,
    UploadFailure,
)
from app.services.stores.factory import (
    create_object_store,
    create_record_store,
    reset_memory_stores,
)
from app.services.stores.memory import InMemoryObjectStore, InMemoryRecordStore
from app.services.stores.object_store import HttpObjectStore
from app.services.stores.record_store import HttpRecordStore

__all__ = [
    # Protocols and config
    "ObjectStore",
    "RecordStore",
    "StoreConfig",
    # Collections
    "VIDEOS_COLLECTION",
    "SFX_ASSETS_COLLECTION",
    "USERS_COLLECTION",
    # Errors
    "StorageError",
    "UploadFailure",
    "StoreError",
    # Implementations
    "HttpObjectStore",
    "HttpRecordStore",
    "InMemoryObjectStore",
    "InMemoryRecordStore",
    # Factories
    "create_object_store",
    "create_record_store",
    "reset_memory_stores",
]
