import asyncio

import pytest
from unittest.mock import AsyncMock

from app.models.schemas import MediaFile
from app.services.asset_uploader import AssetUploader
from app.services.stores import InMemoryObjectStore, UploadFailure

from conftest import THUMBNAIL


@pytest.mark.asyncio
class TestAssetUploader:
    """Single-file uploads and error wrapping."""

    async def test_returns_store_url(self, settings):
        store = InMemoryObjectStore()
        url = await AssetUploader(store, settings).upload(THUMBNAIL)

        assert url.startswith("memory://objects/")
        assert store.objects[url] == THUMBNAIL.data
        assert store.content_types[url] == "image/jpeg"

    async def test_empty_payload_rejected_before_network(self, settings):
        store = AsyncMock()
        empty = MediaFile(name="empty.jpg", content_type="image/jpeg", data=b"")

        with pytest.raises(UploadFailure) as exc_info:
            await AssetUploader(store, settings).upload(empty)

        assert exc_info.value.filename == "empty.jpg"
        store.upload.assert_not_called()

    async def test_same_file_twice_gives_two_objects(self, settings):
        store = InMemoryObjectStore()
        uploader = AssetUploader(store, settings)

        first = await uploader.upload(THUMBNAIL)
        second = await uploader.upload(THUMBNAIL)

        assert first != second
        assert len(store.objects) == 2

    async def test_upload_failure_passes_through(self, settings):
        store = AsyncMock()
        failure = UploadFailure("HTTP 503", filename="sunset.jpg", backend="http")
        store.upload.side_effect = failure

        with pytest.raises(UploadFailure) as exc_info:
            await AssetUploader(store, settings).upload(THUMBNAIL)

        assert exc_info.value is failure
        store.upload.assert_called_once()

    async def test_unexpected_error_is_wrapped(self, settings):
        store = AsyncMock()
        store.upload.side_effect = ConnectionResetError("peer reset")

        with pytest.raises(UploadFailure) as exc_info:
            await AssetUploader(store, settings).upload(THUMBNAIL)

        assert isinstance(exc_info.value.original_error, ConnectionResetError)
        assert "cause=ConnectionResetError" in str(exc_info.value)

    async def test_hung_upload_times_out(self, settings):
        settings.upload_timeout = 0.05

        async def hang(*args, **kwargs):
            await asyncio.sleep(5)

        store = AsyncMock()
        store.upload.side_effect = hang

        with pytest.raises(UploadFailure) as exc_info:
            await AssetUploader(store, settings).upload(THUMBNAIL)

        assert "timed out" in exc_info.value.message
