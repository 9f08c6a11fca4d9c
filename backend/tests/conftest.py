import pytest

from app.config import Settings
from app.models.schemas import MediaFile, Owner, PublishRequest
from app.services.stores import (
    InMemoryObjectStore,
    InMemoryRecordStore,
    StoreError,
    UploadFailure,
)


# ── Sample Test Data ───────────────────────────────────────────────────────

THUMBNAIL = MediaFile(name="sunset.jpg", content_type="image/jpeg", data=b"\xff\xd8jpeg-bytes")
VIDEO = MediaFile(name="sunset.mp4", content_type="video/mp4", data=b"\x00\x00mp4-bytes")
WIND = MediaFile(name="wind.mp3", content_type="audio/mpeg", data=b"ID3wind")
BIRDS = MediaFile(name="birds.mp3", content_type="audio/mpeg", data=b"ID3birds")
RAIN = MediaFile(name="rain.wav", content_type="audio/wav", data=b"RIFFrain")


def make_request(**overrides) -> PublishRequest:
    fields = {
        "title": "Sunset Timelapse",
        "description": "A calm sunset",
        "thumbnail": THUMBNAIL,
        "video": VIDEO,
        "sfx_files": (WIND, BIRDS),
    }
    fields.update(overrides)
    return PublishRequest(**fields)


# ── Failing Backends ───────────────────────────────────────────────────────

class FlakyObjectStore(InMemoryObjectStore):
    """In-memory object store that fails for selected file names."""

    def __init__(self, fail_on: set[str] | None = None):
        super().__init__()
        self.fail_on = set(fail_on or ())
        self.calls: list[str] = []

    async def upload(self, filename, data, content_type=None):
        self.calls.append(filename)
        if filename in self.fail_on:
            raise UploadFailure("connection reset", filename=filename, backend="test")
        return await super().upload(filename, data, content_type)


class FlakyRecordStore(InMemoryRecordStore):
    """In-memory record store that fails creates in selected collections.

    fail_after lets the first N creates in a collection succeed.
    """

    def __init__(self, fail_collections: set[str] | None = None, fail_after: int = 0):
        super().__init__()
        self.fail_collections = set(fail_collections or ())
        self.fail_after = fail_after
        self.creates: dict[str, int] = {}

    async def create(self, collection, fields):
        count = self.creates.get(collection, 0)
        self.creates[collection] = count + 1
        if collection in self.fail_collections and count >= self.fail_after:
            raise StoreError("insert rejected", collection=collection, status_code=500, backend="test")
        return await super().create(collection, fields)


# ── Fixtures ───────────────────────────────────────────────────────────────

@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the environment and config files."""
    return Settings(
        _env_file=None,
        storage_backend="memory",
        config_dir=tmp_path,
        upload_timeout=5.0,
        store_timeout=5.0,
    )


@pytest.fixture
def owner():
    return Owner(user_id="user-1", username="alice")


@pytest.fixture
def object_store():
    return FlakyObjectStore()


@pytest.fixture
def record_store():
    return FlakyRecordStore()


@pytest.fixture
def progress_log():
    """Async progress callback collecting every PublishProgress."""
    received = []

    async def callback(progress):
        received.append(progress)

    callback.received = received
    return callback
