import pytest
from unittest.mock import AsyncMock

from app.models.schemas import Owner
from app.services.concept_repository import ConceptRepository
from app.services.stores import (
    SFX_ASSETS_COLLECTION,
    VIDEOS_COLLECTION,
    InMemoryRecordStore,
    StoreError,
)

BOB = Owner(user_id="user-2", username="bob")


async def create(repo, owner, title):
    await repo.register_owner(owner)
    return await repo.create_concept(
        title=title,
        description=f"{title} description",
        thumbnail_url=f"https://cdn.test/{title}.jpg",
        video_url=f"https://cdn.test/{title}.mp4",
        owner=owner,
    )


@pytest.mark.asyncio
class TestConceptWrites:
    """Concept and sound-effect creation."""

    async def test_create_concept(self, settings, owner):
        store = InMemoryRecordStore()
        repo = ConceptRepository(store, settings)

        concept = await create(repo, owner, "sunset")

        assert concept.id
        assert concept.user_id == "user-1"
        assert concept.view_count == 0
        assert concept.created_at is not None
        assert (await store.get(VIDEOS_COLLECTION, concept.id))["title"] == "sunset"

    async def test_create_sfx_asset(self, settings, owner):
        store = InMemoryRecordStore()
        repo = ConceptRepository(store, settings)
        concept = await create(repo, owner, "sunset")

        asset = await repo.create_sfx_asset(concept.id, "https://cdn.test/wind.mp3", "wind.mp3")

        assert asset.video_concept_id == concept.id
        assert asset.sfx_name == "wind.mp3"
        rows = await store.query(SFX_ASSETS_COLLECTION)
        assert rows[0]["sfx_url"] == "https://cdn.test/wind.mp3"

    async def test_store_exception_becomes_store_error(self, settings, owner):
        store = AsyncMock()
        store.create.side_effect = OSError("disk full")

        with pytest.raises(StoreError) as exc_info:
            await ConceptRepository(store, settings).create_sfx_asset("c1", "u", "n")

        assert exc_info.value.collection == SFX_ASSETS_COLLECTION
        assert isinstance(exc_info.value.original_error, OSError)

    async def test_malformed_record_becomes_store_error(self, settings, owner):
        store = AsyncMock()
        store.create.return_value = {"title": "no id"}

        with pytest.raises(StoreError) as exc_info:
            await ConceptRepository(store, settings).create_concept("t", "d", "u1", "u2", owner)

        assert "Malformed videos record" in exc_info.value.message


@pytest.mark.asyncio
class TestConceptReads:
    """Listings, filtering and owner join."""

    async def test_list_newest_first_with_usernames(self, settings, owner):
        repo = ConceptRepository(InMemoryRecordStore(), settings)
        for title, who in [("first", owner), ("second", BOB), ("third", owner)]:
            await create(repo, who, title)

        listing = await repo.list_concepts()

        assert [c.title for c in listing] == ["third", "second", "first"]
        assert [c.username for c in listing] == ["alice", "bob", "alice"]
        times = [c.created_at for c in listing]
        assert all(a > b for a, b in zip(times, times[1:]))

    async def test_filter_by_owner(self, settings, owner):
        repo = ConceptRepository(InMemoryRecordStore(), settings)
        await create(repo, owner, "mine")
        await create(repo, BOB, "theirs")

        listing = await repo.list_concepts(owner_id="user-2")

        assert [c.title for c in listing] == ["theirs"]
        assert all(c.user_id == "user-2" for c in listing)

    async def test_empty_owner_id_matches_nothing(self, settings, owner):
        repo = ConceptRepository(InMemoryRecordStore(), settings)
        await create(repo, owner, "mine")

        assert await repo.list_concepts(owner_id="") == []

    async def test_unknown_owner_has_no_username(self, settings):
        store = InMemoryRecordStore()
        await store.create(VIDEOS_COLLECTION, {
            "title": "orphan",
            "description": "d",
            "thumbnail_url": "u1",
            "video_url": "u2",
            "user_id": "ghost",
            "view_count": 0,
        })

        listing = await ConceptRepository(store, settings).list_concepts()

        assert listing[0].username is None

    async def test_list_sfx_assets(self, settings, owner):
        repo = ConceptRepository(InMemoryRecordStore(), settings)
        concept = await create(repo, owner, "sunset")
        other = await create(repo, owner, "other")
        await repo.create_sfx_asset(concept.id, "u/wind", "wind.mp3")
        await repo.create_sfx_asset(other.id, "u/rain", "rain.wav")
        await repo.create_sfx_asset(concept.id, "u/birds", "birds.mp3")

        assets = await repo.list_sfx_assets(concept.id)

        assert [a.sfx_name for a in assets] == ["wind.mp3", "birds.mp3"]

    async def test_get_missing_concept(self, settings):
        repo = ConceptRepository(InMemoryRecordStore(), settings)
        assert await repo.get_concept("nope") is None
