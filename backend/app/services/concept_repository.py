"""
Concept repository.

Thin create/read interface over the record store for video concepts
and their sound-effect assets. Listings are joined with the owner's
display name and sorted newest first.
"""

import asyncio
import logging
from typing import Any

from pydantic import ValidationError as ModelValidationError

from app.config import Settings
from app.models.schemas import ConceptListing, Owner, SfxAsset, VideoConcept
from app.services.stores.base import (
    SFX_ASSETS_COLLECTION,
    USERS_COLLECTION,
    VIDEOS_COLLECTION,
    RecordStore,
    StoreError,
)

logger = logging.getLogger(__name__)


class ConceptRepository:
    """
    Persistence for VideoConcept and SfxAsset records.

    All store failures (including malformed records and timeouts)
    surface as StoreError.

    Example:
        repo = ConceptRepository(record_store, settings)
        concept = await repo.create_concept(
            title="Sunset Timelapse",
            description="A calm sunset",
            thumbnail_url=thumb_url,
            video_url=video_url,
            owner=owner,
        )
        listing = await repo.list_concepts(owner_id=owner.user_id)
    """

    def __init__(self, record_store: RecordStore, settings: Settings):
        self.record_store = record_store
        self.settings = settings

    async def _call(self, collection: str, coro) -> Any:
        """Await a store call with the configured timeout."""
        try:
            return await asyncio.wait_for(coro, timeout=self.settings.store_timeout)
        except StoreError:
            raise
        except asyncio.TimeoutError as e:
            raise StoreError(
                f"Record store call timed out after {self.settings.store_timeout:.0f}s",
                collection=collection,
                original_error=e,
            ) from e
        except Exception as e:
            raise StoreError(
                f"Record store call failed: {e}",
                collection=collection,
                original_error=e,
            ) from e

    @staticmethod
    def _parse(model: type, record: dict[str, Any], collection: str):
        try:
            return model.model_validate(record)
        except ModelValidationError as e:
            raise StoreError(
                f"Malformed {collection} record: {e.error_count()} validation errors",
                collection=collection,
                original_error=e,
            ) from e

    # ═══════════════════════════════════════════════════════════════════════
    # Writes
    # ═══════════════════════════════════════════════════════════════════════

    async def register_owner(self, owner: Owner) -> None:
        """
        Upsert the acting user so listings can resolve display names.

        Args:
            owner: Identity supplied by the hosting environment
        """
        await self._call(
            USERS_COLLECTION,
            self.record_store.upsert(
                USERS_COLLECTION, owner.user_id, {"username": owner.username}
            ),
        )

    async def create_concept(
        self,
        title: str,
        description: str,
        thumbnail_url: str,
        video_url: str,
        owner: Owner,
    ) -> VideoConcept:
        """
        Create a video concept record.

        Args:
            title: Concept title
            description: Concept description
            thumbnail_url: Uploaded thumbnail URL
            video_url: Uploaded main video URL
            owner: Acting user (attached as user_id)

        Returns:
            Created VideoConcept with store-assigned id and created_at

        Raises:
            StoreError: If the store rejects or fails the create
        """
        fields = {
            "title": title,
            "description": description,
            "thumbnail_url": thumbnail_url,
            "video_url": video_url,
            "user_id": owner.user_id,
            "view_count": 0,
        }
        record = await self._call(
            VIDEOS_COLLECTION,
            self.record_store.create(VIDEOS_COLLECTION, fields),
        )
        concept = self._parse(VideoConcept, record, VIDEOS_COLLECTION)
        logger.info(f"Created concept {concept.id}: {concept.title!r} by {owner.user_id}")
        return concept

    async def create_sfx_asset(
        self,
        video_concept_id: str,
        sfx_url: str,
        sfx_name: str,
    ) -> SfxAsset:
        """
        Create a sound-effect asset linked to an existing concept.

        Raises:
            StoreError: If the store rejects or fails the create
        """
        fields = {
            "video_concept_id": video_concept_id,
            "sfx_url": sfx_url,
            "sfx_name": sfx_name,
        }
        record = await self._call(
            SFX_ASSETS_COLLECTION,
            self.record_store.create(SFX_ASSETS_COLLECTION, fields),
        )
        asset = self._parse(SfxAsset, record, SFX_ASSETS_COLLECTION)
        logger.debug(f"Created sfx asset {asset.id} ({sfx_name}) for concept {video_concept_id}")
        return asset

    # ═══════════════════════════════════════════════════════════════════════
    # Reads
    # ═══════════════════════════════════════════════════════════════════════

    async def get_concept(self, concept_id: str) -> VideoConcept | None:
        """Fetch one concept by id (None if missing)."""
        record = await self._call(
            VIDEOS_COLLECTION,
            self.record_store.get(VIDEOS_COLLECTION, concept_id),
        )
        if record is None:
            return None
        return self._parse(VideoConcept, record, VIDEOS_COLLECTION)

    async def list_concepts(self, owner_id: str | None = None) -> list[ConceptListing]:
        """
        List concepts newest first, joined with owner display names.

        Args:
            owner_id: Restrict to one owner's concepts

        Returns:
            Concepts sorted by created_at descending
        """
        filters = {"user_id": owner_id} if owner_id is not None else None
        records = await self._call(
            VIDEOS_COLLECTION,
            self.record_store.query(
                VIDEOS_COLLECTION,
                filters=filters,
                order_by="created_at",
                descending=True,
            ),
        )

        usernames = await self._resolve_usernames({r.get("user_id") for r in records})

        listings = []
        for record in records:
            listing = self._parse(ConceptListing, record, VIDEOS_COLLECTION)
            listing.username = usernames.get(listing.user_id)
            listings.append(listing)

        # Newest first regardless of backend ordering
        listings.sort(key=lambda c: c.created_at, reverse=True)
        return listings

    async def list_sfx_assets(self, concept_id: str) -> list[SfxAsset]:
        """List sound-effect assets attached to a concept."""
        records = await self._call(
            SFX_ASSETS_COLLECTION,
            self.record_store.query(
                SFX_ASSETS_COLLECTION,
                filters={"video_concept_id": concept_id},
                order_by="created_at",
            ),
        )
        return [self._parse(SfxAsset, r, SFX_ASSETS_COLLECTION) for r in records]

    async def _resolve_usernames(self, user_ids: set[str | None]) -> dict[str, str]:
        # One get per distinct owner, not per concept
        usernames: dict[str, str] = {}
        for user_id in user_ids:
            if not user_id:
                continue
            record = await self._call(
                USERS_COLLECTION,
                self.record_store.get(USERS_COLLECTION, user_id),
            )
            if record and record.get("username"):
                usernames[user_id] = record["username"]
            else:
                logger.debug(f"No display name for user {user_id}")
        return usernames
