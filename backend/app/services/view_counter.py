"""
View-count updater.

Records a completed playback by atomically incrementing the concept's
view_count in the record store. Fire-and-forget: failures are logged
and never reach the viewer.
"""

import asyncio
import logging

from app.config import Settings
from app.services.stores.base import VIDEOS_COLLECTION, RecordStore

logger = logging.getLogger(__name__)


class ViewCountUpdater:
    """
    Post-playback view counter.

    Uses the store's server-side increment, so concurrent plays of the
    same concept each add exactly one view.

    Example:
        updater = ViewCountUpdater(record_store, settings)
        await updater.on_playback_ended(concept_id)
    """

    def __init__(self, record_store: RecordStore, settings: Settings):
        self.record_store = record_store
        self.settings = settings

    async def on_playback_ended(self, concept_id: str) -> int | None:
        """
        Count one view for a concept.

        Args:
            concept_id: Concept whose playback finished

        Returns:
            New view count, or None if the update failed
        """
        try:
            count = await asyncio.wait_for(
                self.record_store.increment(VIDEOS_COLLECTION, concept_id, "view_count", 1),
                timeout=self.settings.store_timeout,
            )
        except Exception as e:
            logger.warning(f"Failed to increment view count for {concept_id}: {e}")
            return None

        logger.debug(f"View count for {concept_id} is now {count}")
        return count
