"""
Snapshot Cache
==============

Read-through cache over the persisted item snapshot. A non-empty snapshot
is served as is; otherwise (or on an explicit refresh, or when the store
cannot be read) the full pipeline runs and its recent items replace the
snapshot.
"""

import asyncio
from datetime import datetime, timezone
from typing import Optional

from ..config.settings import BrewNewsSettings
from ..database.models import SnapshotResult
from ..storage.item_repository import FeedItemRepository
from ..storage.source_repository import SourceRepository
from ..utils.exceptions import StorageError, get_user_friendly_message
from ..utils.logging import get_logger_for_component

from .pipeline import FeedPipeline
from .recency import within_days


class SnapshotCache:
    """Coordinates the cached snapshot and the refresh pipeline."""

    def __init__(
        self,
        settings: BrewNewsSettings,
        source_repository: SourceRepository,
        item_repository: FeedItemRepository,
        pipeline: FeedPipeline,
    ):
        self.retention_days = settings.cache.retention_days
        self.sources = source_repository
        self.items = item_repository
        self.pipeline = pipeline
        self.logger = get_logger_for_component("snapshot_cache")

    async def load(self, force_refresh: bool = False) -> SnapshotResult:
        """Serve the snapshot, refreshing it when needed.

        Args:
            force_refresh: Skip the cached snapshot and rebuild it

        Returns:
            SnapshotResult; store failures are reported in ``storage_error``
            and never discard computed items
        """
        storage_error = None

        if not force_refresh:
            try:
                cached = await asyncio.to_thread(self.items.list_items)
            except StorageError as e:
                self.logger.warning(f"Snapshot read failed, refreshing: {e}", extra=e.to_dict())
                storage_error = get_user_friendly_message(e)
            else:
                if cached:
                    self.logger.info(f"Serving {len(cached)} cached items")
                    return SnapshotResult(items=cached, from_cache=True)
                self.logger.info("Snapshot empty, refreshing")

        return await self.refresh(storage_error=storage_error, force=force_refresh)

    async def refresh(
        self,
        storage_error: Optional[str] = None,
        force: bool = False,
        now: Optional[datetime] = None,
    ) -> SnapshotResult:
        """Run the pipeline and replace the snapshot with its recent items."""
        try:
            sources = await asyncio.to_thread(self.sources.get_sources)
        except StorageError as e:
            self.logger.error(f"Could not load source list: {e}", extra=e.to_dict())
            return SnapshotResult(storage_error=get_user_friendly_message(e))

        if not sources:
            self.logger.info("No sources configured")
            return SnapshotResult(storage_error=storage_error)

        batch = await self.pipeline.run(sources, force=force)

        now = now or datetime.now(timezone.utc)
        recent = [item for item in batch.items if within_days(item, self.retention_days, now)]
        self.logger.info(
            f"Keeping {len(recent)} of {len(batch.items)} items from the last "
            f"{self.retention_days} days"
        )

        result = SnapshotResult(items=batch.items, errors=batch.errors, storage_error=storage_error)
        try:
            result.stored_count = await asyncio.to_thread(self.items.replace_all, recent)
        except StorageError as e:
            self.logger.error(f"Snapshot write failed: {e}", extra=e.to_dict())
            result.storage_error = get_user_friendly_message(e)

        return result
