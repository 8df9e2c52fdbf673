"""
Feed Item Repository
====================

Cached item snapshot: one document per item, keyed by the item's ContentID,
so at most one record exists per distinct link.
"""

from typing import List

from pydantic import ValidationError

from ..config.settings import BrewNewsSettings
from ..database.document_store import DocumentStore
from ..database.models import FeedItem
from ..utils.logging import get_logger_for_component


class FeedItemRepository:
    """Repository for the persisted item snapshot."""

    def __init__(self, store: DocumentStore, settings: BrewNewsSettings):
        self.store = store
        self.collection = settings.cache.items_collection
        self.logger = get_logger_for_component("item_repository")

    def list_items(self) -> List[FeedItem]:
        """Read the whole snapshot. Unreadable documents are skipped and logged.

        Raises:
            StorageError: If the store cannot be read
        """
        items = []
        for key, document in self.store.list_all(self.collection):
            try:
                items.append(FeedItem.from_document(document))
            except ValidationError as e:
                self.logger.warning(
                    f"Skipping malformed cached item {key}: {e.error_count()} errors"
                )
        return items

    def replace_all(self, items: List[FeedItem]) -> int:
        """Replace the snapshot with ``items``.

        Items sharing a link share a ContentID; the last one written wins.

        Returns:
            Number of stored records

        Raises:
            StorageError: If the store cannot be written
        """
        documents = [(item.content_id, item.to_document()) for item in items]
        stored = self.store.replace_collection(self.collection, documents)
        self.logger.info(f"Stored {stored} items ({len(items)} submitted)")
        return stored

    def count(self) -> int:
        return len(self.store.list_all(self.collection))
