"""
Source Repository
=================

The ordered source list lives in a single document. Administrative
operations (add, remove, save) validate URLs and keep identities unique.
"""

from typing import List, Optional

from ..config.settings import BrewNewsSettings
from ..database.document_store import DocumentStore
from ..database.models import Source, SourceKind
from ..utils.exceptions import InvalidInputError, ErrorCode
from ..utils.logging import get_logger_for_component
from ..utils.validators import URLValidator


class SourceRepository:
    """Repository for the persisted source list."""

    def __init__(self, store: DocumentStore, settings: BrewNewsSettings):
        """Initialize source repository.

        Args:
            store: Document store holding the source list document
            settings: Application settings (collection and document names)
        """
        self.store = store
        self.collection = settings.cache.sources_collection
        self.document_key = settings.cache.sources_document
        self.logger = get_logger_for_component("source_repository")

    def get_sources(self) -> List[Source]:
        """Load the source list in stored order.

        Documents written before sources carried a kind hold plain URL
        strings; those load as feed sources.

        Raises:
            StorageError: If the store cannot be read
        """
        document = self.store.get(self.collection, self.document_key)
        if not document:
            return []

        sources = []
        for entry in document.get("sources", document.get("urls", [])):
            if isinstance(entry, str):
                sources.append(Source(kind=SourceKind.FEED, url=entry))
            else:
                sources.append(Source.model_validate(entry))
        return sources

    def save_sources(self, sources: List[Source]) -> None:
        """Persist the full source list, replacing the previous one.

        Raises:
            InvalidInputError: If a URL is malformed or appears twice
            StorageError: If the store cannot be written
        """
        seen = set()
        for source in sources:
            URLValidator.validate_source_url(source.url)
            if source.url in seen:
                raise InvalidInputError(
                    f"Duplicate source URL: {source.url}",
                    error_code=ErrorCode.VALIDATION_DUPLICATE,
                    field_name="url",
                    user_message="This feed URL is already in the list.",
                )
            seen.add(source.url)

        self.store.set(
            self.collection,
            self.document_key,
            {"sources": [s.model_dump(mode="json") for s in sources]},
        )
        self.logger.info(f"Saved {len(sources)} sources")

    def add_source(self, url: str, kind: Optional[SourceKind] = None) -> Source:
        """Append a source to the list.

        Args:
            url: Source URL
            kind: Source kind; guessed from the URL shape when omitted

        Returns:
            The added source
        """
        url = URLValidator.validate_source_url(url)
        if kind is None:
            kind = SourceKind.FEED if URLValidator.is_likely_feed_url(url) else SourceKind.WEBPAGE

        sources = self.get_sources()
        source = Source(kind=kind, url=url)
        self.save_sources(sources + [source])
        return source

    def remove_source(self, url: str) -> bool:
        """Remove a source by URL. Returns False when it was not in the list."""
        url = url.strip()
        sources = self.get_sources()
        remaining = [s for s in sources if s.url != url]
        if len(remaining) == len(sources):
            return False

        self.save_sources(remaining)
        return True
