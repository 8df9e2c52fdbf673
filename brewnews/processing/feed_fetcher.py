"""
Source Fetcher
==============

Concurrent source fetching with per-source error isolation. Each source is
dispatched by kind to the feed parser or the webpage scraper; failures are
captured per source so one bad source never hides the items of the others.
"""

import asyncio
import ssl
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

import aiohttp
import certifi

from ..config.settings import BrewNewsSettings
from ..database.models import BatchResult, FeedItem, FetchResult, Source, SourceKind
from ..ingestion.feed_parser import FeedParser, RegexFeedParser
from ..ingestion.webpage_scraper import WebpageScraper
from ..utils.exceptions import (
    BrewNewsError,
    ErrorCode,
    FeedError,
    HttpError,
    NetworkError,
    get_user_friendly_message,
    handle_exception,
)
from ..utils.logging import get_logger_for_component
from ..utils.validators import URLValidator

FEED_ACCEPT = "application/rss+xml, application/atom+xml, application/xml, text/xml, */*"


def format_source_error(url: str, error: Exception) -> str:
    """One-line batch error message tagged with the failing source's URL."""
    return f'Feed "{url}": {get_user_friendly_message(error)}'


class SourceFetcher:
    """Concurrent source fetcher with error handling and response reuse."""

    def __init__(
        self,
        settings: BrewNewsSettings,
        parser: Optional[FeedParser] = None,
        scraper: Optional[WebpageScraper] = None,
    ):
        """Initialize source fetcher.

        Args:
            settings: Application settings
            parser: Feed parser (default RegexFeedParser)
            scraper: Webpage scraper (default WebpageScraper)
        """
        self.config = settings.fetch
        self.parser = parser or RegexFeedParser()
        self.scraper = scraper or WebpageScraper()
        self.logger = get_logger_for_component("source_fetcher")

        # SSL context for secure requests
        self.ssl_context = ssl.create_default_context(cafile=certifi.where())

        # url -> (monotonic fetch time, document)
        self._documents: Dict[str, Tuple[float, str]] = {}

        self.handlers: Dict[SourceKind, Callable[[str, str], List[FeedItem]]] = {
            SourceKind.FEED: self.parser.parse_items,
            SourceKind.WEBPAGE: self.scraper.extract_items,
        }

    @asynccontextmanager
    async def get_session(self):
        """Get configured aiohttp session."""
        connector = aiohttp.TCPConnector(
            ssl=self.ssl_context,
            limit=self.config.parallel_sources * 2,
            limit_per_host=5,
            enable_cleanup_closed=True,
        )

        timeout = aiohttp.ClientTimeout(total=self.config.request_timeout)

        headers = {
            "User-Agent": self.config.user_agent,
            "Accept": FEED_ACCEPT,
            "Accept-Encoding": "gzip, deflate",
        }

        async with aiohttp.ClientSession(
            connector=connector, timeout=timeout, headers=headers
        ) as session:
            yield session

    async def _download(self, url: str, session: aiohttp.ClientSession) -> str:
        """Download ``url`` as text.

        Raises:
            HttpError: If the status is outside the success range
            NetworkError: On transport failure or timeout
        """
        try:
            async with session.get(url) as response:
                if not 200 <= response.status < 300:
                    raise HttpError(response.status, feed_url=url, reason=response.reason or "")
                return await response.text()

        except asyncio.TimeoutError as e:
            raise NetworkError(
                f"Request timeout after {self.config.request_timeout}s",
                feed_url=url,
                error_code=ErrorCode.FEED_FETCH_TIMEOUT,
            ) from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"Transport error: {e}", feed_url=url) from e

    async def _get_document(
        self, url: str, session: aiohttp.ClientSession, force: bool = False
    ) -> str:
        """Download ``url`` unless a copy younger than the revalidation window exists."""
        cached = self._documents.get(url)
        if cached and not force:
            fetched_at, document = cached
            if time.monotonic() - fetched_at < self.config.revalidate_seconds:
                self.logger.debug(f"Reusing document for {url}")
                return document

        document = await self._download(url, session)
        if self.config.revalidate_seconds > 0:
            self._documents[url] = (time.monotonic(), document)
        return document

    def clear_cache(self) -> None:
        self._documents.clear()

    async def fetch_source(
        self, source: Source, session: aiohttp.ClientSession, force: bool = False
    ) -> FetchResult:
        """Fetch and parse a single source.

        Args:
            source: Source to fetch
            session: aiohttp session for requests
            force: Bypass the revalidation window

        Returns:
            FetchResult with items or error information
        """
        start_time = datetime.now(timezone.utc)
        logger = get_logger_for_component("source_fetcher", source_url=source.url)

        try:
            url = URLValidator.validate_source_url(source.url)
            logger.info(f"Fetching {source.kind.value} source: {url}")

            document = await self._get_document(url, session, force=force)
            items = self.handlers[source.kind](document, url)

            logger.info(
                f"Fetched {len(items)} items from {url} "
                f"in {(datetime.now(timezone.utc) - start_time).total_seconds():.2f}s"
            )
            return FetchResult(source=source, success=True, items=items, fetch_time=start_time)

        except BrewNewsError as e:
            logger.warning(f"Source fetch failed for {source.url}: {e}", extra=e.to_dict())
            return FetchResult(
                source=source,
                success=False,
                error=format_source_error(source.url, e),
                fetch_time=start_time,
            )

        except Exception as e:
            error = handle_exception(e, logger, "fetch_source", context={"feed_url": source.url})
            if not isinstance(error, FeedError):
                error = FeedError(f"Unexpected error: {e}", feed_url=source.url)
            return FetchResult(
                source=source,
                success=False,
                error=format_source_error(source.url, error),
                fetch_time=start_time,
            )

    async def fetch_sources(self, sources: List[Source], force: bool = False) -> BatchResult:
        """Fetch all sources concurrently.

        Items are concatenated in source-list order; each failing source
        contributes exactly one error message.
        """
        if not sources:
            return BatchResult()

        self.logger.info(f"Starting concurrent fetch of {len(sources)} sources")

        async with self.get_session() as session:
            semaphore = asyncio.Semaphore(self.config.parallel_sources)

            async def fetch_with_semaphore(source: Source) -> FetchResult:
                async with semaphore:
                    return await self.fetch_source(source, session, force=force)

            results = await asyncio.gather(*(fetch_with_semaphore(s) for s in sources))

        batch = BatchResult()
        for result in results:
            if result.success:
                batch.items.extend(result.items)
            else:
                batch.errors.append(result.error)

        successful = sum(1 for r in results if r.success)
        self.logger.info(
            f"Source fetch complete: {successful}/{len(results)} sources successful, "
            f"{len(batch.items)} total items"
        )
        return batch

    async def fetch_single(self, source: Source, force: bool = False) -> List[FeedItem]:
        """Fetch one source and surface its failure as the error itself.

        Raises:
            InvalidInputError: If the URL is malformed
            FeedError: If the source cannot be fetched or parsed
        """
        url = URLValidator.validate_source_url(source.url)
        async with self.get_session() as session:
            document = await self._get_document(url, session, force=force)
        return self.handlers[source.kind](document, url)
