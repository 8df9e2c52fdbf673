"""
Summarization Orchestrator
==========================

Enriches feed items through the summarization collaborator. Trivial content
skips the call, failures and timeouts fall back to truncated plain text, and
every input item yields exactly one output item.
"""

import asyncio
import re
from datetime import datetime, timezone
from typing import List, Optional

from ..ai.providers.base import SummarizationProvider
from ..config.settings import BrewNewsSettings
from ..database.models import FeedItem, SummaryResult
from ..ingestion.content_cleaner import ContentCleaner
from ..utils.exceptions import SummarizationError, ErrorCode
from ..utils.logging import get_logger_for_component, PerformanceLogger

UNKNOWN_PRODUCT = "Unknown"
UNKNOWN_TITLE = "Title unavailable"
SHORT_CONTENT_TITLE = "Summary unavailable"
SUMMARY_UNAVAILABLE = "Summary unavailable."

# "[Feature] text" or "Feature: text"
CATEGORY_PATTERNS = [
    re.compile(r"^\s*\[([A-Za-z][\w -]{0,30})\]\s*\S"),
    re.compile(r"^\s*([A-Za-z][\w-]{0,30}):\s+\S"),
]


def today() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


def derive_category(summary: Optional[List[str]]) -> Optional[str]:
    """Change type of the first categorised bullet, e.g. ``Feature``."""
    for bullet in summary or []:
        for pattern in CATEGORY_PATTERNS:
            match = pattern.match(bullet)
            if match:
                return match.group(1).strip().capitalize()
    return None


class SummarizationOrchestrator:
    """Runs the summarization collaborator over a batch of items."""

    def __init__(
        self,
        provider: Optional[SummarizationProvider],
        settings: BrewNewsSettings,
        cleaner: Optional[ContentCleaner] = None,
    ):
        """Initialize orchestrator.

        Args:
            provider: Summarization collaborator; None disables the call and
                every non-trivial item gets the fallback summary
            settings: Application settings
            cleaner: Markup stripper (default ContentCleaner)
        """
        self.provider = provider
        self.config = settings.summarization
        self.cleaner = cleaner or ContentCleaner()
        self.logger = get_logger_for_component("summarizer")

    async def summarize_item(self, item: FeedItem) -> FeedItem:
        """Enrich one item. Never raises for collaborator failures."""
        stripped = self.cleaner.extract_text_only(item.description)

        if len(stripped) < self.config.short_content_threshold:
            return self._short_content(item, stripped)

        try:
            if self.provider is None:
                raise SummarizationError(
                    "No summarization provider configured",
                    error_code=ErrorCode.AI_PROVIDER_UNAVAILABLE,
                )
            result = await asyncio.wait_for(
                self.provider.summarize(item.description), timeout=self.config.timeout
            )
        except asyncio.TimeoutError:
            self.logger.warning(
                f"Summarization timed out after {self.config.timeout}s for {item.link}",
                extra={"item_link": item.link, "error_code": ErrorCode.AI_TIMEOUT.value},
            )
            return self._fallback(item, stripped)
        except SummarizationError as e:
            self.logger.warning(
                f"Summarization failed for {item.link}: {e}",
                extra={"item_link": item.link, **e.to_dict()},
            )
            return self._fallback(item, stripped)
        except Exception as e:
            self.logger.error(
                f"Unexpected summarization error for {item.link}: {e}",
                extra={"item_link": item.link},
                exc_info=True,
            )
            return self._fallback(item, stripped)

        return self._apply(item, result, stripped)

    async def summarize_all(self, items: List[FeedItem]) -> List[FeedItem]:
        """Enrich ``items`` concurrently; output order matches input order."""
        if not items:
            return []

        semaphore = asyncio.Semaphore(self.config.max_concurrent)

        async def summarize_with_semaphore(item: FeedItem) -> FeedItem:
            async with semaphore:
                return await self.summarize_item(item)

        with PerformanceLogger(self.logger, "summarize_all", item_count=len(items)):
            results = await asyncio.gather(
                *(summarize_with_semaphore(item) for item in items),
                return_exceptions=True,
            )

        enriched = []
        for item, result in zip(items, results):
            if isinstance(result, BaseException):
                self.logger.error(f"Summarization task crashed for {item.link}: {result}")
                enriched.append(self._fallback(item, self.cleaner.extract_text_only(item.description)))
            else:
                enriched.append(result)
        return enriched

    def _short_content(self, item: FeedItem, stripped: str) -> FeedItem:
        summary = [stripped] if stripped else [SUMMARY_UNAVAILABLE]
        return item.model_copy(
            update={
                "summary": summary,
                "product": UNKNOWN_PRODUCT,
                "title": SHORT_CONTENT_TITLE,
                "pub_date": today(),
                "category": derive_category(summary),
            }
        )

    def _apply(self, item: FeedItem, result: SummaryResult, stripped: str) -> FeedItem:
        """Collaborator fields win over parsed fields."""
        summary = result.summary or ([stripped] if stripped else [SUMMARY_UNAVAILABLE])
        return item.model_copy(
            update={
                "summary": summary,
                "product": result.product or UNKNOWN_PRODUCT,
                "subcomponent": result.subcomponent or None,
                "title": result.title or UNKNOWN_TITLE,
                "pub_date": result.pub_date or today(),
                "category": derive_category(summary),
            }
        )

    def _fallback(self, item: FeedItem, stripped: str) -> FeedItem:
        if stripped:
            summary = [self.cleaner.truncate(stripped, self.config.fallback_max_chars)]
        else:
            summary = [SUMMARY_UNAVAILABLE]
        return item.model_copy(update={"summary": summary})
