"""
Processing Pipeline
===================

Fetch -> split -> summarize over the configured sources. Each stage waits
for all of its tasks to settle before the next stage starts.
"""

from typing import List, Optional

from ..ai.providers.base import SummarizationProvider
from ..config.settings import BrewNewsSettings
from ..database.models import BatchResult, Source
from ..utils.logging import get_logger_for_component, PerformanceLogger

from .feed_fetcher import SourceFetcher
from .splitter import EntrySplitter
from .summarizer import SummarizationOrchestrator


class FeedPipeline:
    """Runs the full ingestion pipeline for a list of sources."""

    def __init__(
        self,
        settings: BrewNewsSettings,
        provider: Optional[SummarizationProvider] = None,
        fetcher: Optional[SourceFetcher] = None,
        splitter: Optional[EntrySplitter] = None,
        summarizer: Optional[SummarizationOrchestrator] = None,
    ):
        self.settings = settings
        self.fetcher = fetcher or SourceFetcher(settings)
        self.splitter = splitter or EntrySplitter(settings.splitter.heading_tag)
        self.summarizer = summarizer or SummarizationOrchestrator(provider, settings)
        self.logger = get_logger_for_component("pipeline")

    async def run(self, sources: List[Source], force: bool = False) -> BatchResult:
        """Fetch, split and summarize.

        Returns:
            Enriched items plus one error message per failing source
        """
        with PerformanceLogger(self.logger, "pipeline_run", source_count=len(sources)):
            fetched = await self.fetcher.fetch_sources(sources, force=force)
            items = self.splitter.split_all(fetched.items)
            items = await self.summarizer.summarize_all(items)

        self.logger.info(
            f"Pipeline produced {len(items)} items from {len(sources)} sources "
            f"with {len(fetched.errors)} errors"
        )
        return BatchResult(items=items, errors=list(fetched.errors))
