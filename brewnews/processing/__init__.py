"""
BrewNews Processing Module
==========================

Pipeline stages from source fetching to the cached snapshot.
"""

from .feed_fetcher import SourceFetcher
from .splitter import EntrySplitter
from .summarizer import SummarizationOrchestrator
from .pipeline import FeedPipeline
from .snapshot_cache import SnapshotCache
from .recency import RecencyPolicy, RecencyBuckets, classify

__all__ = [
    'SourceFetcher',
    'EntrySplitter',
    'SummarizationOrchestrator',
    'FeedPipeline',
    'SnapshotCache',
    'RecencyPolicy',
    'RecencyBuckets',
    'classify',
]
