"""
BrewNews Storage Layer
======================

Repositories over the document store:
- Source repository for the administered source list
- Item repository for the cached snapshot
- Log repository for persisted diagnostics
"""

from .source_repository import SourceRepository
from .item_repository import FeedItemRepository
from .log_repository import LogRepository

__all__ = [
    "SourceRepository",
    "FeedItemRepository",
    "LogRepository",
]
