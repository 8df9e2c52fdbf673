"""
BrewNews Ingestion Module
=========================

Turning downloaded documents into feed items.

This module handles:
- Entity and CDATA normalization
- RSS/Atom parsing behind the FeedParser interface
- Markup stripping and webpage scraping
"""

from .normalizer import normalize_text, decode_html_entities, strip_cdata
from .feed_parser import FeedParser, RegexFeedParser, FeedDialect, detect_dialect
from .content_cleaner import ContentCleaner
from .webpage_scraper import WebpageScraper

__all__ = [
    "normalize_text",
    "decode_html_entities",
    "strip_cdata",
    "FeedParser",
    "RegexFeedParser",
    "FeedDialect",
    "detect_dialect",
    "ContentCleaner",
    "WebpageScraper",
]
