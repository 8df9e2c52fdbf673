"""
BrewNews - Release Note Aggregator
==================================

Ingests RSS/Atom feeds and web pages, splits compound release entries,
summarizes each item and serves a cached snapshot bucketed by recency.

Main Components:
- Ingestion: entity/CDATA normalization, regex feed parser, webpage scraper
- Processing: splitter, summarization orchestrator, source fetcher, pipeline
- Storage: SQLite document store with source, item and log repositories
- AI Integration: Gemini/Groq summarization providers
"""

__version__ = "1.0.0"
__author__ = "BrewNews Development Team"
__description__ = "Release note feed ingestion and summarization"

# Core imports for easy access
from .config.settings import load_settings, BrewNewsSettings
from .database.schema import DatabaseSchema
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.exceptions import BrewNewsError

__all__ = [
    "load_settings",
    "BrewNewsSettings",
    "DatabaseSchema",
    "configure_application_logging",
    "get_logger_for_component",
    "BrewNewsError",
]
