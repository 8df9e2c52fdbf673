"""
PyTest Configuration and Fixtures
=================================

Shared fixtures and configuration for BrewNews tests.

- Settings built explicitly per test (no environment leakage)
- In-memory document store for unit tests
- Temporary SQLite document store for storage tests
- Scripted summarization provider
"""

import os
import sys
import tempfile
from datetime import datetime, timezone, timedelta
from email.utils import format_datetime
from pathlib import Path
from typing import List, Optional

import pytest

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Keep real keys in the developer's environment out of the tests
for key in list(os.environ):
    if key.startswith("BREWNEWS_"):
        del os.environ[key]

from brewnews.ai.providers.base import SummarizationProvider, ProviderType
from brewnews.database.models import FeedItem, SummaryResult
from brewnews.utils.exceptions import SummarizationError


# ============================================================================
# Settings
# ============================================================================


@pytest.fixture
def settings(tmp_path):
    """Settings with summarization disabled and paths under tmp_path."""
    from brewnews.config.settings import load_settings

    return load_settings(
        validate=False,
        summarization={"provider": "none", "timeout": 5},
        fetch={"revalidate_seconds": 0},
        database={"path": str(tmp_path / "brewnews_test.db"), "pool_size": 2},
        logging={"file_path": None, "console_logging": False},
    )


# ============================================================================
# Document Store Fixtures
# ============================================================================


@pytest.fixture
def memory_store():
    """In-process document store for fast unit tests."""
    from brewnews.database.document_store import InMemoryDocumentStore

    return InMemoryDocumentStore()


@pytest.fixture
def temp_db():
    """Temporary SQLite database file with the schema created."""
    from brewnews.database.schema import DatabaseSchema

    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name

    DatabaseSchema(db_path).create_tables()

    yield db_path

    for suffix in ("", "-wal", "-shm"):
        try:
            os.unlink(db_path + suffix)
        except FileNotFoundError:
            pass


@pytest.fixture
def db_connection(temp_db):
    """Create a database connection manager for testing."""
    from brewnews.database.connection import DatabaseConnection

    connection = DatabaseConnection(temp_db, pool_size=2)
    yield connection

    connection.close_all_connections()


@pytest.fixture
def sqlite_store(db_connection):
    from brewnews.database.document_store import SQLiteDocumentStore

    return SQLiteDocumentStore(db_connection)


# ============================================================================
# Summarization Fixtures
# ============================================================================


class ScriptedProvider(SummarizationProvider):
    """Provider returning a fixed result or raising a fixed error."""

    def __init__(self, result: Optional[SummaryResult] = None, error: Optional[Exception] = None,
                 delay: float = 0.0):
        super().__init__("test-key", "test-model", ProviderType.GEMINI)
        self.result = result or SummaryResult()
        self.error = error
        self.delay = delay
        self.calls: List[str] = []

    async def summarize(self, html_content: str) -> SummaryResult:
        import asyncio

        self.calls.append(html_content)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.result


@pytest.fixture
def scripted_provider():
    """Factory for scripted providers."""
    return ScriptedProvider


@pytest.fixture
def failing_provider():
    return ScriptedProvider(error=SummarizationError("quota exceeded", provider="gemini"))


# ============================================================================
# Sample Data
# ============================================================================


LONG_DESCRIPTION = (
    "<h2>What's Changed</h2><ul><li>Feature: Added support for workspace "
    "trust in remote sessions.</li><li>Fixed: Crash when opening large files.</li></ul>"
)


def rfc822(days_ago: float, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return format_datetime(now - timedelta(days=days_ago), usegmt=True)


@pytest.fixture
def sample_items():
    """Two recent items with summarizable descriptions."""
    return [
        FeedItem(
            title="Release 1.2.0",
            link="https://example.com/releases/1.2.0",
            description=LONG_DESCRIPTION,
            pub_date=rfc822(1),
        ),
        FeedItem(
            title="Release 1.1.0",
            link="https://example.com/releases/1.1.0",
            description=LONG_DESCRIPTION,
            pub_date=rfc822(3),
        ),
    ]


def rss_document(*items: dict) -> str:
    """Minimal RSS 2.0 document with the given item fields."""
    blocks = []
    for item in items:
        fields = "".join(f"<{tag}>{value}</{tag}>" for tag, value in item.items())
        blocks.append(f"<item>{fields}</item>")
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0"><channel><title>Test Feed</title>'
        + "".join(blocks)
        + "</channel></rss>"
    )


@pytest.fixture
def make_rss():
    return rss_document
