"""
Tests for Repository Components
===============================

SourceRepository administration, FeedItemRepository snapshot replacement
with ContentID dedup, and LogRepository entries.
"""

from datetime import datetime, timezone

import pytest

from brewnews.database.models import FeedItem, Source, SourceKind, content_id, link_from_content_id
from brewnews.storage.item_repository import FeedItemRepository
from brewnews.storage.log_repository import LogRepository
from brewnews.storage.source_repository import SourceRepository
from brewnews.utils.exceptions import ErrorCode, InvalidInputError


class TestSourceRepository:

    @pytest.fixture
    def repo(self, memory_store, settings):
        return SourceRepository(memory_store, settings)

    def test_empty_when_no_document(self, repo):
        assert repo.get_sources() == []

    def test_save_and_load_keeps_order(self, repo):
        sources = [
            Source(kind=SourceKind.WEBPAGE, url="https://example.com/changelog"),
            Source(kind=SourceKind.FEED, url="https://example.com/feed.xml"),
        ]
        repo.save_sources(sources)
        assert repo.get_sources() == sources

    def test_legacy_plain_url_documents(self, repo, memory_store, settings):
        memory_store.set(
            settings.cache.sources_collection,
            settings.cache.sources_document,
            {"urls": ["https://a.example.com/rss", "https://b.example.com/atom.xml"]},
        )

        sources = repo.get_sources()

        assert [s.kind for s in sources] == [SourceKind.FEED, SourceKind.FEED]
        assert [s.url for s in sources] == ["https://a.example.com/rss", "https://b.example.com/atom.xml"]

    def test_add_source_guesses_kind(self, repo):
        feed = repo.add_source("https://example.com/feed.xml")
        page = repo.add_source("https://example.com/whats-new")

        assert feed.kind == SourceKind.FEED
        assert page.kind == SourceKind.WEBPAGE
        assert [s.url for s in repo.get_sources()] == [feed.url, page.url]

    def test_add_source_explicit_kind(self, repo):
        source = repo.add_source("https://example.com/releases", SourceKind.FEED)
        assert source.kind == SourceKind.FEED

    def test_add_duplicate_rejected(self, repo):
        repo.add_source("https://example.com/feed.xml")

        with pytest.raises(InvalidInputError) as exc_info:
            repo.add_source("https://EXAMPLE.com/feed.xml")

        assert exc_info.value.error_code == ErrorCode.VALIDATION_DUPLICATE
        assert len(repo.get_sources()) == 1

    def test_add_invalid_url_rejected(self, repo):
        with pytest.raises(InvalidInputError) as exc_info:
            repo.add_source("ftp://example.com/feed")

        assert exc_info.value.user_message == "Please enter a valid URL."
        assert repo.get_sources() == []

    def test_remove_source(self, repo):
        repo.add_source("https://a.example.com/rss")
        repo.add_source("https://b.example.com/rss")

        assert repo.remove_source("https://a.example.com/rss") is True
        assert repo.remove_source("https://a.example.com/rss") is False
        assert [s.url for s in repo.get_sources()] == ["https://b.example.com/rss"]


class TestFeedItemRepository:

    @pytest.fixture(params=["memory_store", "sqlite_store"])
    def repo(self, request, settings):
        return FeedItemRepository(request.getfixturevalue(request.param), settings)

    def _item(self, link: str, title: str = "Item") -> FeedItem:
        return FeedItem(
            title=title,
            link=link,
            description="<p>body</p>",
            pub_date="Tue, 08 Jul 2025 00:00:00 GMT",
            summary=["body"],
            product="Product",
        )

    def test_same_link_stored_once(self, repo):
        stored = repo.replace_all([
            self._item("https://example.com/1", "first"),
            self._item("https://example.com/1", "second"),
        ])

        items = repo.list_items()
        assert stored == 1
        assert len(items) == 1
        assert items[0].title == "second"

    def test_replace_removes_previous_snapshot(self, repo):
        repo.replace_all([self._item("https://example.com/old")])
        repo.replace_all([self._item("https://example.com/new")])

        assert [i.link for i in repo.list_items()] == ["https://example.com/new"]
        assert repo.count() == 1

    def test_documents_use_camel_case(self, repo, settings):
        repo.replace_all([self._item("https://example.com/1")])

        key, document = repo.store.list_all(settings.cache.items_collection)[0]

        assert key == content_id("https://example.com/1")
        assert document["pubDate"] == "Tue, 08 Jul 2025 00:00:00 GMT"
        assert "subcomponent" not in document

    def test_malformed_documents_skipped(self, repo, settings):
        repo.replace_all([self._item("https://example.com/1")])
        repo.store.set(settings.cache.items_collection, "broken", {"title": "no link"})

        assert [i.link for i in repo.list_items()] == ["https://example.com/1"]


class TestContentId:

    def test_deterministic_and_reversible(self):
        link = "https://example.com/releases?id=1&lang=en#top"
        assert content_id(link) == content_id(link)
        assert link_from_content_id(content_id(link)) == link

    def test_url_safe(self):
        key = content_id("https://example.com/a/b/c?x=~~~")
        assert "/" not in key and "+" not in key and "=" not in key

    def test_distinct_links_distinct_keys(self):
        assert content_id("https://example.com/1") != content_id("https://example.com/1-0")


class TestLogRepository:

    def test_add_and_recent(self, memory_store, settings):
        repo = LogRepository(memory_store, settings)
        repo.add_log("INFO", "first", timestamp=datetime(2025, 7, 1, tzinfo=timezone.utc))
        repo.add_log(
            "ERROR", "second",
            details={"url": "https://x.com", "when": datetime(2025, 7, 2, tzinfo=timezone.utc)},
            timestamp=datetime(2025, 7, 2, tzinfo=timezone.utc),
        )

        entries = repo.recent()

        assert [e["message"] for e in entries] == ["second", "first"]
        assert entries[0]["details"]["url"] == "https://x.com"
        assert entries[0]["details"]["when"].startswith("2025-07-02")
        assert "details" not in entries[1]

    def test_recent_limit(self, memory_store, settings):
        repo = LogRepository(memory_store, settings)
        for n in range(5):
            repo.add_log("WARNING", f"entry {n}")
        assert len(repo.recent(limit=3)) == 3
