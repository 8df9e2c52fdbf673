"""
Tests for Source Fetcher
========================

Per-source isolation, error aggregation, kind dispatch, download error
mapping and the revalidation window.
"""

import asyncio
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from brewnews.database.models import Source, SourceKind
from brewnews.processing.feed_fetcher import SourceFetcher, format_source_error
from brewnews.utils.exceptions import ErrorCode, HttpError, NetworkError, FormatError


class FakeResponse:
    def __init__(self, status=200, body="", reason="OK"):
        self.status = status
        self.reason = reason
        self._body = body

    async def text(self):
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Minimal stand-in for aiohttp.ClientSession.get()."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requested = []

    def get(self, url):
        self.requested.append(url)
        if self.error:
            raise self.error
        return self.response


def feed_with(make_rss, name: str, count: int = 1) -> str:
    return make_rss(*[
        {"title": f"{name} {i}", "link": f"https://{name}.example.com/{i}", "description": "d"}
        for i in range(count)
    ])


@pytest.fixture
def fetcher(settings):
    return SourceFetcher(settings)


class TestFetchSources:

    @pytest.mark.asyncio
    async def test_one_http_failure_does_not_hide_other_sources(self, fetcher, make_rss):
        documents = {
            "https://a.example.com/feed.xml": feed_with(make_rss, "a", 2),
            "https://c.example.com/feed.xml": feed_with(make_rss, "c", 1),
        }

        async def download(url, session):
            if url == "https://b.example.com/feed.xml":
                raise HttpError(500, feed_url=url, reason="Internal Server Error")
            return documents[url]

        sources = [
            Source(url="https://a.example.com/feed.xml"),
            Source(url="https://b.example.com/feed.xml"),
            Source(url="https://c.example.com/feed.xml"),
        ]

        with patch.object(fetcher, "_download", AsyncMock(side_effect=download)):
            batch = await fetcher.fetch_sources(sources)

        assert [i.title for i in batch.items] == ["a 0", "a 1", "c 0"]
        assert len(batch.errors) == 1
        assert "https://b.example.com/feed.xml" in batch.errors[0]
        assert "status: 500" in batch.errors[0]

    @pytest.mark.asyncio
    async def test_items_follow_source_order_not_completion_order(self, fetcher, make_rss):
        async def download(url, session):
            if "slow" in url:
                await asyncio.sleep(0.05)
            return feed_with(make_rss, "slow" if "slow" in url else "fast")

        sources = [Source(url="https://slow.example.com/rss"), Source(url="https://fast.example.com/rss")]

        with patch.object(fetcher, "_download", AsyncMock(side_effect=download)):
            batch = await fetcher.fetch_sources(sources)

        assert [i.title for i in batch.items] == ["slow 0", "fast 0"]

    @pytest.mark.asyncio
    async def test_format_error_reported_per_source(self, fetcher):
        with patch.object(fetcher, "_download", AsyncMock(return_value="not a valid rss feed")):
            batch = await fetcher.fetch_sources([Source(url="https://bad.example.com/feed")])

        assert batch.items == []
        assert batch.errors == [
            'Feed "https://bad.example.com/feed": '
            "The content does not appear to be a valid RSS or Atom feed."
        ]

    @pytest.mark.asyncio
    async def test_network_error_reported(self, fetcher):
        error = NetworkError("Transport error: DNS failure", feed_url="https://gone.example.com")
        with patch.object(fetcher, "_download", AsyncMock(side_effect=error)):
            batch = await fetcher.fetch_sources([Source(url="https://gone.example.com")])

        assert len(batch.errors) == 1
        assert "Network error or invalid domain" in batch.errors[0]

    @pytest.mark.asyncio
    async def test_invalid_url_never_downloaded(self, fetcher):
        download = AsyncMock()
        with patch.object(fetcher, "_download", download):
            batch = await fetcher.fetch_sources([Source(url="not a url")])

        download.assert_not_called()
        assert batch.errors == ['Feed "not a url": Please enter a valid URL.']

    @pytest.mark.asyncio
    async def test_unexpected_parser_error_is_contained(self, fetcher, make_rss):
        with patch.object(fetcher, "_download", AsyncMock(return_value=make_rss())), \
                patch.dict(fetcher.handlers, {SourceKind.FEED: lambda doc, url: 1 / 0}):
            batch = await fetcher.fetch_sources([Source(url="https://x.example.com/rss")])

        assert len(batch.errors) == 1
        assert "may not be a valid RSS or Atom format" in batch.errors[0]

    @pytest.mark.asyncio
    async def test_foreign_connection_error_maps_to_network_message(self, fetcher):
        with patch.object(fetcher, "_download", AsyncMock(side_effect=ConnectionResetError("reset"))):
            batch = await fetcher.fetch_sources([Source(url="https://reset.example.com/rss")])

        assert batch.errors == [
            'Feed "https://reset.example.com/rss": '
            "Network error or invalid domain. Please check the URL and your connection."
        ]

    @pytest.mark.asyncio
    async def test_empty_source_list(self, fetcher):
        batch = await fetcher.fetch_sources([])
        assert batch.items == [] and batch.errors == []

    @pytest.mark.asyncio
    async def test_webpage_sources_use_scraper(self, fetcher):
        page = (
            "<html><head><title>Changelog</title></head><body>"
            "<article id='v2'><h2>Version 2</h2><p>Things changed.</p></article>"
            "</body></html>"
        )
        with patch.object(fetcher, "_download", AsyncMock(return_value=page)):
            batch = await fetcher.fetch_sources(
                [Source(kind=SourceKind.WEBPAGE, url="https://example.com/changelog")]
            )

        assert batch.errors == []
        assert [i.title for i in batch.items] == ["Version 2"]
        assert batch.items[0].link == "https://example.com/changelog#v2"


class TestFetchSingle:

    @pytest.mark.asyncio
    async def test_failure_surfaces_as_the_error(self, fetcher):
        error = HttpError(404, feed_url="https://example.com/rss", reason="Not Found")
        with patch.object(fetcher, "_download", AsyncMock(side_effect=error)):
            with pytest.raises(HttpError) as exc_info:
                await fetcher.fetch_single(Source(url="https://example.com/rss"))

        assert exc_info.value.status == 404

    @pytest.mark.asyncio
    async def test_format_error_surfaces(self, fetcher):
        with patch.object(fetcher, "_download", AsyncMock(return_value="not a valid rss feed")):
            with pytest.raises(FormatError):
                await fetcher.fetch_single(Source(url="https://example.com/rss"))


class TestDownload:

    @pytest.mark.asyncio
    async def test_success_returns_body(self, fetcher):
        session = FakeSession(FakeResponse(200, "<rss/>"))
        assert await fetcher._download("https://example.com/rss", session) == "<rss/>"

    @pytest.mark.asyncio
    async def test_non_success_status_is_http_error(self, fetcher):
        session = FakeSession(FakeResponse(503, "", reason="Service Unavailable"))

        with pytest.raises(HttpError) as exc_info:
            await fetcher._download("https://example.com/rss", session)

        assert exc_info.value.status == 503
        assert exc_info.value.user_message == (
            "Failed to fetch feed. Server responded with status: 503"
        )

    @pytest.mark.asyncio
    async def test_client_error_is_network_error(self, fetcher):
        session = FakeSession(error=aiohttp.ClientConnectionError("refused"))

        with pytest.raises(NetworkError) as exc_info:
            await fetcher._download("https://example.com/rss", session)

        assert exc_info.value.error_code == ErrorCode.FEED_NETWORK_ERROR

    @pytest.mark.asyncio
    async def test_timeout_is_network_error(self, fetcher):
        session = FakeSession(error=asyncio.TimeoutError())

        with pytest.raises(NetworkError) as exc_info:
            await fetcher._download("https://example.com/rss", session)

        assert exc_info.value.error_code == ErrorCode.FEED_FETCH_TIMEOUT


class TestRevalidation:

    @pytest.mark.asyncio
    async def test_document_reused_within_window(self, settings, make_rss):
        settings.fetch.revalidate_seconds = 3600
        fetcher = SourceFetcher(settings)
        download = AsyncMock(return_value=feed_with(make_rss, "a"))
        sources = [Source(url="https://a.example.com/rss")]

        with patch.object(fetcher, "_download", download):
            await fetcher.fetch_sources(sources)
            await fetcher.fetch_sources(sources)
            assert download.await_count == 1

            await fetcher.fetch_sources(sources, force=True)
            assert download.await_count == 2

    @pytest.mark.asyncio
    async def test_zero_window_always_downloads(self, fetcher, make_rss):
        download = AsyncMock(return_value=feed_with(make_rss, "a"))
        sources = [Source(url="https://a.example.com/rss")]

        with patch.object(fetcher, "_download", download):
            await fetcher.fetch_sources(sources)
            await fetcher.fetch_sources(sources)

        assert download.await_count == 2


def test_format_source_error_uses_user_message():
    error = HttpError(500, feed_url="https://x.example.com")
    assert format_source_error("https://x.example.com", error) == (
        'Feed "https://x.example.com": Failed to fetch feed. Server responded with status: 500'
    )
