"""
Tests for the webpage scraping collaborator.
"""

import pytest

from brewnews.ingestion.content_cleaner import ContentCleaner, extract_plain_text
from brewnews.ingestion.webpage_scraper import WebpageScraper
from brewnews.utils.exceptions import FormatError

PAGE_URL = "https://example.com/changelog"


@pytest.fixture
def scraper():
    return WebpageScraper()


class TestWebpageScraper:

    def test_each_article_becomes_an_item(self, scraper):
        html = """
        <html><head><title>Changelog</title></head><body>
          <nav>Home | Docs</nav>
          <article><h2><a href="/releases/2.0">Release 2.0</a></h2>
            <time datetime="2025-07-08T00:00:00Z">July 8</time><p>New UI</p></article>
          <article><h2>Release 1.9</h2><p>Bug fixes</p></article>
        </body></html>
        """

        items = scraper.extract_items(html, PAGE_URL)

        assert [i.title for i in items] == ["Release 2.0", "Release 1.9"]
        assert items[0].link == "https://example.com/releases/2.0"
        assert items[1].link == "https://example.com/changelog#item-1"
        assert items[0].pub_date == "2025-07-08T00:00:00Z"
        assert "<p>New UI</p>" in items[0].description

    def test_page_without_articles_uses_main(self, scraper):
        html = """
        <html><head><title>What's new</title>
          <meta property="article:published_time" content="2025-07-01T09:00:00Z">
        </head><body><header>Site</header>
          <main><p>Everything is faster now.</p></main>
        </body></html>
        """

        items = scraper.extract_items(html, PAGE_URL)

        assert len(items) == 1
        assert items[0].title == "What's new"
        assert items[0].link == PAGE_URL
        assert items[0].pub_date == "2025-07-01T09:00:00Z"

    def test_empty_page_is_format_error(self, scraper):
        with pytest.raises(FormatError):
            scraper.extract_items("<html><body><script>x()</script></body></html>", PAGE_URL)


class TestContentCleaner:

    def test_strips_markup_and_scripts(self):
        html = "<div><script>alert(1)</script><p>Hello   <b>world</b></p>\n<style>p{}</style></div>"
        assert extract_plain_text(html) == "Hello world"

    def test_plain_text_whitespace_collapsed(self):
        assert ContentCleaner().extract_text_only("  a \n\t b  ") == "a b"

    def test_empty(self):
        assert extract_plain_text(None) == ""
        assert extract_plain_text("   ") == ""

    def test_truncate(self):
        cleaner = ContentCleaner()
        assert cleaner.truncate("abcdef", 3) == "abc..."
        assert cleaner.truncate("abc", 3) == "abc"
