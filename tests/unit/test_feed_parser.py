"""
Tests for Feed Format Parser
============================

Dialect detection, entry extraction for RSS 2.0 and Atom, field fallbacks
and format errors.
"""

import pytest

from brewnews.database.models import PLACEHOLDER_DESCRIPTION, PLACEHOLDER_LINK
from brewnews.ingestion.feed_parser import FeedDialect, RegexFeedParser, detect_dialect
from brewnews.processing.recency import parse_pub_date
from brewnews.utils.exceptions import ErrorCode, FormatError


ATOM_FEED = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Product Updates</title>
  <entry>
    <title>Version 2.0 &amp; more</title>
    <link rel="self" href="https://example.com/self/2.0"/>
    <link rel="alternate" type="text/html" href="https://example.com/releases/2.0"/>
    <published>2025-07-01T10:00:00Z</published>
    <updated>2025-07-02T12:00:00Z</updated>
    <content type="html">&lt;p&gt;Big release&lt;/p&gt;</content>
  </entry>
  <entry>
    <title>Version 1.9</title>
    <link href='https://example.com/releases/1.9'/>
    <published>2025-06-01T10:00:00Z</published>
    <summary>Short summary</summary>
  </entry>
</feed>
"""


@pytest.fixture
def parser():
    return RegexFeedParser()


class TestDialectDetection:

    def test_feed_marker_means_atom(self):
        assert detect_dialect(ATOM_FEED) == FeedDialect.ATOM

    def test_rss_without_feed_marker(self, make_rss):
        assert detect_dialect(make_rss()) == FeedDialect.RSS

    def test_feed_marker_wins_over_rss(self):
        assert detect_dialect("<rss><feed></feed></rss>") == FeedDialect.ATOM


class TestRssParsing:

    def test_basic_item(self, parser, make_rss):
        document = make_rss({
            "title": "Test Item 1",
            "link": "http://example.com/1",
            "pubDate": "Tue, 08 Jul 2025 00:00:00 GMT",
            "description": "Description 1",
        })

        entries = parser.parse(document, "http://example.com/feed.xml")

        assert len(entries) == 1
        entry = entries[0]
        assert entry.title == "Test Item 1"
        assert entry.link == "http://example.com/1"
        assert entry.pub_date == "Tue, 08 Jul 2025 00:00:00 GMT"
        assert entry.content == "Description 1"

    def test_entries_in_document_order(self, parser, make_rss):
        document = make_rss(
            {"title": "First", "link": "http://example.com/a"},
            {"title": "Second", "link": "http://example.com/b"},
            {"title": "Third", "link": "http://example.com/c"},
        )
        assert [e.title for e in parser.parse(document)] == ["First", "Second", "Third"]

    def test_cdata_and_entities_decoded(self, parser, make_rss):
        document = make_rss({
            "title": "<![CDATA[Tips &amp; Tricks]]>",
            "link": "http://example.com/tips?a=1&amp;b=2",
            "description": "<![CDATA[<p>Rich <b>HTML</b></p>]]>",
        })

        entry = parser.parse(document)[0]

        assert entry.title == "Tips & Tricks"
        assert entry.link == "http://example.com/tips?a=1&b=2"
        assert entry.content == "<p>Rich <b>HTML</b></p>"

    def test_content_encoded_when_no_description(self, parser, make_rss):
        document = make_rss({
            "title": "Encoded",
            "link": "http://example.com/e",
            "content:encoded": "<![CDATA[<p>Full body</p>]]>",
        })
        assert parser.parse(document)[0].content == "<p>Full body</p>"

    def test_dc_date_fallback(self, parser, make_rss):
        document = make_rss({
            "title": "Dated",
            "link": "http://example.com/d",
            "dc:date": "2025-07-08T09:30:00Z",
        })
        assert parser.parse(document)[0].pub_date == "2025-07-08T09:30:00Z"

    def test_missing_fields_get_placeholders(self, parser, make_rss):
        entry = parser.parse(make_rss({"title": "Bare"}))[0]

        assert entry.link == PLACEHOLDER_LINK
        assert entry.content == PLACEHOLDER_DESCRIPTION
        # Missing date defaults to "now" in RFC 1123 form
        assert parse_pub_date(entry.pub_date) is not None
        assert entry.pub_date.endswith("GMT")


class TestAtomParsing:

    def test_alternate_link_preferred(self, parser):
        entries = parser.parse(ATOM_FEED)
        assert entries[0].link == "https://example.com/releases/2.0"

    def test_first_href_when_no_alternate(self, parser):
        entries = parser.parse(ATOM_FEED)
        assert entries[1].link == "https://example.com/releases/1.9"

    def test_updated_preferred_over_published(self, parser):
        entries = parser.parse(ATOM_FEED)
        assert entries[0].pub_date == "2025-07-02T12:00:00Z"
        assert entries[1].pub_date == "2025-06-01T10:00:00Z"

    def test_content_then_summary(self, parser):
        entries = parser.parse(ATOM_FEED)
        assert entries[0].content == "<p>Big release</p>"
        assert entries[1].content == "Short summary"

    def test_title_entities_decoded(self, parser):
        assert parser.parse(ATOM_FEED)[0].title == "Version 2.0 & more"


class TestFormatErrors:

    def test_not_a_feed_raises_format_error(self, parser):
        with pytest.raises(FormatError) as exc_info:
            parser.parse("not a valid rss feed", "http://example.com/bad")

        error = exc_info.value
        assert error.error_code == ErrorCode.FEED_PARSE_ERROR
        assert error.feed_url == "http://example.com/bad"
        assert "valid RSS or Atom" in error.user_message

    def test_html_page_raises_format_error(self, parser):
        with pytest.raises(FormatError):
            parser.parse("<html><body><p>Hello</p></body></html>")

    def test_empty_rss_feed_is_not_an_error(self, parser, make_rss):
        assert parser.parse(make_rss()) == []

    def test_empty_atom_feed_is_not_an_error(self, parser):
        assert parser.parse('<feed xmlns="http://www.w3.org/2005/Atom"></feed>') == []


class TestParseItems:

    def test_drops_entries_without_title_or_link(self, parser, make_rss):
        document = make_rss(
            {"title": "Kept", "link": "http://example.com/kept"},
            {"title": "No link"},
            {"link": "http://example.com/no-title"},
        )

        items = parser.parse_items(document)

        assert [i.title for i in items] == ["Kept"]
        assert items[0].description == PLACEHOLDER_DESCRIPTION
