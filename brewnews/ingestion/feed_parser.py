"""
Feed Format Parser
==================

Dialect detection and entry extraction for RSS 2.0 and Atom documents.

``FeedParser`` is the interface the rest of the pipeline depends on.
``RegexFeedParser`` implements it with structural pattern matching, which
tolerates the slightly broken markup real feeds often contain. An XML event
parser can replace it without touching downstream stages.
"""

import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from email.utils import format_datetime
from enum import Enum
from typing import List, Optional

from ..database.models import FeedItem, RawEntry, PLACEHOLDER_LINK, PLACEHOLDER_DESCRIPTION
from ..utils.exceptions import FormatError
from ..utils.logging import get_logger_for_component
from .normalizer import normalize_text


class FeedDialect(str, Enum):
    """Syndication dialects the parser understands."""
    RSS = "rss"
    ATOM = "atom"


ATOM_ROOT_MARKER = "<feed"
RSS_ROOT_MARKER = "<rss"


def detect_dialect(document: str) -> FeedDialect:
    """Atom when the document contains an Atom root marker, RSS otherwise."""
    return FeedDialect.ATOM if ATOM_ROOT_MARKER in document else FeedDialect.RSS


def _block_pattern(tag: str) -> re.Pattern:
    return re.compile(
        rf"<{tag}(?:\s[^>]*)?>(.*?)</{tag}\s*>", re.DOTALL | re.IGNORECASE
    )


def _tag_pattern(tag: str) -> re.Pattern:
    return re.compile(
        rf"<{re.escape(tag)}(?:\s[^>]*)?>(.*?)</{re.escape(tag)}\s*>", re.DOTALL
    )


class FeedParser(ABC):
    """Turns a syndication document into entries in document order."""

    def __init__(self):
        self.logger = get_logger_for_component("feed_parser")

    @abstractmethod
    def parse(self, document: str, source_url: str = "") -> List[RawEntry]:
        """Extract entries from ``document``.

        Args:
            document: Raw feed document text
            source_url: Where the document came from (diagnostics only)

        Returns:
            Entries in document order; empty for a valid feed with no entries

        Raises:
            FormatError: If the document is not recognizable RSS or Atom
        """

    def parse_items(self, document: str, source_url: str = "") -> List[FeedItem]:
        """Parse ``document`` and keep only entries with a title and real link."""
        entries = self.parse(document, source_url)
        items = []
        for entry in entries:
            item = FeedItem.from_raw_entry(entry)
            if item.is_valid():
                items.append(item)
            else:
                self.logger.debug(
                    f"Discarding entry without title or link from {source_url}",
                    extra={"entry_title": entry.title, "entry_link": entry.link},
                )

        discarded = len(entries) - len(items)
        if discarded:
            self.logger.info(
                f"Discarded {discarded} of {len(entries)} entries from {source_url}"
            )
        return items


class RegexFeedParser(FeedParser):
    """Feed parser based on structural pattern matching."""

    ENTRY_PATTERNS = {
        FeedDialect.ATOM: _block_pattern("entry"),
        FeedDialect.RSS: _block_pattern("item"),
    }

    TITLE_PATTERN = _tag_pattern("title")
    RSS_LINK_PATTERN = _tag_pattern("link")
    LINK_TAG_PATTERN = re.compile(r"<link\b([^>]*)>", re.IGNORECASE)
    ATTRIBUTE_PATTERN = re.compile(r"""([\w:-]+)\s*=\s*(?:"([^"]*)"|'([^']*)')""")

    DATE_PATTERNS = {
        FeedDialect.ATOM: [_tag_pattern("updated"), _tag_pattern("published")],
        FeedDialect.RSS: [_tag_pattern("pubDate"), _tag_pattern("dc:date")],
    }
    CONTENT_PATTERNS = {
        FeedDialect.ATOM: [_tag_pattern("content"), _tag_pattern("summary")],
        FeedDialect.RSS: [_tag_pattern("description"), _tag_pattern("content:encoded")],
    }

    def parse(self, document: str, source_url: str = "") -> List[RawEntry]:
        dialect = detect_dialect(document)
        blocks = self.ENTRY_PATTERNS[dialect].findall(document)

        if not blocks:
            if dialect == FeedDialect.RSS and RSS_ROOT_MARKER not in document:
                self.logger.warning(
                    f"Document from {source_url} is neither RSS nor Atom",
                    extra={"document_length": len(document)},
                )
                raise FormatError(
                    "No entry blocks and no feed root element found",
                    feed_url=source_url,
                )
            self.logger.info(f"Feed {source_url} ({dialect.value}) has no entries")
            return []

        entries = [self._parse_block(block, dialect) for block in blocks]
        self.logger.debug(
            f"Parsed {len(entries)} {dialect.value} entries from {source_url}"
        )
        return entries

    def _parse_block(self, block: str, dialect: FeedDialect) -> RawEntry:
        title = self._first(block, [self.TITLE_PATTERN]) or ""

        if dialect == FeedDialect.ATOM:
            link = self._atom_link(block)
        else:
            link = self._first(block, [self.RSS_LINK_PATTERN]) or PLACEHOLDER_LINK

        pub_date = self._first(block, self.DATE_PATTERNS[dialect])
        if not pub_date:
            pub_date = format_datetime(datetime.now(timezone.utc), usegmt=True)

        content = self._first(block, self.CONTENT_PATTERNS[dialect])
        if not content:
            content = PLACEHOLDER_DESCRIPTION

        return RawEntry(
            title=normalize_text(title),
            link=normalize_text(link) or PLACEHOLDER_LINK,
            pub_date=pub_date,
            content=normalize_text(content),
        )

    def _first(self, block: str, patterns: List[re.Pattern]) -> Optional[str]:
        """Text of the first non-empty match among ``patterns``."""
        for pattern in patterns:
            match = pattern.search(block)
            if match and match.group(1).strip():
                return match.group(1).strip()
        return None

    def _atom_link(self, block: str) -> str:
        """href of the rel="alternate" link, else of the first link with an href."""
        first_href = None
        for match in self.LINK_TAG_PATTERN.finditer(block):
            attrs = {
                m.group(1).lower(): m.group(2) if m.group(2) is not None else m.group(3)
                for m in self.ATTRIBUTE_PATTERN.finditer(match.group(1))
            }
            href = (attrs.get("href") or "").strip()
            if not href:
                continue
            if attrs.get("rel", "").strip().lower() == "alternate":
                return href
            if first_href is None:
                first_href = href
        return first_href or PLACEHOLDER_LINK
