"""
Compound-Entry Splitter
=======================

Some sources publish one entry per month holding several releases, each
introduced by a sub-heading. Such entries are split into one item per
section; every other entry passes through unchanged.
"""

import re
from typing import List

from ..database.models import FeedItem
from ..ingestion.content_cleaner import ContentCleaner
from ..utils.logging import get_logger_for_component


class EntrySplitter:
    """Splits items whose description contains several sub-headings."""

    def __init__(self, heading_tag: str = "h2"):
        """Initialize splitter.

        Args:
            heading_tag: Tag name that starts a section, e.g. ``h2``
        """
        self.heading_tag = heading_tag.lower()
        self.marker_pattern = re.compile(rf"<{self.heading_tag}(?=[\s>/])", re.IGNORECASE)
        self.heading_pattern = re.compile(
            rf"^<{self.heading_tag}[^>]*>(.*?)</{self.heading_tag}\s*>",
            re.IGNORECASE | re.DOTALL,
        )
        self.cleaner = ContentCleaner()
        self.logger = get_logger_for_component("splitter")

    def split(self, item: FeedItem) -> List[FeedItem]:
        """Split one item into its sections.

        Returns:
            ``[item]`` when no marker is present, otherwise one derived item
            per marker with links ``<link>-0``, ``<link>-1``, ... and the
            text before the first marker discarded.
        """
        positions = [m.start() for m in self.marker_pattern.finditer(item.description)]
        if not positions:
            return [item]

        derived = []
        bounds = positions + [len(item.description)]
        for index, (start, end) in enumerate(zip(bounds, bounds[1:])):
            section = item.description[start:end].strip()
            derived.append(
                item.model_copy(
                    update={
                        "title": self._section_title(section) or item.title,
                        "link": f"{item.link}-{index}",
                        "description": section,
                    }
                )
            )

        self.logger.debug(f"Split {item.link} into {len(derived)} items")
        return derived

    def split_all(self, items: List[FeedItem]) -> List[FeedItem]:
        """Split every item, keeping input order."""
        result = []
        for item in items:
            result.extend(self.split(item))
        if len(result) != len(items):
            self.logger.info(f"Splitter expanded {len(items)} items into {len(result)}")
        return result

    def _section_title(self, section: str) -> str:
        match = self.heading_pattern.match(section)
        if not match:
            return ""
        return self.cleaner.extract_text_only(match.group(1))
