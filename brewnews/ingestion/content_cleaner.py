"""
Content Cleaner
===============

Markup stripping for item descriptions. Produces the plain text used to
decide whether an item is worth summarizing and as fallback summary text.
"""

import re
import html
from typing import Optional

from bs4 import BeautifulSoup

from ..utils.logging import get_logger_for_component


class ContentCleaner:
    """Extracts readable text from HTML fragments."""

    # Elements dropped together with their content
    NON_CONTENT_ELEMENTS = {
        "script",
        "style",
        "iframe",
        "noscript",
        "template",
        "svg",
        "canvas",
    }

    WHITESPACE_PATTERN = re.compile(r"\s+", re.MULTILINE)
    TAG_PATTERN = re.compile(r"<[^>]*>?")

    def __init__(self, parser: str = "html.parser"):
        self.logger = get_logger_for_component("content_cleaner")
        self.parser = parser

    def extract_text_only(self, html_content: Optional[str]) -> str:
        """
        Extract only text content from HTML, removing all markup.

        Args:
            html_content: HTML content to process

        Returns:
            Plain text with whitespace collapsed
        """
        if not html_content or not html_content.strip():
            return ""

        # Plain text needs no parsing
        if "<" not in html_content:
            return self.WHITESPACE_PATTERN.sub(" ", html_content).strip()

        try:
            soup = BeautifulSoup(html_content, self.parser)

            for element in soup(list(self.NON_CONTENT_ELEMENTS)):
                element.decompose()

            text = soup.get_text(separator=" ", strip=True)
            return self.WHITESPACE_PATTERN.sub(" ", text).strip()

        except Exception as e:
            self.logger.warning(f"Failed to extract text, using fallback: {e}")
            return self._extract_text_fallback(html_content)

    def truncate(self, text: str, max_chars: int) -> str:
        """Cut ``text`` to ``max_chars`` characters followed by an ellipsis."""
        if len(text) <= max_chars:
            return text
        return text[:max_chars] + "..."

    def _extract_text_fallback(self, html_content: str) -> str:
        """Regex text extraction used when BeautifulSoup fails."""
        content = re.sub(
            r"<(script|style)[^>]*>.*?</\1>",
            "",
            html_content,
            flags=re.IGNORECASE | re.DOTALL,
        )
        content = self.TAG_PATTERN.sub("", content)
        content = html.unescape(content)
        return self.WHITESPACE_PATTERN.sub(" ", content).strip()


def extract_plain_text(html_content: Optional[str]) -> str:
    """Quick function to extract plain text from HTML."""
    return ContentCleaner().extract_text_only(html_content)
