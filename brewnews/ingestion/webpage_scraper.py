"""
Webpage Scraper
===============

Turns an arbitrary HTML page into feed items for sources that publish no
syndication feed. Each ``<article>`` element becomes one item; pages
without articles become a single item built from the main content area.
"""

from datetime import datetime, timezone
from email.utils import format_datetime
from typing import List, Optional
from urllib.parse import urljoin, urldefrag

from bs4 import BeautifulSoup, Tag

from ..database.models import FeedItem
from ..utils.exceptions import FormatError
from ..utils.logging import get_logger_for_component


class WebpageScraper:
    """Extracts feed items from HTML pages."""

    HEADING_TAGS = ["h1", "h2", "h3"]
    STRIP_ELEMENTS = ["script", "style", "noscript", "template", "nav", "footer", "form"]
    DATE_META_PROPERTIES = [
        "article:published_time",
        "article:modified_time",
        "og:updated_time",
    ]

    def __init__(self, parser: str = "html.parser"):
        self.parser = parser
        self.logger = get_logger_for_component("webpage_scraper")

    def extract_items(self, html_content: str, page_url: str) -> List[FeedItem]:
        """Extract items from a downloaded page.

        Args:
            html_content: Page HTML
            page_url: URL the page was fetched from (base for relative links)

        Returns:
            Items in page order

        Raises:
            FormatError: If the page holds no readable content
        """
        soup = BeautifulSoup(html_content or "", self.parser)
        for element in soup(self.STRIP_ELEMENTS):
            element.decompose()

        page_date = self._page_date(soup)
        regions = soup.find_all("article")
        if not regions:
            main = soup.find("main") or soup.body or soup
            regions = [main]

        items = []
        for index, region in enumerate(regions):
            item = self._region_to_item(
                region, soup, page_url, page_date, index if len(regions) > 1 else None
            )
            if item and item.is_valid():
                items.append(item)

        if not items:
            raise FormatError(
                "Page contains no readable content",
                feed_url=page_url,
                user_message="The page did not contain any readable content.",
            )

        self.logger.info(f"Scraped {len(items)} items from {page_url}")
        return items

    def _region_to_item(
        self,
        region: Tag,
        soup: BeautifulSoup,
        page_url: str,
        page_date: Optional[str],
        index: Optional[int],
    ) -> Optional[FeedItem]:
        if not region.get_text(strip=True):
            return None

        heading = region.find(self.HEADING_TAGS)
        title = heading.get_text(" ", strip=True) if heading else ""
        if not title and soup.title and soup.title.string:
            title = soup.title.string.strip()

        link = self._region_link(region, heading, page_url, index)

        time_tag = region.find("time")
        pub_date = None
        if time_tag is not None:
            pub_date = (time_tag.get("datetime") or time_tag.get_text(strip=True)) or None
        pub_date = pub_date or page_date or format_datetime(
            datetime.now(timezone.utc), usegmt=True
        )

        description = region.decode_contents().strip()

        return FeedItem(
            title=title,
            link=link,
            description=description,
            pub_date=pub_date,
        )

    def _region_link(
        self, region: Tag, heading: Optional[Tag], page_url: str, index: Optional[int]
    ) -> str:
        anchor = None
        if heading is not None:
            anchor = heading.find("a", href=True)
            if anchor is None and heading.parent is not None and heading.parent.name == "a":
                anchor = heading.parent
        if anchor is not None:
            href = anchor.get("href", "").strip()
            if href and not href.startswith(("javascript:", "#")):
                return urljoin(page_url, href)

        base, _ = urldefrag(page_url)
        element_id = region.get("id") if isinstance(region, Tag) else None
        if element_id:
            return f"{base}#{element_id}"
        if index is not None:
            return f"{base}#item-{index}"
        return page_url

    def _page_date(self, soup: BeautifulSoup) -> Optional[str]:
        for prop in self.DATE_META_PROPERTIES:
            meta = soup.find("meta", attrs={"property": prop})
            if meta and meta.get("content"):
                return meta["content"].strip()
        return None
