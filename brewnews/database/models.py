"""
BrewNews Data Models
====================

Pydantic data models for sources, parsed entries and normalized feed items,
plus the content-address helpers used as storage keys.
"""

import base64
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Dict, Any

from pydantic import BaseModel, Field, field_validator

# Link value the parser emits when an entry has no usable link
PLACEHOLDER_LINK = "#"

PLACEHOLDER_DESCRIPTION = "No description available."


class SourceKind(str, Enum):
    """Kinds of content sources."""
    FEED = "feed"
    WEBPAGE = "webpage"


class Source(BaseModel):
    """Administratively managed content source. Identity is the URL."""
    kind: SourceKind = Field(default=SourceKind.FEED, description="How the source is ingested")
    url: str = Field(..., min_length=1, description="Source URL")

    @field_validator("url")
    @classmethod
    def strip_url(cls, v):
        return v.strip()

    def __str__(self) -> str:
        return f"Source({self.kind.value}:{self.url})"


@dataclass
class RawEntry:
    """One entry block as extracted by a feed parser, before normalization."""
    title: str
    link: str
    pub_date: str
    content: str


class FeedItem(BaseModel):
    """Normalized, enriched feed item."""
    title: str = Field(..., description="Item title")
    link: str = Field(..., description="Item link, unique within a batch")
    description: str = Field(default="", description="Decoded HTML fragment")
    pub_date: str = Field(default="", alias="pubDate", description="Publication timestamp as published")
    summary: Optional[List[str]] = Field(default=None, description="Summary bullets")
    product: Optional[str] = Field(default=None, description="Product the item is about")
    subcomponent: Optional[str] = Field(default=None, description="Product sub-component")
    category: Optional[str] = Field(default=None, description="Change category, e.g. Feature or Fixed")

    model_config = {
        "populate_by_name": True,
    }

    @classmethod
    def from_raw_entry(cls, entry: RawEntry) -> "FeedItem":
        return cls(
            title=entry.title,
            link=entry.link,
            description=entry.content,
            pub_date=entry.pub_date,
        )

    def is_valid(self) -> bool:
        """Title and link present and the link is not the parser placeholder."""
        return bool(
            self.title and self.title.strip()
            and self.link and self.link.strip()
            and self.link != PLACEHOLDER_LINK
        )

    @property
    def content_id(self) -> str:
        return content_id(self.link)

    def to_document(self) -> Dict[str, Any]:
        """Serialize for the document store (camelCase field names)."""
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "FeedItem":
        return cls.model_validate(document)

    def __str__(self) -> str:
        return f"FeedItem({self.title[:50]})"


class SummaryResult(BaseModel):
    """Structured fields returned by the summarization collaborator.

    Every field is optional here; the orchestrator applies defaults for
    anything the collaborator leaves out.
    """
    product: Optional[str] = None
    subcomponent: Optional[str] = None
    title: Optional[str] = None
    pub_date: Optional[str] = Field(default=None, alias="pubDate")
    summary: List[str] = Field(default_factory=list)

    model_config = {
        "populate_by_name": True,
    }

    @field_validator("summary", mode="before")
    @classmethod
    def coerce_summary(cls, v):
        """Accept a single string or null where a list is expected."""
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v.strip() else []
        if isinstance(v, (list, tuple)):
            return [str(s).strip() for s in v if s is not None and str(s).strip()]
        return v


@dataclass
class FetchResult:
    """Outcome of fetching one source."""

    source: Source
    success: bool
    items: List[FeedItem] = field(default_factory=list)
    error: Optional[str] = None
    fetch_time: Optional[datetime] = None

    def __post_init__(self):
        if not self.fetch_time:
            self.fetch_time = datetime.now(timezone.utc)

    @property
    def item_count(self) -> int:
        return len(self.items)


@dataclass
class BatchResult:
    """Combined items and per-source error messages of a multi-source fetch."""

    items: List[FeedItem] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


@dataclass
class SnapshotResult:
    """What a read request through the snapshot cache returns."""

    items: List[FeedItem] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    from_cache: bool = False
    storage_error: Optional[str] = None
    stored_count: int = 0


class RecencyBucket(str, Enum):
    """Derived recency label; never persisted."""
    CURRENT = "current"
    PREVIOUS = "previous"
    NONE = "none"


def content_id(link: str) -> str:
    """Deterministic URL-safe storage key for a link.

    Unpadded URL-safe base64 of the UTF-8 link, so the mapping is reversible
    and distinct links never collide.
    """
    encoded = base64.urlsafe_b64encode(link.encode("utf-8")).decode("ascii")
    return encoded.rstrip("=")


def link_from_content_id(key: str) -> str:
    padding = "=" * (-len(key) % 4)
    return base64.urlsafe_b64decode(key + padding).decode("utf-8")
