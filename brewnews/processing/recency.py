"""
Recency Classifier
==================

Buckets items by age relative to "now". Two policies exist: weekly
(whole-day age) and monthly (calendar month). Items whose publication date
is missing or unparseable land in no bucket.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone, timedelta
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Callable, Dict, List, Optional

from ..database.models import FeedItem, RecencyBucket


class RecencyPolicy(str, Enum):
    """Bucketing policies."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass
class RecencyBuckets:
    """Items of the current and previous period, newest first."""
    current: List[FeedItem] = field(default_factory=list)
    previous: List[FeedItem] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.current) + len(self.previous)


def parse_pub_date(value: Optional[str]) -> Optional[datetime]:
    """Parse RFC 822 or ISO 8601 timestamps into aware UTC datetimes.

    Returns None for anything else. Naive values are taken as UTC.
    """
    if not value or not value.strip():
        return None
    value = value.strip()

    parsed = None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        parsed = None

    if parsed is None:
        iso_value = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
        try:
            parsed = datetime.fromisoformat(iso_value)
        except ValueError:
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def age_in_days(pub_date: datetime, now: datetime) -> int:
    """Whole days between ``pub_date`` and ``now``, truncated toward zero."""
    return int((now - pub_date) / timedelta(days=1))


def weekly_bucket(item: FeedItem, now: datetime) -> RecencyBucket:
    pub_date = parse_pub_date(item.pub_date)
    if pub_date is None:
        return RecencyBucket.NONE

    days = age_in_days(pub_date, now)
    if 0 <= days <= 7:
        return RecencyBucket.CURRENT
    if 7 < days <= 14:
        return RecencyBucket.PREVIOUS
    return RecencyBucket.NONE


def _previous_month(now: datetime) -> tuple:
    if now.month == 1:
        return now.year - 1, 12
    return now.year, now.month - 1


def monthly_bucket(item: FeedItem, now: datetime) -> RecencyBucket:
    pub_date = parse_pub_date(item.pub_date)
    if pub_date is None:
        return RecencyBucket.NONE

    pub_month = (pub_date.year, pub_date.month)
    if pub_month == (now.year, now.month):
        return RecencyBucket.CURRENT
    if pub_month == _previous_month(now):
        return RecencyBucket.PREVIOUS
    return RecencyBucket.NONE


POLICIES: Dict[RecencyPolicy, Callable[[FeedItem, datetime], RecencyBucket]] = {
    RecencyPolicy.WEEKLY: weekly_bucket,
    RecencyPolicy.MONTHLY: monthly_bucket,
}


def classify(
    items: List[FeedItem],
    policy: RecencyPolicy = RecencyPolicy.WEEKLY,
    now: Optional[datetime] = None,
) -> RecencyBuckets:
    """Bucket ``items`` under ``policy`` and sort each bucket newest first.

    Ties keep their input order.
    """
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    bucket_of = POLICIES[RecencyPolicy(policy)]

    buckets = RecencyBuckets()
    for item in items:
        bucket = bucket_of(item, now)
        if bucket == RecencyBucket.CURRENT:
            buckets.current.append(item)
        elif bucket == RecencyBucket.PREVIOUS:
            buckets.previous.append(item)

    def newest_first(item: FeedItem) -> datetime:
        return parse_pub_date(item.pub_date)

    buckets.current.sort(key=newest_first, reverse=True)
    buckets.previous.sort(key=newest_first, reverse=True)
    return buckets


def classify_weekly(items: List[FeedItem], now: Optional[datetime] = None) -> RecencyBuckets:
    return classify(items, RecencyPolicy.WEEKLY, now)


def classify_monthly(items: List[FeedItem], now: Optional[datetime] = None) -> RecencyBuckets:
    return classify(items, RecencyPolicy.MONTHLY, now)


def within_days(item: FeedItem, days: int, now: Optional[datetime] = None) -> bool:
    """True when the item is between 0 and ``days`` whole days old."""
    pub_date = parse_pub_date(item.pub_date)
    if pub_date is None:
        return False
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return 0 <= age_in_days(pub_date, now) <= days
