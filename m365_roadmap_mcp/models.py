"""Data models for the M365 roadmap MCP server."""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, datetime

from dateutil import parser as date_parser

DEFAULT_CATEGORY = "General"


def parse_publication_date(raw: str | None) -> datetime | None:
    """Parse a feed date string into a timezone-aware datetime.

    Naive dates are treated as UTC.

    Returns:
        Parsed datetime, or None when the value is missing or unparseable
    """
    if not raw or not raw.strip():
        return None

    try:
        published = date_parser.parse(raw)
    except (ValueError, TypeError, OverflowError):
        return None

    if published.tzinfo is None:
        published = published.replace(tzinfo=UTC)
    return published


@dataclass(frozen=True)
class RoadmapItem:
    """Represents a single roadmap announcement from the feed."""

    title: str
    link: str
    publication_date: str | None = None  # Raw string as served upstream
    category: str = DEFAULT_CATEGORY
    description: str = ""
    summary: str = ""

    def published_at(self) -> datetime | None:
        """Return the publication date as a datetime, if it can be parsed."""
        return parse_publication_date(self.publication_date)


@dataclass(frozen=True)
class FeedSnapshot:
    """All roadmap items captured by one fetch."""

    items: tuple[RoadmapItem, ...]
    captured_at: datetime

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[RoadmapItem]:
        return iter(self.items)
