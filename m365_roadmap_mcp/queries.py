"""Read-only queries over the cached roadmap feed."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from .cache import FeedCache, utc_now
from .errors import ValidationError
from .logging_config import create_execution_logger
from .models import RoadmapItem

DESCRIPTION_LIMIT = 200

Selector = Callable[[RoadmapItem], bool]


def truncate(text: str, limit: int = DESCRIPTION_LIMIT) -> str:
    if len(text) > limit:
        return f"{text[:limit]}..."
    return text


def format_item(index: int, item: RoadmapItem) -> str:
    """Render one item as a 1-indexed markdown entry."""
    return (
        f"{index}. **{item.title}**\n"
        f"   Category: {item.category}\n"
        f"   Published: {item.publication_date or 'Unknown'}\n"
        f"   Description: {truncate(item.description)}\n"
        f"   Link: {item.link}\n"
    )


def format_items(header: str, items: list[RoadmapItem]) -> str:
    entries = "\n".join(
        format_item(index, item) for index, item in enumerate(items, start=1)
    )
    return f"{header}\n\n{entries}"


def _require_text(value: str | None, name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"Parameter '{name}' is required and cannot be empty")
    return str(value).strip()


class RoadmapQueries:
    """The four roadmap operations exposed as MCP tools.

    Each one runs the same pipeline: take the current snapshot, keep the
    items the selector accepts in feed order, truncate to the limit and
    render text. Negative limits are clamped to zero.
    """

    def __init__(
        self,
        cache: FeedCache,
        clock: Callable[[], datetime] = utc_now,
        execution_id: str | None = None,
    ):
        self.cache = cache
        self.clock = clock
        self.logger = create_execution_logger("queries", execution_id)

    def run(
        self,
        selector: Selector,
        limit: int,
        header: Callable[[int], str],
        empty_message: str,
    ) -> str:
        snapshot = self.cache.get_current_snapshot()
        matched = [item for item in snapshot if selector(item)]
        results = matched[: max(limit, 0)]

        self.logger.info(
            "Query completed",
            metrics={
                "snapshot_size": len(snapshot),
                "matched": len(matched),
                "returned": len(results),
            },
        )

        if not matched:
            return empty_message
        return format_items(header(len(results)), results)

    def list_items(self, limit: int = 50) -> str:
        return self.run(
            lambda item: True,
            limit,
            lambda count: f"Found {count} Microsoft roadmap items:",
            "No Microsoft roadmap items found in the feed",
        )

    def search(self, query: str, limit: int = 20) -> str:
        """Case-insensitive substring search over title, description and summary."""
        query = _require_text(query, "query")
        term = query.lower()

        def matches(item: RoadmapItem) -> bool:
            return (
                term in item.title.lower()
                or term in item.description.lower()
                or term in item.summary.lower()
            )

        return self.run(
            matches,
            limit,
            lambda count: f'Found {count} roadmap items matching "{query}":',
            f'No roadmap items found matching "{query}"',
        )

    def filter_by_category(self, category: str, limit: int = 20) -> str:
        """Case-insensitive substring match against category or title."""
        category = _require_text(category, "category")
        term = category.lower()

        def matches(item: RoadmapItem) -> bool:
            return term in item.category.lower() or term in item.title.lower()

        return self.run(
            matches,
            limit,
            lambda count: f'Found {count} roadmap items for category "{category}":',
            f'No roadmap items found for category "{category}"',
        )

    def recent(self, days: int = 30, limit: int = 20) -> str:
        """Items published on or after ``now - days``.

        Items without a parseable publication date are excluded.
        """
        days = max(days, 0)
        try:
            cutoff = self.clock() - timedelta(days=days)
        except OverflowError:
            cutoff = datetime.min.replace(tzinfo=UTC)

        def matches(item: RoadmapItem) -> bool:
            published = item.published_at()
            return published is not None and published >= cutoff

        return self.run(
            matches,
            limit,
            lambda count: f"Found {count} recent roadmap items (last {days} days):",
            f"No roadmap items found from the last {days} days",
        )
