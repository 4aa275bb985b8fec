"""Single-slot TTL cache for the roadmap feed."""

from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta

from .logging_config import create_execution_logger
from .models import FeedSnapshot, RoadmapItem

DEFAULT_TTL = timedelta(minutes=5)


def utc_now() -> datetime:
    return datetime.now(UTC)


class FeedCache:
    """Holds at most one feed snapshot and refetches it once it expires.

    A failed refetch propagates to the caller and leaves the previous
    snapshot in place; the slot is only overwritten on success. There is
    no locking, so concurrent misses each fetch and the last one wins.
    """

    def __init__(
        self,
        fetcher: Callable[[], Iterable[RoadmapItem]],
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = utc_now,
        execution_id: str | None = None,
    ):
        """Initialize the cache.

        Args:
            fetcher: Callable returning the current feed items
            ttl: How long a snapshot stays fresh
            clock: Source of the current time
            execution_id: Execution ID for logging context
        """
        self.fetcher = fetcher
        self.ttl = ttl
        self.clock = clock
        self.logger = create_execution_logger("feed_cache", execution_id)
        self._snapshot: FeedSnapshot | None = None

    @property
    def snapshot(self) -> FeedSnapshot | None:
        """The cached snapshot, fresh or not, without fetching."""
        return self._snapshot

    def is_fresh(self) -> bool:
        if self._snapshot is None:
            return False
        return self.clock() - self._snapshot.captured_at < self.ttl

    def get_current_snapshot(self) -> FeedSnapshot:
        """Return the cached snapshot, fetching a new one if stale or absent.

        Raises:
            FetchError: If the feed could not be downloaded
            ParseError: If the feed could not be parsed
        """
        if self.is_fresh():
            self.logger.debug(
                "Serving cached snapshot",
                captured_at=self._snapshot.captured_at.isoformat(),
                items_count=len(self._snapshot),
            )
            return self._snapshot

        self.logger.info("Cache miss, fetching roadmap feed")
        items = tuple(self.fetcher())
        snapshot = FeedSnapshot(items=items, captured_at=self.clock())
        self._snapshot = snapshot

        self.logger.info(
            "Cached new snapshot",
            captured_at=snapshot.captured_at.isoformat(),
            items_count=len(snapshot),
        )
        return snapshot

    def invalidate(self) -> None:
        """Drop the cached snapshot so the next read fetches."""
        self._snapshot = None
