"""Unit tests for the roadmap query layer."""

from datetime import UTC, datetime, timedelta
from email.utils import format_datetime
from unittest.mock import Mock

import pytest

from m365_roadmap_mcp.cache import FeedCache
from m365_roadmap_mcp.errors import FetchError, ValidationError
from m365_roadmap_mcp.models import RoadmapItem
from m365_roadmap_mcp.queries import RoadmapQueries, format_item, truncate

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)


def rfc822(days_ago: float) -> str:
    return format_datetime(NOW - timedelta(days=days_ago))


ITEMS = [
    RoadmapItem(
        title="Microsoft Teams: Meeting recap",
        link="https://example.com/roadmap/1",
        publication_date=rfc822(2),
        category="Microsoft Teams",
        description="Recap of meetings",
    ),
    RoadmapItem(
        title="Outlook: Pinned folders",
        link="https://example.com/roadmap/2",
        publication_date=rfc822(40),
        description="Pin your favourite folders",
        summary="Quick access",
    ),
    RoadmapItem(
        title="SharePoint: Site templates",
        link="https://example.com/roadmap/3",
        publication_date="TBD",
        category="SharePoint, Web",
        summary="Custom templates for teams sites",
    ),
    RoadmapItem(
        title="Exchange: Mailbox archiving",
        link="https://example.com/roadmap/4",
        publication_date=None,
        category="Exchange",
        description="Archive",
    ),
]


def make_queries(items=ITEMS, fetcher=None) -> RoadmapQueries:
    fetcher = fetcher or Mock(return_value=items)
    cache = FeedCache(fetcher, clock=lambda: NOW)
    return RoadmapQueries(cache, clock=lambda: NOW)


def titles_in(text: str, items=ITEMS) -> list[str]:
    return [item.title for item in items if f"**{item.title}**" in text]


class TestRenderingUnit:
    """Unit tests for result rendering."""

    def test_format_item_layout(self):
        text = format_item(1, ITEMS[0])

        assert text == (
            "1. **Microsoft Teams: Meeting recap**\n"
            "   Category: Microsoft Teams\n"
            f"   Published: {ITEMS[0].publication_date}\n"
            "   Description: Recap of meetings\n"
            "   Link: https://example.com/roadmap/1\n"
        )

    def test_missing_publication_date_renders_unknown(self):
        assert "Published: Unknown" in format_item(4, ITEMS[3])

    def test_truncate_boundaries(self):
        assert truncate("a" * 200) == "a" * 200
        assert truncate("a" * 201) == "a" * 200 + "..."
        assert truncate("") == ""


class TestRoadmapQueriesUnit:
    """Unit tests for the four roadmap operations."""

    def test_list_items_returns_everything_in_feed_order(self):
        text = make_queries().list_items()

        assert text.startswith("Found 4 Microsoft roadmap items:\n\n")
        positions = [text.index(f"**{item.title}**") for item in ITEMS]
        assert positions == sorted(positions)
        assert "4. **Exchange: Mailbox archiving**" in text

    def test_list_items_applies_limit(self):
        text = make_queries().list_items(limit=2)

        assert text.startswith("Found 2 Microsoft roadmap items:")
        assert titles_in(text) == [ITEMS[0].title, ITEMS[1].title]

    def test_zero_or_negative_limit_returns_no_items(self):
        queries = make_queries()

        for limit in (0, -5):
            text = queries.list_items(limit=limit)
            assert text.startswith("Found 0 Microsoft roadmap items:")
            assert titles_in(text) == []

    def test_list_items_on_empty_feed(self):
        text = make_queries(items=[]).list_items()

        assert text == "No Microsoft roadmap items found in the feed"

    def test_search_is_case_insensitive(self):
        queries = make_queries()

        for query in ("teams", "TEAMS", "TeAmS"):
            text = queries.search(query)
            assert titles_in(text) == [ITEMS[0].title, ITEMS[2].title]
            assert f'matching "{query}"' in text

    def test_search_matches_summary(self):
        text = make_queries().search("quick access")

        assert titles_in(text) == [ITEMS[1].title]

    def test_search_no_results_message(self):
        text = make_queries().search("viva")

        assert text == 'No roadmap items found matching "viva"'

    def test_search_rejects_blank_query(self):
        with pytest.raises(ValidationError):
            make_queries().search("   ")

    def test_search_truncates_long_description(self):
        """A 250 character description is cut to 200 characters plus an ellipsis."""
        description = "d" * 250
        item = RoadmapItem(
            title="New Teams meeting experience",
            link="https://example.com/roadmap/teams",
            publication_date=rfc822(1),
            category="Microsoft Teams",
            description=description,
        )

        text = make_queries(items=[item]).search("teams")

        assert text.startswith('Found 1 roadmap items matching "teams":')
        assert f"   Description: {'d' * 200}...\n" in text
        assert "d" * 201 not in text

    def test_filter_by_category_matches_category_or_title(self):
        queries = make_queries()

        assert titles_in(queries.filter_by_category("sharepoint")) == [ITEMS[2].title]
        assert titles_in(queries.filter_by_category("web")) == [ITEMS[2].title]
        assert titles_in(queries.filter_by_category("outlook")) == [ITEMS[1].title]

    def test_default_category_only_matches_general(self):
        queries = make_queries()

        text = queries.filter_by_category("General")

        assert titles_in(text) == [ITEMS[1].title]
        assert "Category: General" in text
        assert ITEMS[1].title not in queries.filter_by_category("Exchange")

    def test_filter_by_category_no_results_message(self):
        text = make_queries().filter_by_category("Viva")

        assert text == 'No roadmap items found for category "Viva"'

    def test_filter_by_category_rejects_blank_category(self):
        with pytest.raises(ValidationError):
            make_queries().filter_by_category("")

    def test_recent_uses_days_cutoff(self):
        queries = make_queries()

        assert titles_in(queries.recent(days=30)) == [ITEMS[0].title]
        assert titles_in(queries.recent(days=60)) == [ITEMS[0].title, ITEMS[1].title]
        assert "(last 30 days)" in queries.recent(days=30)

    def test_recent_excludes_missing_and_unparseable_dates(self):
        text = make_queries().recent(days=100000)

        assert ITEMS[2].title not in text
        assert ITEMS[3].title not in text

    def test_recent_with_zero_days_is_inclusive_of_now(self):
        items = [
            RoadmapItem(
                title="Published now",
                link="https://example.com/now",
                publication_date=format_datetime(NOW),
            ),
            RoadmapItem(
                title="Published a second ago",
                link="https://example.com/earlier",
                publication_date=format_datetime(NOW - timedelta(seconds=1)),
            ),
        ]

        text = make_queries(items=items).recent(days=0)

        assert titles_in(text, items) == ["Published now"]

    def test_recent_with_zero_days_on_past_feed(self):
        text = make_queries().recent(days=0)

        assert text == "No roadmap items found from the last 0 days"

    def test_negative_days_clamp_to_zero(self):
        items = [
            RoadmapItem(
                title="Published now",
                link="https://example.com/now",
                publication_date=format_datetime(NOW),
            ),
            RoadmapItem(
                title="Published yesterday",
                link="https://example.com/yesterday",
                publication_date=format_datetime(NOW - timedelta(days=1)),
            ),
        ]
        queries = make_queries(items=items)

        text = queries.recent(days=-5)

        assert text == queries.recent(days=0)
        assert text.startswith("Found 1 recent roadmap items (last 0 days):")
        assert titles_in(text, items) == ["Published now"]

    def test_recent_with_days_beyond_calendar_range(self):
        """A window reaching past year 1 includes every dated item."""
        text = make_queries().recent(days=1_000_000)

        assert text.startswith("Found 2 recent roadmap items (last 1000000 days):")
        assert titles_in(text) == [ITEMS[0].title, ITEMS[1].title]

    def test_naive_dates_are_treated_as_utc(self):
        item = RoadmapItem(
            title="Naive",
            link="https://example.com/naive",
            publication_date="2024-06-15 11:00:00",
        )

        text = make_queries(items=[item]).recent(days=0)
        assert text == "No roadmap items found from the last 0 days"
        assert titles_in(make_queries(items=[item]).recent(days=1), [item]) == ["Naive"]

    def test_fetch_failure_propagates(self):
        fetcher = Mock(
            side_effect=FetchError("Failed to fetch RSS data: HTTP error! status: 500")
        )

        with pytest.raises(FetchError):
            make_queries(fetcher=fetcher).list_items()

    def test_queries_share_one_fetch_within_ttl(self):
        fetcher = Mock(return_value=ITEMS)
        queries = make_queries(fetcher=fetcher)

        queries.list_items()
        queries.search("teams")
        queries.filter_by_category("exchange")
        queries.recent()

        fetcher.assert_called_once_with()
