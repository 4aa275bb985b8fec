"""Roadmap feed download and parsing."""

import feedparser
import requests
from bs4 import BeautifulSoup

from .config import DEFAULT_FEED_URL
from .errors import FetchError, ParseError
from .logging_config import create_execution_logger
from .models import DEFAULT_CATEGORY, RoadmapItem


class FeedProcessor:
    """Downloads the roadmap RSS feed and normalizes its entries."""

    def __init__(
        self,
        feed_url: str = DEFAULT_FEED_URL,
        timeout: int = 30,
        user_agent: str = "M365-Roadmap-MCP/1.0",
        execution_id: str | None = None,
    ):
        """Initialize FeedProcessor with configuration.

        Args:
            feed_url: URL of the roadmap RSS feed
            timeout: HTTP request timeout in seconds
            user_agent: User-Agent header sent upstream
            execution_id: Execution ID for logging context
        """
        self.feed_url = feed_url
        self.timeout = timeout
        self.logger = create_execution_logger("feed_processor", execution_id)
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": user_agent})

        self.logger.info(
            "FeedProcessor initialized", feed_url=feed_url, timeout=timeout
        )

    def fetch_items(self) -> list[RoadmapItem]:
        """Download and parse the feed.

        Raises:
            FetchError: If the download fails or upstream answers non-2xx
            ParseError: If the payload is not a feed
        """
        content = self.download()
        items = self.parse(content)
        self.logger.log_feed_processing(self.feed_url, len(items))
        return items

    def download(self) -> bytes:
        """Fetch the raw feed body."""
        self.logger.info("Downloading feed content", feed_url=self.feed_url)
        try:
            response = self.session.get(self.feed_url, timeout=self.timeout)
        except requests.RequestException as e:
            self.logger.error(
                f"Failed to download feed {self.feed_url}: {e}",
                feed_url=self.feed_url,
                error=str(e),
            )
            raise FetchError(f"Failed to fetch RSS data: {e}") from e

        if not 200 <= response.status_code < 300:
            self.logger.error(
                f"Feed request returned HTTP {response.status_code}",
                feed_url=self.feed_url,
                status_code=response.status_code,
            )
            raise FetchError(
                f"Failed to fetch RSS data: HTTP error! status: {response.status_code}",
                status_code=response.status_code,
            )

        self.logger.info(
            "Feed downloaded successfully",
            feed_url=self.feed_url,
            status_code=response.status_code,
            content_length=len(response.content),
        )
        return response.content

    def parse(self, content: bytes) -> list[RoadmapItem]:
        """Parse a feed payload into roadmap items, keeping feed order."""
        feed = feedparser.parse(content)

        if not feed.entries and (feed.bozo or not feed.version):
            reason = getattr(feed, "bozo_exception", "unrecognized feed format")
            self.logger.error(
                f"Feed payload could not be parsed: {reason}",
                feed_url=self.feed_url,
            )
            raise ParseError(f"Failed to parse RSS data: {reason}")

        if feed.bozo:
            self.logger.warning(
                f"Feed parsing warning for {self.feed_url}: {feed.bozo_exception}",
                feed_url=self.feed_url,
                bozo_exception=str(feed.bozo_exception),
            )

        items = []
        for entry in feed.entries:
            try:
                items.append(self.normalize_item(entry))
            except Exception as e:
                self.logger.warning(
                    f"Failed to normalize entry from {self.feed_url}: {e}",
                    feed_url=self.feed_url,
                    error=str(e),
                )
                continue

        self.logger.info(
            "Successfully parsed feed",
            feed_url=self.feed_url,
            items_count=len(items),
            total_entries=len(feed.entries),
        )
        return items

    def normalize_item(self, entry) -> RoadmapItem:
        """Normalize a feedparser entry into a RoadmapItem.

        Missing categories default to "General"; a missing description
        falls back to the short-form summary, then to an empty string.
        """
        title = getattr(entry, "title", None) or ""
        link = getattr(entry, "link", None) or ""
        published = getattr(entry, "published", None) or None

        summary = ""
        content = getattr(entry, "content", None)
        if isinstance(content, list) and content:
            summary = self.clean_html_content(content[0].get("value", ""))
        if not summary:
            summary = self.clean_html_content(getattr(entry, "summary", None))

        description = self.clean_html_content(getattr(entry, "description", None))

        return RoadmapItem(
            title=title,
            link=link,
            publication_date=published,
            category=self.extract_category(entry),
            description=description or summary,
            summary=summary,
        )

    def extract_category(self, entry) -> str:
        """Join every category term of an entry, or fall back to the default."""
        terms = []
        for tag in getattr(entry, "tags", None) or []:
            term = (tag.get("term") or "").strip()
            if term and term not in terms:
                terms.append(term)

        if not terms:
            category = (getattr(entry, "category", None) or "").strip()
            if category:
                terms.append(category)

        return ", ".join(terms) if terms else DEFAULT_CATEGORY

    def clean_html_content(self, content: str | None) -> str:
        """Remove HTML tags from content and normalize whitespace."""
        if not content:
            return ""

        if "<" not in content and ">" not in content:
            return " ".join(content.split())

        soup = BeautifulSoup(content, "html.parser")

        for script in soup(["script", "style"]):
            script.decompose()

        text = soup.get_text(separator=" ")
        return " ".join(text.split())
