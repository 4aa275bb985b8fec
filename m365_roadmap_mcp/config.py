"""Configuration management for the M365 roadmap MCP server."""

import os
from dataclasses import dataclass
from urllib.parse import urlparse

DEFAULT_FEED_URL = "https://www.microsoft.com/releasecommunications/api/v2/m365/rss"


@dataclass
class FeedConfig:
    """Configuration for the upstream roadmap feed."""

    url: str = DEFAULT_FEED_URL
    timeout: int = 30
    user_agent: str = "M365-Roadmap-MCP/1.0 (Microsoft 365 roadmap MCP server)"
    cache_ttl_seconds: int = 300


@dataclass
class ServerConfig:
    """Identity advertised to MCP clients."""

    name: str = "microsoft-roadmap-server"
    version: str = "1.0.0"


class Config:
    """Main configuration manager."""

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.feed_url = os.getenv("ROADMAP_FEED_URL", DEFAULT_FEED_URL).strip()
        self.http_timeout = os.getenv("ROADMAP_HTTP_TIMEOUT", "30")
        self.log_level = os.getenv("LOG_LEVEL", "INFO")

    def get_feed_config(self) -> FeedConfig:
        """Get feed configuration.

        Raises:
            ValueError: If the feed URL is not HTTPS or the timeout is invalid
        """
        if urlparse(self.feed_url).scheme != "https":
            raise ValueError(f"Feed URL must use HTTPS protocol: {self.feed_url}")

        try:
            timeout = int(self.http_timeout)
        except ValueError:
            raise ValueError(
                f"ROADMAP_HTTP_TIMEOUT must be an integer: {self.http_timeout!r}"
            )
        if timeout <= 0:
            raise ValueError(f"ROADMAP_HTTP_TIMEOUT must be positive: {timeout}")

        return FeedConfig(url=self.feed_url, timeout=timeout)

    def get_server_config(self) -> ServerConfig:
        """Get server configuration."""
        return ServerConfig()
