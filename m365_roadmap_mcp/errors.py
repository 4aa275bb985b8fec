"""Error types surfaced by roadmap tool calls."""


class RoadmapError(Exception):
    """Base class for failures reported back to the MCP client."""


class FetchError(RoadmapError):
    """The upstream feed could not be downloaded."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(RoadmapError):
    """The upstream payload is not a readable RSS/Atom feed."""


class ValidationError(RoadmapError):
    """A tool call carried missing or malformed arguments."""
