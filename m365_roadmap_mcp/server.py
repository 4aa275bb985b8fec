"""MCP server exposing the Microsoft 365 roadmap as four query tools."""

import asyncio
from datetime import UTC, datetime, timedelta
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .cache import FeedCache
from .config import Config
from .errors import ValidationError
from .logging_config import create_execution_logger, setup_structured_logging
from .queries import RoadmapQueries
from .rss import FeedProcessor

TOOLS = [
    Tool(
        name="get_roadmap_items",
        description="Get all Microsoft roadmap items from the RSS feed",
        inputSchema={
            "type": "object",
            "properties": {
                "limit": {
                    "type": "integer",
                    "description": "Maximum number of items to return (default: 50)",
                    "default": 50,
                }
            },
        },
    ),
    Tool(
        name="search_roadmap",
        description="Search Microsoft roadmap items by keyword",
        inputSchema={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search query to find in titles and descriptions",
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum number of results to return (default: 20)",
                    "default": 20,
                },
            },
            "required": ["query"],
        },
    ),
    Tool(
        name="get_roadmap_by_category",
        description="Get Microsoft roadmap items filtered by category",
        inputSchema={
            "type": "object",
            "properties": {
                "category": {
                    "type": "string",
                    "description": 'Category to filter by (e.g., "Microsoft Teams", "SharePoint", "Exchange")',
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum number of results to return (default: 20)",
                    "default": 20,
                },
            },
            "required": ["category"],
        },
    ),
    Tool(
        name="get_recent_roadmap_items",
        description="Get the most recent Microsoft roadmap items",
        inputSchema={
            "type": "object",
            "properties": {
                "days": {
                    "type": "integer",
                    "description": "Number of days back to look for recent items (default: 30)",
                    "default": 30,
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum number of results to return (default: 20)",
                    "default": 20,
                },
            },
        },
    ),
]


def int_argument(arguments: dict[str, Any], name: str, default: int) -> int:
    """Read an optional integer argument, accepting integral floats and strings."""
    value = arguments.get(name)
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValidationError(f"Parameter '{name}' must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ValidationError(f"Parameter '{name}' must be an integer, got {value!r}")


def str_argument(arguments: dict[str, Any], name: str) -> str:
    """Read a required, non-blank string argument."""
    value = arguments.get(name)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Parameter '{name}' is required and cannot be empty")
    return value


def dispatch(queries: RoadmapQueries, name: str, arguments: dict[str, Any]) -> str:
    """Run one tool call against the query layer.

    Raises:
        RoadmapError: On invalid arguments, unknown tools or feed failures
    """
    match name:
        case "get_roadmap_items":
            return queries.list_items(int_argument(arguments, "limit", 50))
        case "search_roadmap":
            return queries.search(
                str_argument(arguments, "query"),
                int_argument(arguments, "limit", 20),
            )
        case "get_roadmap_by_category":
            return queries.filter_by_category(
                str_argument(arguments, "category"),
                int_argument(arguments, "limit", 20),
            )
        case "get_recent_roadmap_items":
            return queries.recent(
                int_argument(arguments, "days", 30),
                int_argument(arguments, "limit", 20),
            )
        case _:
            raise ValidationError(f"Unknown tool: {name}")


def build_queries(config: Config) -> RoadmapQueries:
    """Wire feed processor, cache and query layer from configuration."""
    feed_config = config.get_feed_config()
    processor = FeedProcessor(
        feed_url=feed_config.url,
        timeout=feed_config.timeout,
        user_agent=feed_config.user_agent,
    )
    cache = FeedCache(
        processor.fetch_items,
        ttl=timedelta(seconds=feed_config.cache_ttl_seconds),
    )
    return RoadmapQueries(cache)


def build_server(
    config: Config | None = None, queries: RoadmapQueries | None = None
) -> Server:
    """Create the MCP server and register its tools."""
    config = config or Config()
    queries = queries or build_queries(config)
    server_config = config.get_server_config()

    server = Server(server_config.name, version=server_config.version)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return TOOLS

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
        execution_id = f"call_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
        call_logger = create_execution_logger("server", execution_id)
        call_logger.log_execution_start(tool=name)

        try:
            text = await asyncio.to_thread(dispatch, queries, name, arguments or {})
        except Exception as e:
            call_logger.error(
                f"Tool {name} failed: {e}", tool=name, error_type=type(e).__name__
            )
            call_logger.log_execution_end(success=False, tool=name)
            # The SDK turns the exception into an isError tool result
            raise

        call_logger.log_execution_end(success=True, tool=name)
        return [TextContent(type="text", text=text)]

    return server


async def serve(server: Server) -> None:
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream, write_stream, server.create_initialization_options()
        )


def main() -> None:
    """Console entry point: serve the roadmap tools over stdio."""
    config = Config()
    setup_structured_logging(config.log_level)
    logger = create_execution_logger("server")

    server = build_server(config)
    logger.info("Microsoft Roadmap MCP server running on stdio")
    asyncio.run(serve(server))
