"""MCP server for querying the Microsoft 365 public roadmap."""

__version__ = "1.0.0"
