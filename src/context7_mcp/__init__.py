"""context7-mcp: MCP server exposing Context7 documentation lookup tools."""

from context7_mcp.cli import main
from context7_mcp.server import mcp

__all__ = ["main", "mcp"]
