"""MCP Server definition — registers all tools via FastMCP."""

from mcp.server.fastmcp import FastMCP

mcp = FastMCP(
    name="Context7",
    instructions=(
        "Use this server to retrieve up-to-date documentation and code examples "
        "for any library."
    ),
)

# Import tools module so @mcp.tool() decorators execute at import time.
import context7_mcp.tools as _tools  # noqa: F401, E402
