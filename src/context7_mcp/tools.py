"""MCP tool implementations: resolve-library-id and get-library-docs.

Both read the caller identity from the request context and pass it through
to the Context7 API. "Nothing found" is a normal text answer; only invalid
arguments and backend infrastructure faults fail the call.
"""

from __future__ import annotations

import logging
from typing import Annotated

from mcp.server.fastmcp.exceptions import ToolError
from pydantic import Field

from context7_mcp import context7_client
from context7_mcp.context import get_request_context
from context7_mcp.server import mcp
from context7_mcp.validation import (
    DEFAULT_TOKENS,
    Invalid,
    validate_docs_request,
    validate_library_name,
)

log = logging.getLogger("context7-mcp")

NO_SEARCH_DATA_MESSAGE = "Failed to retrieve library documentation data from Context7"

DOCS_NOT_FOUND_MESSAGE = (
    "Documentation not found or not finalized for this library. This might have "
    "happened because you used an invalid Context7-compatible library ID. To get a "
    "valid Context7-compatible library ID, use the 'resolve-library-id' with the "
    "package name you wish to retrieve documentation for."
)

_SEARCH_RESULTS_HEADER = """Available Libraries (top matches):

Each result includes:
- Library ID: Context7-compatible identifier (format: /org/project)
- Name: Library or package name
- Description: Short summary
- Code Snippets: Number of available code examples
- Trust Score: Authority indicator
- Versions: List of versions if available. Use one of those versions if the user provides a version in their query. The format of the version is /org/project/version.

For best results, select libraries based on name match, trust score, snippet coverage, and relevance to your use case.

----------

"""

# ---------------------------------------------------------------------------
# Tool 1: resolve-library-id
# ---------------------------------------------------------------------------

_RESOLVE_DESCRIPTION = """Resolves a package/product name to a Context7-compatible library ID and returns a list of matching libraries.

You MUST call this function before 'get-library-docs' to obtain a valid Context7-compatible library ID UNLESS the user explicitly provides a library ID in the format '/org/project' or '/org/project/version' in their query.

Selection Process:
1. Analyze the query to understand what library/package the user is looking for
2. Return the most relevant match based on:
- Name similarity to the query (exact matches prioritized)
- Description relevance to the query's intent
- Documentation coverage (prioritize libraries with higher Code Snippet counts)
- Trust score (consider libraries with scores of 7-10 more authoritative)

Response Format:
- Return the selected library ID in a clearly marked section
- Provide a brief explanation for why this library was chosen
- If multiple good matches exist, acknowledge this but proceed with the most relevant one
- If no good matches exist, clearly state this and suggest query refinements

For ambiguous queries, request clarification before proceeding with a best-guess match."""

_LIBRARY_NAME_HELP = "Library name to search for and retrieve a Context7-compatible library ID."


@mcp.tool(
    name="resolve-library-id",
    title="Resolve Context7 Library ID",
    description=_RESOLVE_DESCRIPTION,
)
async def resolve_library_id(
    libraryName: Annotated[str, Field(description=_LIBRARY_NAME_HELP)],  # noqa: N803
) -> str:
    """Search Context7 and return matching library IDs."""
    checked = validate_library_name(libraryName)
    if isinstance(checked, Invalid):
        raise ToolError(checked.message)

    ctx = get_request_context()
    response = await context7_client.search_libraries(
        checked.value, client_ip=ctx.client_ip, api_key=ctx.api_key
    )

    if not response.results:
        if response.error:
            log.info("Search for %r returned an error: %s", checked.value, response.error)
        return response.error or NO_SEARCH_DATA_MESSAGE

    return _SEARCH_RESULTS_HEADER + format_search_results(response.results)


def format_search_result(result: context7_client.SearchResult) -> str:
    lines = [
        f"- Title: {result.title}",
        f"- Context7-compatible library ID: {result.id}",
        f"- Description: {result.description}",
    ]
    if result.total_snippets is not None:
        lines.append(f"- Code Snippets: {result.total_snippets}")
    if result.trust_score is not None:
        lines.append(f"- Trust Score: {result.trust_score}")
    if result.versions:
        lines.append(f"- Versions: {', '.join(result.versions)}")
    return "\n".join(lines)


def format_search_results(results: list[context7_client.SearchResult]) -> str:
    """Render matches as blocks separated by a dashed rule."""
    return "\n----------\n".join(format_search_result(r) for r in results)


# ---------------------------------------------------------------------------
# Tool 2: get-library-docs
# ---------------------------------------------------------------------------

_DOCS_DESCRIPTION = (
    "Fetches up-to-date documentation for a library. You must call "
    "'resolve-library-id' first to obtain the exact Context7-compatible library ID "
    "required to use this tool, UNLESS the user explicitly provides a library ID in "
    "the format '/org/project' or '/org/project/version' in their query."
)

_LIBRARY_ID_HELP = (
    "Exact Context7-compatible library ID (e.g., '/mongodb/docs', '/vercel/next.js', "
    "'/supabase/supabase', '/vercel/next.js/v14.3.0-canary.87') retrieved from "
    "'resolve-library-id' or directly from user query in the format '/org/project' "
    "or '/org/project/version'."
)
_TOPIC_HELP = "Topic to focus documentation on (e.g., 'hooks', 'routing')."
_TOKENS_HELP = (
    f"Maximum number of tokens of documentation to retrieve (default: {DEFAULT_TOKENS}). "
    "Higher values provide more context but consume more tokens."
)


@mcp.tool(
    name="get-library-docs",
    title="Get Library Docs",
    description=_DOCS_DESCRIPTION,
)
async def get_library_docs(
    libraryId: Annotated[str, Field(description=_LIBRARY_ID_HELP)],  # noqa: N803
    topic: Annotated[str | None, Field(description=_TOPIC_HELP)] = None,
    tokens: Annotated[int | str | None, Field(description=_TOKENS_HELP)] = None,
) -> str:
    """Fetch documentation text for a resolved library."""
    checked = validate_docs_request(libraryId, topic=topic, tokens=tokens)
    if isinstance(checked, Invalid):
        raise ToolError(checked.message)
    request = checked.value

    ctx = get_request_context()
    text = await context7_client.fetch_library_documentation(
        request.library_id,
        tokens=request.tokens,
        topic=request.topic,
        client_ip=ctx.client_ip,
        api_key=ctx.api_key,
    )

    if not text:
        return DOCS_NOT_FOUND_MESSAGE
    return text

