"""Async Context7 REST API client using httpx.

Features:
- Caller identity (API key, encrypted client IP) sent as request headers
- Automatic retry with exponential backoff for transient errors
- Configurable base URL and timeout via CONTEXT7_API_BASE_URL / CONTEXT7_TIMEOUT

HTTP error statuses are "no data" outcomes and come back as explanatory
messages. Transport failures and malformed payloads propagate.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field

import httpx

from context7_mcp.encryption import encrypt_client_ip

_DEFAULT_API_BASE_URL = "https://context7.com/api"
_DEFAULT_TYPE = "txt"
_MAX_RETRIES = 3
_BACKOFF_BASE = 1.0  # seconds: 1, 2, 4

_NO_CONTENT_BODIES = {"No content available", "No context data available"}

log = logging.getLogger("context7-mcp")

_TRANSIENT_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout, httpx.ReadTimeout)


class MalformedResponseError(ValueError):
    """The Context7 API answered 2xx with a payload we cannot interpret."""


@dataclass(frozen=True, slots=True)
class SearchResult:
    """One library match returned by the search endpoint."""

    id: str
    title: str
    description: str = ""
    total_snippets: int | None = None
    trust_score: float | None = None
    versions: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SearchResponse:
    results: list[SearchResult] = field(default_factory=list)
    error: str | None = None


def _base_url() -> str:
    return os.environ.get("CONTEXT7_API_BASE_URL", _DEFAULT_API_BASE_URL).rstrip("/")


def _timeout() -> float:
    return float(os.environ.get("CONTEXT7_TIMEOUT", "30"))


def generate_headers(client_ip: str | None = None, api_key: str | None = None) -> dict[str, str]:
    """Build per-call headers carrying the caller identity."""
    headers: dict[str, str] = {"X-Context7-Source": "mcp-server"}
    if client_ip:
        headers["mcp-client-ip"] = encrypt_client_ip(client_ip)
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    return headers


def _make_client() -> httpx.AsyncClient:
    """Create a short-lived AsyncClient (caller manages lifecycle)."""
    return httpx.AsyncClient(base_url=_base_url(), timeout=_timeout())


async def _request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    **kwargs: object,
) -> httpx.Response:
    """Execute an HTTP request with automatic retry on transient errors.

    Retries up to _MAX_RETRIES times with exponential backoff (1s, 2s, 4s).
    """
    last_exc: Exception | None = None
    for attempt in range(_MAX_RETRIES):
        try:
            return await client.request(method, url, **kwargs)
        except _TRANSIENT_ERRORS as exc:
            last_exc = exc
            if attempt < _MAX_RETRIES - 1:
                wait = _BACKOFF_BASE * (2**attempt)
                log.warning(
                    "Retry %d/%d for %s %s: %s (wait %.1fs)",
                    attempt + 1,
                    _MAX_RETRIES,
                    method,
                    url,
                    type(exc).__name__,
                    wait,
                )
                await asyncio.sleep(wait)
    raise last_exc  # type: ignore[misc]


def _parse_result(item: object) -> SearchResult:
    if not isinstance(item, dict) or "id" not in item:
        raise MalformedResponseError(f"Unexpected search result entry: {item!r}")
    snippets = item.get("totalSnippets")
    trust = item.get("trustScore")
    return SearchResult(
        id=item["id"],
        title=item.get("title") or item["id"],
        description=item.get("description") or "",
        total_snippets=None if snippets in (None, -1) else snippets,
        trust_score=None if trust in (None, -1) else trust,
        versions=tuple(item.get("versions") or ()),
    )


async def search_libraries(
    query: str,
    client_ip: str | None = None,
    api_key: str | None = None,
) -> SearchResponse:
    """Search Context7 for libraries matching *query*."""
    async with _make_client() as client:
        resp = await _request_with_retry(
            client,
            "GET",
            "/v1/search",
            params={"query": query},
            headers=generate_headers(client_ip, api_key),
        )

    if resp.status_code == 429:
        log.error("Rate limited while searching libraries for %r", query)
        return SearchResponse(error="Rate limited due to too many requests. Please try again later.")
    if resp.status_code == 401:
        return SearchResponse(error="Unauthorized. Please check your API key.")
    if resp.is_error:
        log.error("Library search for %r failed with status %d", query, resp.status_code)
        return SearchResponse(
            error=(
                "Failed to search libraries. Please try again later. "
                f"Error code: {resp.status_code}"
            )
        )

    try:
        payload = resp.json()
    except ValueError as exc:
        raise MalformedResponseError("Search response is not valid JSON") from exc
    if not isinstance(payload, dict):
        raise MalformedResponseError(f"Unexpected search response: {payload!r}")

    results = [_parse_result(item) for item in payload.get("results") or []]
    return SearchResponse(results=results, error=payload.get("error"))


async def fetch_library_documentation(
    library_id: str,
    tokens: int | None = None,
    topic: str | None = None,
    client_ip: str | None = None,
    api_key: str | None = None,
) -> str | None:
    """Fetch documentation text for a Context7-compatible library ID.

    Returns None when the library does not exist or has no finalized docs.
    """
    params: dict[str, str] = {}
    if tokens:
        params["tokens"] = str(tokens)
    if topic:
        params["topic"] = topic
    params["type"] = _DEFAULT_TYPE

    async with _make_client() as client:
        resp = await _request_with_retry(
            client,
            "GET",
            f"/v1/{library_id.lstrip('/')}",
            params=params,
            headers=generate_headers(client_ip, api_key),
        )

    if resp.status_code == 404:
        log.info("No documentation for %s", library_id)
        return None
    if resp.status_code == 429:
        log.error("Rate limited while fetching docs for %s", library_id)
        return "Rate limited due to too many requests. Please try again later."
    if resp.status_code == 401:
        return "Unauthorized. Please check your API key."
    if resp.is_error:
        log.error("Docs fetch for %s failed with status %d", library_id, resp.status_code)
        return (
            "Failed to fetch documentation. Please try again later. "
            f"Error code: {resp.status_code}"
        )

    text = resp.text
    if not text or text in _NO_CONTENT_BODIES:
        return None
    return text
