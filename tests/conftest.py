"""Shared pytest fixtures for context7-mcp test suite."""

from __future__ import annotations

import httpx
import pytest

from context7_mcp import context7_client


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Keep tests independent of the developer's shell and of retry sleeps."""
    for name in ("CONTEXT7_API_KEY", "CONTEXT7_API_BASE_URL", "CLIENT_IP_ENCRYPTION_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(context7_client, "_BACKOFF_BASE", 0.0)


@pytest.fixture
def mock_api(monkeypatch):
    """Route Context7 API calls to a handler; returns the list of seen requests.

    Usage::

        requests = mock_api(lambda request: httpx.Response(200, json={...}))
    """
    seen: list[httpx.Request] = []

    def install(handler):
        def recording(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        def make_client() -> httpx.AsyncClient:
            return httpx.AsyncClient(
                base_url="https://context7.test/api",
                transport=httpx.MockTransport(recording),
            )

        monkeypatch.setattr(context7_client, "_make_client", make_client)
        return seen

    return install
