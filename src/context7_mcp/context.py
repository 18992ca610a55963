"""Per-request context (client IP + API key) carried through async call graphs.

Backed by a ``ContextVar``: asyncio copies the current context into every task
it creates, so a value set by the transport before dispatch is visible to the
tool handler and everything it awaits, and never to a concurrent request.
"""

from __future__ import annotations

import contextlib
from collections.abc import Awaitable, Callable, Iterator
from contextvars import ContextVar
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Identity of the caller behind the current tool invocation."""

    client_ip: str | None = None
    api_key: str | None = None


_EMPTY = RequestContext()

_current: ContextVar[RequestContext] = ContextVar("context7_request_context", default=_EMPTY)


def get_request_context() -> RequestContext:
    """Return the scoped context, or an empty one outside any scope."""
    return _current.get()


@contextlib.contextmanager
def request_context(ctx: RequestContext) -> Iterator[RequestContext]:
    """Scope *ctx* for the enclosed block (and every task spawned from it)."""
    token = _current.set(ctx)
    try:
        yield ctx
    finally:
        _current.reset(token)


async def run_with_context(
    ctx: RequestContext,
    func: Callable[..., Awaitable[T]],
    *args: object,
) -> T:
    """Await ``func(*args)`` with *ctx* as the current request context."""
    with request_context(ctx):
        return await func(*args)
