"""Transport adapters binding the tool registry to stdio or streamable HTTP.

stdio: one implicit caller, one request context for the process lifetime.

HTTP: Starlette app served by uvicorn. Every exchange on ``/mcp`` gets its own
request context and its own stateless MCP transport (no session id is
issued), torn down when the exchange ends.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator

import uvicorn
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.applications import Starlette
from starlette.datastructures import MutableHeaders
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from context7_mcp.auth import extract_api_key, get_client_ip
from context7_mcp.context import RequestContext, request_context, run_with_context
from context7_mcp.ports import DEFAULT_HOST, DEFAULT_MAX_ATTEMPTS, bind_socket
from context7_mcp.server import mcp

log = logging.getLogger("context7-mcp")

MCP_PATH = "/mcp"
PING_PATH = "/ping"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS,DELETE",
    "Access-Control-Allow-Headers": (
        "Content-Type, MCP-Session-Id, MCP-Protocol-Version, X-Context7-API-Key, "
        "Context7-API-Key, X-API-Key, Authorization"
    ),
    "Access-Control-Expose-Headers": "MCP-Session-Id",
}

INTERNAL_ERROR_BODY = {
    "jsonrpc": "2.0",
    "error": {"code": -32603, "message": "Internal server error"},
    "id": None,
}

NOT_FOUND_BODY = {
    "error": "not_found",
    "message": "Endpoint not found. Use /mcp for MCP protocol communication.",
}


# ---------------------------------------------------------------------------
# stdio
# ---------------------------------------------------------------------------


async def serve_stdio(api_key: str | None) -> None:
    """Serve the tools over stdin/stdout until the client disconnects."""
    log.info("Context7 Documentation MCP Server running on stdio")
    await run_with_context(RequestContext(api_key=api_key), mcp.run_stdio_async)


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


class CORSHeadersMiddleware:
    """Permissive CORS on every response; preflights answered directly.

    Pure ASGI so streamed responses pass through untouched.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if scope["method"] == "OPTIONS":
            await Response(status_code=200, headers=CORS_HEADERS)(scope, receive, send)
            return

        async def send_with_cors(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in CORS_HEADERS.items():
                    headers[name] = value
            await send(message)

        await self.app(scope, receive, send_with_cors)


class MCPEndpoint:
    """ASGI handler for the MCP path.

    Resolves the caller, scopes its :class:`RequestContext` and hands the
    exchange to the stateless session manager. Anything that escapes becomes
    a JSON-RPC internal-error response, if nothing was sent yet.
    """

    def __init__(self, session_manager: StreamableHTTPSessionManager) -> None:
        self.session_manager = session_manager

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        response_started = False

        async def tracking_send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            request = Request(scope)
            ctx = RequestContext(
                client_ip=get_client_ip(
                    request.headers, request.client.host if request.client else None
                ),
                api_key=extract_api_key(request.headers),
            )
            with request_context(ctx):
                await self.session_manager.handle_request(scope, receive, tracking_send)
        except Exception:
            log.exception("Error handling MCP request")
            if not response_started:
                response = JSONResponse(INTERNAL_ERROR_BODY, status_code=500)
                await response(scope, receive, send)


async def ping(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", "message": "pong"})


async def not_found(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(NOT_FOUND_BODY, status_code=404)


def create_app() -> Starlette:
    """Build the HTTP application (fresh session manager per app)."""
    session_manager = StreamableHTTPSessionManager(
        app=mcp._mcp_server,
        event_store=None,
        json_response=True,
        stateless=True,
    )

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        async with session_manager.run():
            yield

    app = Starlette(
        routes=[
            Route(MCP_PATH, endpoint=MCPEndpoint(session_manager)),
            Route(PING_PATH, endpoint=ping, methods=["GET"]),
        ],
        exception_handlers={404: not_found, 405: not_found},
        lifespan=lifespan,
    )
    app.add_middleware(CORSHeadersMiddleware)
    return app


async def serve_http(
    port: int,
    host: str = DEFAULT_HOST,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> None:
    """Bind (with port fallback) and serve until the process is stopped."""
    sock = bind_socket(port, host=host, max_attempts=max_attempts)
    actual_port = sock.getsockname()[1]

    config = uvicorn.Config(create_app(), log_level="info", access_log=False, lifespan="on")
    server = uvicorn.Server(config)
    log.info(
        "Context7 Documentation MCP Server running on HTTP at http://localhost:%d%s",
        actual_port,
        MCP_PATH,
    )
    await server.serve(sockets=[sock])
