"""Command-line entry point: option parsing, validation and transport startup."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from context7_mcp import transports
from context7_mcp.auth import resolve_stdio_api_key
from context7_mcp.ports import PortBindError

log = logging.getLogger("context7-mcp")

TRANSPORTS = ("stdio", "http")
DEFAULT_PORT = 3000


class ConfigError(ValueError):
    """Invalid or conflicting startup options."""


@dataclass(frozen=True, slots=True)
class ServerConfig:
    transport: str = "stdio"
    port: int = DEFAULT_PORT
    api_key: str | None = None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="context7-mcp",
        description="Context7 documentation MCP server",
    )
    parser.add_argument(
        "--transport",
        default="stdio",
        metavar="<stdio|http>",
        help="transport type (default: stdio)",
    )
    parser.add_argument(
        "--port",
        default=None,
        help=f"port for HTTP transport (default: {DEFAULT_PORT})",
    )
    parser.add_argument(
        "--api-key",
        default=None,
        help="API key for authentication (or set CONTEXT7_API_KEY env var)",
    )
    return parser


def parse_config(
    argv: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> ServerConfig:
    """Parse and cross-check CLI options.

    Unknown options are ignored so wrappers can pass extra flags through.
    """
    args, _unknown = build_parser().parse_known_args(argv)

    if args.transport not in TRANSPORTS:
        raise ConfigError(
            f"Invalid --transport value: '{args.transport}'. Must be one of: stdio, http."
        )

    if args.transport == "http" and args.api_key is not None:
        raise ConfigError(
            "The --api-key flag is not allowed when using --transport http. "
            "Use header-based auth at the HTTP layer instead."
        )
    if args.transport == "stdio" and args.port is not None:
        raise ConfigError("The --port flag is not allowed when using --transport stdio.")

    if args.transport == "http":
        port = DEFAULT_PORT
        if args.port is not None:
            try:
                port = int(args.port)
            except ValueError:
                raise ConfigError(f"Invalid --port value: '{args.port}'.") from None
        return ServerConfig(transport="http", port=port)

    return ServerConfig(transport="stdio", api_key=resolve_stdio_api_key(args.api_key, environ))


def _configure_logging() -> None:
    # stdout carries the stdio protocol; logs go to stderr.
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Parse options and run the selected transport until stopped."""
    _configure_logging()

    try:
        config = parse_config(argv)
    except ConfigError as exc:
        print(exc, file=sys.stderr)
        sys.exit(1)

    try:
        if config.transport == "http":
            asyncio.run(transports.serve_http(config.port))
        else:
            asyncio.run(transports.serve_stdio(config.api_key))
    except PortBindError as exc:
        log.error("Failed to start server: %s", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        log.info("Server stopped.")
    except Exception:
        log.exception("Fatal error in main()")
        sys.exit(1)
