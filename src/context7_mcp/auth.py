"""Caller identity: API key and client IP extraction.

HTTP header names are case-insensitive, so every lookup goes through a single
lower-cased view of the inbound headers.
"""

from __future__ import annotations

import ipaddress
import os
from collections.abc import Iterable, Mapping

API_KEY_ENV = "CONTEXT7_API_KEY"

_BEARER_PREFIX = "Bearer "
_IPV4_MAPPED_PREFIX = "::ffff:"

# Checked in order after the Authorization header.
_API_KEY_HEADERS = (
    "context7-api-key",
    "x-api-key",
    "context7_api_key",
    "x_api_key",
)

_PRIVATE_NETWORKS = (
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("172.16.0.0/12"),
)


def _lowered(headers: Mapping[str, str] | Iterable[tuple[str, str]]) -> dict[str, str]:
    items = headers.items() if isinstance(headers, Mapping) else headers
    view: dict[str, str] = {}
    for name, value in items:
        view.setdefault(name.lower(), value)  # first occurrence wins
    return view


# ---------------------------------------------------------------------------
# API key
# ---------------------------------------------------------------------------


def resolve_stdio_api_key(
    cli_value: str | None,
    environ: Mapping[str, str] | None = None,
) -> str | None:
    """Return the stdio-mode API key: ``--api-key`` flag, else the environment."""
    if cli_value:
        return cli_value
    env = os.environ if environ is None else environ
    return env.get(API_KEY_ENV) or None


def extract_bearer_token(value: str | None) -> str | None:
    """Strip a ``Bearer `` prefix; any other scheme is returned as-is."""
    if not value:
        return None
    if value.startswith(_BEARER_PREFIX):
        return value[len(_BEARER_PREFIX) :].strip() or None
    return value


def extract_api_key(headers: Mapping[str, str] | Iterable[tuple[str, str]]) -> str | None:
    """Return the first non-empty credential found in *headers*.

    Precedence: ``Authorization`` (bearer token), ``Context7-API-Key``,
    ``X-API-Key``, then the underscore spellings of the latter two.
    """
    view = _lowered(headers)
    token = extract_bearer_token(view.get("authorization"))
    if token:
        return token
    for name in _API_KEY_HEADERS:
        value = view.get(name)
        if value:
            return value
    return None


# ---------------------------------------------------------------------------
# Client IP
# ---------------------------------------------------------------------------


def _strip_mapped(ip: str) -> str:
    if ip.startswith(_IPV4_MAPPED_PREFIX):
        return ip[len(_IPV4_MAPPED_PREFIX) :]
    return ip


def is_private_ip(ip: str) -> bool:
    """True for addresses in 10/8, 192.168/16 and 172.16/12.

    Anything that does not parse as an address is treated as public.
    """
    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return any(addr in net for net in _PRIVATE_NETWORKS)


def get_client_ip(
    headers: Mapping[str, str] | Iterable[tuple[str, str]],
    peer_host: str | None = None,
) -> str | None:
    """Best-effort public address of the caller.

    Prefers the first public entry of ``X-Forwarded-For``, then its first
    entry, then the raw peer address.
    """
    forwarded = _lowered(headers).get("x-forwarded-for")
    if forwarded:
        candidates = [_strip_mapped(part.strip()) for part in forwarded.split(",")]
        for ip in candidates:
            if ip and not is_private_ip(ip):
                return ip
        return candidates[0] or None
    if peer_host:
        return _strip_mapped(peer_host)
    return None
