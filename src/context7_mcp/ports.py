"""Listening-socket binder with fallback to the next port on conflict."""

from __future__ import annotations

import errno
import logging
import socket

log = logging.getLogger("context7-mcp")

DEFAULT_HOST = "0.0.0.0"
DEFAULT_MAX_ATTEMPTS = 10
_MAX_PORT = 65535
_BACKLOG = 2048


class PortBindError(RuntimeError):
    """No listening socket could be opened."""


def bind_socket(
    port: int,
    host: str = DEFAULT_HOST,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> socket.socket:
    """Bind and listen on *port*, or on the next free port within *max_attempts*.

    Only ``EADDRINUSE`` moves on to the next port; any other bind fault is
    raised immediately as :class:`PortBindError`.
    """
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    end = min(port + max_attempts, _MAX_PORT + 1)
    for candidate in range(port, end):
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((host, candidate))
            sock.listen(_BACKLOG)
        except OverflowError as exc:
            sock.close()
            raise PortBindError(f"Failed to bind {host}:{candidate}: {exc}") from exc
        except OSError as exc:
            sock.close()
            if exc.errno != errno.EADDRINUSE:
                raise PortBindError(f"Failed to bind {host}:{candidate}: {exc}") from exc
            if candidate + 1 < end:
                log.warning("Port %d is in use, trying port %d...", candidate, candidate + 1)
            continue
        bound = sock.getsockname()[1]
        log.info("Bound to %s:%d", host, bound)
        return sock

    raise PortBindError(f"No free port in range {port}-{end - 1} ({end - port} attempts)")
