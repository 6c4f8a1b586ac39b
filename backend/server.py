"""Uvicorn launcher.

The process that starts the service (desktop shell or container entrypoint)
reads the ``PORT:<n>`` line from stdout to find it.
"""

import logging
import os
import socket
from typing import Optional

import uvicorn

logger = logging.getLogger(__name__)

REQUIRE_AUTH = os.getenv("REQUIRE_AUTH", "").lower() == "true"
HOST = os.getenv("HOST", "")
LOG_LEVEL = os.getenv("LOG_LEVEL", "warning").lower()


def find_free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def resolve_host() -> str:
    """HOST if set; otherwise all interfaces in web mode, loopback on the desktop."""
    if HOST:
        return HOST
    return "0.0.0.0" if REQUIRE_AUTH else "127.0.0.1"


def resolve_port() -> int:
    """PORT from the environment, else any free local port."""
    raw = os.getenv("PORT", "").strip()
    if not raw:
        return find_free_port()
    try:
        port = int(raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer, got {raw!r}") from None
    if not 0 < port < 65536:
        raise ValueError(f"PORT out of range: {port}")
    return port


def start_server(app, port: int, host: Optional[str] = None):
    host = host or resolve_host()
    logger.info(f"Serving clinical calculators on {host}:{port}")
    print(f"PORT:{port}", flush=True)
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=LOG_LEVEL,
    )
