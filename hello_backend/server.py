"""
Process entry point.

Binds the listening socket up front so a port clash surfaces as a
``ListenerBindError`` before uvicorn starts, then serves the app on it.
"""

from __future__ import annotations

import socket
import sys

import structlog
import uvicorn
from fastapi import FastAPI

from hello_backend.config import Settings, get_settings
from hello_backend.main import create_app
from hello_backend.observability.logging import configure_logging


class ListenerBindError(RuntimeError):
    """The listening socket could not be bound."""

    def __init__(self, host: str, port: int, error: OSError) -> None:
        super().__init__(f"Could not bind {host}:{port}: {error.strerror or error}")
        self.host = host
        self.port = port
        self.error = error


def bind_socket(host: str, port: int, backlog: int = 2048) -> socket.socket:
    """Bind and listen on ``host:port``; port 0 picks an ephemeral port."""

    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family=family, type=socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
        sock.listen(backlog)
    except OSError as exc:
        sock.close()
        raise ListenerBindError(host, port, exc) from exc
    sock.set_inheritable(True)
    return sock


def build_server(app: FastAPI, settings: Settings) -> uvicorn.Server:
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,
        access_log=False,
        log_level=settings.log_level_number,
    )
    return uvicorn.Server(config)


def serve(settings: Settings | None = None) -> None:
    """Bind, announce the port and serve until the process is told to stop."""

    settings = settings or get_settings()
    configure_logging(settings)
    logger = structlog.get_logger("server")

    app = create_app(settings)
    sock = bind_socket(settings.host, settings.port)
    port = sock.getsockname()[1]
    logger.info(f"Server running on port {port}", host=settings.host, port=port)

    server = build_server(app, settings)
    try:
        server.run(sockets=[sock])
    finally:
        sock.close()


def main() -> None:
    try:
        serve()
    except ListenerBindError as exc:
        structlog.get_logger("server").error("bind_failed", host=exc.host, port=exc.port, error=str(exc))
        sys.exit(1)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
