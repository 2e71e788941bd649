import logging
import threading
import time

import httpx
import pytest
from structlog.testing import capture_logs

from hello_backend import server
from hello_backend.config import Settings
from hello_backend.main import create_app
from hello_backend.server import ListenerBindError, bind_socket, build_server


def test_second_bind_on_same_port_fails() -> None:
    first = bind_socket("127.0.0.1", 0)
    try:
        port = first.getsockname()[1]
        with pytest.raises(ListenerBindError) as excinfo:
            bind_socket("127.0.0.1", port)
        assert excinfo.value.port == port
        assert isinstance(excinfo.value.error, OSError)
    finally:
        first.close()


def test_server_starts_and_serves_over_tcp() -> None:
    settings = Settings()
    app = create_app(settings)
    sock = bind_socket("127.0.0.1", 0)
    port = sock.getsockname()[1]
    uv_server = build_server(app, settings)

    thread = threading.Thread(target=uv_server.run, kwargs={"sockets": [sock]}, daemon=True)
    thread.start()
    try:
        deadline = time.monotonic() + 10.0
        while not uv_server.started:
            assert time.monotonic() < deadline, "server did not start in time"
            time.sleep(0.05)

        resp = httpx.get(f"http://127.0.0.1:{port}/", timeout=5.0)
        assert resp.status_code == 200
        assert resp.text == "Hello from backend!"

        scrape = httpx.get(f"http://127.0.0.1:{port}/metrics", timeout=5.0)
        assert 'http_requests_total{method="GET",path="/",status_code="200"} 1.0' in scrape.text
    finally:
        uv_server.should_exit = True
        thread.join(timeout=10.0)
        sock.close()


class _FakeServer:
    def __init__(self) -> None:
        self.sockets = None

    def run(self, sockets=None) -> None:
        self.sockets = sockets


def test_serve_logs_startup_line(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = _FakeServer()
    monkeypatch.setattr(server, "configure_logging", lambda settings: None)
    monkeypatch.setattr(server, "build_server", lambda app, settings: fake)
    monkeypatch.setenv("HOST", "127.0.0.1")
    monkeypatch.setenv("PORT", "0")

    with capture_logs() as logs:
        server.serve(Settings())

    assert fake.sockets is not None
    startup = [entry for entry in logs if entry["event"].startswith("Server running on port ")]
    assert len(startup) == 1
    assert startup[0]["port"] > 0
    # The socket is closed once the server returns.
    assert fake.sockets[0].fileno() == -1


def test_main_exits_with_status_one_on_bind_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    def _raise() -> None:
        raise ListenerBindError("127.0.0.1", 4000, OSError(98, "Address already in use"))

    monkeypatch.setattr(server, "serve", _raise)

    with capture_logs() as logs:
        with pytest.raises(SystemExit) as excinfo:
            server.main()

    assert excinfo.value.code == 1
    assert logs[0]["event"] == "bind_failed"
    assert logs[0]["port"] == 4000


def test_unknown_log_level_does_not_break_server_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    settings = Settings()

    uv_server = build_server(create_app(settings), settings)

    assert uv_server.config.log_level == logging.INFO


def test_stdlib_only_level_names_are_accepted(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "warn")
    settings = Settings()

    uv_server = build_server(create_app(settings), settings)

    assert uv_server.config.log_level == logging.WARNING
