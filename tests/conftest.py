from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from hello_backend.config import get_settings
from hello_backend.main import create_app


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    for name in (
        "HOST",
        "PORT",
        "LOG_LEVEL",
        "METRICS_PATH",
        "METRICS_INCLUDE_METHOD",
        "METRICS_INCLUDE_PATH",
        "METRICS_INCLUDE_STATUS_CODE",
        "METRICS_PREFIX",
        "METRICS_BUCKETS",
        "METRICS_COLLECT_DEFAULT",
    ):
        monkeypatch.delenv(name, raising=False)
    # Settings read .env relative to the cwd; keep a developer's local file out of the run.
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()

    yield

    get_settings.cache_clear()


@pytest.fixture
def app() -> FastAPI:
    return create_app(get_settings())


@pytest.fixture
async def api_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
