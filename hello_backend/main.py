from __future__ import annotations

import structlog
from fastapi import FastAPI

from hello_backend import __version__
from hello_backend.api.greeting import router as greeting_router
from hello_backend.api.metrics import build_metrics_router
from hello_backend.config import Settings, get_settings
from hello_backend.observability.metrics import RequestMetrics
from hello_backend.observability.middleware import PrometheusMiddleware


def create_app(settings: Settings | None = None, metrics: RequestMetrics | None = None) -> FastAPI:
    """Build the application object with its own metrics registry.

    Nothing is registered globally, so every call yields an independent app.
    """

    settings = settings or get_settings()
    metrics = metrics or RequestMetrics.from_settings(settings)

    app = FastAPI(title="Hello Backend", version=__version__, docs_url=None, redoc_url=None, openapi_url=None)
    app.state.settings = settings
    app.state.metrics = metrics

    app.add_middleware(PrometheusMiddleware, metrics=metrics, metrics_path=settings.metrics_path)
    app.include_router(greeting_router)
    app.include_router(build_metrics_router(settings.metrics_path))

    structlog.get_logger("app").debug(
        "app_created",
        metrics_path=settings.metrics_path,
        metric_labels=list(metrics.labelnames),
    )
    return app
