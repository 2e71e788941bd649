from __future__ import annotations

import uuid
from time import perf_counter
from typing import Any, Callable

import structlog
from starlette.datastructures import MutableHeaders

from hello_backend.observability.metrics import RequestMetrics, normalize_path


def _route_label(scope: dict[str, Any]) -> str:
    # FastAPI's router leaves the matched route in the scope; fall back to the raw path for 404s.
    route = scope.get("route")
    template = getattr(route, "path", None)
    if isinstance(template, str) and template:
        return template
    return normalize_path(scope.get("path") or "/")


class PrometheusMiddleware:
    """Times every HTTP request, records it in ``RequestMetrics`` and emits an access log.

    Also tags the response with ``X-Request-ID`` and binds it into the structlog context.
    """

    def __init__(self, app: Callable[..., Any], *, metrics: RequestMetrics, metrics_path: str = "/metrics") -> None:
        self.app = app
        self.metrics = metrics
        self.metrics_path = metrics_path

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        request_id = str(uuid.uuid4())
        path = scope.get("path")
        method = scope.get("method", "GET")

        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=path,
            method=method,
        )

        start = perf_counter()
        status_code: int = 500

        async def send_wrapper(message: dict[str, Any]) -> None:
            nonlocal status_code

            if message.get("type") == "http.response.start":
                status_code = int(message.get("status", 500))
                headers = MutableHeaders(scope=message)
                headers["X-Request-ID"] = request_id

            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            elapsed_s = perf_counter() - start

            # The scrape route is served but never observed.
            if path != self.metrics_path:
                self.metrics.observe_http_request(
                    method=method,
                    path=_route_label(scope),
                    status_code=status_code,
                    elapsed_s=elapsed_s,
                )

            structlog.get_logger("access").info(
                "http_request",
                status_code=status_code,
                elapsed_ms=round(elapsed_s * 1000.0, 2),
            )

            structlog.contextvars.clear_contextvars()
