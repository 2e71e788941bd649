from __future__ import annotations

from fastapi import APIRouter, Request, Response

from hello_backend.observability.metrics import RequestMetrics


def build_metrics_router(path: str) -> APIRouter:
    """Router exposing the Prometheus scrape endpoint at ``path``."""

    router = APIRouter(tags=["metrics"])

    @router.get(path, include_in_schema=False)
    async def metrics(request: Request) -> Response:
        request_metrics: RequestMetrics = request.app.state.metrics
        body, content_type = request_metrics.render()
        return Response(content=body, media_type=content_type)

    return router
