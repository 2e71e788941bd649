"""Observability helpers: structlog setup, Prometheus request metrics and the
ASGI middleware that ties them to each request.
"""
