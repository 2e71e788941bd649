"""Greeting HTTP backend with Prometheus request metrics."""

__version__ = "0.1.0"
