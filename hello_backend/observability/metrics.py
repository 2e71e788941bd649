from __future__ import annotations

import re
from collections.abc import Sequence

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    GCCollector,
    Histogram,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)

from hello_backend.config import DEFAULT_BUCKETS, Settings


_UUID_RE = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")
_HEX_RE = re.compile(r"^[0-9a-fA-F]{7,}$")
_PLACEHOLDER = "#val"


def normalize_path(path: str) -> str:
    """Collapse identifier-like path segments so unmatched URLs keep label cardinality bounded.

    ``/users/42/orders/3f2a9c1e`` becomes ``/users/#val/orders/#val``.
    """

    if not path:
        return "/"

    segments = path.split("/")
    normalized = []
    for segment in segments:
        if segment.isdigit() or _UUID_RE.match(segment) or (_HEX_RE.match(segment) and any(c.isdigit() for c in segment)):
            normalized.append(_PLACEHOLDER)
        else:
            normalized.append(segment)
    return "/".join(normalized)


class RequestMetrics:
    """Prometheus request metrics backed by a registry owned by one application.

    Exposed series:
      - ``<prefix>http_request_duration_seconds`` histogram
      - ``<prefix>http_requests_total`` counter
      - ``up`` gauge, always 1 while the process serves
    Each request series is labelled by the enabled subset of ``method``, ``path``, ``status_code``.
    """

    def __init__(
        self,
        *,
        include_method: bool = True,
        include_path: bool = True,
        include_status_code: bool = True,
        prefix: str = "",
        buckets: Sequence[float] = DEFAULT_BUCKETS,
        collect_default: bool = False,
        registry: CollectorRegistry | None = None,
    ) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self.include_method = include_method
        self.include_path = include_path
        self.include_status_code = include_status_code

        labelnames: list[str] = []
        if include_method:
            labelnames.append("method")
        if include_path:
            labelnames.append("path")
        if include_status_code:
            labelnames.append("status_code")
        self.labelnames = tuple(labelnames)

        self.request_duration = Histogram(
            f"{prefix}http_request_duration_seconds",
            "Duration of HTTP requests in seconds",
            self.labelnames,
            buckets=tuple(buckets),
            registry=self.registry,
        )
        self._requests_total_sample = f"{prefix}http_requests_total"
        self.requests_total = Counter(
            f"{prefix}http_requests",
            "Total number of HTTP requests handled",
            self.labelnames,
            registry=self.registry,
        )
        self.up = Gauge("up", "1 = up, 0 = not up", registry=self.registry)
        self.up.set(1)

        if collect_default:
            ProcessCollector(registry=self.registry)
            PlatformCollector(registry=self.registry)
            GCCollector(registry=self.registry)

    @classmethod
    def from_settings(cls, settings: Settings) -> RequestMetrics:
        return cls(
            include_method=settings.metrics_include_method,
            include_path=settings.metrics_include_path,
            include_status_code=settings.metrics_include_status_code,
            prefix=settings.metrics_prefix,
            buckets=settings.metrics_buckets,
            collect_default=settings.metrics_collect_default,
        )

    def _labels(self, method: str, path: str, status_code: int) -> dict[str, str]:
        labels: dict[str, str] = {}
        if self.include_method:
            labels["method"] = method.upper()
        if self.include_path:
            labels["path"] = path
        if self.include_status_code:
            labels["status_code"] = str(status_code)
        return labels

    def observe_http_request(self, *, method: str, path: str, status_code: int, elapsed_s: float) -> None:
        labels = self._labels(method, path, status_code)
        if labels:
            self.request_duration.labels(**labels).observe(elapsed_s)
            self.requests_total.labels(**labels).inc()
        else:
            self.request_duration.observe(elapsed_s)
            self.requests_total.inc()

    def request_count(self, *, method: str = "GET", path: str = "/", status_code: int = 200) -> float:
        """Current value of the request counter for one label combination (0 when unseen)."""

        labels = self._labels(method, path, status_code)
        value = self.registry.get_sample_value(self._requests_total_sample, labels)
        return value or 0.0

    def render(self) -> tuple[bytes, str]:
        return generate_latest(self.registry), CONTENT_TYPE_LATEST
