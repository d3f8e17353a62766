"""Prometheus metrics for the HTTP pipeline.

Each application owns one ``MetricsRegistry`` (see ``app.state.metrics``) so
tests and multiple app instances never share counters. The registry carries
prometheus_client's process, platform and GC collectors next to the HTTP series.

Usage::

    metrics = MetricsRegistry(app_name="obs-lab", environment="development")
    metrics.inc_request("GET", "/api/hello", 200)
    body, content_type = metrics.render_exposition()
"""

from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    GCCollector,
    Histogram,
    Info,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)


DURATION_BUCKETS = (0.1, 0.3, 0.5, 0.7, 1.0, 3.0, 5.0, 7.0, 10.0)
HTTP_LABELS = ("method", "route", "code")


class MetricsRegistry:
    """Request count, latency, error and failed-login series on a private registry."""

    def __init__(
        self,
        app_name: str = "obs-lab",
        environment: str = "development",
        include_default_collectors: bool = True,
    ) -> None:
        self.registry = CollectorRegistry(auto_describe=True)

        if include_default_collectors:
            ProcessCollector(registry=self.registry)
            PlatformCollector(registry=self.registry)
            GCCollector(registry=self.registry)

        self._app_info = Info(
            "app",
            "Application identity labels.",
            registry=self.registry,
        )
        self._app_info.info({"app": app_name, "environment": environment})

        self.http_request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "Duration of HTTP requests in seconds",
            labelnames=HTTP_LABELS,
            buckets=DURATION_BUCKETS,
            registry=self.registry,
        )
        self.http_requests_total = Counter(
            "http_requests_total",
            "Total number of HTTP requests",
            labelnames=HTTP_LABELS,
            registry=self.registry,
        )
        self.http_errors_total = Counter(
            "http_errors_total",
            "Total number of HTTP errors",
            labelnames=HTTP_LABELS,
            registry=self.registry,
        )
        self.http_login_errors_total = Counter(
            "http_login_errors_total",
            "Total number of failed login attempts",
            registry=self.registry,
        )

    def observe_duration(self, method: str, route: str, code: int | str, seconds: float) -> None:
        self.http_request_duration_seconds.labels(method=method, route=route, code=str(code)).observe(seconds)

    def inc_request(self, method: str, route: str, code: int | str) -> None:
        self.http_requests_total.labels(method=method, route=route, code=str(code)).inc()

    def inc_error(self, method: str, route: str, code: int | str) -> None:
        self.http_errors_total.labels(method=method, route=route, code=str(code)).inc()

    def inc_login_error(self) -> None:
        self.http_login_errors_total.inc()

    def record_request(self, method: str, route: str, code: int, seconds: float) -> None:
        """One completed request: duration, request count, and error count for 4xx/5xx."""

        self.observe_duration(method, route, code, seconds)
        self.inc_request(method, route, code)
        if code >= 400:
            self.inc_error(method, route, code)

    def render_exposition(self) -> tuple[bytes, str]:
        """Generate Prometheus exposition text and content-type header."""

        return generate_latest(self.registry), CONTENT_TYPE_LATEST

    def sample_value(self, name: str, labels: dict[str, str] | None = None) -> float | None:
        return self.registry.get_sample_value(name, labels or {})

    def sum_samples(self, name: str) -> float:
        """Sum a sample name across every label combination."""

        total = 0.0
        for family in self.registry.collect():
            for sample in family.samples:
                if sample.name == name:
                    total += sample.value
        return total
