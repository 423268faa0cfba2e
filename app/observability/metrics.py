from __future__ import annotations

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Gauge, Histogram, Info, generate_latest

from app.config import Settings

LATENCY_BUCKETS_SECONDS = (0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)

_REQUEST_LABELS = ("method", "endpoint", "status_code")
_ERROR_LABELS = ("error_type", "endpoint", "status_code")


def classify_error(status_code: int) -> str | None:
    if status_code >= 500:
        return "server_error"
    if status_code >= 400:
        return "client_error"
    return None


class ServiceMetrics:
    """Prometheus instruments for one application instance.

    Each instance owns its registry so tests (and multiple apps in one
    process) never share series.
    """

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, settings: Settings, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()

        self.requests_total = Counter(
            "http_requests_total",
            "Total number of HTTP requests",
            _REQUEST_LABELS,
            registry=self.registry,
        )
        self.request_errors_total = Counter(
            "http_requests_errors_total",
            "Total number of HTTP error requests",
            _ERROR_LABELS,
            registry=self.registry,
        )
        self.request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "HTTP request latency in seconds",
            _REQUEST_LABELS,
            buckets=LATENCY_BUCKETS_SECONDS,
            registry=self.registry,
        )
        self.cart_items = Gauge(
            "cart_items_total",
            "Total number of items in user carts",
            registry=self.registry,
        )
        self.active_users = Gauge(
            "active_users_total",
            "Total number of active users with carts",
            registry=self.registry,
        )

        service_info = Info("service", "Service resource attributes", registry=self.registry)
        service_info.info(
            {
                "service_name": settings.service_name,
                "service_version": settings.service_version,
                "service_instance_id": settings.service_instance_id,
                "environment": settings.environment,
            }
        )

    def observe_http_request(self, *, method: str, endpoint: str, status_code: int, elapsed_seconds: float) -> None:
        """Record one completed request: count, latency and (for >= 400) the error."""

        status = str(status_code)
        self.requests_total.labels(method=method, endpoint=endpoint, status_code=status).inc()
        self.request_duration_seconds.labels(method=method, endpoint=endpoint, status_code=status).observe(
            elapsed_seconds
        )

        error_type = classify_error(status_code)
        if error_type is not None:
            self.request_errors_total.labels(error_type=error_type, endpoint=endpoint, status_code=status).inc()

    def set_cart_gauges(self, *, total_quantity: int, active_users: int) -> None:
        self.cart_items.set(total_quantity)
        self.active_users.set(active_users)

    def render(self) -> bytes:
        return generate_latest(self.registry)
