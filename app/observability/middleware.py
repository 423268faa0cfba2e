from __future__ import annotations

import asyncio
import random
import uuid
from time import perf_counter
from typing import Any, Callable

import structlog
from starlette.datastructures import MutableHeaders

from app.observability.metrics import ServiceMetrics


UNMATCHED_ROUTE = "unmatched"


def route_label(scope: dict[str, Any]) -> str:
    """Path template of the route that handled the request.

    Requests no route matched share one label so arbitrary URLs cannot grow
    the number of series.
    """
    route = scope.get("route")
    template = getattr(route, "path", None)
    return template if isinstance(template, str) and template else UNMATCHED_ROUTE


class RequestContextMiddleware:
    """Adds request_id context, access logs, and HTTP request metrics."""

    def __init__(
        self,
        app: Callable[..., Any],
        *,
        metrics: ServiceMetrics,
        latency_probability: float = 0.0,
        latency_max_ms: int = 0,
    ) -> None:
        self.app = app
        self.metrics = metrics
        self.latency_probability = latency_probability
        self.latency_max_ms = latency_max_ms
        # Avoid self-observing the scrape endpoint.
        self._excluded_metric_paths = {"/metrics"}

    async def _maybe_inject_latency(self) -> None:
        if self.latency_probability <= 0 or self.latency_max_ms <= 0:
            return
        if random.random() < self.latency_probability:
            await asyncio.sleep(random.randrange(self.latency_max_ms) / 1000.0)

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        request_id = str(uuid.uuid4())
        path = scope.get("path", "")
        method = scope.get("method", "")

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
            await self._maybe_inject_latency()
            await self.app(scope, receive, send_wrapper)
        finally:
            elapsed = perf_counter() - start

            # Update metrics first so they update even if logging misbehaves.
            if path not in self._excluded_metric_paths:
                self.metrics.observe_http_request(
                    method=method,
                    endpoint=route_label(scope),
                    status_code=status_code,
                    elapsed_seconds=elapsed,
                )

            structlog.get_logger("access").info(
                "http_request",
                status_code=status_code,
                elapsed_ms=round(elapsed * 1000.0, 2),
            )

            structlog.contextvars.clear_contextvars()
