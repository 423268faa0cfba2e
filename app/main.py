from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api.cart import router as cart_router
from app.api.health import router as health_router
from app.api.metrics import router as metrics_router
from app.config import Settings, get_settings
from app.observability.cart_observer import CartMetricsObserver
from app.observability.logging import configure_logging
from app.observability.metrics import ServiceMetrics
from app.observability.middleware import RequestContextMiddleware
from app.services.cart_store import CartStore
from app.traffic.simulator import simulate_traffic


async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    _ = request
    return JSONResponse(status_code=400, content={"detail": "Invalid request", "errors": jsonable_encoder(exc.errors())})


@contextlib.asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings
    observer: CartMetricsObserver = app.state.cart_observer

    configure_logging(settings)
    log = structlog.get_logger("app")

    observer.observe()
    tasks: list[asyncio.Task] = [
        asyncio.create_task(observer.run(settings.metrics_collection_interval_seconds)),
    ]
    if settings.simulate_traffic:
        tasks.append(
            asyncio.create_task(simulate_traffic(settings.traffic_base_url, settings.traffic_start_delay_seconds))
        )
    app.state.background_tasks = tasks

    log.info("service_started", service=settings.service_name, address=f"{settings.host}:{settings.port}")
    log.info("metrics_available", url=f"{settings.public_url}/metrics")
    log.info("health_check_available", url=f"{settings.public_url}/health")

    try:
        yield
    finally:
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        app.state.background_tasks = []


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the service with a fresh, empty cart store and its own metrics registry."""

    settings = settings or get_settings()
    store = CartStore()
    metrics = ServiceMetrics(settings)

    app = FastAPI(title="Shopping Cart Service", version=settings.service_version, lifespan=_lifespan)
    app.state.settings = settings
    app.state.cart_store = store
    app.state.metrics = metrics
    app.state.cart_observer = CartMetricsObserver(store, metrics)
    app.state.background_tasks = []

    app.add_middleware(
        RequestContextMiddleware,
        metrics=metrics,
        latency_probability=settings.simulated_latency_probability,
        latency_max_ms=settings.simulated_latency_max_ms,
    )
    app.add_exception_handler(RequestValidationError, _invalid_request)

    app.include_router(cart_router)
    app.include_router(health_router)
    app.include_router(metrics_router)

    return app
