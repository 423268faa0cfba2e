from __future__ import annotations

import asyncio

import structlog

from app.observability.metrics import ServiceMetrics
from app.services.cart_store import CartStore, CartTotals


class CartMetricsObserver:
    """Publishes cart state gauges from a read-only snapshot of the store."""

    def __init__(self, store: CartStore, metrics: ServiceMetrics) -> None:
        self.store = store
        self.metrics = metrics

    def observe(self) -> CartTotals:
        totals = self.store.totals()
        self.metrics.set_cart_gauges(total_quantity=totals.total_quantity, active_users=totals.active_users)
        return totals

    async def run(self, interval_seconds: float) -> None:
        """Observe every ``interval_seconds`` until cancelled."""

        log = structlog.get_logger("metrics")
        while True:
            try:
                self.observe()
            except Exception:
                # Keep collecting; one bad observation should not stop the gauges.
                log.exception("cart_metrics_observation_failed")
            await asyncio.sleep(interval_seconds)
