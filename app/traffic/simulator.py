from __future__ import annotations

import asyncio
import random

import httpx
import structlog

from app.models.schemas import CartItem

DEMO_USER_IDS = ("user1", "user2", "user3", "user4", "user5")

DEMO_ITEMS = (
    CartItem(id="item1", name="Widget A", price=19.99, quantity=1),
    CartItem(id="item2", name="Widget B", price=29.99, quantity=2),
    CartItem(id="item3", name="Widget C", price=39.99, quantity=1),
    CartItem(id="item4", name="Widget D", price=49.99, quantity=3),
)


class TrafficSimulator:
    """Generates demo traffic against a running cart service.

    Every round adds a random item to a random user's cart, then sometimes
    reads that cart, triggers a simulated error or checks health.
    """

    get_cart_probability = 0.3
    simulate_error_probability = 0.1
    health_probability = 0.2

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        rng: random.Random | None = None,
        min_pause_seconds: float = 0.5,
        max_pause_seconds: float = 1.5,
    ) -> None:
        self.client = client
        self.rng = rng or random.Random()
        self.min_pause_seconds = min_pause_seconds
        self.max_pause_seconds = max_pause_seconds
        self._log = structlog.get_logger("traffic")

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response | None:
        try:
            return await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            self._log.warning("traffic_request_failed", method=method, url=url, error=str(exc))
            return None

    async def run_once(self) -> list[httpx.Response]:
        user_id = self.rng.choice(DEMO_USER_IDS)
        item = self.rng.choice(DEMO_ITEMS)

        calls: list[tuple[str, str, dict]] = [
            ("POST", "/cart/add", {"json": {"user_id": user_id, "item": item.model_dump()}}),
        ]
        if self.rng.random() < self.get_cart_probability:
            calls.append(("GET", "/cart/get", {"params": {"user_id": user_id}}))
        if self.rng.random() < self.simulate_error_probability:
            calls.append(("GET", "/simulate-error", {}))
        if self.rng.random() < self.health_probability:
            calls.append(("GET", "/health", {}))

        responses: list[httpx.Response] = []
        for method, url, kwargs in calls:
            resp = await self._request(method, url, **kwargs)
            if resp is not None:
                responses.append(resp)
        return responses

    async def run(self, start_delay_seconds: float = 0.0) -> None:
        """Loop forever (until cancelled), pausing between rounds."""

        await asyncio.sleep(start_delay_seconds)
        self._log.info("traffic_simulation_started", base_url=str(self.client.base_url))
        while True:
            await self.run_once()
            await asyncio.sleep(self.rng.uniform(self.min_pause_seconds, self.max_pause_seconds))


async def simulate_traffic(base_url: str, start_delay_seconds: float = 5.0) -> None:
    async with httpx.AsyncClient(base_url=base_url, timeout=10.0) as client:
        await TrafficSimulator(client).run(start_delay_seconds=start_delay_seconds)
