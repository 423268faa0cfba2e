from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from app.config import get_settings
from app.main import create_app
from app.models.schemas import CartItem
from app.services.cart_store import CartStore


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SIMULATED_LATENCY_PROBABILITY", "0")
    monkeypatch.setenv("SIMULATE_TRAFFIC", "false")
    monkeypatch.setenv("ENABLE_METRICS_ENDPOINT", "true")
    get_settings.cache_clear()

    yield

    get_settings.cache_clear()


@pytest.fixture
def store() -> CartStore:
    return CartStore()


@pytest.fixture
def make_item():
    def _make(item_id: str, quantity: int = 1, name: str | None = None, price: float = 9.99) -> CartItem:
        return CartItem(id=item_id, name=name or f"Widget {item_id}", price=price, quantity=quantity)

    return _make


@pytest.fixture
def app() -> FastAPI:
    return create_app()


@pytest.fixture
async def api_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
