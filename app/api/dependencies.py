from __future__ import annotations

from fastapi import Request

from app.config import Settings
from app.observability.metrics import ServiceMetrics
from app.services.cart_store import CartStore


def get_cart_store(request: Request) -> CartStore:
    return request.app.state.cart_store


def get_service_metrics(request: Request) -> ServiceMetrics:
    return request.app.state.metrics


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
