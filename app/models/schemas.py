from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class CartItem(BaseModel):
    id: str = ""
    name: str = ""
    price: float = Field(default=0.0, ge=0)
    quantity: int = Field(default=1, gt=0)


class Cart(BaseModel):
    user_id: str
    items: list[CartItem] = Field(default_factory=list)


class AddItemRequest(BaseModel):
    user_id: str = ""
    item: CartItem = Field(default_factory=CartItem)


class RemoveItemRequest(BaseModel):
    user_id: str = ""
    item_id: str = ""


class StatusResponse(BaseModel):
    status: Literal["success"] = "success"


class HealthResponse(BaseModel):
    status: Literal["healthy"] = "healthy"
    timestamp: datetime
    service: str
