from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.dependencies import get_cart_store
from app.models.schemas import AddItemRequest, Cart, RemoveItemRequest, StatusResponse
from app.services.cart_store import CartNotFoundError, CartStore, ItemNotFoundError

router = APIRouter(prefix="/cart", tags=["cart"])


@router.post("/add", response_model=StatusResponse)
async def add_to_cart(
    payload: AddItemRequest,
    store: CartStore = Depends(get_cart_store),
) -> StatusResponse:
    if not payload.user_id or not payload.item.id:
        raise HTTPException(status_code=400, detail="Missing required fields")

    store.add_item(payload.user_id, payload.item)
    return StatusResponse()


@router.get("/get", response_model=Cart)
async def get_cart(
    user_id: str = Query(default=""),
    store: CartStore = Depends(get_cart_store),
) -> Cart:
    if not user_id:
        raise HTTPException(status_code=400, detail="Missing user_id parameter")

    try:
        return store.get_cart(user_id)
    except CartNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.delete("/remove", response_model=StatusResponse)
async def remove_from_cart(
    payload: RemoveItemRequest,
    store: CartStore = Depends(get_cart_store),
) -> StatusResponse:
    if not payload.user_id or not payload.item_id:
        raise HTTPException(status_code=400, detail="Missing required fields")

    try:
        store.remove_item(payload.user_id, payload.item_id)
    except (CartNotFoundError, ItemNotFoundError) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return StatusResponse()
