from __future__ import annotations

import logging
from dataclasses import dataclass

from app.models.schemas import Cart, CartItem
from app.services.locks import ReadWriteLock

logger = logging.getLogger(__name__)


class CartNotFoundError(LookupError):
    def __init__(self, user_id: str) -> None:
        super().__init__(f"cart not found for user {user_id}")
        self.user_id = user_id


class ItemNotFoundError(LookupError):
    def __init__(self, user_id: str, item_id: str) -> None:
        super().__init__(f"item {item_id} not found in cart")
        self.user_id = user_id
        self.item_id = item_id


@dataclass(frozen=True)
class CartTotals:
    total_quantity: int = 0
    active_users: int = 0


class _LiveCart:
    """A user's item list plus the lock guarding it. Never leaves the store."""

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        self.items: list[CartItem] = []
        self.lock = ReadWriteLock()


class CartStore:
    """Thread-safe, process-local carts keyed by user id (resets on restart).

    Two lock tiers: the store lock guards which users have a cart, and each
    cart's own lock guards its item list. The store lock is held exclusively
    only while inserting a new cart, so carts of different users can be
    mutated concurrently.
    """

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._carts: dict[str, _LiveCart] = {}

    def _lookup(self, user_id: str) -> _LiveCart | None:
        with self._lock.read_locked():
            return self._carts.get(user_id)

    def _get_or_create(self, user_id: str) -> _LiveCart:
        cart = self._lookup(user_id)
        if cart is not None:
            return cart

        with self._lock.write_locked():
            # Another writer may have created it between the two locks.
            cart = self._carts.get(user_id)
            if cart is None:
                cart = _LiveCart(user_id)
                self._carts[user_id] = cart
                logger.debug("cart.created", extra={"user_id": user_id})
            return cart

    def add_item(self, user_id: str, item: CartItem) -> None:
        """Add ``item`` to the user's cart, merging quantities on a repeated id.

        The stored entry keeps its original name and price when merging.
        """
        cart = self._get_or_create(user_id)
        with cart.lock.write_locked():
            for existing in cart.items:
                if existing.id == item.id:
                    existing.quantity += item.quantity
                    return
            cart.items.append(item.model_copy())

    def get_cart(self, user_id: str) -> Cart:
        cart = self._lookup(user_id)
        if cart is None:
            raise CartNotFoundError(user_id)

        with cart.lock.read_locked():
            return Cart(user_id=cart.user_id, items=[item.model_copy() for item in cart.items])

    def remove_item(self, user_id: str, item_id: str) -> None:
        cart = self._lookup(user_id)
        if cart is None:
            raise CartNotFoundError(user_id)

        with cart.lock.write_locked():
            for index, existing in enumerate(cart.items):
                if existing.id == item_id:
                    del cart.items[index]
                    return
        raise ItemNotFoundError(user_id, item_id)

    def totals(self) -> CartTotals:
        """Total quantity across all carts and the number of users with a cart.

        Users whose cart has been emptied still count as active.
        """
        total_quantity = 0
        with self._lock.read_locked():
            for cart in self._carts.values():
                with cart.lock.read_locked():
                    total_quantity += sum(item.quantity for item in cart.items)
            return CartTotals(total_quantity=total_quantity, active_users=len(self._carts))
