"""
Client-side cart state

An in-memory mirror of the server cart driven by a pure reducer. The store
pushes every mutation to the server first and then replaces its items with
the server's copy, so local totals never drift from the stored cart.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, List, Optional

import httpx

from core.auth_dependencies import AuthUser

from .cart_service import calculate_totals, last_modified
from .client import CartClient, CartClientError
from .models import CartItem

logger = logging.getLogger(__name__)

SYNC_TOLERANCE = timedelta(seconds=5)


class CartActionType(str, Enum):
    SET_LOADING = "SET_LOADING"
    SET_CART = "SET_CART"
    ADD_ITEM = "ADD_ITEM"
    UPDATE_ITEM = "UPDATE_ITEM"
    REMOVE_ITEM = "REMOVE_ITEM"
    CLEAR_CART = "CLEAR_CART"


@dataclass(frozen=True)
class CartAction:
    """
    Reducer input.

    Payloads: SET_LOADING bool, SET_CART list of items, ADD_ITEM item,
    UPDATE_ITEM ``{"id", "quantity"}``, REMOVE_ITEM item id, CLEAR_CART none.
    """
    type: CartActionType
    payload: Any = None


@dataclass(frozen=True)
class CartState:
    items: List[CartItem] = field(default_factory=list)
    total_items: int = 0
    total_price: float = 0.0
    loading: bool = False


@dataclass(frozen=True)
class SyncStatus:
    local_last_modified: Optional[datetime]
    server_last_modified: Optional[datetime]
    is_in_sync: bool


def _with_items(state: CartState, items: List[CartItem], **changes) -> CartState:
    total_items, total_price = calculate_totals(items)
    return replace(state, items=items, total_items=total_items, total_price=total_price, **changes)


def cart_reducer(state: CartState, action: CartAction) -> CartState:
    """Return the next state; the input state is never modified."""
    if action.type == CartActionType.SET_LOADING:
        return replace(state, loading=bool(action.payload))

    if action.type == CartActionType.SET_CART:
        return _with_items(state, list(action.payload), loading=False)

    if action.type == CartActionType.ADD_ITEM:
        new_item: CartItem = action.payload
        items = []
        merged = False
        for item in state.items:
            if (item.product_id, item.size, item.color) == (new_item.product_id, new_item.size, new_item.color):
                item = item.model_copy(update={"quantity": item.quantity + new_item.quantity})
                merged = True
            items.append(item)
        if not merged:
            items.append(new_item)
        return _with_items(state, items)

    if action.type == CartActionType.UPDATE_ITEM:
        items = [
            item.model_copy(update={"quantity": action.payload["quantity"]})
            if item.id == action.payload["id"] else item
            for item in state.items
        ]
        return _with_items(state, items)

    if action.type == CartActionType.REMOVE_ITEM:
        return _with_items(state, [item for item in state.items if item.id != action.payload])

    if action.type == CartActionType.CLEAR_CART:
        return _with_items(state, [])

    return state


class CartStore:
    """Cart state for the signed-in user, kept in step with the server"""

    def __init__(self, client: CartClient):
        self.client = client
        self.state = CartState()
        self.user: Optional[AuthUser] = None

    def dispatch(self, action: CartAction) -> CartState:
        self.state = cart_reducer(self.state, action)
        return self.state

    async def on_auth_state_changed(self, user: Optional[AuthUser], token: Optional[str] = None) -> None:
        """Reload the cart for a signed-in user; clear it on sign-out."""
        self.user = user
        self.client.set_token(token if user else None)
        if user:
            await self.refresh()
        else:
            self.dispatch(CartAction(CartActionType.CLEAR_CART))

    async def refresh(self) -> None:
        if not self.user:
            return
        self.dispatch(CartAction(CartActionType.SET_LOADING, True))
        try:
            cart = await self.client.get_cart(self.user.uid)
        except (CartClientError, httpx.HTTPError) as e:
            logger.error(f"Error loading cart: {e}")
            self.dispatch(CartAction(CartActionType.SET_LOADING, False))
            return
        self.dispatch(CartAction(CartActionType.SET_CART, cart.items))

    async def add_to_cart(
        self, product_id: str, quantity: int = 1, size: str = "M", color: str = "Default"
    ) -> None:
        if not self.user:
            raise PermissionError("User must be logged in to add items to cart")
        await self.client.add_item(self.user.uid, product_id, size, color, quantity)
        cart = await self.client.get_cart(self.user.uid)
        self.dispatch(CartAction(CartActionType.SET_CART, cart.items))

    async def update_quantity(self, product_id: str, size: str, color: str, quantity: int) -> None:
        if not self.user:
            return
        cart = await self.client.update_item(self.user.uid, product_id, size, color, quantity)
        self.dispatch(CartAction(CartActionType.SET_CART, cart.items))

    async def remove_from_cart(self, product_id: str, size: str, color: str) -> None:
        if not self.user:
            return
        cart = await self.client.remove_item(self.user.uid, product_id, size, color)
        self.dispatch(CartAction(CartActionType.SET_CART, cart.items))

    async def clear_cart(self) -> None:
        if not self.user:
            return
        await self.client.clear(self.user.uid)
        self.dispatch(CartAction(CartActionType.CLEAR_CART))

    async def sync_status(self) -> Optional[SyncStatus]:
        """Compare the local copy with the stored cart's last change."""
        if not self.user:
            return None
        server = await self.client.sync_status(self.user.uid)
        local = last_modified(self.state.items)
        if local is None or server.last_modified is None:
            in_sync = local is None and server.last_modified is None
        else:
            in_sync = abs(local - server.last_modified) < SYNC_TOLERANCE
        return SyncStatus(local, server.last_modified, in_sync)
