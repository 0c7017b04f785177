"""
Cart Service Protocols (Interfaces)

These interfaces define contracts for dependency injection.
NO import-time I/O dependencies - safe to import anywhere.
"""
from typing import List, Optional, Protocol, runtime_checkable

from .models import CartItem


@runtime_checkable
class CartRepositoryProtocol(Protocol):
    """
    Interface for Cart Repository.

    Items are unique per (user_id, product_id, size, color).
    """

    async def get_items(self, user_id: str) -> List[CartItem]:
        ...

    async def get_item(
        self, user_id: str, product_id: str, size: str, color: str
    ) -> Optional[CartItem]:
        ...

    async def upsert_item(self, item: CartItem) -> CartItem:
        """Insert the item or overwrite quantity/price of the existing one"""
        ...

    async def update_quantity(
        self, user_id: str, product_id: str, size: str, color: str, quantity: int
    ) -> Optional[CartItem]:
        ...

    async def delete_item(self, user_id: str, product_id: str, size: str, color: str) -> bool:
        ...

    async def clear(self, user_id: str) -> int:
        """Remove every item; returns the number removed"""
        ...
