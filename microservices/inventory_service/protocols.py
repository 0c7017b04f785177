"""
Inventory Service Protocols (Interfaces)

These interfaces define contracts for dependency injection.
NO import-time I/O dependencies - safe to import anywhere.
"""
from typing import List, Optional, Protocol, runtime_checkable

from .models import InventoryItem, StockMovement, StockRequest


class StockLevelError(Exception):
    """Requested stock level would break reserved <= quantity"""
    pass


@runtime_checkable
class InventoryRepositoryProtocol(Protocol):
    """
    Interface for Inventory Repository.

    Mutations record their StockMovement in the same transaction.
    Reservation methods delegate to the atomic stored procedures.
    """

    async def get_inventory(
        self, product_id: str, variant_id: Optional[str] = None
    ) -> Optional[InventoryItem]:
        ...

    async def get_inventory_by_id(self, inventory_id: str) -> Optional[InventoryItem]:
        ...

    async def list_inventory(self, limit: int = 20, offset: int = 0) -> List[InventoryItem]:
        ...

    async def count_inventory(self) -> int:
        ...

    async def get_low_stock_items(self) -> List[InventoryItem]:
        ...

    async def add_stock(
        self,
        product_id: str,
        variant_id: Optional[str],
        quantity: int,
        reason: str,
        performed_by: Optional[str] = None,
    ) -> InventoryItem:
        """Create the row or increment its quantity"""
        ...

    async def set_stock(
        self,
        inventory_id: str,
        new_quantity: int,
        reason: Optional[str] = None,
        performed_by: Optional[str] = None,
    ) -> Optional[InventoryItem]:
        """Set an absolute quantity; raises StockLevelError below reserved"""
        ...

    async def get_stock_movements(self, inventory_id: str, limit: int = 50) -> List[StockMovement]:
        ...

    async def reserve_stock_atomic(self, items: List[StockRequest], order_id: str) -> bool:
        ...

    async def release_reserved_stock_atomic(self, items: List[StockRequest], order_id: str) -> bool:
        ...

    async def fulfill_order_atomic(self, items: List[StockRequest], order_id: str) -> bool:
        ...
