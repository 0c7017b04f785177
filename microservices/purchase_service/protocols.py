"""
Purchase Service Protocols (Interfaces)

These interfaces define contracts for dependency injection.
NO import-time I/O dependencies - safe to import anywhere.
"""
from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from .models import Purchase, PurchaseFilters


@runtime_checkable
class PurchaseRepositoryProtocol(Protocol):
    """
    Interface for Purchase Repository.

    create_purchase writes the purchase and its items in one transaction.
    """

    async def create_purchase(self, purchase: Purchase) -> Purchase:
        ...

    async def get_purchase(self, purchase_id: str) -> Optional[Purchase]:
        ...

    async def get_by_tracking_number(self, tracking_number: str) -> Optional[Purchase]:
        ...

    async def list_purchases(
        self,
        filters: PurchaseFilters,
        user_id: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Purchase], int]:
        ...

    async def update_purchase(self, purchase_id: str, updates: Dict[str, Any]) -> Optional[Purchase]:
        ...

    async def get_status_totals(self, user_id: Optional[str] = None) -> Dict[str, Tuple[int, float]]:
        """Purchase count and summed total per status"""
        ...
