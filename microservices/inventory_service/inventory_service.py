"""
Inventory Service Business Logic

Stock availability, reservations for purchases, restocking and the stock
movement audit trail.

Reservation correctness lives in the stored procedures: the availability
check done here is a fast-fail, the procedure re-checks under row locks.
"""

import logging
from typing import List, Optional

from core.responses import PaginatedResponse, ServiceResult

from .models import StockAvailability, StockRequest
from .protocols import InventoryRepositoryProtocol, StockLevelError

logger = logging.getLogger(__name__)


class InventoryService:
    """Inventory business logic"""

    def __init__(self, repository: InventoryRepositoryProtocol):
        self.repository = repository
        logger.info("✅ InventoryService initialized")

    # ====================
    # Queries
    # ====================

    async def get_inventory(self, product_id: str, variant_id: Optional[str] = None) -> ServiceResult:
        item = await self.repository.get_inventory(product_id, variant_id)
        if not item:
            return ServiceResult.fail("Inventory item not found")
        return ServiceResult.ok(item)

    async def get_all_inventory(self, page: int = 1, limit: int = 20) -> ServiceResult:
        items = await self.repository.list_inventory(limit=limit, offset=(page - 1) * limit)
        total = await self.repository.count_inventory()
        return ServiceResult.ok(PaginatedResponse.build(items, total, page, limit))

    async def get_low_stock_items(self) -> ServiceResult:
        return ServiceResult.ok(await self.repository.get_low_stock_items())

    async def get_stock_movements(self, inventory_id: str, limit: int = 50) -> ServiceResult:
        if not await self.repository.get_inventory_by_id(inventory_id):
            return ServiceResult.fail("Inventory item not found")
        return ServiceResult.ok(await self.repository.get_stock_movements(inventory_id, limit))

    async def check_stock_availability(self, items: List[StockRequest]) -> ServiceResult:
        """One inventory read per requested item; a missing row is unavailable."""
        results = []
        for request in items:
            inventory = await self.repository.get_inventory(request.product_id, request.variant_id)
            available_quantity = inventory.available_quantity if inventory else 0
            results.append(StockAvailability(
                product_id=request.product_id,
                variant_id=request.variant_id,
                available=available_quantity >= request.quantity,
                available_quantity=available_quantity,
                requested_quantity=request.quantity,
            ))
        return ServiceResult.ok(results)

    # ====================
    # Reservation flow
    # ====================

    async def reserve_stock(self, items: List[StockRequest], order_id: str) -> ServiceResult:
        availability = await self.check_stock_availability(items)
        for entry in availability.data:
            if not entry.available:
                return ServiceResult.fail(
                    f"Insufficient stock for product {entry.product_id}: "
                    f"{entry.available_quantity} available, {entry.requested_quantity} requested"
                )

        if not await self.repository.reserve_stock_atomic(items, order_id):
            return ServiceResult.fail("Failed to reserve stock")

        logger.info(f"Reserved stock for order {order_id} ({len(items)} items)")
        return ServiceResult.ok({"order_id": order_id, "reserved": True})

    async def release_reserved_stock(self, items: List[StockRequest], order_id: str) -> ServiceResult:
        if not await self.repository.release_reserved_stock_atomic(items, order_id):
            return ServiceResult.fail("Failed to release reserved stock")
        logger.info(f"Released reserved stock for order {order_id}")
        return ServiceResult.ok({"order_id": order_id, "released": True})

    async def fulfill_order(self, items: List[StockRequest], order_id: str) -> ServiceResult:
        if not await self.repository.fulfill_order_atomic(items, order_id):
            return ServiceResult.fail("Failed to fulfill order")
        logger.info(f"Fulfilled stock for order {order_id}")
        return ServiceResult.ok({"order_id": order_id, "fulfilled": True})

    # ====================
    # Restocking
    # ====================

    async def add_stock(
        self,
        product_id: str,
        variant_id: Optional[str],
        quantity: int,
        reason: str = "Stock added",
        performed_by: Optional[str] = None,
    ) -> ServiceResult:
        if quantity <= 0:
            return ServiceResult.fail("Quantity must be a positive number")
        item = await self.repository.add_stock(product_id, variant_id, quantity, reason, performed_by)
        return ServiceResult.ok(item)

    async def adjust_stock(
        self,
        inventory_id: str,
        new_quantity: int,
        reason: Optional[str] = None,
        performed_by: Optional[str] = None,
    ) -> ServiceResult:
        if new_quantity < 0:
            return ServiceResult.fail("Quantity cannot be negative")
        try:
            item = await self.repository.set_stock(inventory_id, new_quantity, reason, performed_by)
        except StockLevelError as e:
            return ServiceResult.fail(str(e))
        if not item:
            return ServiceResult.fail("Inventory item not found")
        return ServiceResult.ok(item)

    async def set_stock_level(
        self,
        product_id: str,
        variant_id: Optional[str],
        quantity: int,
        performed_by: Optional[str] = None,
    ) -> ServiceResult:
        """Set an absolute level, creating the inventory row when needed."""
        existing = await self.repository.get_inventory(product_id, variant_id)
        if existing:
            return await self.adjust_stock(existing.id, quantity, performed_by=performed_by)
        if quantity < 0:
            return ServiceResult.fail("Quantity cannot be negative")
        item = await self.repository.add_stock(
            product_id, variant_id, quantity, "Stock added", performed_by
        )
        return ServiceResult.ok(item)
