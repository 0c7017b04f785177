"""
Inventory Repository

Data access for stock levels and stock movements (PostgreSQL via asyncpg).
Reservation changes are delegated to the stored procedures defined in
migrations/001_storefront_schema.sql.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from core.postgres_client import PostgresClient

from .models import InventoryItem, MovementType, StockMovement, StockRequest
from .protocols import StockLevelError

logger = logging.getLogger(__name__)


class InventoryRepository:
    """Inventory data access - PostgreSQL"""

    def __init__(self, db: PostgresClient):
        self.db = db
        self.inventory_table = "inventory"
        self.movements_table = "stock_movements"

    async def get_inventory(
        self, product_id: str, variant_id: Optional[str] = None
    ) -> Optional[InventoryItem]:
        query = f'''
            SELECT * FROM {self.inventory_table}
            WHERE product_id = $1 AND variant_id IS NOT DISTINCT FROM $2
        '''
        async with self.db:
            row = await self.db.query_row(query, [product_id, variant_id])
        return self._row_to_item(row) if row else None

    async def get_inventory_by_id(self, inventory_id: str) -> Optional[InventoryItem]:
        async with self.db:
            row = await self.db.query_row(
                f"SELECT * FROM {self.inventory_table} WHERE id = $1", [inventory_id]
            )
        return self._row_to_item(row) if row else None

    async def list_inventory(self, limit: int = 20, offset: int = 0) -> List[InventoryItem]:
        query = f'''
            SELECT * FROM {self.inventory_table}
            ORDER BY updated_at DESC
            LIMIT $1 OFFSET $2
        '''
        async with self.db:
            rows = await self.db.query(query, [limit, offset])
        return [self._row_to_item(row) for row in rows]

    async def count_inventory(self) -> int:
        async with self.db:
            return await self.db.fetchval(f"SELECT COUNT(*) FROM {self.inventory_table}")

    async def get_low_stock_items(self) -> List[InventoryItem]:
        query = f'''
            SELECT * FROM {self.inventory_table}
            WHERE reorder_level IS NOT NULL AND quantity <= reorder_level
            ORDER BY quantity ASC
        '''
        async with self.db:
            rows = await self.db.query(query)
        return [self._row_to_item(row) for row in rows]

    async def add_stock(
        self,
        product_id: str,
        variant_id: Optional[str],
        quantity: int,
        reason: str,
        performed_by: Optional[str] = None,
    ) -> InventoryItem:
        upsert = f'''
            INSERT INTO {self.inventory_table} (
                id, product_id, variant_id, quantity, reserved_quantity,
                location, created_at, updated_at
            ) VALUES ($1, $2, $3, $4, 0, 'main', NOW(), NOW())
            ON CONFLICT (product_id, variant_id) DO UPDATE
            SET quantity = {self.inventory_table}.quantity + EXCLUDED.quantity,
                updated_at = NOW()
            RETURNING *
        '''
        async with self.db.transaction() as tx:
            row = await tx.query_row(
                upsert, [f"inv_{uuid.uuid4().hex[:16]}", product_id, variant_id, quantity]
            )
            await self._record_movement(
                tx, row["id"], MovementType.IN, quantity, reason, performed_by
            )
        logger.info(f"Added {quantity} units to inventory {row['id']}")
        return self._row_to_item(row)

    async def set_stock(
        self,
        inventory_id: str,
        new_quantity: int,
        reason: Optional[str] = None,
        performed_by: Optional[str] = None,
    ) -> Optional[InventoryItem]:
        async with self.db.transaction() as tx:
            current = await tx.query_row(
                f"SELECT * FROM {self.inventory_table} WHERE id = $1 FOR UPDATE",
                [inventory_id],
            )
            if not current:
                return None
            if new_quantity < current["reserved_quantity"]:
                raise StockLevelError("Cannot set quantity below reserved quantity")

            row = await tx.query_row(
                f'''
                UPDATE {self.inventory_table}
                SET quantity = $2, updated_at = NOW()
                WHERE id = $1
                RETURNING *
                ''',
                [inventory_id, new_quantity],
            )
            diff = new_quantity - current["quantity"]
            if diff != 0:
                direction = "increase" if diff > 0 else "decrease"
                await self._record_movement(
                    tx,
                    inventory_id,
                    MovementType.ADJUSTMENT,
                    abs(diff),
                    reason or f"Stock adjustment: {direction}",
                    performed_by,
                )
        return self._row_to_item(row)

    async def get_stock_movements(self, inventory_id: str, limit: int = 50) -> List[StockMovement]:
        query = f'''
            SELECT * FROM {self.movements_table}
            WHERE inventory_id = $1
            ORDER BY created_at DESC
            LIMIT $2
        '''
        async with self.db:
            rows = await self.db.query(query, [inventory_id, limit])
        return [self._row_to_movement(row) for row in rows]

    async def reserve_stock_atomic(self, items: List[StockRequest], order_id: str) -> bool:
        return await self._call_stock_procedure("reserve_stock_atomic", items, order_id)

    async def release_reserved_stock_atomic(self, items: List[StockRequest], order_id: str) -> bool:
        return await self._call_stock_procedure("release_reserved_stock_atomic", items, order_id)

    async def fulfill_order_atomic(self, items: List[StockRequest], order_id: str) -> bool:
        return await self._call_stock_procedure("fulfill_order_atomic", items, order_id)

    async def _call_stock_procedure(
        self, name: str, items: List[StockRequest], order_id: str
    ) -> bool:
        items_data = [
            {"product_id": i.product_id, "variant_id": i.variant_id, "quantity": i.quantity}
            for i in items
        ]
        async with self.db:
            result = await self.db.call_procedure(name, [items_data, order_id])
        logger.info(f"{name} for order {order_id}: {result}")
        return bool(result)

    async def _record_movement(
        self,
        tx,
        inventory_id: str,
        movement_type: MovementType,
        quantity: int,
        reason: Optional[str],
        performed_by: Optional[str],
        reference_id: Optional[str] = None,
    ) -> None:
        await tx.execute(
            f'''
            INSERT INTO {self.movements_table} (
                id, inventory_id, movement_type, quantity, reason,
                performed_by, reference_id, created_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, NOW())
            ''',
            [
                f"mov_{uuid.uuid4().hex[:16]}", inventory_id, movement_type.value,
                quantity, reason, performed_by, reference_id,
            ],
        )

    def _row_to_item(self, row: Dict[str, Any]) -> InventoryItem:
        return InventoryItem(
            id=row["id"],
            product_id=row["product_id"],
            variant_id=row.get("variant_id"),
            quantity=row.get("quantity") or 0,
            reserved_quantity=row.get("reserved_quantity") or 0,
            reorder_level=row.get("reorder_level"),
            max_stock_level=row.get("max_stock_level"),
            location=row.get("location") or "main",
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def _row_to_movement(self, row: Dict[str, Any]) -> StockMovement:
        return StockMovement(
            id=row["id"],
            inventory_id=row["inventory_id"],
            movement_type=MovementType(row["movement_type"]),
            quantity=row["quantity"],
            reason=row.get("reason"),
            performed_by=row.get("performed_by"),
            reference_id=row.get("reference_id"),
            created_at=row.get("created_at"),
        )
