"""
Cart Repository

Data access for cart items (PostgreSQL via asyncpg).
"""

import logging
from typing import Any, Dict, List, Optional

from core.postgres_client import PostgresClient

from .models import CartItem

logger = logging.getLogger(__name__)


class CartRepository:
    """Cart data access - PostgreSQL"""

    def __init__(self, db: PostgresClient):
        self.db = db
        self.table = "cart_items"

    async def get_items(self, user_id: str) -> List[CartItem]:
        query = f'''
            SELECT * FROM {self.table}
            WHERE user_id = $1
            ORDER BY added_at ASC
        '''
        async with self.db:
            rows = await self.db.query(query, [user_id])
        return [self._row_to_item(row) for row in rows]

    async def get_item(
        self, user_id: str, product_id: str, size: str, color: str
    ) -> Optional[CartItem]:
        query = f'''
            SELECT * FROM {self.table}
            WHERE user_id = $1 AND product_id = $2 AND size = $3 AND color = $4
        '''
        async with self.db:
            row = await self.db.query_row(query, [user_id, product_id, size, color])
        return self._row_to_item(row) if row else None

    async def upsert_item(self, item: CartItem) -> CartItem:
        query = f'''
            INSERT INTO {self.table} (
                id, user_id, product_id, size, color, quantity, price, added_at, updated_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, NOW(), NOW())
            ON CONFLICT (user_id, product_id, size, color) DO UPDATE
            SET quantity = EXCLUDED.quantity,
                price = EXCLUDED.price,
                updated_at = NOW()
            RETURNING *
        '''
        params = [
            item.id, item.user_id, item.product_id, item.size, item.color,
            item.quantity, item.price,
        ]
        async with self.db:
            row = await self.db.query_row(query, params)
        return self._row_to_item(row)

    async def update_quantity(
        self, user_id: str, product_id: str, size: str, color: str, quantity: int
    ) -> Optional[CartItem]:
        query = f'''
            UPDATE {self.table}
            SET quantity = $5, updated_at = NOW()
            WHERE user_id = $1 AND product_id = $2 AND size = $3 AND color = $4
            RETURNING *
        '''
        async with self.db:
            row = await self.db.query_row(query, [user_id, product_id, size, color, quantity])
        return self._row_to_item(row) if row else None

    async def delete_item(self, user_id: str, product_id: str, size: str, color: str) -> bool:
        query = f'''
            DELETE FROM {self.table}
            WHERE user_id = $1 AND product_id = $2 AND size = $3 AND color = $4
        '''
        async with self.db:
            status = await self.db.execute(query, [user_id, product_id, size, color])
        return status.endswith(" 1")

    async def clear(self, user_id: str) -> int:
        async with self.db:
            status = await self.db.execute(f"DELETE FROM {self.table} WHERE user_id = $1", [user_id])
        return int(status.split()[-1])

    def _row_to_item(self, row: Dict[str, Any]) -> CartItem:
        return CartItem(
            id=row["id"],
            user_id=row["user_id"],
            product_id=row["product_id"],
            size=row["size"],
            color=row["color"],
            quantity=row["quantity"],
            price=float(row["price"]),
            added_at=row.get("added_at"),
            updated_at=row.get("updated_at"),
        )
