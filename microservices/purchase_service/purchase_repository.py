"""
Purchase Repository

Data access for purchases and their line items (PostgreSQL via asyncpg).
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from core.postgres_client import PostgresClient
from microservices.user_service.models import Address

from .models import PaymentMethod, Purchase, PurchaseFilters, PurchaseItem, PurchaseStatus

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = {
    "status", "tracking_number", "notes", "shipped_at", "delivered_at",
    "shipping_address", "billing_address",
}


class PurchaseRepository:
    """Purchase data access - PostgreSQL"""

    def __init__(self, db: PostgresClient):
        self.db = db
        self.purchases_table = "purchases"
        self.items_table = "purchase_items"

    async def create_purchase(self, purchase: Purchase) -> Purchase:
        """Insert the purchase and its items atomically."""
        insert_purchase = f'''
            INSERT INTO {self.purchases_table} (
                id, user_id, subtotal, tax, shipping, discount, total, status,
                shipping_address, billing_address, payment_method, tracking_number,
                notes, created_at, updated_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, NOW(), NOW())
            RETURNING *
        '''
        insert_item = f'''
            INSERT INTO {self.items_table} (
                id, purchase_id, product_id, variant_id, product_name, size, color,
                quantity, price
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
        '''
        async with self.db.transaction() as tx:
            row = await tx.query_row(insert_purchase, [
                purchase.id, purchase.user_id, purchase.subtotal, purchase.tax,
                purchase.shipping, purchase.discount, purchase.total, purchase.status.value,
                purchase.shipping_address.model_dump(),
                purchase.billing_address.model_dump() if purchase.billing_address else None,
                purchase.payment_method.model_dump(mode="json"),
                purchase.tracking_number, purchase.notes,
            ])
            await tx.execute_many(insert_item, [
                [
                    item.id, purchase.id, item.product_id, item.variant_id, item.product_name,
                    item.size, item.color, item.quantity, item.price,
                ]
                for item in purchase.items
            ])

        logger.info(f"Stored purchase {purchase.id} with {len(purchase.items)} items")
        return self._row_to_purchase(row, purchase.items)

    async def get_purchase(self, purchase_id: str) -> Optional[Purchase]:
        async with self.db:
            row = await self.db.query_row(
                f"SELECT * FROM {self.purchases_table} WHERE id = $1", [purchase_id]
            )
            if not row:
                return None
            items = await self._get_items([purchase_id])
        return self._row_to_purchase(row, items.get(purchase_id, []))

    async def get_by_tracking_number(self, tracking_number: str) -> Optional[Purchase]:
        async with self.db:
            row = await self.db.query_row(
                f"SELECT * FROM {self.purchases_table} WHERE tracking_number = $1",
                [tracking_number],
            )
            if not row:
                return None
            items = await self._get_items([row["id"]])
        return self._row_to_purchase(row, items.get(row["id"], []))

    async def list_purchases(
        self,
        filters: PurchaseFilters,
        user_id: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Purchase], int]:
        conditions = []
        params: List[Any] = []

        def add(condition: str, value: Any) -> None:
            params.append(value)
            conditions.append(condition.format(n=len(params)))

        if user_id:
            add("user_id = ${n}", user_id)
        if filters.status:
            add("status = ${n}", filters.status.value)
        if filters.start_date:
            add("created_at >= ${n}", filters.start_date)
        if filters.end_date:
            add("created_at <= ${n}", filters.end_date)
        if filters.min_total is not None:
            add("total >= ${n}", filters.min_total)
        if filters.max_total is not None:
            add("total <= ${n}", filters.max_total)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        query = f'''
            SELECT * FROM {self.purchases_table}
            {where}
            ORDER BY created_at DESC
            LIMIT ${len(params) + 1} OFFSET ${len(params) + 2}
        '''

        async with self.db:
            total = await self.db.fetchval(
                f"SELECT COUNT(*) FROM {self.purchases_table} {where}", params
            )
            rows = await self.db.query(query, params + [limit, offset])
            items = await self._get_items([row["id"] for row in rows])

        purchases = [self._row_to_purchase(row, items.get(row["id"], [])) for row in rows]
        return purchases, total or 0

    async def update_purchase(self, purchase_id: str, updates: Dict[str, Any]) -> Optional[Purchase]:
        columns = [column for column in updates if column in _UPDATABLE_COLUMNS]
        if not columns:
            return await self.get_purchase(purchase_id)

        values = []
        for column in columns:
            value = updates[column]
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, Address):
                value = value.model_dump()
            values.append(value)

        assignments = ", ".join(f"{column} = ${i}" for i, column in enumerate(columns, start=2))
        query = f'''
            UPDATE {self.purchases_table}
            SET {assignments}, updated_at = NOW()
            WHERE id = $1
            RETURNING *
        '''
        async with self.db:
            row = await self.db.query_row(query, [purchase_id] + values)
            if not row:
                return None
            items = await self._get_items([purchase_id])
        return self._row_to_purchase(row, items.get(purchase_id, []))

    async def get_status_totals(self, user_id: Optional[str] = None) -> Dict[str, Tuple[int, float]]:
        where = "WHERE user_id = $1" if user_id else ""
        query = f'''
            SELECT status, COUNT(*) AS count, COALESCE(SUM(total), 0) AS total
            FROM {self.purchases_table}
            {where}
            GROUP BY status
        '''
        async with self.db:
            rows = await self.db.query(query, [user_id] if user_id else [])
        return {row["status"]: (int(row["count"]), float(row["total"])) for row in rows}

    async def _get_items(self, purchase_ids: List[str]) -> Dict[str, List[PurchaseItem]]:
        if not purchase_ids:
            return {}
        rows = await self.db.query(
            f"SELECT * FROM {self.items_table} WHERE purchase_id = ANY($1::text[]) ORDER BY id",
            [purchase_ids],
        )
        grouped: Dict[str, List[PurchaseItem]] = {}
        for row in rows:
            grouped.setdefault(row["purchase_id"], []).append(PurchaseItem(
                id=row["id"],
                purchase_id=row["purchase_id"],
                product_id=row["product_id"],
                variant_id=row.get("variant_id"),
                product_name=row["product_name"],
                size=row["size"],
                color=row["color"],
                quantity=row["quantity"],
                price=float(row["price"]),
            ))
        return grouped

    def _row_to_purchase(self, row: Dict[str, Any], items: List[PurchaseItem]) -> Purchase:
        billing = row.get("billing_address")
        return Purchase(
            id=row["id"],
            user_id=row["user_id"],
            items=items,
            subtotal=float(row["subtotal"]),
            tax=float(row["tax"]),
            shipping=float(row["shipping"]),
            discount=float(row.get("discount") or 0),
            total=float(row["total"]),
            status=PurchaseStatus(row["status"]),
            shipping_address=Address(**row["shipping_address"]),
            billing_address=Address(**billing) if billing else None,
            payment_method=PaymentMethod(**row["payment_method"]),
            tracking_number=row.get("tracking_number"),
            notes=row.get("notes"),
            shipped_at=row.get("shipped_at"),
            delivered_at=row.get("delivered_at"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )
