"""
Product Repository

Data access for the product catalogue (PostgreSQL via asyncpg).
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from core.postgres_client import PostgresClient

from .models import Product, ProductFilters, ProductVariant

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = {
    "name", "description", "price", "original_price", "category", "subcategory",
    "brand", "images", "sizes", "colors", "tags", "is_active", "is_featured",
}


class ProductRepository:
    """Product data access - PostgreSQL"""

    def __init__(self, db: PostgresClient):
        self.db = db
        self.products_table = "products"
        self.variants_table = "product_variants"

    async def create_product(self, product: Product) -> Product:
        query = f'''
            INSERT INTO {self.products_table} (
                id, name, description, price, original_price, category, subcategory,
                brand, images, sizes, colors, tags, is_active, is_featured,
                rating, review_count, created_at, updated_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, $15, $16, NOW(), NOW())
            RETURNING *
        '''
        params = [
            product.id, product.name, product.description, product.price,
            product.original_price, product.category, product.subcategory, product.brand,
            product.images, product.sizes, product.colors, product.tags,
            product.is_active, product.is_featured, product.rating, product.review_count,
        ]
        async with self.db:
            row = await self.db.query_row(query, params)
        return self._row_to_product(row)

    async def get_product(self, product_id: str) -> Optional[Product]:
        async with self.db:
            row = await self.db.query_row(
                f"SELECT * FROM {self.products_table} WHERE id = $1", [product_id]
            )
            if not row:
                return None
            variants = await self._get_variants([product_id])
        return self._row_to_product(row, variants.get(product_id, []))

    async def list_products(
        self, filters: ProductFilters, limit: int = 20, offset: int = 0
    ) -> Tuple[List[Product], int]:
        conditions = []
        params: List[Any] = []

        def add(condition: str, value: Any) -> None:
            params.append(value)
            conditions.append(condition.format(n=len(params)))

        if filters.is_active is not None:
            add("is_active = ${n}", filters.is_active)
        if filters.is_featured is not None:
            add("is_featured = ${n}", filters.is_featured)
        if filters.category:
            add("category = ${n}", filters.category)
        if filters.subcategory:
            add("subcategory = ${n}", filters.subcategory)
        if filters.brand:
            add("brand = ${n}", filters.brand)
        if filters.min_price is not None:
            add("price >= ${n}", filters.min_price)
        if filters.max_price is not None:
            add("price <= ${n}", filters.max_price)
        if filters.tags:
            add("tags && ${n}::text[]", filters.tags)
        if filters.search:
            add(
                "(name ILIKE ${n} OR description ILIKE ${n} OR brand ILIKE ${n})",
                f"%{filters.search}%",
            )

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        page_params = params + [limit, offset]
        query = f'''
            SELECT * FROM {self.products_table}
            {where}
            ORDER BY created_at DESC
            LIMIT ${len(params) + 1} OFFSET ${len(params) + 2}
        '''

        async with self.db:
            total = await self.db.fetchval(
                f"SELECT COUNT(*) FROM {self.products_table} {where}", params
            )
            rows = await self.db.query(query, page_params)
            variants = await self._get_variants([row["id"] for row in rows])

        products = [self._row_to_product(row, variants.get(row["id"], [])) for row in rows]
        return products, total or 0

    async def update_product(self, product_id: str, updates: Dict[str, Any]) -> Optional[Product]:
        columns = [column for column in updates if column in _UPDATABLE_COLUMNS]
        if not columns:
            return await self.get_product(product_id)

        assignments = ", ".join(f"{column} = ${i}" for i, column in enumerate(columns, start=2))
        query = f'''
            UPDATE {self.products_table}
            SET {assignments}, updated_at = NOW()
            WHERE id = $1
            RETURNING *
        '''
        async with self.db:
            row = await self.db.query_row(query, [product_id] + [updates[c] for c in columns])
            if not row:
                return None
            variants = await self._get_variants([product_id])
        return self._row_to_product(row, variants.get(product_id, []))

    async def delete_product(self, product_id: str) -> bool:
        async with self.db:
            status = await self.db.execute(
                f"DELETE FROM {self.products_table} WHERE id = $1", [product_id]
            )
        return status.endswith(" 1")

    async def create_variant(self, variant: ProductVariant) -> ProductVariant:
        query = f'''
            INSERT INTO {self.variants_table} (id, product_id, size, color, sku)
            VALUES ($1, $2, $3, $4, $5)
            ON CONFLICT (product_id, size, color) DO UPDATE SET sku = EXCLUDED.sku
            RETURNING *
        '''
        async with self.db:
            row = await self.db.query_row(
                query, [variant.id, variant.product_id, variant.size, variant.color, variant.sku]
            )
        return self._row_to_variant(row)

    async def _get_variants(self, product_ids: List[str]) -> Dict[str, List[ProductVariant]]:
        if not product_ids:
            return {}
        rows = await self.db.query(
            f"SELECT * FROM {self.variants_table} WHERE product_id = ANY($1::text[]) ORDER BY size, color",
            [product_ids],
        )
        grouped: Dict[str, List[ProductVariant]] = {}
        for row in rows:
            grouped.setdefault(row["product_id"], []).append(self._row_to_variant(row))
        return grouped

    def _row_to_variant(self, row: Dict[str, Any]) -> ProductVariant:
        return ProductVariant(
            id=row["id"],
            product_id=row["product_id"],
            size=row["size"],
            color=row["color"],
            sku=row["sku"],
        )

    def _row_to_product(
        self, row: Dict[str, Any], variants: Optional[List[ProductVariant]] = None
    ) -> Product:
        return Product(
            id=row["id"],
            name=row["name"],
            description=row.get("description") or "",
            price=float(row["price"]),
            original_price=float(row["original_price"]) if row.get("original_price") is not None else None,
            category=row["category"],
            subcategory=row.get("subcategory"),
            brand=row.get("brand"),
            images=list(row.get("images") or []),
            sizes=list(row.get("sizes") or []),
            colors=list(row.get("colors") or []),
            tags=list(row.get("tags") or []),
            is_active=row.get("is_active", True),
            is_featured=row.get("is_featured", False),
            rating=float(row.get("rating") or 0),
            review_count=row.get("review_count") or 0,
            variants=variants or [],
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )
