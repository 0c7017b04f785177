"""
Product Service Business Logic

Catalogue management and per-variant stock levels.
"""

import logging
import uuid
from typing import Any, Dict, Optional

from core.responses import PaginatedResponse, ServiceResult
from microservices.inventory_service.inventory_service import InventoryService

from .models import Product, ProductFilters, ProductVariant, make_sku
from .protocols import ProductRepositoryProtocol

logger = logging.getLogger(__name__)

FEATURED_LIMIT = 8


class ProductService:
    """Product catalogue business logic"""

    def __init__(
        self,
        repository: ProductRepositoryProtocol,
        inventory_service: InventoryService,
    ):
        """
        Initialize Product Service

        Args:
            repository: Product repository instance
            inventory_service: Inventory service used for variant stock levels
        """
        self.repository = repository
        self.inventory_service = inventory_service

        logger.info("✅ ProductService initialized")

    # ====================
    # Catalogue queries
    # ====================

    async def get_product(self, product_id: str) -> ServiceResult:
        product = await self.repository.get_product(product_id)
        if not product:
            return ServiceResult.fail("Product not found")
        return ServiceResult.ok(product)

    async def get_products(
        self,
        filters: Optional[ProductFilters] = None,
        page: int = 1,
        limit: int = 20,
    ) -> ServiceResult:
        products, total = await self.repository.list_products(
            filters or ProductFilters(), limit=limit, offset=(page - 1) * limit
        )
        return ServiceResult.ok(PaginatedResponse.build(products, total, page, limit))

    async def get_featured_products(self, limit: int = FEATURED_LIMIT) -> ServiceResult:
        products, _ = await self.repository.list_products(
            ProductFilters(is_featured=True), limit=limit, offset=0
        )
        return ServiceResult.ok(products)

    async def search_products(self, query: str, page: int = 1, limit: int = 20) -> ServiceResult:
        if not query or not query.strip():
            return ServiceResult.fail("Search query is required")
        return await self.get_products(ProductFilters(search=query.strip()), page, limit)

    async def get_products_by_category(
        self, category: str, page: int = 1, limit: int = 20
    ) -> ServiceResult:
        return await self.get_products(ProductFilters(category=category), page, limit)

    # ====================
    # Catalogue management
    # ====================

    async def create_product(self, data: Dict[str, Any]) -> ServiceResult:
        product = Product(id=f"prod_{uuid.uuid4().hex[:16]}", **data)
        created = await self.repository.create_product(product)
        logger.info(f"Created product {created.id} ({created.name})")
        return ServiceResult.ok(created)

    async def update_product(self, product_id: str, updates: Dict[str, Any]) -> ServiceResult:
        if not updates:
            return ServiceResult.fail("No fields to update")
        product = await self.repository.update_product(product_id, updates)
        if not product:
            return ServiceResult.fail("Product not found")
        return ServiceResult.ok(product)

    async def delete_product(self, product_id: str) -> ServiceResult:
        if not await self.repository.delete_product(product_id):
            return ServiceResult.fail("Product not found")
        logger.info(f"Deleted product {product_id}")
        return ServiceResult.ok({"id": product_id, "deleted": True})

    async def update_inventory(
        self,
        product_id: str,
        size: str,
        color: str,
        quantity: int,
        performed_by: Optional[str] = None,
    ) -> ServiceResult:
        """Set the stock level of one size/colour, creating the variant if new."""
        product = await self.repository.get_product(product_id)
        if not product:
            return ServiceResult.fail("Product not found")

        variant = product.find_variant(size, color)
        if not variant:
            variant = await self.repository.create_variant(ProductVariant(
                id=f"var_{uuid.uuid4().hex[:16]}",
                product_id=product_id,
                size=size,
                color=color,
                sku=make_sku(product_id, size, color),
            ))
            logger.info(f"Created variant {variant.sku}")

        result = await self.inventory_service.set_stock_level(
            product_id, variant.id, quantity, performed_by=performed_by
        )
        if not result.success:
            return result

        return ServiceResult.ok({"productId": product_id, "variant": variant, "inventory": result.data})
