"""
Cart Service Business Logic

Server-side shopping cart: items are validated against the catalogue and
current stock before they are stored.
"""

import logging
import uuid
from datetime import datetime
from typing import List, Optional, Tuple

from core.responses import ServiceResult
from microservices.inventory_service.inventory_service import InventoryService
from microservices.inventory_service.models import StockRequest
from microservices.product_service.models import Product, ProductVariant
from microservices.product_service.product_service import ProductService

from .models import (
    MAX_ITEM_QUANTITY,
    Cart,
    CartIssue,
    CartItem,
    CartSyncStatus,
    CartValidation,
    GuestCartItem,
)
from .protocols import CartRepositoryProtocol

logger = logging.getLogger(__name__)


def calculate_totals(items: List[CartItem]) -> Tuple[int, float]:
    """Total quantity and price of a list of cart items."""
    total_items = sum(item.quantity for item in items)
    total_price = round(sum(item.price * item.quantity for item in items), 2)
    return total_items, total_price


def last_modified(items: List[CartItem]) -> Optional[datetime]:
    """Latest change among the items, None for an empty cart."""
    stamps = [item.updated_at or item.added_at for item in items if item.updated_at or item.added_at]
    return max(stamps) if stamps else None


class CartService:
    """Cart business logic"""

    def __init__(
        self,
        repository: CartRepositoryProtocol,
        product_service: ProductService,
        inventory_service: InventoryService,
    ):
        """
        Initialize Cart Service

        Args:
            repository: Cart repository instance
            product_service: Catalogue lookups
            inventory_service: Stock availability checks
        """
        self.repository = repository
        self.product_service = product_service
        self.inventory_service = inventory_service

        logger.info("✅ CartService initialized")

    async def get_cart(self, user_id: str) -> ServiceResult:
        return ServiceResult.ok(await self._load_cart(user_id))

    async def get_cart_item_count(self, user_id: str) -> ServiceResult:
        items = await self.repository.get_items(user_id)
        total_items, _ = calculate_totals(items)
        return ServiceResult.ok({"count": total_items})

    async def get_sync_status(self, user_id: str) -> ServiceResult:
        items = await self.repository.get_items(user_id)
        total_items, _ = calculate_totals(items)
        return ServiceResult.ok(CartSyncStatus(
            user_id=user_id,
            last_modified=last_modified(items),
            total_items=total_items,
        ))

    async def add_to_cart(
        self,
        user_id: str,
        product_id: str,
        quantity: int,
        size: str,
        color: str,
    ) -> ServiceResult:
        """Add quantity of a variant, merging with an existing line."""
        product, variant, error = await self._resolve_variant(product_id, size, color)
        if error:
            return ServiceResult.fail(error)

        existing = await self.repository.get_item(user_id, product_id, size, color)
        new_quantity = quantity + (existing.quantity if existing else 0)
        if new_quantity > MAX_ITEM_QUANTITY:
            return ServiceResult.fail(f"Cannot add more than {MAX_ITEM_QUANTITY} of an item")

        if not await self._in_stock(product_id, variant.id, new_quantity):
            if existing:
                return ServiceResult.fail("Cannot add more items than available in inventory")
            return ServiceResult.fail("Insufficient inventory")

        item = await self.repository.upsert_item(CartItem(
            id=existing.id if existing else f"cart_{uuid.uuid4().hex[:16]}",
            user_id=user_id,
            product_id=product_id,
            size=size,
            color=color,
            quantity=new_quantity,
            price=product.price,
        ))
        logger.info(f"User {user_id} cart: {product_id} ({size}/{color}) x{new_quantity}")
        return ServiceResult.ok(item)

    async def update_cart_item(
        self,
        user_id: str,
        product_id: str,
        size: str,
        color: str,
        quantity: int,
    ) -> ServiceResult:
        """Set an item's quantity; zero or less removes it."""
        if quantity <= 0:
            return await self.remove_from_cart(user_id, product_id, size, color)

        existing = await self.repository.get_item(user_id, product_id, size, color)
        if not existing:
            return ServiceResult.fail("Item not found in cart")

        _, variant, error = await self._resolve_variant(product_id, size, color)
        if error:
            return ServiceResult.fail(error)
        if not await self._in_stock(product_id, variant.id, quantity):
            return ServiceResult.fail("Insufficient inventory")

        await self.repository.update_quantity(user_id, product_id, size, color, quantity)
        return ServiceResult.ok(await self._load_cart(user_id))

    async def remove_from_cart(
        self, user_id: str, product_id: str, size: str, color: str
    ) -> ServiceResult:
        if not await self.repository.delete_item(user_id, product_id, size, color):
            return ServiceResult.fail("Item not found in cart")
        return ServiceResult.ok(await self._load_cart(user_id))

    async def clear_cart(self, user_id: str) -> ServiceResult:
        removed = await self.repository.clear(user_id)
        logger.info(f"Cleared {removed} items from cart of user {user_id}")
        return ServiceResult.ok(Cart(user_id=user_id))

    async def validate_cart(self, user_id: str) -> ServiceResult:
        """Report items whose product, stock or price no longer matches."""
        items = await self.repository.get_items(user_id)
        issues = []
        for item in items:
            message = await self._check_item(item)
            if message:
                issues.append(CartIssue(item_id=item.id, product_id=item.product_id, message=message))
        return ServiceResult.ok(CartValidation(valid=not issues, issues=issues))

    async def merge_guest_cart(self, user_id: str, guest_items: List[GuestCartItem]) -> ServiceResult:
        """Add items from an anonymous session; items that cannot be added are reported."""
        skipped = []
        for guest_item in guest_items:
            result = await self.add_to_cart(
                user_id,
                guest_item.product_id,
                guest_item.quantity,
                guest_item.size,
                guest_item.color,
            )
            if not result.success:
                skipped.append({"productId": guest_item.product_id, "reason": result.error})

        cart = await self._load_cart(user_id)
        return ServiceResult.ok({"cart": cart, "skipped": skipped})

    async def _load_cart(self, user_id: str) -> Cart:
        items = await self.repository.get_items(user_id)
        total_items, total_price = calculate_totals(items)
        return Cart(user_id=user_id, items=items, total_items=total_items, total_price=total_price)

    async def _resolve_variant(
        self, product_id: str, size: str, color: str
    ) -> Tuple[Optional[Product], Optional[ProductVariant], Optional[str]]:
        result = await self.product_service.get_product(product_id)
        if not result.success or not result.data.is_active:
            return None, None, "Product not found"
        variant = result.data.find_variant(size, color)
        if not variant:
            return result.data, None, "Selected size and color are not available"
        return result.data, variant, None

    async def _in_stock(self, product_id: str, variant_id: str, quantity: int) -> bool:
        result = await self.inventory_service.check_stock_availability(
            [StockRequest(product_id=product_id, variant_id=variant_id, quantity=quantity)]
        )
        return result.data[0].available

    async def _check_item(self, item: CartItem) -> Optional[str]:
        result = await self.product_service.get_product(item.product_id)
        if not result.success:
            return "Product is no longer available"
        product = result.data
        if not product.is_active:
            return "Product is no longer active"

        variant = product.find_variant(item.size, item.color)
        if not variant:
            return "Selected size and color are no longer available"
        availability = await self.inventory_service.check_stock_availability(
            [StockRequest(product_id=item.product_id, variant_id=variant.id, quantity=item.quantity)]
        )
        entry = availability.data[0]
        if not entry.available:
            return f"Only {entry.available_quantity} items available"
        if round(product.price, 2) != round(item.price, 2):
            return f"Price has changed from {item.price:.2f} to {product.price:.2f}"
        return None
