"""
Purchase Service Business Logic

Checkout turns a validated cart into a purchase: stock is reserved first,
the purchase and its items are stored together, and the cart is cleared.
Status changes drive the rest of the reservation lifecycle (fulfil on
shipping, release on cancellation).
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from core.responses import PaginatedResponse, ServiceResult
from microservices.cart_service.cart_service import CartService
from microservices.inventory_service.inventory_service import InventoryService
from microservices.inventory_service.models import StockRequest
from microservices.product_service.product_service import ProductService
from microservices.user_service.models import Address
from microservices.user_service.user_service import UserService

from .models import (
    ALLOWED_TRANSITIONS,
    CANCELLABLE_STATUSES,
    PaymentMethod,
    Purchase,
    PurchaseFilters,
    PurchaseItem,
    PurchaseStats,
    PurchaseStatus,
    calculate_order_totals,
)
from .protocols import PurchaseRepositoryProtocol

logger = logging.getLogger(__name__)

# Excluded from spend totals
_UNPAID_STATUSES = {PurchaseStatus.CANCELLED.value, PurchaseStatus.REFUNDED.value}


def _stock_requests(purchase: Purchase) -> List[StockRequest]:
    return [
        StockRequest(product_id=item.product_id, variant_id=item.variant_id, quantity=item.quantity)
        for item in purchase.items
    ]


class PurchaseService:
    """Purchase business logic"""

    def __init__(
        self,
        repository: PurchaseRepositoryProtocol,
        cart_service: CartService,
        product_service: ProductService,
        inventory_service: InventoryService,
        user_service: UserService,
    ):
        """
        Initialize Purchase Service

        Args:
            repository: Purchase repository instance
            cart_service: Source cart for checkout
            product_service: Product names and variant ids for line items
            inventory_service: Stock reservation lifecycle
            user_service: Purchaser lookup
        """
        self.repository = repository
        self.cart_service = cart_service
        self.product_service = product_service
        self.inventory_service = inventory_service
        self.user_service = user_service

        logger.info("✅ PurchaseService initialized")

    async def create_purchase_from_cart(
        self,
        user_id: str,
        shipping_address: Address,
        payment_method: PaymentMethod,
        billing_address: Optional[Address] = None,
        notes: Optional[str] = None,
    ) -> ServiceResult:
        """
        Check out a user's cart.

        Stock is reserved before the purchase is written; if writing fails
        the reservation is released and the error propagates.
        """
        user = await self.user_service.get_user(user_id)
        if not user.success:
            return ServiceResult.fail("User not found")

        cart = (await self.cart_service.get_cart(user_id)).data
        if not cart.items:
            return ServiceResult.fail("Cart is empty or not found")

        validation = (await self.cart_service.validate_cart(user_id)).data
        if not validation.valid:
            messages = "; ".join(issue.message for issue in validation.issues)
            return ServiceResult.fail(f"Cart validation failed: {messages}")

        purchase_id = f"pur_{uuid.uuid4().hex[:16]}"
        items = []
        for cart_item in cart.items:
            product = (await self.product_service.get_product(cart_item.product_id)).data
            variant = product.find_variant(cart_item.size, cart_item.color)
            items.append(PurchaseItem(
                id=f"pi_{uuid.uuid4().hex[:16]}",
                purchase_id=purchase_id,
                product_id=cart_item.product_id,
                variant_id=variant.id,
                product_name=product.name,
                size=cart_item.size,
                color=cart_item.color,
                quantity=cart_item.quantity,
                price=cart_item.price,
            ))

        totals = calculate_order_totals(sum(item.price * item.quantity for item in items))
        purchase = Purchase(
            id=purchase_id,
            user_id=user_id,
            items=items,
            shipping_address=shipping_address,
            billing_address=billing_address,
            payment_method=payment_method,
            notes=notes,
            **totals,
        )

        reserved = await self.inventory_service.reserve_stock(_stock_requests(purchase), purchase_id)
        if not reserved.success:
            return ServiceResult.fail(reserved.error)

        try:
            created = await self.repository.create_purchase(purchase)
        except Exception:
            logger.error(f"Failed to store purchase {purchase_id}, releasing reservation")
            await self.inventory_service.release_reserved_stock(_stock_requests(purchase), purchase_id)
            raise

        await self.cart_service.clear_cart(user_id)
        logger.info(f"Purchase {purchase_id} created for user {user_id}: total {created.total:.2f}")
        return ServiceResult.ok(created)

    async def get_purchase(self, purchase_id: str) -> ServiceResult:
        purchase = await self.repository.get_purchase(purchase_id)
        if not purchase:
            return ServiceResult.fail("Purchase not found")
        return ServiceResult.ok(purchase)

    async def get_user_purchases(
        self,
        user_id: str,
        filters: Optional[PurchaseFilters] = None,
        page: int = 1,
        limit: int = 20,
    ) -> ServiceResult:
        purchases, total = await self.repository.list_purchases(
            filters or PurchaseFilters(), user_id=user_id, limit=limit, offset=(page - 1) * limit
        )
        return ServiceResult.ok(PaginatedResponse.build(purchases, total, page, limit))

    async def get_all_purchases(
        self,
        filters: Optional[PurchaseFilters] = None,
        page: int = 1,
        limit: int = 20,
    ) -> ServiceResult:
        purchases, total = await self.repository.list_purchases(
            filters or PurchaseFilters(), limit=limit, offset=(page - 1) * limit
        )
        return ServiceResult.ok(PaginatedResponse.build(purchases, total, page, limit))

    async def update_purchase_status(
        self,
        purchase_id: str,
        status: PurchaseStatus,
        tracking_number: Optional[str] = None,
    ) -> ServiceResult:
        """Move a purchase along its lifecycle, keeping stock in step."""
        purchase = await self.repository.get_purchase(purchase_id)
        if not purchase:
            return ServiceResult.fail("Purchase not found")

        updates = {}
        if tracking_number and tracking_number != purchase.tracking_number:
            holder = await self.repository.get_by_tracking_number(tracking_number)
            if holder and holder.id != purchase_id:
                return ServiceResult.fail("Tracking number already in use")
            updates["tracking_number"] = tracking_number

        if status != purchase.status:
            if status not in ALLOWED_TRANSITIONS[purchase.status]:
                return ServiceResult.fail(
                    f"Cannot change status from {purchase.status.value} to {status.value}"
                )
            updates["status"] = status
            now = datetime.now(timezone.utc)

            if status == PurchaseStatus.SHIPPED:
                fulfilled = await self.inventory_service.fulfill_order(
                    _stock_requests(purchase), purchase_id
                )
                if not fulfilled.success:
                    return ServiceResult.fail(fulfilled.error)
                updates["shipped_at"] = now
            elif status == PurchaseStatus.DELIVERED:
                updates["delivered_at"] = now
            elif status == PurchaseStatus.CANCELLED:
                released = await self.inventory_service.release_reserved_stock(
                    _stock_requests(purchase), purchase_id
                )
                if not released.success:
                    return ServiceResult.fail(released.error)

        if not updates:
            return ServiceResult.ok(purchase)

        updated = await self.repository.update_purchase(purchase_id, updates)
        if not updated:
            return ServiceResult.fail("Purchase not found")
        logger.info(f"Purchase {purchase_id}: {purchase.status.value} -> {updated.status.value}")
        return ServiceResult.ok(updated)

    async def cancel_purchase(self, purchase_id: str, reason: Optional[str] = None) -> ServiceResult:
        purchase = await self.repository.get_purchase(purchase_id)
        if not purchase:
            return ServiceResult.fail("Purchase not found")
        if purchase.status not in CANCELLABLE_STATUSES:
            return ServiceResult.fail("Purchase cannot be cancelled at this stage")

        released = await self.inventory_service.release_reserved_stock(
            _stock_requests(purchase), purchase_id
        )
        if not released.success:
            return ServiceResult.fail(released.error)

        updates = {"status": PurchaseStatus.CANCELLED}
        if reason:
            note = f"Cancelled: {reason}"
            updates["notes"] = f"{purchase.notes} | {note}" if purchase.notes else note

        updated = await self.repository.update_purchase(purchase_id, updates)
        logger.info(f"Purchase {purchase_id} cancelled")
        return ServiceResult.ok(updated)

    async def get_purchase_stats(self, user_id: Optional[str] = None) -> ServiceResult:
        """Counts per status plus spend over purchases that were paid for."""
        totals = await self.repository.get_status_totals(user_id)

        breakdown = {status.value: 0 for status in PurchaseStatus}
        paid_count = 0
        total_spent = 0.0
        for status, (count, amount) in totals.items():
            breakdown[status] = count
            if status not in _UNPAID_STATUSES:
                paid_count += count
                total_spent += amount

        total_spent = round(total_spent, 2)
        return ServiceResult.ok(PurchaseStats(
            total_purchases=sum(breakdown.values()),
            total_spent=total_spent,
            average_order_value=round(total_spent / paid_count, 2) if paid_count else 0.0,
            status_breakdown=breakdown,
        ))

    async def search_by_tracking_number(self, tracking_number: str) -> ServiceResult:
        purchase = await self.repository.get_by_tracking_number(tracking_number)
        if not purchase:
            return ServiceResult.fail("Purchase not found for this tracking number")
        return ServiceResult.ok(purchase)
