"""
Purchase Service Factory

Factory functions for creating service instances with real dependencies.
This is the ONLY place that imports I/O-dependent modules.
"""
from core.postgres_client import PostgresClient
from microservices.cart_service.cart_service import CartService
from microservices.inventory_service.inventory_service import InventoryService
from microservices.product_service.product_service import ProductService
from microservices.user_service.user_service import UserService

from .purchase_service import PurchaseService


def create_purchase_service(
    db: PostgresClient,
    cart_service: CartService,
    product_service: ProductService,
    inventory_service: InventoryService,
    user_service: UserService,
) -> PurchaseService:
    """
    Create PurchaseService with real dependencies.

    Use this in production, NOT in tests.
    """
    # Import real repository here (not at module level)
    from .purchase_repository import PurchaseRepository

    return PurchaseService(
        repository=PurchaseRepository(db),
        cart_service=cart_service,
        product_service=product_service,
        inventory_service=inventory_service,
        user_service=user_service,
    )
