"""
Cart Service Factory

Factory functions for creating service instances with real dependencies.
This is the ONLY place that imports I/O-dependent modules.
"""
from core.postgres_client import PostgresClient
from microservices.inventory_service.inventory_service import InventoryService
from microservices.product_service.product_service import ProductService

from .cart_service import CartService


def create_cart_service(
    db: PostgresClient,
    product_service: ProductService,
    inventory_service: InventoryService,
) -> CartService:
    """
    Create CartService with real dependencies.

    Use this in production, NOT in tests.
    """
    # Import real repository here (not at module level)
    from .cart_repository import CartRepository

    return CartService(
        repository=CartRepository(db),
        product_service=product_service,
        inventory_service=inventory_service,
    )
