"""
Product Service Factory

Factory functions for creating service instances with real dependencies.
This is the ONLY place that imports I/O-dependent modules.

Usage:
    from .factory import create_product_service
    service = create_product_service(db, inventory_service)
"""
from core.postgres_client import PostgresClient
from microservices.inventory_service.inventory_service import InventoryService

from .product_service import ProductService


def create_product_service(db: PostgresClient, inventory_service: InventoryService) -> ProductService:
    """
    Create ProductService with real dependencies.

    This function imports the real repository (which has I/O dependencies).
    Use this in production, NOT in tests.

    Args:
        db: Connected PostgreSQL client
        inventory_service: Inventory service for variant stock levels

    Returns:
        Configured ProductService instance
    """
    # Import real repository here (not at module level)
    from .product_repository import ProductRepository

    return ProductService(
        repository=ProductRepository(db),
        inventory_service=inventory_service,
    )
