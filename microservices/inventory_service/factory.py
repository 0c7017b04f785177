"""
Inventory Service Factory

Factory functions for creating service instances with real dependencies.
This is the ONLY place that imports I/O-dependent modules.

Usage:
    from .factory import create_inventory_service
    service = create_inventory_service(db)
"""
from core.postgres_client import PostgresClient

from .inventory_service import InventoryService


def create_inventory_service(db: PostgresClient) -> InventoryService:
    """
    Create InventoryService with real dependencies.

    This function imports the real repository (which has I/O dependencies).
    Use this in production, NOT in tests.
    """
    # Import real repository here (not at module level)
    from .inventory_repository import InventoryRepository

    return InventoryService(repository=InventoryRepository(db))
