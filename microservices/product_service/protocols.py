"""
Product Service Protocols (Interfaces)

These interfaces define contracts for dependency injection.
NO import-time I/O dependencies - safe to import anywhere.
"""
from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from .models import Product, ProductFilters, ProductVariant


@runtime_checkable
class ProductRepositoryProtocol(Protocol):
    """
    Interface for Product Repository.

    Implementations must provide these methods.
    Used for dependency injection to enable testing.
    """

    async def create_product(self, product: Product) -> Product:
        ...

    async def get_product(self, product_id: str) -> Optional[Product]:
        """Get product with its variants"""
        ...

    async def list_products(
        self, filters: ProductFilters, limit: int = 20, offset: int = 0
    ) -> Tuple[List[Product], int]:
        """Get one page of products and the total match count"""
        ...

    async def update_product(self, product_id: str, updates: Dict[str, Any]) -> Optional[Product]:
        ...

    async def delete_product(self, product_id: str) -> bool:
        ...

    async def create_variant(self, variant: ProductVariant) -> ProductVariant:
        ...
