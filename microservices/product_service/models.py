"""
Product Service Data Models

Catalogue entries, their size/colour variants and list filters.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import Field

from core.responses import CamelModel


def make_sku(product_id: str, size: str, color: str) -> str:
    return f"{product_id}-{size}-{color}".upper()


class ProductVariant(CamelModel):
    """Sellable size/colour combination of a product"""
    id: str
    product_id: str
    size: str
    color: str
    sku: str


class Product(CamelModel):
    """Catalogue product"""
    id: str
    name: str
    description: str = ""
    price: float = Field(..., gt=0)
    original_price: Optional[float] = None
    category: str
    subcategory: Optional[str] = None
    brand: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    sizes: List[str] = Field(default_factory=list)
    colors: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    is_active: bool = True
    is_featured: bool = False
    rating: float = 0.0
    review_count: int = 0
    variants: List[ProductVariant] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def find_variant(self, size: str, color: str) -> Optional[ProductVariant]:
        for variant in self.variants:
            if variant.size == size and variant.color == color:
                return variant
        return None


class ProductFilters(CamelModel):
    """Catalogue list filters"""
    search: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    brand: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    is_active: Optional[bool] = True
    is_featured: Optional[bool] = None
    tags: List[str] = Field(default_factory=list)


# Request body keys accepted on create/update, mapped to model fields
PRODUCT_FIELDS = {
    "name": "name",
    "description": "description",
    "price": "price",
    "originalPrice": "original_price",
    "category": "category",
    "subcategory": "subcategory",
    "brand": "brand",
    "images": "images",
    "sizes": "sizes",
    "colors": "colors",
    "tags": "tags",
    "isActive": "is_active",
    "isFeatured": "is_featured",
}
