"""
Cart Service Data Models
"""

from datetime import datetime
from typing import List, Optional
from pydantic import Field

from core.responses import CamelModel

MIN_ITEM_QUANTITY = 1
MAX_ITEM_QUANTITY = 99


class CartItem(CamelModel):
    """One product variant in a user's cart"""
    id: str
    user_id: str
    product_id: str
    size: str
    color: str
    quantity: int = Field(..., ge=MIN_ITEM_QUANTITY, le=MAX_ITEM_QUANTITY)
    price: float
    added_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)


class Cart(CamelModel):
    """A user's cart with derived totals"""
    user_id: str
    items: List[CartItem] = Field(default_factory=list)
    total_items: int = 0
    total_price: float = 0.0


class CartIssue(CamelModel):
    """Problem found while validating a cart item"""
    item_id: str
    product_id: str
    message: str


class CartValidation(CamelModel):
    valid: bool
    issues: List[CartIssue] = Field(default_factory=list)


class GuestCartItem(CamelModel):
    """Item carried over from an anonymous session"""
    product_id: str
    size: str
    color: str
    quantity: int


class CartSyncStatus(CamelModel):
    """When the stored cart last changed, for clients holding a local copy"""
    user_id: str
    last_modified: Optional[datetime] = None
    total_items: int = 0
