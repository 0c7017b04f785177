"""
Inventory Service Data Models

Stock levels per product variant, the stock movement audit trail, and the
request/response shapes used by the reservation flow.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import Field, computed_field

from core.responses import CamelModel


class MovementType(str, Enum):
    """Stock movement type"""
    IN = "in"
    OUT = "out"
    ADJUSTMENT = "adjustment"
    RESERVED = "reserved"
    RELEASED = "released"


class InventoryItem(CamelModel):
    """Stock record for a product variant"""
    id: str
    product_id: str
    variant_id: Optional[str] = None
    quantity: int = Field(default=0, ge=0)
    reserved_quantity: int = Field(default=0, ge=0)
    reorder_level: Optional[int] = None
    max_stock_level: Optional[int] = None
    location: str = "main"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field(alias="availableQuantity")
    @property
    def available_quantity(self) -> int:
        return self.quantity - self.reserved_quantity

    @property
    def is_low_stock(self) -> bool:
        return self.reorder_level is not None and self.quantity <= self.reorder_level


class StockMovement(CamelModel):
    """Append-only audit record of an inventory mutation"""
    id: str
    inventory_id: str
    movement_type: MovementType
    quantity: int
    reason: Optional[str] = None
    performed_by: Optional[str] = None
    reference_id: Optional[str] = None
    created_at: Optional[datetime] = None


class StockRequest(CamelModel):
    """Requested quantity of a product variant"""
    product_id: str
    variant_id: Optional[str] = None
    quantity: int = Field(..., gt=0)


class StockAvailability(CamelModel):
    """Availability answer for one StockRequest"""
    product_id: str
    variant_id: Optional[str] = None
    available: bool
    available_quantity: int
    requested_quantity: int
