"""
Purchase Service Data Models

Orders created from a user's cart and their fulfilment lifecycle.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Set
from pydantic import Field

from core.responses import CamelModel
from microservices.user_service.models import Address

TAX_RATE = 0.08
FREE_SHIPPING_THRESHOLD = 100.0
FLAT_SHIPPING = 10.0


class PurchaseStatus(str, Enum):
    """Purchase lifecycle status"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


ALLOWED_TRANSITIONS: Dict[PurchaseStatus, Set[PurchaseStatus]] = {
    PurchaseStatus.PENDING: {PurchaseStatus.CONFIRMED, PurchaseStatus.CANCELLED},
    PurchaseStatus.CONFIRMED: {PurchaseStatus.PROCESSING, PurchaseStatus.CANCELLED},
    PurchaseStatus.PROCESSING: {PurchaseStatus.SHIPPED, PurchaseStatus.CANCELLED},
    PurchaseStatus.SHIPPED: {PurchaseStatus.DELIVERED},
    PurchaseStatus.DELIVERED: {PurchaseStatus.REFUNDED},
    PurchaseStatus.CANCELLED: set(),
    PurchaseStatus.REFUNDED: set(),
}

# Statuses a customer may still cancel from
CANCELLABLE_STATUSES = {PurchaseStatus.PENDING, PurchaseStatus.CONFIRMED}


class PaymentMethodType(str, Enum):
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PAYPAL = "paypal"
    APPLE_PAY = "apple_pay"
    GOOGLE_PAY = "google_pay"


class PaymentMethod(CamelModel):
    """Payment instrument summary (never the full card number)"""
    type: PaymentMethodType
    last4: Optional[str] = None
    brand: Optional[str] = None
    expiry_month: Optional[int] = None
    expiry_year: Optional[int] = None


class PurchaseItem(CamelModel):
    """Line item copied from the cart at checkout"""
    id: str
    purchase_id: str
    product_id: str
    variant_id: Optional[str] = None
    product_name: str
    size: str
    color: str
    quantity: int = Field(..., gt=0)
    price: float


class Purchase(CamelModel):
    """Customer order"""
    id: str
    user_id: str
    items: List[PurchaseItem] = Field(default_factory=list)
    subtotal: float
    tax: float
    shipping: float
    discount: float = 0.0
    total: float
    status: PurchaseStatus = PurchaseStatus.PENDING
    shipping_address: Address
    billing_address: Optional[Address] = None
    payment_method: PaymentMethod
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PurchaseFilters(CamelModel):
    status: Optional[PurchaseStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    min_total: Optional[float] = None
    max_total: Optional[float] = None


class PurchaseStats(CamelModel):
    total_purchases: int
    total_spent: float
    average_order_value: float
    status_breakdown: Dict[str, int]


def calculate_order_totals(subtotal: float, discount: float = 0.0) -> Dict[str, float]:
    """Tax is 8% of subtotal; shipping is free above 100."""
    subtotal = round(subtotal, 2)
    tax = round(subtotal * TAX_RATE, 2)
    shipping = 0.0 if subtotal > FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING
    total = round(subtotal + tax + shipping - discount, 2)
    return {
        "subtotal": subtotal,
        "tax": tax,
        "shipping": shipping,
        "discount": discount,
        "total": total,
    }
