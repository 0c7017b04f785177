"""
Order Totals and Status Transition Unit Tests
"""
import pytest

from microservices.purchase_service.models import (
    ALLOWED_TRANSITIONS,
    CANCELLABLE_STATUSES,
    PurchaseStatus,
    calculate_order_totals,
)

pytestmark = [pytest.mark.unit]


class TestCalculateOrderTotals:

    def test_flat_shipping_at_threshold(self):
        assert calculate_order_totals(100.0) == {
            "subtotal": 100.0, "tax": 8.0, "shipping": 10.0, "discount": 0.0, "total": 118.0,
        }

    def test_free_shipping_above_threshold(self):
        totals = calculate_order_totals(120.0)

        assert totals["shipping"] == 0.0
        assert totals["total"] == 129.6

    def test_discount_reduces_total(self):
        assert calculate_order_totals(50.0, discount=5.0)["total"] == 59.0

    def test_rounds_to_cents(self):
        totals = calculate_order_totals(19.99)

        assert totals["tax"] == 1.6
        assert totals["total"] == 31.59


class TestTransitions:

    def test_terminal_statuses(self):
        assert ALLOWED_TRANSITIONS[PurchaseStatus.CANCELLED] == set()
        assert ALLOWED_TRANSITIONS[PurchaseStatus.REFUNDED] == set()

    def test_every_status_has_an_entry(self):
        assert set(ALLOWED_TRANSITIONS) == set(PurchaseStatus)

    def test_shipped_can_no_longer_be_cancelled(self):
        assert PurchaseStatus.CANCELLED not in ALLOWED_TRANSITIONS[PurchaseStatus.SHIPPED]
        assert PurchaseStatus.SHIPPED not in CANCELLABLE_STATUSES
