"""
Cart API Tests
"""
from datetime import datetime, timezone

import pytest

from microservices.cart_service.models import CartItem
from tests.api.conftest import USER_ID
from tests.fixtures import make_product

pytestmark = [pytest.mark.api]


@pytest.fixture
def hoodie(storefront):
    product = storefront.products.set_product(make_product("prod_1", price=50.0))
    storefront.inventory.set_stock_level("prod_1", product.variants[0].id, quantity=10)
    return product


def _line(quantity=1):
    return {"productId": "prod_1", "size": "M", "color": "Black", "quantity": quantity}


class TestAddToCart:

    def test_add_returns_201_with_item(self, client, hoodie, user_headers):
        response = client.post(f"/api/cart/{USER_ID}", json=_line(), headers=user_headers)

        assert response.status_code == 201
        body = response.json()
        assert body["quantity"] == 1
        assert body["productId"] == "prod_1"
        assert body["price"] == 50.0

    def test_quantity_above_99_is_rejected(self, client, hoodie, user_headers):
        response = client.post(f"/api/cart/{USER_ID}", json=_line(150), headers=user_headers)

        assert response.status_code == 400
        assert response.json()["details"] == ["quantity must be between 1 and 99"]

    def test_missing_fields_are_batched(self, client, hoodie, user_headers):
        response = client.post(f"/api/cart/{USER_ID}", json={}, headers=user_headers)

        assert response.json()["details"] == [
            "productId is required",
            "size is required",
            "color is required",
            "quantity is required",
        ]

    def test_non_string_keys_are_rejected(self, client, hoodie, user_headers):
        response = client.post(
            f"/api/cart/{USER_ID}",
            json={"productId": 123, "size": ["M"], "color": "Black", "quantity": 1},
            headers=user_headers,
        )

        assert response.status_code == 400
        assert response.json()["details"] == ["productId must be a string", "size must be a string"]

    def test_invalid_json(self, client, hoodie, user_headers):
        response = client.post(
            f"/api/cart/{USER_ID}",
            content=b"{not json",
            headers={**user_headers, "Content-Type": "application/json"},
        )

        assert response.status_code == 400

    def test_insufficient_stock_is_400(self, client, hoodie, user_headers, assertions):
        response = client.post(f"/api/cart/{USER_ID}", json=_line(11), headers=user_headers)

        assertions.assert_error(response, 400, "Insufficient inventory")

    def test_other_users_cart_is_forbidden(self, client, hoodie, other_headers, assertions):
        response = client.post(f"/api/cart/{USER_ID}", json=_line(), headers=other_headers)

        assertions.assert_error(response, 403, "Access denied: insufficient permissions")

    def test_admin_may_edit_any_cart(self, client, hoodie, admin_headers):
        response = client.post(f"/api/cart/{USER_ID}", json=_line(), headers=admin_headers)

        assert response.status_code == 201

    def test_missing_token(self, client, hoodie, assertions):
        response = client.post(f"/api/cart/{USER_ID}", json=_line())

        assertions.assert_error(response, 401, "Missing or invalid authorization header")

    def test_short_token(self, client, hoodie, assertions):
        response = client.post(
            f"/api/cart/{USER_ID}", json=_line(), headers={"Authorization": "Bearer short"}
        )

        assertions.assert_error(response, 401, "Invalid token format")


class TestCartReads:

    def test_get_cart_totals(self, client, hoodie, user_headers):
        client.post(f"/api/cart/{USER_ID}", json=_line(2), headers=user_headers)

        body = client.get(f"/api/cart/{USER_ID}", headers=user_headers).json()

        assert body["totalItems"] == 2
        assert body["totalPrice"] == 100.0
        assert client.get(f"/api/cart/{USER_ID}/count", headers=user_headers).json() == {"count": 2}

    def test_sync_status(self, client, storefront, hoodie, user_headers):
        storefront.carts.set_item(CartItem(
            id="cart_1",
            user_id=USER_ID,
            product_id="prod_1",
            size="M",
            color="Black",
            quantity=3,
            price=50.0,
            added_at=datetime(2026, 3, 1, 11, 0, tzinfo=timezone.utc),
            updated_at=datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc),
        ))

        body = client.get(f"/api/cart/{USER_ID}/sync-status", headers=user_headers).json()

        assert body["totalItems"] == 3
        assert body["lastModified"].startswith("2026-03-01T12:00:00")

    def test_sync_status_of_empty_cart(self, client, storefront, user_headers):
        body = client.get(f"/api/cart/{USER_ID}/sync-status", headers=user_headers).json()

        assert body == {"userId": USER_ID, "lastModified": None, "totalItems": 0}

    def test_remove_missing_item_is_404(self, client, hoodie, user_headers):
        response = client.delete(
            f"/api/cart/{USER_ID}/items",
            params={"productId": "prod_1", "size": "M", "color": "Black"},
            headers=user_headers,
        )

        assert response.status_code == 404

    def test_clear(self, client, hoodie, user_headers):
        client.post(f"/api/cart/{USER_ID}", json=_line(2), headers=user_headers)

        response = client.delete(f"/api/cart/{USER_ID}", headers=user_headers)

        assert response.json()["items"] == []
