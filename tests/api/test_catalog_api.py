"""
Product and Inventory API Tests
"""
import pytest

from tests.fixtures import make_product

pytestmark = [pytest.mark.api]


@pytest.fixture
def hoodie(storefront):
    product = storefront.products.set_product(make_product("prod_1", price=50.0, is_featured=True))
    storefront.inventory.set_stock_level("prod_1", product.variants[0].id, quantity=10)
    return product


class TestProductReads:

    def test_list_is_public_and_camel_cased(self, client, hoodie, assertions):
        response = client.get("/api/products")

        assertions.assert_http_success(response)
        body = response.json()
        assertions.assert_has_fields(body, ["data", "total", "page", "limit", "hasMore"])
        assertions.assert_has_fields(body["data"][0], ["id", "isActive", "isFeatured", "variants"])

    def test_get_missing_product(self, client, storefront, assertions):
        assertions.assert_error(client.get("/api/products/prod_missing"), 404, "Product not found")

    def test_search_requires_query(self, client, storefront):
        response = client.get("/api/products/search")

        assert response.status_code == 400
        assert response.json()["details"] == ["q is required"]

    def test_featured(self, client, hoodie):
        response = client.get("/api/products/featured")

        assert [p["id"] for p in response.json()] == ["prod_1"]


class TestProductWrites:

    def test_create_requires_admin(self, client, storefront, user_headers, assertions):
        response = client.post(
            "/api/products", json={"name": "Tee", "price": 20, "category": "tees"}, headers=user_headers
        )

        assertions.assert_error(response, 403, "Admin access required")

    def test_create_requires_token(self, client, storefront):
        response = client.post("/api/products", json={"name": "Tee", "price": 20, "category": "tees"})

        assert response.status_code == 401

    def test_create_validates_every_field(self, client, storefront, admin_headers):
        response = client.post("/api/products", json={"price": -1}, headers=admin_headers)

        assert response.status_code == 400
        assert response.json() == {
            "error": "Validation failed",
            "details": [
                "name is required",
                "category is required",
                "price must be a positive number",
            ],
        }

    def test_create_sanitizes_text(self, client, storefront, admin_headers):
        response = client.post(
            "/api/products",
            json={"name": "<b>Tee</b>", "price": 20, "category": "tees"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["name"] == "&lt;b&gt;Tee&lt;/b&gt;"

    def test_admin_sets_variant_stock(self, client, hoodie, admin_headers):
        response = client.put(
            "/api/products/prod_1/inventory",
            json={"size": "M", "color": "Black", "quantity": 5000},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["inventory"]["quantity"] == 5000

    def test_non_admin_cannot_set_stock(self, client, hoodie, user_headers):
        response = client.put(
            "/api/products/prod_1/inventory",
            json={"size": "M", "color": "Black", "quantity": 5000},
            headers=user_headers,
        )

        assert response.status_code == 403


class TestInventoryApi:

    def test_stock_check(self, client, hoodie, user_headers):
        response = client.post("/api/inventory/check", json={
            "items": [{"productId": "prod_1", "variantId": hoodie.variants[0].id, "quantity": 3}],
        }, headers=user_headers)

        assert response.status_code == 200
        assert response.json()[0]["available"] is True

    def test_stock_check_rejects_non_string_ids(self, client, hoodie, user_headers):
        response = client.post("/api/inventory/check", json={
            "items": [{"productId": 5, "variantId": 123, "quantity": 1}],
        }, headers=user_headers)

        assert response.status_code == 400
        assert response.json()["details"] == [
            "items[0].productId must be a string",
            "items[0].variantId must be a string",
        ]

    def test_list_requires_admin(self, client, hoodie, user_headers, admin_headers):
        assert client.get("/api/inventory", headers=user_headers).status_code == 403
        assert client.get("/api/inventory", headers=admin_headers).json()["total"] == 1
