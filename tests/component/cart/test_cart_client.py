"""
Cart Client and Cart Store Component Tests

CartClient talks to an in-process fake cart API through httpx.MockTransport;
CartStore is driven on top of it.
"""
import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest
import pytest_asyncio

from core.auth_dependencies import AuthUser
from microservices.cart_service.cart_state import CartAction, CartActionType, CartStore
from microservices.cart_service.client import CartClient, CartClientError

pytestmark = [pytest.mark.component, pytest.mark.asyncio]

USER = "usr_1"


class FakeCartApi:
    """Minimal server-side cart keyed by (productId, size, color)"""

    def __init__(self):
        self.items = {}
        self.requests = []
        self.modified_at = "2026-03-01T12:00:00+00:00"

    def _cart(self):
        items = list(self.items.values())
        return {
            "userId": USER,
            "items": items,
            "totalItems": sum(i["quantity"] for i in items),
            "totalPrice": sum(i["quantity"] * i["price"] for i in items),
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.headers.get("Authorization") != "Bearer token-usr-1-abcdefghijkl":
            return httpx.Response(401, json={"error": "Authentication required"})

        path = request.url.path
        if request.method == "GET" and path == f"/api/cart/{USER}":
            return httpx.Response(200, json=self._cart())
        if request.method == "GET" and path == f"/api/cart/{USER}/count":
            return httpx.Response(200, json={"count": self._cart()["totalItems"]})
        if request.method == "GET" and path == f"/api/cart/{USER}/sync-status":
            return httpx.Response(200, json={
                "userId": USER,
                "lastModified": self.modified_at if self.items else None,
                "totalItems": self._cart()["totalItems"],
            })
        if request.method == "POST" and path == f"/api/cart/{USER}":
            body = json.loads(request.content)
            if body["quantity"] > 99:
                return httpx.Response(400, json={
                    "error": "Validation failed",
                    "details": ["quantity must be between 1 and 99"],
                })
            key = (body["productId"], body["size"], body["color"])
            item = self.items.get(key) or {
                "id": f"cart_{len(self.items) + 1}",
                "userId": USER,
                "productId": body["productId"],
                "size": body["size"],
                "color": body["color"],
                "quantity": 0,
                "price": 50.0,
            }
            item["quantity"] += body["quantity"]
            item["updatedAt"] = self.modified_at
            self.items[key] = item
            return httpx.Response(201, json=item)
        if request.method == "DELETE" and path == f"/api/cart/{USER}/items":
            params = request.url.params
            self.items.pop((params["productId"], params["size"], params["color"]), None)
            return httpx.Response(200, json=self._cart())
        if request.method == "DELETE" and path == f"/api/cart/{USER}":
            self.items.clear()
            return httpx.Response(200, json=self._cart())
        return httpx.Response(404, json={"error": "Not found"})


@pytest.fixture
def api() -> FakeCartApi:
    return FakeCartApi()


@pytest_asyncio.fixture
async def cart_client(api):
    client = CartClient(
        base_url="http://storefront.test",
        token="token-usr-1-abcdefghijkl",
        client=httpx.AsyncClient(transport=httpx.MockTransport(api.handler)),
    )
    yield client
    await client.close()


class TestCartClient:

    async def test_add_item_returns_cart_item(self, cart_client):
        item = await cart_client.add_item(USER, "prod_1", "M", "Black", 2)

        assert item.product_id == "prod_1"
        assert item.quantity == 2

    async def test_get_cart_and_count(self, cart_client):
        await cart_client.add_item(USER, "prod_1", "M", "Black", 2)

        cart = await cart_client.get_cart(USER)

        assert cart.total_items == 2
        assert cart.total_price == 100.0
        assert await cart_client.count(USER) == 2

    async def test_error_body_is_raised(self, cart_client):
        with pytest.raises(CartClientError) as exc_info:
            await cart_client.add_item(USER, "prod_1", "M", "Black", 150)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Validation failed"
        assert exc_info.value.details == ["quantity must be between 1 and 99"]

    async def test_missing_token_is_rejected(self, cart_client):
        cart_client.set_token(None)

        with pytest.raises(CartClientError) as exc_info:
            await cart_client.get_cart(USER)

        assert exc_info.value.status_code == 401


class TestCartStore:

    async def test_sign_in_loads_cart(self, api, cart_client):
        await cart_client.add_item(USER, "prod_1", "M", "Black", 1)
        store = CartStore(cart_client)

        await store.on_auth_state_changed(AuthUser(uid=USER), "token-usr-1-abcdefghijkl")

        assert store.state.total_items == 1
        assert store.state.loading is False

    async def test_sign_out_clears_state(self, cart_client):
        store = CartStore(cart_client)
        await store.on_auth_state_changed(AuthUser(uid=USER), "token-usr-1-abcdefghijkl")
        await store.add_to_cart("prod_1", 2, "M", "Black")

        await store.on_auth_state_changed(None)

        assert store.state.items == []
        assert cart_client.token is None

    async def test_add_requires_signed_in_user(self, cart_client):
        store = CartStore(cart_client)

        with pytest.raises(PermissionError):
            await store.add_to_cart("prod_1")

    async def test_add_and_remove_follow_server(self, api, cart_client):
        store = CartStore(cart_client)
        await store.on_auth_state_changed(AuthUser(uid=USER), "token-usr-1-abcdefghijkl")

        await store.add_to_cart("prod_1", 2, "M", "Black")
        await store.add_to_cart("prod_1", 1, "M", "Black")
        assert store.state.total_items == 3
        assert store.state.total_price == 150.0

        await store.remove_from_cart("prod_1", "M", "Black")
        assert store.state.items == []

    async def test_failed_refresh_stops_loading(self, cart_client):
        store = CartStore(cart_client)

        await store.on_auth_state_changed(AuthUser(uid=USER), "wrong-token")

        assert store.state.loading is False
        assert store.state.items == []

    async def test_dispatch_updates_state(self, cart_client):
        store = CartStore(cart_client)

        state = store.dispatch(CartAction(CartActionType.SET_LOADING, True))

        assert state.loading is True

    async def test_sync_status_follows_server_changes(self, api, cart_client):
        store = CartStore(cart_client)
        await store.on_auth_state_changed(AuthUser(uid=USER), "token-usr-1-abcdefghijkl")
        await store.add_to_cart("prod_1", 1, "M", "Black")

        status = await store.sync_status()
        assert status.is_in_sync is True
        assert status.local_last_modified == datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

        # another device touched the cart a minute later
        api.modified_at = "2026-03-01T12:01:00+00:00"
        status = await store.sync_status()
        assert status.is_in_sync is False
        assert status.server_last_modified - status.local_last_modified == timedelta(minutes=1)

    async def test_sync_status_of_empty_cart(self, cart_client):
        store = CartStore(cart_client)
        await store.on_auth_state_changed(AuthUser(uid=USER), "token-usr-1-abcdefghijkl")

        status = await store.sync_status()

        assert status.is_in_sync is True
        assert status.server_last_modified is None

    async def test_sync_status_needs_user(self, cart_client):
        assert await CartStore(cart_client).sync_status() is None
