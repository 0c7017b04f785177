"""
Cart Service Client

HTTP client for the cart endpoints, used by the client-side cart store.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from .models import Cart, CartItem, CartSyncStatus, CartValidation, GuestCartItem

logger = logging.getLogger(__name__)


class CartClientError(Exception):
    """Cart endpoint returned an error response"""

    def __init__(self, message: str, status_code: int, details: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or []


class CartClient:
    """Cart API HTTP client"""

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize Cart client

        Args:
            base_url: Storefront API base URL
            token: Bearer token of the signed-in user
            client: Pre-built httpx client (tests inject a mock transport)
        """
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.client = client or httpx.AsyncClient(timeout=30.0)

    async def close(self):
        """Close HTTP client"""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def set_token(self, token: Optional[str]) -> None:
        self.token = token

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        response = await self.client.request(
            method, f"{self.base_url}/api/cart{path}", headers=headers, **kwargs
        )
        if response.status_code >= 400:
            body = response.json() if response.content else {}
            logger.error(f"{method} /api/cart{path} failed: {response.status_code}")
            raise CartClientError(
                body.get("error", "Cart request failed"),
                status_code=response.status_code,
                details=body.get("details"),
            )
        return response.json()

    async def get_cart(self, user_id: str) -> Cart:
        return Cart.model_validate(await self._request("GET", f"/{user_id}"))

    async def add_item(
        self, user_id: str, product_id: str, size: str, color: str, quantity: int = 1
    ) -> CartItem:
        data = await self._request("POST", f"/{user_id}", json={
            "productId": product_id,
            "size": size,
            "color": color,
            "quantity": quantity,
        })
        return CartItem.model_validate(data)

    async def update_item(
        self, user_id: str, product_id: str, size: str, color: str, quantity: int
    ) -> Cart:
        data = await self._request("PUT", f"/{user_id}/items", json={
            "productId": product_id,
            "size": size,
            "color": color,
            "quantity": quantity,
        })
        return Cart.model_validate(data)

    async def remove_item(self, user_id: str, product_id: str, size: str, color: str) -> Cart:
        data = await self._request(
            "DELETE",
            f"/{user_id}/items",
            params={"productId": product_id, "size": size, "color": color},
        )
        return Cart.model_validate(data)

    async def clear(self, user_id: str) -> Cart:
        return Cart.model_validate(await self._request("DELETE", f"/{user_id}"))

    async def count(self, user_id: str) -> int:
        data = await self._request("GET", f"/{user_id}/count")
        return data["count"]

    async def sync_status(self, user_id: str) -> CartSyncStatus:
        return CartSyncStatus.model_validate(await self._request("GET", f"/{user_id}/sync-status"))

    async def validate(self, user_id: str) -> CartValidation:
        return CartValidation.model_validate(await self._request("GET", f"/{user_id}/validate"))

    async def merge(self, user_id: str, items: List[GuestCartItem]) -> Dict[str, Any]:
        data = await self._request("POST", f"/{user_id}/merge", json={
            "items": [item.model_dump(by_alias=True) for item in items],
        })
        return {"cart": Cart.model_validate(data["cart"]), "skipped": data["skipped"]}
