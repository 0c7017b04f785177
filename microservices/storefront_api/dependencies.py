"""
Storefront service registry

Service instances are created in the app lifespan and installed here; route
modules resolve them through the get_* dependencies.
"""

from typing import Optional

from core.errors import StorefrontError

from microservices.cart_service.cart_service import CartService
from microservices.error_service.error_service import ErrorService
from microservices.inventory_service.inventory_service import InventoryService
from microservices.product_service.product_service import ProductService
from microservices.purchase_service.purchase_service import PurchaseService
from microservices.user_service.user_service import UserService

# 全局变量
cart_service: Optional[CartService] = None
product_service: Optional[ProductService] = None
inventory_service: Optional[InventoryService] = None
purchase_service: Optional[PurchaseService] = None
user_service: Optional[UserService] = None
error_service: Optional[ErrorService] = None


def set_services(
    cart: Optional[CartService] = None,
    product: Optional[ProductService] = None,
    inventory: Optional[InventoryService] = None,
    purchase: Optional[PurchaseService] = None,
    user: Optional[UserService] = None,
    errors: Optional[ErrorService] = None,
) -> None:
    """Install service instances (lifespan startup, tests)."""
    global cart_service, product_service, inventory_service, purchase_service, user_service, error_service
    cart_service = cart
    product_service = product
    inventory_service = inventory
    purchase_service = purchase
    user_service = user
    error_service = errors


def _require(service, name: str):
    if service is None:
        raise StorefrontError(f"{name} service not initialized", status_code=503)
    return service


async def get_cart_service() -> CartService:
    return _require(cart_service, "Cart")


async def get_product_service() -> ProductService:
    return _require(product_service, "Product")


async def get_inventory_service() -> InventoryService:
    return _require(inventory_service, "Inventory")


async def get_purchase_service() -> PurchaseService:
    return _require(purchase_service, "Purchase")


async def get_user_service() -> UserService:
    return _require(user_service, "User")


async def get_error_service() -> ErrorService:
    return _require(error_service, "Error")
