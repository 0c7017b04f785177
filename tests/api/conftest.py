"""
API Test Layer Configuration

HTTP contract tests against the real FastAPI app. Services are wired to the
component-layer mock repositories and installed directly, so the app
lifespan (database, Redis) never runs.

Usage:
    pytest tests/api -v
"""
import os
import sys
from dataclasses import dataclass
from typing import Dict

import pytest
from fastapi.testclient import TestClient

# Add project root
sys.path.insert(
    0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
)

from core.auth_dependencies import configure_auth
from core.auth_provider import StaticRoleResolver
from core.rate_limiter import InMemoryRateLimitStore, set_rate_limit_store
from microservices.cart_service.cart_service import CartService
from microservices.error_service.error_service import ErrorService
from microservices.inventory_service.inventory_service import InventoryService
from microservices.product_service.product_service import ProductService
from microservices.purchase_service.purchase_service import PurchaseService
from microservices.storefront_api.dependencies import set_services
from microservices.user_service.user_service import UserService

from tests.component.mocks import (
    MockAuthProvider,
    MockCartRepository,
    MockErrorRepository,
    MockInventoryRepository,
    MockProductRepository,
    MockPurchaseRepository,
    MockUserRepository,
)
from tests.fixtures import make_user

USER_ID = "usr_1"
OTHER_USER_ID = "usr_2"
ADMIN_ID = "adm_1"

USER_TOKEN = "user-one-token-0123456789"
OTHER_TOKEN = "user-two-token-0123456789"
ADMIN_TOKEN = "admin-token-0123456789abc"


@dataclass
class Storefront:
    """Mock repositories behind the app under test"""
    products: MockProductRepository
    inventory: MockInventoryRepository
    carts: MockCartRepository
    users: MockUserRepository
    purchases: MockPurchaseRepository
    auth: MockAuthProvider
    errors: MockErrorRepository


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers() -> Dict[str, str]:
    return auth_headers(USER_TOKEN)


@pytest.fixture
def other_headers() -> Dict[str, str]:
    return auth_headers(OTHER_TOKEN)


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    return auth_headers(ADMIN_TOKEN)


@pytest.fixture
def storefront() -> Storefront:
    """Services over fresh mock repositories, installed into the app"""
    backend = Storefront(
        products=MockProductRepository(),
        inventory=MockInventoryRepository(),
        carts=MockCartRepository(),
        users=MockUserRepository(),
        purchases=MockPurchaseRepository(),
        auth=MockAuthProvider(),
        errors=MockErrorRepository(),
    )

    inventory = InventoryService(backend.inventory)
    product = ProductService(backend.products, inventory)
    user = UserService(backend.users)
    cart = CartService(backend.carts, product, inventory)
    purchase = PurchaseService(backend.purchases, cart, product, inventory, user)
    set_services(
        cart=cart,
        product=product,
        inventory=inventory,
        purchase=purchase,
        user=user,
        errors=ErrorService(backend.errors),
    )

    backend.auth.add_user(USER_TOKEN, USER_ID, "one@example.com")
    backend.auth.add_user(OTHER_TOKEN, OTHER_USER_ID, "two@example.com")
    backend.auth.add_user(ADMIN_TOKEN, ADMIN_ID, "admin@example.com")
    backend.users.set_user(make_user(USER_ID, email="one@example.com"))
    backend.users.set_user(make_user(OTHER_USER_ID, email="two@example.com"))

    configure_auth(backend.auth, StaticRoleResolver({ADMIN_ID: "admin"}))
    set_rate_limit_store(InMemoryRateLimitStore())

    yield backend

    set_services()
    set_rate_limit_store(InMemoryRateLimitStore())


@pytest.fixture
def client(storefront) -> TestClient:
    """TestClient without lifespan (no database)"""
    from microservices.storefront_api.main import app

    return TestClient(app, raise_server_exceptions=False)
