"""
Component Test Layer Configuration

Services are built with mock repositories through plain constructor
injection - no patching needed.

Usage:
    pytest tests/component -v
"""
import os
import sys

import pytest

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from microservices.cart_service.cart_service import CartService
from microservices.inventory_service.inventory_service import InventoryService
from microservices.product_service.product_service import ProductService
from microservices.purchase_service.purchase_service import PurchaseService
from microservices.user_service.user_service import UserService

from tests.component.mocks import (
    MockCartRepository,
    MockInventoryRepository,
    MockPostgresClient,
    MockProductRepository,
    MockPurchaseRepository,
    MockUserRepository,
)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom markers"""
    config.addinivalue_line(
        "markers", "component: marks tests as component tests"
    )


# =============================================================================
# Mock repositories
# =============================================================================

@pytest.fixture
def mock_db() -> MockPostgresClient:
    """Mock PostgreSQL client"""
    return MockPostgresClient()


@pytest.fixture
def product_repo() -> MockProductRepository:
    return MockProductRepository()


@pytest.fixture
def inventory_repo() -> MockInventoryRepository:
    return MockInventoryRepository()


@pytest.fixture
def cart_repo() -> MockCartRepository:
    return MockCartRepository()


@pytest.fixture
def user_repo() -> MockUserRepository:
    return MockUserRepository()


@pytest.fixture
def purchase_repo() -> MockPurchaseRepository:
    return MockPurchaseRepository()


# =============================================================================
# Services
# =============================================================================

@pytest.fixture
def inventory_service(inventory_repo) -> InventoryService:
    return InventoryService(repository=inventory_repo)


@pytest.fixture
def product_service(product_repo, inventory_service) -> ProductService:
    return ProductService(repository=product_repo, inventory_service=inventory_service)


@pytest.fixture
def user_service(user_repo) -> UserService:
    return UserService(repository=user_repo)


@pytest.fixture
def cart_service(cart_repo, product_service, inventory_service) -> CartService:
    return CartService(
        repository=cart_repo,
        product_service=product_service,
        inventory_service=inventory_service,
    )


@pytest.fixture
def purchase_service(
    purchase_repo, cart_service, product_service, inventory_service, user_service
) -> PurchaseService:
    return PurchaseService(
        repository=purchase_repo,
        cart_service=cart_service,
        product_service=product_service,
        inventory_service=inventory_service,
        user_service=user_service,
    )
