"""
Component Test Mocks

Shared mock implementations for component testing.
These mocks replace real I/O dependencies (database, auth provider, Redis).
"""

from .db_mock import MockPostgresClient
from .auth_mocks import MockAuthProvider
from .cart_mocks import MockCartRepository
from .error_mocks import MockErrorRepository
from .inventory_mocks import MockInventoryRepository
from .product_mocks import MockProductRepository
from .purchase_mocks import MockPurchaseRepository
from .redis_mock import MockRedis
from .user_mocks import MockUserRepository

__all__ = [
    'MockPostgresClient',
    'MockAuthProvider',
    'MockCartRepository',
    'MockErrorRepository',
    'MockInventoryRepository',
    'MockProductRepository',
    'MockPurchaseRepository',
    'MockRedis',
    'MockUserRepository',
]
