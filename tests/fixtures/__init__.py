"""
Shared Test Fixtures

Centralized factories used across all test layers.

Structure:
    - common.py: Base ID generators, FakeClock, build_request
    - storefront_fixtures.py: Model and request-body factories
"""

# Common utilities
from .common import (
    make_user_id,
    make_product_id,
    make_email,
    FakeClock,
    build_request,
)

# Storefront factories
from .storefront_fixtures import (
    make_product,
    make_user,
    make_address,
    make_address_payload,
    make_payment_method_payload,
)

__all__ = [
    'make_user_id',
    'make_product_id',
    'make_email',
    'FakeClock',
    'build_request',
    'make_product',
    'make_user',
    'make_address',
    'make_address_payload',
    'make_payment_method_payload',
]
