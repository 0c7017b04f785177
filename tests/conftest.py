"""
Root conftest.py - Global fixtures and configuration for all test layers.

Test Layers:
    - api/        : API contract tests (FastAPI TestClient, mocked services)
    - component/  : Component tests (services with mock repositories)
    - unit/       : Unit tests (pure functions, no I/O)
"""
import os
import sys
from typing import Any, Dict, List

import pytest

# Set testing environment BEFORE any project imports read settings
os.environ.setdefault("ENV", "testing")
os.environ.setdefault("RATE_LIMIT_BACKEND", "memory")
os.environ.setdefault("AUTH_PROVIDER", "jwt")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-storefront-tests")

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from tests.fixtures import (
    make_address_payload,
    make_email,
    make_payment_method_payload,
    make_product_id,
    make_user_id,
)


# =============================================================================
# Assertion Helpers
# =============================================================================

class AssertionHelpers:
    """Custom assertion helpers for tests"""

    @staticmethod
    def assert_http_success(response, expected_status: int = 200):
        """Assert HTTP response is successful"""
        assert response.status_code == expected_status, \
            f"Expected {expected_status}, got {response.status_code}: {response.text}"

    @staticmethod
    def assert_has_fields(data: Dict, fields: List[str]):
        """Assert dict has required fields"""
        missing = [f for f in fields if f not in data]
        assert not missing, f"Missing fields: {missing}"

    @staticmethod
    def assert_error(response, status: int, message: str):
        """Assert an error body {"error": message} with the given status"""
        assert response.status_code == status, \
            f"Expected {status}, got {response.status_code}: {response.text}"
        assert response.json()["error"] == message


@pytest.fixture
def assertions() -> AssertionHelpers:
    """Provide assertion helpers"""
    return AssertionHelpers()


@pytest.fixture
def address_payload() -> Dict[str, Any]:
    return make_address_payload()


@pytest.fixture
def payment_payload() -> Dict[str, Any]:
    return make_payment_method_payload()


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "api: API contract tests")
    config.addinivalue_line("markers", "component: Component tests")
    config.addinivalue_line("markers", "unit: Unit tests")
