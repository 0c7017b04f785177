"""
Common/Shared Fixtures

Base ID generators and request/clock helpers used across multiple test layers.
"""
import uuid
from typing import Dict, Optional

from starlette.requests import Request


def make_user_id() -> str:
    """Generate a unique user ID"""
    return f"usr_test_{uuid.uuid4().hex[:12]}"


def make_product_id() -> str:
    """Generate a unique product ID"""
    return f"prod_test_{uuid.uuid4().hex[:12]}"


def make_email(prefix: Optional[str] = None) -> str:
    """Generate a unique email"""
    prefix = prefix or f"test_{uuid.uuid4().hex[:8]}"
    return f"{prefix}@example.com"


class FakeClock:
    """Millisecond clock advanced by hand"""

    def __init__(self, now: int = 1_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


def build_request(headers: Optional[Dict[str, str]] = None, path: str = "/") -> Request:
    """Starlette request carrying only headers and a path"""
    return Request({
        "type": "http",
        "method": "GET",
        "scheme": "http",
        "server": ("testserver", 80),
        "path": path,
        "query_string": b"",
        "headers": [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in (headers or {}).items()
        ],
    })
