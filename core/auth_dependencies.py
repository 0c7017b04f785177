"""
FastAPI Authentication Dependencies

Bearer token verification and the three access predicates shared by every
route module:

- verify_auth: any authenticated user
- verify_admin: role must be "admin"
- verify_user_access: the owning user or an admin

Route handlers call the predicates explicitly so that auth runs after the
rate limiter and before the body is parsed.

Usage:
    @router.get("/api/cart/{user_id}")
    async def get_cart(request: Request, user_id: str):
        user = await verify_user_access(request, user_id)
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from core.auth_provider import DEFAULT_ROLE, AuthProvider, RoleResolver, StaticRoleResolver
from core.errors import (
    ForbiddenError,
    InvalidTokenError,
    InvalidTokenFormatError,
    MissingHeaderError,
)

logger = logging.getLogger(__name__)

MIN_TOKEN_LENGTH = 20
MAX_TOKEN_LENGTH = 2048
ADMIN_ROLE = "admin"


@dataclass
class AuthUser:
    """Authenticated caller"""
    uid: str
    email: Optional[str] = None
    role: str = DEFAULT_ROLE

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


_auth_provider: Optional[AuthProvider] = None
_role_resolver: RoleResolver = StaticRoleResolver()


def configure_auth(provider: AuthProvider, role_resolver: Optional[RoleResolver] = None) -> None:
    """Install the provider and role resolver used by the predicates."""
    global _auth_provider, _role_resolver
    _auth_provider = provider
    _role_resolver = role_resolver or StaticRoleResolver()


def get_auth_provider() -> AuthProvider:
    if _auth_provider is None:
        raise RuntimeError("Auth provider not configured")
    return _auth_provider


def extract_bearer_token(request: Request) -> str:
    header = request.headers.get("authorization")
    if not header or not header.startswith("Bearer "):
        raise MissingHeaderError("Missing or invalid authorization header")

    token = header[len("Bearer "):].strip()
    if not token:
        raise MissingHeaderError("Missing authentication token")
    if not MIN_TOKEN_LENGTH <= len(token) <= MAX_TOKEN_LENGTH:
        raise InvalidTokenFormatError("Invalid token format")
    return token


async def verify_auth(request: Request) -> AuthUser:
    """
    Authenticate the caller from its bearer token.

    Raises:
        MissingHeaderError: No Bearer credential
        InvalidTokenFormatError: Token length outside [20, 2048]
        InvalidTokenError: Provider rejected the token
    """
    token = extract_bearer_token(request)

    identity = await get_auth_provider().get_user(token)
    if identity is None:
        raise InvalidTokenError("Invalid or expired token")

    role = await _role_resolver.resolve_role(identity.uid) or DEFAULT_ROLE
    user = AuthUser(uid=identity.uid, email=identity.email, role=role)
    request.state.user = user
    return user


async def verify_admin(request: Request) -> AuthUser:
    user = await verify_auth(request)
    if not user.is_admin:
        logger.warning(f"Admin access denied for user {user.uid} on {request.url.path}")
        raise ForbiddenError("Admin access required")
    return user


async def verify_user_access(request: Request, resource_user_id: str) -> AuthUser:
    user = await verify_auth(request)
    ensure_owner_or_admin(user, resource_user_id)
    return user


def ensure_owner_or_admin(user: AuthUser, resource_user_id: Optional[str]) -> None:
    """Ownership check for resources whose owner is only known after loading."""
    if user.is_admin or (resource_user_id is not None and user.uid == resource_user_id):
        return
    raise ForbiddenError("Access denied: insufficient permissions")
