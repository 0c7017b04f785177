"""
Auth Providers

Exchange a bearer token for a user identity. Two providers are available:

- SupabaseAuthProvider: asks the hosted auth service (``GET /auth/v1/user``)
- JWTAuthProvider: verifies the provider-signed JWT locally with the project secret

Roles are not part of the provider identity; a RoleResolver looks them up.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, runtime_checkable

import httpx

from core.config import AuthConfig, InfraConfig
from core.jwt_manager import JWTManager

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "user"


@dataclass
class ProviderUser:
    """Identity returned by an auth provider"""
    uid: str
    email: Optional[str] = None


class AuthProviderError(Exception):
    """Auth provider rejected a credential exchange"""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@runtime_checkable
class AuthProvider(Protocol):
    """Interface for bearer token verification"""

    async def get_user(self, token: str) -> Optional[ProviderUser]:
        """Return the identity behind token, or None when rejected"""
        ...


@runtime_checkable
class RoleResolver(Protocol):
    """Interface for role lookup against an authorization store"""

    async def resolve_role(self, uid: str) -> Optional[str]:
        ...


class StaticRoleResolver:
    """Resolver backed by a fixed mapping; unknown users get the default role"""

    def __init__(self, roles: Optional[Dict[str, str]] = None):
        self.roles = dict(roles or {})

    async def resolve_role(self, uid: str) -> Optional[str]:
        return self.roles.get(uid, DEFAULT_ROLE)


class SupabaseAuthProvider:
    """Supabase auth HTTP client"""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize Supabase auth client

        Args:
            base_url: Supabase project URL
            api_key: Project anon key
            timeout: Request timeout in seconds
            client: Pre-built httpx client (tests inject a mock transport)
        """
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self):
        """Close HTTP client"""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _headers(self, token: Optional[str] = None) -> Dict[str, str]:
        headers = {"apikey": self.api_key, "Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def get_user(self, token: str) -> Optional[ProviderUser]:
        try:
            response = await self.client.get(
                f"{self.base_url}/auth/v1/user",
                headers=self._headers(token),
            )
            response.raise_for_status()
            data = response.json()
            if not data.get("id"):
                return None
            return ProviderUser(uid=data["id"], email=data.get("email"))

        except httpx.HTTPStatusError as e:
            logger.info(f"Auth provider rejected token: {e.response.status_code}")
            return None
        except httpx.HTTPError as e:
            logger.error(f"Error contacting auth provider: {e}")
            return None

    async def sign_in_with_password(self, email: str, password: str) -> Dict[str, Any]:
        """
        Exchange email/password for a session

        Returns:
            Session payload (access_token, refresh_token, expires_in, user)

        Raises:
            AuthProviderError: Credentials rejected
        """
        response = await self.client.post(
            f"{self.base_url}/auth/v1/token",
            params={"grant_type": "password"},
            headers=self._headers(),
            json={"email": email, "password": password},
        )
        if response.status_code >= 400:
            raise AuthProviderError("Invalid email or password", status_code=401)
        return response.json()

    async def sign_up(self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Register a new account

        Raises:
            AuthProviderError: Provider refused the registration
        """
        response = await self.client.post(
            f"{self.base_url}/auth/v1/signup",
            headers=self._headers(),
            json={"email": email, "password": password, "data": metadata or {}},
        )
        if response.status_code >= 400:
            body = response.json() if response.content else {}
            message = body.get("msg") or body.get("error_description") or "Registration failed"
            raise AuthProviderError(message, status_code=400)
        return response.json()


class JWTAuthProvider:
    """Verifies provider-issued JWTs locally"""

    def __init__(self, jwt_manager: JWTManager):
        self.jwt_manager = jwt_manager

    async def get_user(self, token: str) -> Optional[ProviderUser]:
        result = self.jwt_manager.verify_token(token)
        if not result.get("valid"):
            logger.info(f"JWT rejected: {result.get('error')}")
            return None
        return ProviderUser(uid=result["user_id"], email=result.get("email"))

    async def sign_in_with_password(self, email: str, password: str) -> Dict[str, Any]:
        raise AuthProviderError("Password sign-in requires the Supabase provider", status_code=501)

    async def sign_up(self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        raise AuthProviderError("Registration requires the Supabase provider", status_code=501)


def create_auth_provider(auth_config: AuthConfig, infra_config: InfraConfig):
    """Build the configured auth provider."""
    if auth_config.provider == "jwt":
        if not auth_config.jwt_secret:
            raise ValueError("AUTH_PROVIDER=jwt requires JWT_SECRET")
        return JWTAuthProvider(JWTManager(
            secret_key=auth_config.jwt_secret,
            algorithm=auth_config.jwt_algorithm,
            audience=auth_config.jwt_audience,
            issuer=auth_config.jwt_issuer,
        ))

    if not infra_config.supabase_url or not infra_config.supabase_key:
        raise ValueError("AUTH_PROVIDER=supabase requires SUPABASE_URL and SUPABASE_KEY")
    return SupabaseAuthProvider(
        infra_config.supabase_url,
        infra_config.supabase_key,
        timeout=auth_config.provider_timeout,
    )
