"""
JWT Token Manager for the Storefront

Verifies HS256 access tokens issued by the hosted auth provider (Supabase
signs session tokens with the project JWT secret) and can mint compatible
tokens for local development and tests.
"""

import jwt
import uuid
import secrets
import logging
from typing import Dict, Any, Optional
from datetime import datetime, timedelta, timezone
from enum import Enum
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


class TokenScope(Enum):
    """Token scopes"""
    USER = "user"
    ADMIN = "admin"


@dataclass
class TokenClaims:
    """Standard token claims"""
    user_id: str
    email: Optional[str] = None
    scope: TokenScope = TokenScope.USER
    metadata: Dict[str, Any] = field(default_factory=dict)


class JWTManager:
    """
    JWT Token Manager

    Features:
    - Verification of provider-issued access tokens (audience aware)
    - Token creation with the same claim layout for development and tests
    """

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: str = "HS256",
        audience: Optional[str] = "authenticated",
        issuer: Optional[str] = None,
        access_token_expiry: int = 3600,  # 1 hour
    ):
        """
        Initialize JWT Manager

        Args:
            secret_key: Secret key for signing tokens (will auto-generate if not provided)
            algorithm: JWT algorithm (default: HS256)
            audience: Expected "aud" claim (None disables the check)
            issuer: Expected "iss" claim (None disables the check)
            access_token_expiry: Access token expiry in seconds
        """
        self.secret_key = secret_key or self._generate_secret()
        self.algorithm = algorithm
        self.audience = audience
        self.issuer = issuer
        self.access_token_expiry = access_token_expiry

        if not secret_key:
            logger.warning(
                "No JWT_SECRET provided - using generated secret. "
                "This should ONLY be used in development!"
            )

    def _generate_secret(self) -> str:
        """Generate a secure random secret"""
        return secrets.token_urlsafe(64)

    def create_access_token(
        self,
        claims: TokenClaims,
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Create an access token

        Args:
            claims: Token claims
            expires_delta: Custom expiration time (optional)

        Returns:
            JWT access token string
        """
        now = datetime.now(tz=timezone.utc)
        expires = now + (expires_delta or timedelta(seconds=self.access_token_expiry))

        payload = {
            "iss": self.issuer,
            "aud": self.audience,
            "sub": claims.user_id,
            "iat": int(now.timestamp()),
            "exp": int(expires.timestamp()),
            "jti": str(uuid.uuid4()),
            "email": claims.email,
            "role": "authenticated",
            "app_metadata": {"role": claims.scope.value},
            "user_metadata": claims.metadata,
        }

        # Remove None values
        payload = {k: v for k, v in payload.items() if v is not None}

        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

        logger.debug(f"Created access token for user: {claims.user_id}, expires: {expires}")
        return token

    def verify_token(self, token: str, verify_exp: bool = True) -> Dict[str, Any]:
        """
        Verify and decode a JWT token

        Args:
            token: JWT token string
            verify_exp: Verify expiration (default: True)

        Returns:
            Dictionary with verification result and payload
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
                options={
                    "verify_exp": verify_exp,
                    "verify_aud": self.audience is not None,
                    "verify_iss": self.issuer is not None,
                },
            )

            if not payload.get("sub"):
                return {"valid": False, "error": "Token has no subject"}

            return {
                "valid": True,
                "payload": payload,
                "user_id": payload.get("sub"),
                "email": payload.get("email"),
                "scope": (payload.get("app_metadata") or {}).get("role"),
                "expires_at": datetime.fromtimestamp(payload.get("exp", 0), tz=timezone.utc),
            }

        except jwt.ExpiredSignatureError:
            return {
                "valid": False,
                "error": "Token has expired"
            }
        except jwt.InvalidIssuerError:
            return {
                "valid": False,
                "error": "Invalid token issuer"
            }
        except jwt.InvalidTokenError as e:
            return {
                "valid": False,
                "error": f"Invalid token: {str(e)}"
            }
