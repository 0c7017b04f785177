#!/usr/bin/env python3
"""Storefront main configuration

Combines infrastructure and logging sub-configs with the request pipeline
settings (auth provider, rate limiting).
"""
import os
from dataclasses import dataclass, field
from typing import Optional

from .infra_config import InfraConfig
from .logging_config import LoggingConfig


def _bool(val: str) -> bool:
    return val.lower() == "true"


def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default


@dataclass
class AuthConfig:
    """Bearer token verification settings"""
    provider: str = "supabase"           # supabase | jwt
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    jwt_audience: Optional[str] = "authenticated"
    jwt_issuer: Optional[str] = None
    provider_timeout: float = 10.0

    @classmethod
    def from_env(cls) -> 'AuthConfig':
        return cls(
            provider=os.getenv("AUTH_PROVIDER", "supabase").lower(),
            jwt_secret=os.getenv("JWT_SECRET") or os.getenv("SUPABASE_JWT_SECRET"),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            jwt_audience=os.getenv("JWT_AUDIENCE", "authenticated") or None,
            jwt_issuer=os.getenv("JWT_ISSUER") or None,
            provider_timeout=float(os.getenv("AUTH_PROVIDER_TIMEOUT", "10")),
        )


@dataclass
class RateLimitConfig:
    """Rate limiter settings"""
    enabled: bool = True
    backend: str = "memory"              # memory | redis
    key_prefix: str = "storefront:ratelimit:"

    # Default limiter (per client IP + user agent)
    max_requests: int = 100
    window_ms: int = 15 * 60 * 1000
    block_duration_ms: int = 60 * 60 * 1000

    # Brute-force guard for login attempts
    auth_max_attempts: int = 5
    auth_window_ms: int = 15 * 60 * 1000
    auth_block_duration_ms: int = 30 * 60 * 1000

    @classmethod
    def from_env(cls) -> 'RateLimitConfig':
        return cls(
            enabled=_bool(os.getenv("RATE_LIMIT_ENABLED", "true")),
            backend=os.getenv("RATE_LIMIT_BACKEND", "memory").lower(),
            key_prefix=os.getenv("RATE_LIMIT_KEY_PREFIX", "storefront:ratelimit:"),
            max_requests=_int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"), 100),
            window_ms=_int(os.getenv("RATE_LIMIT_WINDOW_MS", str(15 * 60 * 1000)), 15 * 60 * 1000),
            block_duration_ms=_int(os.getenv("RATE_LIMIT_BLOCK_MS", str(60 * 60 * 1000)), 60 * 60 * 1000),
            auth_max_attempts=_int(os.getenv("AUTH_RATE_LIMIT_MAX_ATTEMPTS", "5"), 5),
            auth_window_ms=_int(os.getenv("AUTH_RATE_LIMIT_WINDOW_MS", str(15 * 60 * 1000)), 15 * 60 * 1000),
            auth_block_duration_ms=_int(os.getenv("AUTH_RATE_LIMIT_BLOCK_MS", str(30 * 60 * 1000)), 30 * 60 * 1000),
        )


@dataclass
class StorefrontConfig:
    """Main storefront configuration"""
    environment: str = "development"
    debug: bool = False
    service_name: str = "storefront"
    host: str = "0.0.0.0"
    port: int = 8080
    cors_origins: str = "*"

    infra: InfraConfig = field(default_factory=InfraConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)

    @property
    def is_production(self) -> bool:
        return self.environment in ("production", "prod")

    @classmethod
    def from_env(cls) -> 'StorefrontConfig':
        """Load full configuration from environment"""
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            environment=env,
            debug=_bool(os.getenv("DEBUG", "false")),
            service_name=os.getenv("SERVICE_NAME", "storefront"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_int(os.getenv("PORT", "8080"), 8080),
            cors_origins=os.getenv("CORS_ORIGINS", "*"),
            infra=InfraConfig.from_env(),
            logging=LoggingConfig.from_env(),
            auth=AuthConfig.from_env(),
            rate_limit=RateLimitConfig.from_env(),
        )
