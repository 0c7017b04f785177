#!/usr/bin/env python3
"""
Core Module for the Storefront Backend

Shared components used by every resource service.

COMPONENTS:
    - config/: Environment-driven configuration (dataclasses + dotenv)
    - logger.py: Service logger setup
    - errors.py: Error taxonomy mapped to HTTP status codes
    - sanitizer.py / validators.py: Request input hygiene
    - rate_limiter.py: Fixed-window rate limiting with progressive blocking
    - auth_provider.py / auth_dependencies.py: Bearer token verification and access predicates
    - jwt_manager.py: Local JWT verification
    - postgres_client.py: asyncpg pool wrapper

USAGE:
    from core.config import get_settings
    from core.auth_dependencies import verify_user_access

    settings = get_settings()
"""

__version__ = "1.0.0"
