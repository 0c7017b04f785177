"""
Auth API routes

Thin pass-through to the hosted auth provider for password sign-in and
registration. Sign-in attempts are counted per email by the brute-force
guard; a successful sign-in clears the counters.

Credentials are forwarded unmodified (no HTML sanitization of passwords).
"""

import logging

from fastapi import APIRouter, Depends, Request

from core.auth_provider import AuthProviderError
from core.auth_dependencies import get_auth_provider
from core.config import get_settings
from core.errors import RateLimitError, StorefrontError
from core.rate_limiter import FIFTEEN_MINUTES_MS, AuthRateLimiter, get_client_ip, rate_limit
from core.route_helpers import read_json_body
from core.sanitizer import sanitize_input
from core.validators import ValidationErrors, email, password, required, required_string

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

SIGNUP_LIMIT = rate_limit(10, FIFTEEN_MINUTES_MS)
LOGIN_LIMIT = rate_limit(50, FIFTEEN_MINUTES_MS)

_guard_settings = get_settings().rate_limit
auth_guard = AuthRateLimiter(
    max_attempts=_guard_settings.auth_max_attempts,
    window_ms=_guard_settings.auth_window_ms,
    block_duration_ms=_guard_settings.auth_block_duration_ms,
)


@router.post("/login", dependencies=[Depends(LOGIN_LIMIT)])
async def login(request: Request):
    body = await read_json_body(request)

    errors = ValidationErrors()
    if errors.check(required(body.get("email"), "email")):
        errors.check(email(body["email"]))
    errors.check(required_string(body.get("password"), "password"))
    errors.raise_if_any()

    user_email = body["email"].strip().lower()
    client_ip = get_client_ip(request)

    if get_settings().rate_limit.enabled:
        guard = await auth_guard.check(request, user_email)
        if not guard.allowed:
            logger.warning(f"Sign-in locked for {user_email} from {client_ip}")
            raise RateLimitError(guard.error, retry_after=guard.retry_after)

    try:
        session = await get_auth_provider().sign_in_with_password(user_email, body["password"])
    except AuthProviderError as e:
        raise StorefrontError(e.message, status_code=e.status_code)

    await auth_guard.reset_auth_attempts(user_email, client_ip)
    logger.info(f"User {user_email} signed in")
    return session


@router.post("/signup", status_code=201, dependencies=[Depends(SIGNUP_LIMIT)])
async def signup(request: Request):
    body = await read_json_body(request)

    errors = ValidationErrors()
    if errors.check(required(body.get("email"), "email")):
        errors.check(email(body["email"]))
    if errors.check(required(body.get("password"), "password")):
        errors.extend(password(body["password"]).errors)
    display_name = body.get("displayName")
    if display_name is not None and not isinstance(display_name, str):
        errors.check("displayName must be a string")
    errors.raise_if_any()

    metadata = {"display_name": sanitize_input(display_name)} if display_name else {}
    try:
        account = await get_auth_provider().sign_up(
            body["email"].strip().lower(), body["password"], metadata
        )
    except AuthProviderError as e:
        raise StorefrontError(e.message, status_code=e.status_code)

    logger.info(f"Registered account for {body['email']}")
    return account
