"""
User API routes

Profiles are readable and editable by their owner or an admin. Role and
activation changes are admin-only. Deletion has the tightest rate limit.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request

from core.auth_dependencies import AuthUser, verify_admin, verify_auth, verify_user_access
from core.errors import ForbiddenError, ValidationError
from core.rate_limiter import FIFTEEN_MINUTES_MS, ONE_HOUR_MS, rate_limit
from core.route_helpers import pagination, read_json_body, service_response
from core.sanitizer import sanitize_input
from core.validators import ValidationErrors, email, one_of, required, required_string

from microservices.storefront_api.dependencies import get_user_service

from .models import ADMIN_FIELDS, PROFILE_FIELDS, Address, UserRole
from .user_service import UserService

router = APIRouter(prefix="/api/users", tags=["users"])

READ_LIMIT = rate_limit(100, FIFTEEN_MINUTES_MS)
WRITE_LIMIT = rate_limit(30, FIFTEEN_MINUTES_MS)
DELETE_LIMIT = rate_limit(5, ONE_HOUR_MS)

_ADDRESS_FIELDS = ("street", "city", "state", "zipCode", "country")


def validate_address(value: Any, errors: ValidationErrors, field: str = "address") -> None:
    if not isinstance(value, dict):
        errors.check(f"{field} must be an object")
        return
    for key in _ADDRESS_FIELDS:
        errors.check(required(value.get(key), f"{field}.{key}"))
        if value.get(key) is not None and not isinstance(value[key], str):
            errors.check(f"{field}.{key} must be a string")
    if "isDefault" in value and not isinstance(value["isDefault"], bool):
        errors.check(f"{field}.isDefault must be a boolean")


def validate_user_payload(body: Dict[str, Any], caller: AuthUser, partial: bool) -> Dict[str, Any]:
    """Batch-validate a profile body and map it to model field names."""
    errors = ValidationErrors()

    if not partial or "email" in body:
        if errors.check(required(body.get("email"), "email")):
            errors.check(email(body.get("email")))
    if not partial or "displayName" in body:
        errors.check(required_string(body.get("displayName"), "displayName"))
    for key in ("firstName", "lastName", "phoneNumber"):
        if body.get(key) is not None and not isinstance(body[key], str):
            errors.check(f"{key} must be a string")
    if body.get("address") is not None:
        validate_address(body["address"], errors)
    if "role" in body:
        errors.check(one_of(body["role"], "role", [role.value for role in UserRole]))
    if "isActive" in body and not isinstance(body["isActive"], bool):
        errors.check("isActive must be a boolean")
    errors.raise_if_any()

    if not caller.is_admin and any(key in body for key in ADMIN_FIELDS):
        raise ForbiddenError("Admin access required")

    allowed = {**PROFILE_FIELDS, **ADMIN_FIELDS}
    fields = {
        allowed[key]: value
        for key, value in sanitize_input(body).items()
        if key in allowed and value is not None
    }
    if body.get("address") is not None:
        fields["address"] = Address(**sanitize_input(body["address"]))
    if partial and not fields:
        errors.check("No valid fields to update")
        errors.raise_if_any()
    return fields


@router.get("", dependencies=[Depends(READ_LIMIT)])
async def list_users(
    request: Request,
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    service: UserService = Depends(get_user_service),
):
    await verify_admin(request)
    page, limit = pagination(page, limit)
    return service_response(await service.get_active_users(page, limit))


@router.post("", dependencies=[Depends(WRITE_LIMIT)])
async def create_user(
    request: Request,
    service: UserService = Depends(get_user_service),
):
    caller = await verify_auth(request)
    body = await read_json_body(request)

    user_id = body.get("id") or caller.uid
    if not isinstance(user_id, str):
        raise ValidationError(["id must be a string"])
    if user_id != caller.uid and not caller.is_admin:
        raise ForbiddenError("Access denied: insufficient permissions")

    fields = validate_user_payload(body, caller, partial=False)
    fields["id"] = sanitize_input(user_id)
    return service_response(await service.create_user(fields), success_status=201)


@router.get("/{user_id}", dependencies=[Depends(READ_LIMIT)])
async def get_user(
    request: Request,
    user_id: str,
    service: UserService = Depends(get_user_service),
):
    await verify_user_access(request, user_id)
    return service_response(await service.get_user(user_id))


@router.put("/{user_id}", dependencies=[Depends(WRITE_LIMIT)])
async def update_user(
    request: Request,
    user_id: str,
    service: UserService = Depends(get_user_service),
):
    caller = await verify_user_access(request, user_id)
    updates = validate_user_payload(await read_json_body(request), caller, partial=True)
    return service_response(await service.update_user(user_id, updates))


@router.post("/{user_id}/deactivate", dependencies=[Depends(WRITE_LIMIT)])
async def deactivate_user(
    request: Request,
    user_id: str,
    service: UserService = Depends(get_user_service),
):
    await verify_admin(request)
    return service_response(await service.deactivate_user(user_id))


@router.post("/{user_id}/reactivate", dependencies=[Depends(WRITE_LIMIT)])
async def reactivate_user(
    request: Request,
    user_id: str,
    service: UserService = Depends(get_user_service),
):
    await verify_admin(request)
    return service_response(await service.reactivate_user(user_id))


@router.delete("/{user_id}", dependencies=[Depends(DELETE_LIMIT)])
async def delete_user(
    request: Request,
    user_id: str,
    service: UserService = Depends(get_user_service),
):
    await verify_user_access(request, user_id)
    return service_response(await service.delete_user(user_id))
