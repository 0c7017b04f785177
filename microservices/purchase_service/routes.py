"""
Purchase API routes

Customers check out and cancel their own purchases; status changes are
admin-only. Listing and statistics without a userId are admin views.
"""

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request

from core.auth_dependencies import (
    ensure_owner_or_admin,
    verify_admin,
    verify_auth,
    verify_user_access,
)
from core.errors import ValidationError
from core.rate_limiter import FIFTEEN_MINUTES_MS, ONE_HOUR_MS, rate_limit
from core.route_helpers import pagination, read_json_body, service_response
from core.sanitizer import sanitize_input
from core.validators import ValidationErrors, int_range, one_of, optional_string, required, required_string

from microservices.storefront_api.dependencies import get_purchase_service
from microservices.user_service.models import Address
from microservices.user_service.routes import validate_address

from .models import PaymentMethod, PaymentMethodType, PurchaseFilters, PurchaseStatus
from .purchase_service import PurchaseService

router = APIRouter(prefix="/api/purchases", tags=["purchases"])

READ_LIMIT = rate_limit(100, FIFTEEN_MINUTES_MS)
CHECKOUT_LIMIT = rate_limit(20, FIFTEEN_MINUTES_MS)
UPDATE_LIMIT = rate_limit(50, FIFTEEN_MINUTES_MS)
CANCEL_LIMIT = rate_limit(10, ONE_HOUR_MS)

MAX_NOTES_LENGTH = 500


def _validate_payment_method(value: Any, errors: ValidationErrors) -> None:
    if not isinstance(value, dict):
        errors.check("paymentMethod must be an object")
        return
    errors.check(one_of(value.get("type"), "paymentMethod.type", [t.value for t in PaymentMethodType]))
    last4 = value.get("last4")
    if last4 is not None and (not isinstance(last4, str) or len(last4) != 4 or not last4.isdigit()):
        errors.check("paymentMethod.last4 must be 4 digits")
    errors.check(optional_string(value.get("brand"), "paymentMethod.brand"))
    if value.get("expiryMonth") is not None:
        errors.check(int_range(value["expiryMonth"], "paymentMethod.expiryMonth", 1, 12))
    if value.get("expiryYear") is not None:
        errors.check(int_range(value["expiryYear"], "paymentMethod.expiryYear", 2000, 2100))


def _status_filter(value: Optional[str]) -> Optional[PurchaseStatus]:
    if value is None:
        return None
    message = one_of(value, "status", [s.value for s in PurchaseStatus])
    if message:
        raise ValidationError([message])
    return PurchaseStatus(value)


@router.get("", dependencies=[Depends(READ_LIMIT)])
async def list_purchases(
    request: Request,
    user_id: Optional[str] = Query(None, alias="userId"),
    status: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    min_total: Optional[float] = Query(None, alias="minTotal"),
    max_total: Optional[float] = Query(None, alias="maxTotal"),
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    service: PurchaseService = Depends(get_purchase_service),
):
    if user_id:
        await verify_user_access(request, user_id)
    else:
        await verify_admin(request)

    filters = PurchaseFilters(
        status=_status_filter(status),
        start_date=start_date,
        end_date=end_date,
        min_total=min_total,
        max_total=max_total,
    )
    page, limit = pagination(page, limit)
    if user_id:
        return service_response(await service.get_user_purchases(user_id, filters, page, limit))
    return service_response(await service.get_all_purchases(filters, page, limit))


@router.post("", dependencies=[Depends(CHECKOUT_LIMIT)])
async def create_purchase(
    request: Request,
    service: PurchaseService = Depends(get_purchase_service),
):
    caller = await verify_auth(request)
    body = await read_json_body(request)

    errors = ValidationErrors()
    errors.check(required_string(body.get("userId"), "userId"))
    if errors.check(required(body.get("shippingAddress"), "shippingAddress")):
        validate_address(body["shippingAddress"], errors, field="shippingAddress")
    if body.get("billingAddress") is not None:
        validate_address(body["billingAddress"], errors, field="billingAddress")
    if errors.check(required(body.get("paymentMethod"), "paymentMethod")):
        _validate_payment_method(body["paymentMethod"], errors)
    notes = body.get("notes")
    if notes is not None and (not isinstance(notes, str) or len(notes) > MAX_NOTES_LENGTH):
        errors.check(f"notes must be a string of at most {MAX_NOTES_LENGTH} characters")
    errors.raise_if_any()

    ensure_owner_or_admin(caller, body["userId"])

    body = sanitize_input(body)
    result = await service.create_purchase_from_cart(
        body["userId"],
        shipping_address=Address(**body["shippingAddress"]),
        payment_method=PaymentMethod(**body["paymentMethod"]),
        billing_address=Address(**body["billingAddress"]) if body.get("billingAddress") else None,
        notes=body.get("notes"),
    )
    return service_response(result, success_status=201)


@router.get("/stats", dependencies=[Depends(READ_LIMIT)])
async def purchase_stats(
    request: Request,
    user_id: Optional[str] = Query(None, alias="userId"),
    service: PurchaseService = Depends(get_purchase_service),
):
    if user_id:
        await verify_user_access(request, user_id)
    else:
        await verify_admin(request)
    return service_response(await service.get_purchase_stats(user_id))


@router.get("/track", dependencies=[Depends(READ_LIMIT)])
async def track_purchase(
    request: Request,
    tracking_number: Optional[str] = Query(None, alias="trackingNumber"),
    service: PurchaseService = Depends(get_purchase_service),
):
    caller = await verify_auth(request)
    message = required(tracking_number, "trackingNumber")
    if message:
        raise ValidationError([message])

    result = await service.search_by_tracking_number(sanitize_input(tracking_number))
    if result.success:
        ensure_owner_or_admin(caller, result.data.user_id)
    return service_response(result)


@router.get("/{purchase_id}", dependencies=[Depends(READ_LIMIT)])
async def get_purchase(
    request: Request,
    purchase_id: str,
    service: PurchaseService = Depends(get_purchase_service),
):
    caller = await verify_auth(request)
    result = await service.get_purchase(purchase_id)
    if result.success:
        ensure_owner_or_admin(caller, result.data.user_id)
    return service_response(result)


@router.put("/{purchase_id}", dependencies=[Depends(UPDATE_LIMIT)])
async def update_purchase_status(
    request: Request,
    purchase_id: str,
    service: PurchaseService = Depends(get_purchase_service),
):
    await verify_admin(request)
    body = await read_json_body(request)

    errors = ValidationErrors()
    if errors.check(required(body.get("status"), "status")):
        errors.check(one_of(body["status"], "status", [s.value for s in PurchaseStatus]))
    tracking_number = body.get("trackingNumber")
    errors.check(optional_string(tracking_number, "trackingNumber"))
    errors.raise_if_any()

    result = await service.update_purchase_status(
        purchase_id,
        PurchaseStatus(body["status"]),
        tracking_number=sanitize_input(tracking_number),
    )
    return service_response(result)


@router.delete("/{purchase_id}", dependencies=[Depends(CANCEL_LIMIT)])
async def cancel_purchase(
    request: Request,
    purchase_id: str,
    reason: Optional[str] = Query(None),
    service: PurchaseService = Depends(get_purchase_service),
):
    caller = await verify_auth(request)
    found = await service.get_purchase(purchase_id)
    if not found.success:
        return service_response(found)
    ensure_owner_or_admin(caller, found.data.user_id)

    return service_response(await service.cancel_purchase(purchase_id, sanitize_input(reason)))
