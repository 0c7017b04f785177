"""
Cart API routes

Every endpoint is scoped to one user's cart and requires the owner or an
admin.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request

from core.auth_dependencies import verify_user_access
from core.rate_limiter import FIFTEEN_MINUTES_MS, rate_limit
from core.route_helpers import read_json_body, service_response
from core.sanitizer import sanitize_input
from core.validators import ValidationErrors, int_range, required, required_string

from microservices.storefront_api.dependencies import get_cart_service

from .cart_service import CartService
from .models import MAX_ITEM_QUANTITY, MIN_ITEM_QUANTITY, GuestCartItem

router = APIRouter(prefix="/api/cart", tags=["cart"])

READ_LIMIT = rate_limit(100, FIFTEEN_MINUTES_MS)
WRITE_LIMIT = rate_limit(50, FIFTEEN_MINUTES_MS)
CLEAR_LIMIT = rate_limit(20, FIFTEEN_MINUTES_MS)

MAX_MERGE_ITEMS = 50


def _validate_item_key(body: Dict[str, Any], errors: ValidationErrors, prefix: str = "") -> None:
    for key in ("productId", "size", "color"):
        errors.check(required_string(body.get(key), f"{prefix}{key}"))


def _validate_quantity(value: Any, errors: ValidationErrors, low: int, field: str = "quantity") -> None:
    if errors.check(required(value, field)):
        errors.check(int_range(value, field, low, MAX_ITEM_QUANTITY))


@router.get("/{user_id}", dependencies=[Depends(READ_LIMIT)])
async def get_cart(
    request: Request,
    user_id: str,
    service: CartService = Depends(get_cart_service),
):
    await verify_user_access(request, user_id)
    return service_response(await service.get_cart(user_id))


@router.post("/{user_id}", dependencies=[Depends(WRITE_LIMIT)])
async def add_to_cart(
    request: Request,
    user_id: str,
    service: CartService = Depends(get_cart_service),
):
    await verify_user_access(request, user_id)
    body = await read_json_body(request)

    errors = ValidationErrors()
    _validate_item_key(body, errors)
    _validate_quantity(body.get("quantity"), errors, MIN_ITEM_QUANTITY)
    errors.raise_if_any()

    body = sanitize_input(body)
    result = await service.add_to_cart(
        user_id,
        product_id=body["productId"],
        quantity=body["quantity"],
        size=body["size"],
        color=body["color"],
    )
    return service_response(result, success_status=201)


@router.delete("/{user_id}", dependencies=[Depends(CLEAR_LIMIT)])
async def clear_cart(
    request: Request,
    user_id: str,
    service: CartService = Depends(get_cart_service),
):
    await verify_user_access(request, user_id)
    return service_response(await service.clear_cart(user_id))


@router.put("/{user_id}/items", dependencies=[Depends(WRITE_LIMIT)])
async def update_cart_item(
    request: Request,
    user_id: str,
    service: CartService = Depends(get_cart_service),
):
    await verify_user_access(request, user_id)
    body = await read_json_body(request)

    errors = ValidationErrors()
    _validate_item_key(body, errors)
    _validate_quantity(body.get("quantity"), errors, 0)
    errors.raise_if_any()

    body = sanitize_input(body)
    result = await service.update_cart_item(
        user_id,
        product_id=body["productId"],
        size=body["size"],
        color=body["color"],
        quantity=body["quantity"],
    )
    return service_response(result)


@router.delete("/{user_id}/items", dependencies=[Depends(WRITE_LIMIT)])
async def remove_cart_item(
    request: Request,
    user_id: str,
    product_id: Optional[str] = Query(None, alias="productId"),
    size: Optional[str] = Query(None),
    color: Optional[str] = Query(None),
    service: CartService = Depends(get_cart_service),
):
    await verify_user_access(request, user_id)

    errors = ValidationErrors()
    _validate_item_key({"productId": product_id, "size": size, "color": color}, errors)
    errors.raise_if_any()

    product_id, size, color = sanitize_input([product_id, size, color])
    return service_response(await service.remove_from_cart(user_id, product_id, size, color))


@router.get("/{user_id}/count", dependencies=[Depends(READ_LIMIT)])
async def cart_item_count(
    request: Request,
    user_id: str,
    service: CartService = Depends(get_cart_service),
):
    await verify_user_access(request, user_id)
    return service_response(await service.get_cart_item_count(user_id))


@router.get("/{user_id}/sync-status", dependencies=[Depends(READ_LIMIT)])
async def cart_sync_status(
    request: Request,
    user_id: str,
    service: CartService = Depends(get_cart_service),
):
    await verify_user_access(request, user_id)
    return service_response(await service.get_sync_status(user_id))


@router.get("/{user_id}/validate", dependencies=[Depends(READ_LIMIT)])
async def validate_cart(
    request: Request,
    user_id: str,
    service: CartService = Depends(get_cart_service),
):
    await verify_user_access(request, user_id)
    return service_response(await service.validate_cart(user_id))


@router.post("/{user_id}/merge", dependencies=[Depends(WRITE_LIMIT)])
async def merge_guest_cart(
    request: Request,
    user_id: str,
    service: CartService = Depends(get_cart_service),
):
    await verify_user_access(request, user_id)
    body = await read_json_body(request)

    errors = ValidationErrors()
    items = body.get("items")
    if not isinstance(items, list):
        errors.check("items must be a list")
    elif len(items) > MAX_MERGE_ITEMS:
        errors.check(f"items cannot contain more than {MAX_MERGE_ITEMS} entries")
    else:
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                errors.check(f"items[{index}] must be an object")
                continue
            _validate_item_key(item, errors, prefix=f"items[{index}].")
            _validate_quantity(
                item.get("quantity"), errors, MIN_ITEM_QUANTITY, field=f"items[{index}].quantity"
            )
    errors.raise_if_any()

    guest_items = [
        GuestCartItem(
            product_id=item["productId"],
            size=item["size"],
            color=item["color"],
            quantity=item["quantity"],
        )
        for item in sanitize_input(items)
    ]
    return service_response(await service.merge_guest_cart(user_id, guest_items))
