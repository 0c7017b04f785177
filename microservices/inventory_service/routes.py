"""
Inventory API routes

Admin stock views plus an authenticated availability check used by the
storefront before checkout.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from core.auth_dependencies import verify_admin, verify_auth
from core.rate_limiter import FIFTEEN_MINUTES_MS, rate_limit
from core.route_helpers import pagination, read_json_body, service_response
from core.sanitizer import sanitize_input
from core.validators import ValidationErrors, int_range, optional_string, required, required_string

from microservices.storefront_api.dependencies import get_inventory_service

from .inventory_service import InventoryService
from .models import StockRequest

router = APIRouter(prefix="/api/inventory", tags=["inventory"])

READ_LIMIT = rate_limit(100, FIFTEEN_MINUTES_MS)
CHECK_LIMIT = rate_limit(200, FIFTEEN_MINUTES_MS)

MAX_CHECK_ITEMS = 50


@router.get("", dependencies=[Depends(READ_LIMIT)])
async def list_inventory(
    request: Request,
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    service: InventoryService = Depends(get_inventory_service),
):
    await verify_admin(request)
    page, limit = pagination(page, limit)
    return service_response(await service.get_all_inventory(page, limit))


@router.get("/low-stock", dependencies=[Depends(READ_LIMIT)])
async def low_stock(
    request: Request,
    service: InventoryService = Depends(get_inventory_service),
):
    await verify_admin(request)
    return service_response(await service.get_low_stock_items())


@router.get("/{inventory_id}/movements", dependencies=[Depends(READ_LIMIT)])
async def stock_movements(
    request: Request,
    inventory_id: str,
    limit: int = Query(50, ge=1, le=200),
    service: InventoryService = Depends(get_inventory_service),
):
    await verify_admin(request)
    return service_response(await service.get_stock_movements(inventory_id, limit))


@router.post("/check", dependencies=[Depends(CHECK_LIMIT)])
async def check_availability(
    request: Request,
    service: InventoryService = Depends(get_inventory_service),
):
    await verify_auth(request)
    body = await read_json_body(request)

    errors = ValidationErrors()
    items = body.get("items")
    if errors.check(required(items, "items")) and not isinstance(items, list):
        errors.check("items must be a list")
    elif isinstance(items, list):
        if len(items) > MAX_CHECK_ITEMS:
            errors.check(f"items cannot contain more than {MAX_CHECK_ITEMS} entries")
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                errors.check(f"items[{index}] must be an object")
                continue
            errors.check(required_string(item.get("productId"), f"items[{index}].productId"))
            errors.check(optional_string(item.get("variantId"), f"items[{index}].variantId"))
            errors.check(int_range(item.get("quantity"), f"items[{index}].quantity", 1, 10000))
    errors.raise_if_any()

    items = sanitize_input(items)
    requests = [
        StockRequest(
            product_id=item["productId"],
            variant_id=item.get("variantId"),
            quantity=item["quantity"],
        )
        for item in items
    ]
    return service_response(await service.check_stock_availability(requests))
