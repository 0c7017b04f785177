"""
Product API routes

Catalogue reads are public; every mutation requires an admin.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request

from core.auth_dependencies import verify_admin
from core.rate_limiter import FIFTEEN_MINUTES_MS, ONE_HOUR_MS, rate_limit
from core.route_helpers import pagination, read_json_body, service_response
from core.sanitizer import sanitize_input
from core.validators import (
    ValidationErrors,
    non_negative_integer,
    positive_number,
    required,
    required_string,
)

from microservices.storefront_api.dependencies import get_product_service

from .models import PRODUCT_FIELDS, ProductFilters
from .product_service import ProductService

router = APIRouter(prefix="/api/products", tags=["products"])

READ_LIMIT = rate_limit(200, FIFTEEN_MINUTES_MS)
WRITE_LIMIT = rate_limit(50, FIFTEEN_MINUTES_MS)
DELETE_LIMIT = rate_limit(20, ONE_HOUR_MS)

_LIST_FIELDS = ("images", "sizes", "colors", "tags")
_BOOL_FIELDS = ("isActive", "isFeatured")
_TEXT_FIELDS = ("name", "description", "category", "subcategory", "brand")


def validate_product_payload(body: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """Batch-validate a create/update body and map it to model field names."""
    errors = ValidationErrors()

    if not partial:
        errors.check(required(body.get("name"), "name"))
        errors.check(required(body.get("category"), "category"))
        errors.check(positive_number(body.get("price"), "price"))
    elif "price" in body:
        errors.check(positive_number(body.get("price"), "price"))

    if partial and "name" in body:
        errors.check(required(body.get("name"), "name"))
    if body.get("originalPrice") is not None:
        errors.check(positive_number(body.get("originalPrice"), "originalPrice"))
    for key in _TEXT_FIELDS:
        if body.get(key) is not None and not isinstance(body[key], str):
            errors.check(f"{key} must be a string")
    for key in _LIST_FIELDS:
        value = body.get(key)
        if value is not None and (
            not isinstance(value, list) or not all(isinstance(v, str) for v in value)
        ):
            errors.check(f"{key} must be a list of strings")
    for key in _BOOL_FIELDS:
        if key in body and not isinstance(body[key], bool):
            errors.check(f"{key} must be a boolean")

    fields = {
        PRODUCT_FIELDS[key]: value
        for key, value in body.items()
        if key in PRODUCT_FIELDS and value is not None
    }
    if partial and not fields:
        errors.check("No valid fields to update")

    errors.raise_if_any()
    return sanitize_input(fields)


@router.get("", dependencies=[Depends(READ_LIMIT)])
async def list_products(
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    subcategory: Optional[str] = Query(None),
    brand: Optional[str] = Query(None),
    min_price: Optional[float] = Query(None, alias="minPrice"),
    max_price: Optional[float] = Query(None, alias="maxPrice"),
    is_featured: Optional[bool] = Query(None, alias="isFeatured"),
    tags: Optional[str] = Query(None),
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    service: ProductService = Depends(get_product_service),
):
    page, limit = pagination(page, limit)
    filters = ProductFilters(**sanitize_input({
        "search": search,
        "category": category,
        "subcategory": subcategory,
        "brand": brand,
        "min_price": min_price,
        "max_price": max_price,
        "is_featured": is_featured,
        "tags": [tag.strip() for tag in tags.split(",") if tag.strip()] if tags else [],
    }))
    return service_response(await service.get_products(filters, page, limit))


@router.get("/featured", dependencies=[Depends(READ_LIMIT)])
async def featured_products(
    limit: int = Query(8, ge=1, le=50),
    service: ProductService = Depends(get_product_service),
):
    return service_response(await service.get_featured_products(limit))


@router.get("/search", dependencies=[Depends(READ_LIMIT)])
async def search_products(
    q: Optional[str] = Query(None),
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    service: ProductService = Depends(get_product_service),
):
    errors = ValidationErrors()
    errors.check(required(q, "q"))
    errors.raise_if_any()

    page, limit = pagination(page, limit)
    return service_response(await service.search_products(sanitize_input(q), page, limit))


@router.get("/category/{category}", dependencies=[Depends(READ_LIMIT)])
async def products_by_category(
    category: str,
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    service: ProductService = Depends(get_product_service),
):
    page, limit = pagination(page, limit)
    return service_response(
        await service.get_products_by_category(sanitize_input(category), page, limit)
    )


@router.post("", dependencies=[Depends(WRITE_LIMIT)])
async def create_product(
    request: Request,
    service: ProductService = Depends(get_product_service),
):
    await verify_admin(request)
    fields = validate_product_payload(await read_json_body(request))
    return service_response(await service.create_product(fields), success_status=201)


@router.get("/{product_id}", dependencies=[Depends(READ_LIMIT)])
async def get_product(
    product_id: str,
    service: ProductService = Depends(get_product_service),
):
    return service_response(await service.get_product(product_id))


@router.put("/{product_id}", dependencies=[Depends(WRITE_LIMIT)])
async def update_product(
    request: Request,
    product_id: str,
    service: ProductService = Depends(get_product_service),
):
    await verify_admin(request)
    updates = validate_product_payload(await read_json_body(request), partial=True)
    return service_response(await service.update_product(product_id, updates))


@router.delete("/{product_id}", dependencies=[Depends(DELETE_LIMIT)])
async def delete_product(
    request: Request,
    product_id: str,
    service: ProductService = Depends(get_product_service),
):
    await verify_admin(request)
    return service_response(await service.delete_product(product_id))


@router.put("/{product_id}/inventory", dependencies=[Depends(WRITE_LIMIT)])
async def update_inventory(
    request: Request,
    product_id: str,
    service: ProductService = Depends(get_product_service),
):
    admin = await verify_admin(request)
    body = await read_json_body(request)

    errors = ValidationErrors()
    errors.check(required_string(body.get("size"), "size"))
    errors.check(required_string(body.get("color"), "color"))
    if errors.check(required(body.get("quantity"), "quantity")):
        errors.check(non_negative_integer(body.get("quantity"), "quantity"))
    errors.raise_if_any()

    body = sanitize_input(body)
    result = await service.update_inventory(
        product_id,
        size=body["size"],
        color=body["color"],
        quantity=body["quantity"],
        performed_by=admin.uid,
    )
    return service_response(result)
