"""
Route helpers

Small pieces of the request pipeline shared by every router: JSON body
parsing after auth, pagination parameters, and mapping a ServiceResult onto
an HTTP response.
"""
import json
from typing import Any, Dict, Optional, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from core.errors import NotFoundError, StorefrontError, ValidationError
from core.responses import ServiceResult

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


async def read_json_body(request: Request) -> Dict[str, Any]:
    """Parse the request body as a JSON object."""
    raw = await request.body()
    if not raw:
        raise ValidationError(["Request body is required"])
    try:
        body = json.loads(raw)
    except ValueError:
        raise ValidationError(["Request body must be valid JSON"])
    if not isinstance(body, dict):
        raise ValidationError(["Request body must be a JSON object"])
    return body


def pagination(page: Optional[int], limit: Optional[int]) -> Tuple[int, int]:
    """Clamp page/limit query parameters."""
    page = page if page and page > 0 else 1
    limit = limit if limit and limit > 0 else DEFAULT_PAGE_SIZE
    return page, min(limit, MAX_PAGE_SIZE)


def to_payload(data: Any) -> Any:
    """Serialise models (camelCase aliases) nested in lists and dicts."""
    if isinstance(data, BaseModel):
        return data.model_dump(by_alias=True, mode="json")
    if isinstance(data, (list, tuple)):
        return [to_payload(item) for item in data]
    if isinstance(data, dict):
        return {key: to_payload(value) for key, value in data.items()}
    return data


def service_response(result: ServiceResult, success_status: int = 200) -> JSONResponse:
    """
    Map a ServiceResult to a response.

    Failures whose message mentions "not found" become 404, others 400.
    """
    if result.success:
        return JSONResponse(status_code=success_status, content=to_payload(result.data))
    if result.is_not_found:
        raise NotFoundError(result.error)
    raise StorefrontError(result.error or "Request failed", status_code=400)
