"""
Error reporting API routes

POST takes an ``action``: ``log`` is open to anonymous clients (rate
limited), ``resolve`` needs a signed-in caller. GET serves the admin
dashboard with ``action=metrics`` or ``action=statistics``.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from core.auth_dependencies import verify_admin, verify_auth
from core.errors import ValidationError
from core.rate_limiter import FIFTEEN_MINUTES_MS, rate_limit
from core.route_helpers import read_json_body, service_response
from core.sanitizer import sanitize_input
from core.validators import ValidationErrors, one_of, optional_string, required_string

from microservices.storefront_api.dependencies import get_error_service

from .error_service import ErrorService
from .models import ErrorSeverity, ErrorType

router = APIRouter(prefix="/api/errors", tags=["errors"])

REPORT_LIMIT = rate_limit(100, FIFTEEN_MINUTES_MS)
READ_LIMIT = rate_limit(100, FIFTEEN_MINUTES_MS)

_OPTIONAL_TEXT = ("errorStack", "userId", "sessionId", "url", "userAgent")


async def _log(request: Request, body: Dict[str, Any], service: ErrorService):
    errors = ValidationErrors()
    errors.check(one_of(body.get("errorType"), "errorType", [t.value for t in ErrorType]))
    errors.check(required_string(body.get("errorMessage"), "errorMessage"))
    if body.get("severity") is not None:
        errors.check(one_of(body["severity"], "severity", [s.value for s in ErrorSeverity]))
    for key in _OPTIONAL_TEXT:
        errors.check(optional_string(body.get(key), key))
    if body.get("context") is not None and not isinstance(body["context"], dict):
        errors.check("context must be an object")
    errors.raise_if_any()

    body = sanitize_input(body)
    result = await service.log_error(
        ErrorType(body["errorType"]),
        body["errorMessage"],
        severity=ErrorSeverity(body.get("severity") or ErrorSeverity.MEDIUM.value),
        stack=body.get("errorStack"),
        context=body.get("context"),
        user_id=body.get("userId"),
        session_id=body.get("sessionId"),
        url=body.get("url"),
        user_agent=body.get("userAgent") or request.headers.get("user-agent"),
    )
    if not result.success:
        return service_response(result)
    return JSONResponse(status_code=201, content={"success": True, "errorId": result.data.id})


async def _resolve(request: Request, body: Dict[str, Any], service: ErrorService):
    caller = await verify_auth(request)
    message = required_string(body.get("errorId"), "errorId")
    if message:
        raise ValidationError([message])

    result = await service.resolve_error(body["errorId"], caller.uid)
    if not result.success:
        return service_response(result)
    return {"success": True}


@router.post("", dependencies=[Depends(REPORT_LIMIT)])
async def report_error(
    request: Request,
    service: ErrorService = Depends(get_error_service),
):
    body = await read_json_body(request)
    action = body.get("action")
    if action == "log":
        return await _log(request, body, service)
    if action == "resolve":
        return await _resolve(request, body, service)
    raise ValidationError([one_of(action, "action", ["log", "resolve"])])


@router.get("", dependencies=[Depends(READ_LIMIT)])
async def error_dashboard(
    request: Request,
    action: Optional[str] = Query(None),
    since: Optional[datetime] = Query(None),
    service: ErrorService = Depends(get_error_service),
):
    await verify_admin(request)

    message = one_of(action, "action", ["metrics", "statistics"])
    if message:
        raise ValidationError([message])
    if since is not None and since.tzinfo is None:
        since = since.replace(tzinfo=timezone.utc)

    if action == "metrics":
        return service_response(await service.get_error_metrics(since))
    return service_response(await service.get_error_statistics(since))
