"""
Error Service Business Logic

Stores error reports from the storefront client and from the API itself,
with secrets redacted from the attached context, and summarises them for
the admin dashboard.
"""

import json
import logging
import traceback
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Union

from core.responses import ServiceResult

from .models import (
    MAX_CONTEXT_SIZE,
    MAX_MESSAGE_LENGTH,
    MAX_STACK_LENGTH,
    RECENT_ERRORS_LIMIT,
    ErrorLog,
    ErrorMetrics,
    ErrorSeverity,
    ErrorType,
    TimeRange,
)
from .protocols import ErrorRepositoryProtocol

logger = logging.getLogger(__name__)

SENSITIVE_KEYS = ("password", "token", "secret", "key", "auth", "credit_card", "ssn")
REDACTED = "[REDACTED]"
MAX_DATA_SIZE = 1000
DEFAULT_LOOKBACK = timedelta(hours=24)

_LOG_LEVELS = {
    ErrorSeverity.CRITICAL: logging.ERROR,
    ErrorSeverity.HIGH: logging.ERROR,
    ErrorSeverity.MEDIUM: logging.WARNING,
    ErrorSeverity.LOW: logging.INFO,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def redact(value: Any) -> Any:
    """Replace values under sensitive-looking keys, at any depth."""
    if isinstance(value, dict):
        return {
            key: REDACTED if any(s in str(key).lower() for s in SENSITIVE_KEYS) else redact(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact(item) for item in value]
    return value


def sanitize_context(context: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Redact and cap the serialised size of a context object."""
    cleaned = redact(context or {})
    size = len(json.dumps(cleaned, default=str))
    if size > MAX_CONTEXT_SIZE:
        return {"_truncated": True, "_size": size}
    return cleaned


def sanitize_data(data: Any) -> Any:
    """Request/response payloads are kept only when small."""
    if not data:
        return data
    try:
        size = len(json.dumps(data))
    except (TypeError, ValueError):
        return {"_error": "Failed to serialize data"}
    if size > MAX_DATA_SIZE:
        return {"_truncated": True, "_size": size}
    return redact(data)


def _format_stack(error: Union[BaseException, str]) -> Optional[str]:
    if not isinstance(error, BaseException):
        return None
    return "".join(traceback.format_exception(type(error), error, error.__traceback__))


def severity_from_status(status_code: Optional[int]) -> ErrorSeverity:
    if not status_code:
        return ErrorSeverity.MEDIUM
    if status_code >= 500:
        return ErrorSeverity.CRITICAL
    if status_code >= 400:
        return ErrorSeverity.HIGH
    if status_code >= 300:
        return ErrorSeverity.MEDIUM
    return ErrorSeverity.LOW


class ErrorService:
    """Error reporting business logic"""

    def __init__(
        self,
        repository: ErrorRepositoryProtocol,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.repository = repository
        self.clock = clock
        logger.info("✅ ErrorService initialized")

    async def log_error(
        self,
        error_type: ErrorType,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        stack: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        user_id: Optional[str] = None,
        session_id: Optional[str] = None,
        url: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> ServiceResult:
        error = ErrorLog(
            id=f"err_{uuid.uuid4().hex[:16]}",
            error_type=error_type,
            error_message=message[:MAX_MESSAGE_LENGTH],
            error_stack=stack[:MAX_STACK_LENGTH] if stack else None,
            user_id=user_id,
            session_id=session_id,
            url=url,
            user_agent=user_agent,
            severity=severity,
            context=sanitize_context(context),
        )
        logger.log(
            _LOG_LEVELS[severity],
            f"[{error_type.value}/{severity.value}] {error.error_message}",
        )
        stored = await self.repository.create_error(error)
        return ServiceResult.ok(stored)

    async def log_api_error(
        self,
        error: Union[BaseException, str],
        endpoint: str,
        method: str,
        status_code: Optional[int] = None,
        request_data: Any = None,
        response_data: Any = None,
        user_id: Optional[str] = None,
    ) -> ServiceResult:
        """Record a failed API call; severity follows the status code."""
        context = {
            "endpoint": endpoint,
            "method": method,
            "statusCode": status_code,
            "requestData": sanitize_data(request_data),
            "responseData": sanitize_data(response_data),
        }
        message = str(error) or type(error).__name__
        return await self.log_error(
            ErrorType.API,
            message,
            severity=severity_from_status(status_code),
            stack=_format_stack(error),
            context=context,
            user_id=user_id,
            url=endpoint,
        )

    async def resolve_error(self, error_id: str, resolved_by: str) -> ServiceResult:
        error = await self.repository.resolve_error(error_id, resolved_by)
        if not error:
            return ServiceResult.fail("Error log not found")
        logger.info(f"Error {error_id} resolved by {resolved_by}")
        return ServiceResult.ok(error)

    async def get_error_metrics(self, since: Optional[datetime] = None) -> ServiceResult:
        now = self.clock()
        since = since or now - DEFAULT_LOOKBACK
        errors = await self.repository.list_errors_since(since)

        by_type: Dict[str, int] = {}
        by_severity: Dict[str, int] = {}
        for error in errors:
            by_type[error.error_type.value] = by_type.get(error.error_type.value, 0) + 1
            by_severity[error.severity.value] = by_severity.get(error.severity.value, 0) + 1
        resolved = sum(1 for error in errors if error.resolved)
        hour_ago = now - timedelta(hours=1)

        return ServiceResult.ok(ErrorMetrics(
            total=len(errors),
            by_type=by_type,
            by_severity=by_severity,
            resolved=resolved,
            unresolved=len(errors) - resolved,
            error_rate=sum(1 for error in errors if error.created_at and error.created_at > hour_ago),
            recent_errors=errors[:RECENT_ERRORS_LIMIT],
            time_range=TimeRange(start=since, end=now),
        ))

    async def get_error_statistics(self, since: Optional[datetime] = None) -> ServiceResult:
        since = since or self.clock() - DEFAULT_LOOKBACK
        return ServiceResult.ok(await self.repository.get_statistics(since))
