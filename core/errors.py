"""
Storefront Error Taxonomy

Every error raised inside the request pipeline derives from StorefrontError
and carries the HTTP status it maps to. The app registers one exception
handler for the base class that renders ``{"error": ..., "details": ...}``.
"""
from typing import Any, Dict, List, Optional


class StorefrontError(Exception):
    """Base error with an HTTP status code and a client-safe message"""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationError(StorefrontError):
    """Request validation failed (batched messages)"""

    status_code = 400

    def __init__(self, details: List[str], message: str = "Validation failed"):
        super().__init__(message)
        self.details = list(details)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "details": self.details}


class AuthError(StorefrontError):
    """Authentication failed"""
    status_code = 401


class MissingHeaderError(AuthError):
    """Authorization header absent or not a Bearer credential"""
    pass


class InvalidTokenFormatError(AuthError):
    """Bearer token has an implausible length"""
    pass


class InvalidTokenError(AuthError):
    """Auth provider rejected the token"""
    pass


class ForbiddenError(AuthError):
    """Authenticated but not allowed"""
    status_code = 403


class RateLimitError(StorefrontError):
    """Too many requests"""

    status_code = 429

    def __init__(self, message: str, retry_after: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.retry_after is not None:
            body["retryAfter"] = self.retry_after
        return body


class NotFoundError(StorefrontError):
    status_code = 404


class InternalError(StorefrontError):
    """Generic server failure; details are logged server-side only"""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
