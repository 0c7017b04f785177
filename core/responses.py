"""
Service result envelope and shared response models

Service methods return ServiceResult for expected business outcomes so that
route handlers can map them onto status codes without catching exceptions.
"""
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ServiceResult(BaseModel):
    """Outcome of a service operation"""
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None) -> "ServiceResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ServiceResult":
        return cls(success=False, error=error)

    @property
    def is_not_found(self) -> bool:
        return not self.success and "not found" in (self.error or "").lower()


class CamelModel(BaseModel):
    """Domain model serialised with camelCase keys for API clients"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PaginatedResponse(CamelModel):
    data: List[Any]
    total: int
    page: int
    limit: int
    has_more: bool

    @classmethod
    def build(cls, data: List[Any], total: int, page: int, limit: int) -> "PaginatedResponse":
        return cls(data=data, total=total, page=page, limit=limit, has_more=page * limit < total)
