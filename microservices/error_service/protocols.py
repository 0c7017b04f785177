"""
Error Service Protocols (Interfaces)

These interfaces define contracts for dependency injection.
NO import-time I/O dependencies - safe to import anywhere.
"""
from datetime import datetime
from typing import List, Optional, Protocol, runtime_checkable

from .models import ErrorLog, ErrorStatistic


@runtime_checkable
class ErrorRepositoryProtocol(Protocol):
    """Interface for Error Repository"""

    async def create_error(self, error: ErrorLog) -> ErrorLog:
        ...

    async def get_error(self, error_id: str) -> Optional[ErrorLog]:
        ...

    async def resolve_error(self, error_id: str, resolved_by: str) -> Optional[ErrorLog]:
        """Mark resolved; None when the id is unknown"""
        ...

    async def list_errors_since(self, since: datetime) -> List[ErrorLog]:
        """Newest first"""
        ...

    async def get_statistics(self, since: datetime) -> List[ErrorStatistic]:
        ...
