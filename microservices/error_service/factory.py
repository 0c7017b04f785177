"""
Error Service Factory

Factory functions for creating service instances with real dependencies.
This is the ONLY place that imports I/O-dependent modules.
"""
from core.postgres_client import PostgresClient

from .error_service import ErrorService


def create_error_service(db: PostgresClient) -> ErrorService:
    """Create ErrorService with real dependencies."""
    from .error_repository import ErrorRepository

    return ErrorService(repository=ErrorRepository(db))
