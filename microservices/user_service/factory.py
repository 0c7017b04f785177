"""
User Service Factory

Factory functions for creating service instances with real dependencies.
This is the ONLY place that imports I/O-dependent modules.
"""
from core.postgres_client import PostgresClient

from .user_service import UserService


def create_user_service(db: PostgresClient) -> UserService:
    """
    Create UserService with real dependencies.

    The repository is exposed as ``service.repository`` so the app can use
    it as the role resolver for authentication.
    """
    # Import real repository here (not at module level)
    from .user_repository import UserRepository

    return UserService(repository=UserRepository(db))
