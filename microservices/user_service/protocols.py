"""
User Service Protocols (Interfaces)

These interfaces define contracts for dependency injection.
NO import-time I/O dependencies - safe to import anywhere.
"""
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from .models import User


class DuplicateUserError(Exception):
    """A user with this id or email already exists"""
    pass


@runtime_checkable
class UserRepositoryProtocol(Protocol):
    """
    Interface for User Repository.

    Also serves role lookups for request authentication.
    """

    async def create_user(self, user: User) -> User:
        """Raises DuplicateUserError on id/email conflict"""
        ...

    async def get_user(self, user_id: str) -> Optional[User]:
        ...

    async def get_user_by_email(self, email: str) -> Optional[User]:
        ...

    async def update_user(self, user_id: str, updates: Dict[str, Any]) -> Optional[User]:
        ...

    async def delete_user(self, user_id: str) -> bool:
        ...

    async def list_active_users(self, limit: int = 20, offset: int = 0) -> List[User]:
        ...

    async def count_active_users(self) -> int:
        ...

    async def resolve_role(self, uid: str) -> Optional[str]:
        ...
