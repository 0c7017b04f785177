"""
User Service Business Logic

Profile lifecycle for storefront users. Authentication itself belongs to
the hosted auth provider; this service owns the profile and role.
"""

import logging
from typing import Any, Dict

from core.responses import PaginatedResponse, ServiceResult

from .models import Address, User
from .protocols import DuplicateUserError, UserRepositoryProtocol

logger = logging.getLogger(__name__)


class UserService:
    """User profile business logic"""

    def __init__(self, repository: UserRepositoryProtocol):
        self.repository = repository
        logger.info("✅ UserService initialized")

    async def create_user(self, data: Dict[str, Any]) -> ServiceResult:
        user = User(**data)
        if await self.repository.get_user(user.id):
            return ServiceResult.fail("User already exists")
        if await self.repository.get_user_by_email(user.email):
            return ServiceResult.fail("A user with this email already exists")
        try:
            created = await self.repository.create_user(user)
        except DuplicateUserError as e:
            return ServiceResult.fail(str(e))
        logger.info(f"Created user profile {created.id}")
        return ServiceResult.ok(created)

    async def get_user(self, user_id: str) -> ServiceResult:
        user = await self.repository.get_user(user_id)
        if not user:
            return ServiceResult.fail("User not found")
        return ServiceResult.ok(user)

    async def get_user_by_email(self, email: str) -> ServiceResult:
        user = await self.repository.get_user_by_email(email)
        if not user:
            return ServiceResult.fail("User not found")
        return ServiceResult.ok(user)

    async def user_exists(self, user_id: str) -> bool:
        return await self.repository.get_user(user_id) is not None

    async def get_active_users(self, page: int = 1, limit: int = 20) -> ServiceResult:
        users = await self.repository.list_active_users(limit=limit, offset=(page - 1) * limit)
        total = await self.repository.count_active_users()
        return ServiceResult.ok(PaginatedResponse.build(users, total, page, limit))

    async def update_user(self, user_id: str, updates: Dict[str, Any]) -> ServiceResult:
        if not updates:
            return ServiceResult.fail("No fields to update")

        email = updates.get("email")
        if email:
            owner = await self.repository.get_user_by_email(email)
            if owner and owner.id != user_id:
                return ServiceResult.fail("A user with this email already exists")

        try:
            user = await self.repository.update_user(user_id, updates)
        except DuplicateUserError as e:
            return ServiceResult.fail(str(e))
        if not user:
            return ServiceResult.fail("User not found")
        return ServiceResult.ok(user)

    async def update_user_address(self, user_id: str, address: Address) -> ServiceResult:
        return await self.update_user(user_id, {"address": address})

    async def deactivate_user(self, user_id: str) -> ServiceResult:
        result = await self.update_user(user_id, {"is_active": False})
        if result.success:
            logger.info(f"Deactivated user {user_id}")
        return result

    async def reactivate_user(self, user_id: str) -> ServiceResult:
        return await self.update_user(user_id, {"is_active": True})

    async def delete_user(self, user_id: str) -> ServiceResult:
        if not await self.repository.delete_user(user_id):
            return ServiceResult.fail("User not found")
        logger.info(f"Deleted user {user_id}")
        return ServiceResult.ok({"id": user_id, "deleted": True})
