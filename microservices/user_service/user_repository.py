"""
User Repository

Data access for user profiles (PostgreSQL via asyncpg). The role column is
the authorization store consulted by request authentication.
"""

import logging
from typing import Any, Dict, List, Optional

import asyncpg

from core.postgres_client import PostgresClient

from .models import Address, User, UserRole
from .protocols import DuplicateUserError

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = {
    "email", "display_name", "first_name", "last_name", "phone_number",
    "address", "role", "is_active",
}


class UserRepository:
    """User data access - PostgreSQL"""

    def __init__(self, db: PostgresClient):
        self.db = db
        self.table = "users"

    async def create_user(self, user: User) -> User:
        query = f'''
            INSERT INTO {self.table} (
                id, email, display_name, first_name, last_name, phone_number,
                address, role, is_active, created_at, updated_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, NOW(), NOW())
            RETURNING *
        '''
        params = [
            user.id, user.email, user.display_name, user.first_name, user.last_name,
            user.phone_number,
            user.address.model_dump() if user.address else None,
            user.role.value, user.is_active,
        ]
        try:
            async with self.db:
                row = await self.db.query_row(query, params)
        except asyncpg.UniqueViolationError:
            raise DuplicateUserError("User already exists")
        return self._row_to_user(row)

    async def get_user(self, user_id: str) -> Optional[User]:
        async with self.db:
            row = await self.db.query_row(f"SELECT * FROM {self.table} WHERE id = $1", [user_id])
        return self._row_to_user(row) if row else None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        async with self.db:
            row = await self.db.query_row(
                f"SELECT * FROM {self.table} WHERE LOWER(email) = LOWER($1)", [email]
            )
        return self._row_to_user(row) if row else None

    async def update_user(self, user_id: str, updates: Dict[str, Any]) -> Optional[User]:
        columns = [column for column in updates if column in _UPDATABLE_COLUMNS]
        if not columns:
            return await self.get_user(user_id)

        values = []
        for column in columns:
            value = updates[column]
            if isinstance(value, Address):
                value = value.model_dump()
            elif isinstance(value, UserRole):
                value = value.value
            values.append(value)

        assignments = ", ".join(f"{column} = ${i}" for i, column in enumerate(columns, start=2))
        query = f'''
            UPDATE {self.table}
            SET {assignments}, updated_at = NOW()
            WHERE id = $1
            RETURNING *
        '''
        try:
            async with self.db:
                row = await self.db.query_row(query, [user_id] + values)
        except asyncpg.UniqueViolationError:
            raise DuplicateUserError("Email is already in use")
        return self._row_to_user(row) if row else None

    async def delete_user(self, user_id: str) -> bool:
        async with self.db:
            status = await self.db.execute(f"DELETE FROM {self.table} WHERE id = $1", [user_id])
        return status.endswith(" 1")

    async def list_active_users(self, limit: int = 20, offset: int = 0) -> List[User]:
        query = f'''
            SELECT * FROM {self.table}
            WHERE is_active = TRUE
            ORDER BY created_at DESC
            LIMIT $1 OFFSET $2
        '''
        async with self.db:
            rows = await self.db.query(query, [limit, offset])
        return [self._row_to_user(row) for row in rows]

    async def count_active_users(self) -> int:
        async with self.db:
            return await self.db.fetchval(f"SELECT COUNT(*) FROM {self.table} WHERE is_active = TRUE")

    async def resolve_role(self, uid: str) -> Optional[str]:
        """Role for an authenticated uid; users without a profile have none."""
        async with self.db:
            return await self.db.fetchval(
                f"SELECT role FROM {self.table} WHERE id = $1 AND is_active = TRUE", [uid]
            )

    def _row_to_user(self, row: Dict[str, Any]) -> User:
        address = row.get("address")
        return User(
            id=row["id"],
            email=row["email"],
            display_name=row["display_name"],
            first_name=row.get("first_name"),
            last_name=row.get("last_name"),
            phone_number=row.get("phone_number"),
            address=Address(**address) if address else None,
            role=UserRole(row.get("role") or UserRole.USER.value),
            is_active=row.get("is_active", True),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )
