"""
Error Repository

Data access for reported errors (PostgreSQL via asyncpg).
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from core.postgres_client import PostgresClient

from .models import ErrorLog, ErrorSeverity, ErrorStatistic, ErrorType

logger = logging.getLogger(__name__)


class ErrorRepository:
    """Error log data access - PostgreSQL"""

    def __init__(self, db: PostgresClient):
        self.db = db
        self.table = "error_logs"

    async def create_error(self, error: ErrorLog) -> ErrorLog:
        query = f'''
            INSERT INTO {self.table} (
                id, error_type, error_message, error_stack, user_id, session_id,
                url, user_agent, severity, context, resolved, created_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, FALSE, NOW())
            RETURNING *
        '''
        params = [
            error.id, error.error_type.value, error.error_message, error.error_stack,
            error.user_id, error.session_id, error.url, error.user_agent,
            error.severity.value, error.context,
        ]
        async with self.db:
            row = await self.db.query_row(query, params)
        return self._row_to_error(row)

    async def get_error(self, error_id: str) -> Optional[ErrorLog]:
        async with self.db:
            row = await self.db.query_row(f"SELECT * FROM {self.table} WHERE id = $1", [error_id])
        return self._row_to_error(row) if row else None

    async def resolve_error(self, error_id: str, resolved_by: str) -> Optional[ErrorLog]:
        query = f'''
            UPDATE {self.table}
            SET resolved = TRUE,
                resolved_by = COALESCE(resolved_by, $2),
                resolved_at = COALESCE(resolved_at, NOW())
            WHERE id = $1
            RETURNING *
        '''
        async with self.db:
            row = await self.db.query_row(query, [error_id, resolved_by])
        return self._row_to_error(row) if row else None

    async def list_errors_since(self, since: datetime) -> List[ErrorLog]:
        query = f'''
            SELECT * FROM {self.table}
            WHERE created_at >= $1
            ORDER BY created_at DESC
        '''
        async with self.db:
            rows = await self.db.query(query, [since])
        return [self._row_to_error(row) for row in rows]

    async def get_statistics(self, since: datetime) -> List[ErrorStatistic]:
        query = f'''
            SELECT error_type, severity,
                   COUNT(*) AS count,
                   COUNT(*) FILTER (WHERE NOT resolved) AS unresolved,
                   MAX(created_at) AS last_seen
            FROM {self.table}
            WHERE created_at >= $1
            GROUP BY error_type, severity
            ORDER BY count DESC, error_type, severity
        '''
        async with self.db:
            rows = await self.db.query(query, [since])
        return [
            ErrorStatistic(
                error_type=ErrorType(row["error_type"]),
                severity=ErrorSeverity(row["severity"]),
                count=row["count"],
                unresolved=row["unresolved"],
                last_seen=row.get("last_seen"),
            )
            for row in rows
        ]

    def _row_to_error(self, row: Dict[str, Any]) -> ErrorLog:
        return ErrorLog(
            id=row["id"],
            error_type=ErrorType(row["error_type"]),
            error_message=row["error_message"],
            error_stack=row.get("error_stack"),
            user_id=row.get("user_id"),
            session_id=row.get("session_id"),
            url=row.get("url"),
            user_agent=row.get("user_agent"),
            severity=ErrorSeverity(row["severity"]),
            context=row.get("context") or {},
            resolved=row.get("resolved", False),
            resolved_by=row.get("resolved_by"),
            resolved_at=row.get("resolved_at"),
            created_at=row.get("created_at"),
        )
