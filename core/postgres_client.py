"""
PostgreSQL Client Wrapper

asyncpg pool wrapper giving repositories a small, consistent query API.

Usage:
    from core.postgres_client import get_postgres_client

    db = await get_postgres_client("storefront", dsn=settings.infra.postgres_dsn)

    async with db:
        rows = await db.query("SELECT * FROM products WHERE category = $1", [category])

    async with db.transaction() as tx:
        await tx.execute("UPDATE inventory SET quantity = quantity + $1 WHERE id = $2", [5, item_id])
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

import asyncpg

logger = logging.getLogger(__name__)


async def _init_connection(conn: asyncpg.Connection) -> None:
    # JSON/JSONB columns round-trip as Python objects
    for type_name in ("json", "jsonb"):
        await conn.set_type_codec(
            type_name, encoder=json.dumps, decoder=json.loads, schema="pg_catalog"
        )


class _Executor:
    """Query helpers over a single connection or the pool"""

    def __init__(self, target):
        self._target = target

    async def query(self, sql: str, params: Optional[List[Any]] = None) -> List[Dict[str, Any]]:
        """Execute query and return results"""
        rows = await self._target.fetch(sql, *(params or []))
        return [dict(row) for row in rows]

    async def query_row(self, sql: str, params: Optional[List[Any]] = None) -> Optional[Dict[str, Any]]:
        """Execute query and return single row"""
        row = await self._target.fetchrow(sql, *(params or []))
        return dict(row) if row is not None else None

    async def fetchval(self, sql: str, params: Optional[List[Any]] = None) -> Any:
        return await self._target.fetchval(sql, *(params or []))

    async def execute(self, sql: str, params: Optional[List[Any]] = None) -> str:
        """Execute SQL statement, returning the command status tag"""
        return await self._target.execute(sql, *(params or []))

    async def execute_many(self, sql: str, params_list: List[List[Any]]) -> None:
        """Execute SQL statement with multiple parameter sets"""
        await self._target.executemany(sql, params_list)

    async def call_procedure(self, name: str, params: Optional[List[Any]] = None) -> Any:
        """Invoke a stored function by name and return its scalar result"""
        params = params or []
        placeholders = ", ".join(f"${i}" for i in range(1, len(params) + 1))
        return await self._target.fetchval(f"SELECT {name}({placeholders})", *params)


class PostgresClient(_Executor):
    """
    PostgreSQL client backed by an asyncpg connection pool.

    The pool is created lazily on first use (``async with db:`` or connect()).
    """

    def __init__(
        self,
        service_name: str,
        dsn: str,
        min_size: int = 1,
        max_size: int = 10,
    ):
        """
        Initialize PostgreSQL client

        Args:
            service_name: Name of the service using this client
            dsn: PostgreSQL connection string
            min_size: Minimum pool size
            max_size: Maximum pool size
        """
        super().__init__(None)
        self.service_name = service_name
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self._pool: Optional[asyncpg.Pool] = None

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("PostgreSQL pool is not connected")
        return self._pool

    async def connect(self) -> None:
        if self._pool is not None:
            return
        self._pool = await asyncpg.create_pool(
            dsn=self.dsn,
            min_size=self.min_size,
            max_size=self.max_size,
            init=_init_connection,
        )
        self._target = self._pool
        logger.info(f"PostgreSQL pool ready for {self.service_name}")

    async def __aenter__(self):
        """Async context manager entry"""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Pool stays open for reuse; close() releases it"""
        return None

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[_Executor]:
        """Run statements on one connection inside a transaction"""
        await self.connect()
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                yield _Executor(conn)

    async def health_check(self) -> Optional[Dict[str, Any]]:
        """Check database health"""
        try:
            await self.connect()
            value = await self.fetchval("SELECT 1")
            return {"healthy": value == 1}
        except (OSError, asyncpg.PostgresError) as e:
            logger.error(f"PostgreSQL health check failed: {e}")
            return None

    async def close(self):
        """Close connection pool"""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            self._target = None
            logger.info(f"PostgreSQL pool closed for {self.service_name}")


# Singleton instances per service
_postgres_clients: Dict[str, PostgresClient] = {}


async def get_postgres_client(
    service_name: str,
    dsn: str,
    min_size: int = 1,
    max_size: int = 10,
) -> PostgresClient:
    """
    Get or create the connected PostgreSQL client for a service.

    Args:
        service_name: Service name
        dsn: Connection string
        min_size: Minimum pool size
        max_size: Maximum pool size

    Returns:
        PostgresClient instance
    """
    if service_name not in _postgres_clients:
        client = PostgresClient(service_name, dsn, min_size=min_size, max_size=max_size)
        await client.connect()
        _postgres_clients[service_name] = client

    return _postgres_clients[service_name]


async def close_postgres_clients() -> None:
    for client in list(_postgres_clients.values()):
        await client.close()
    _postgres_clients.clear()
