"""
PostgreSQL Client Wrapper

Thin wrapper around an asyncpg connection pool.
Provides a consistent database access pattern and scoped transactions.

Usage:
    from core.postgres_client import get_postgres_client

    db = await get_postgres_client("checkout_service")

    rows = await db.query("SELECT * FROM commerce.products WHERE id = $1", [product_id])

    async with db.transaction() as conn:
        await conn.execute("UPDATE ...", ...)
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

import asyncpg

from core.config import InfraConfig

logger = logging.getLogger(__name__)


class PostgresClientWrapper:
    """
    PostgreSQL client wrapper over an asyncpg pool.

    - Lazy pool creation on first use
    - Rows returned as plain dicts
    - transaction(): commit on normal exit, rollback on any exception
    """

    def __init__(
        self,
        service_name: str,
        config: Optional[InfraConfig] = None,
        dsn: Optional[str] = None,
    ):
        """
        Initialize PostgreSQL client wrapper.

        Args:
            service_name: Name of the service using this client
            config: Infrastructure configuration (defaults to InfraConfig.from_env())
            dsn: Explicit DSN override
        """
        if config is None:
            config = InfraConfig.from_env()

        self.service_name = service_name
        self.dsn = dsn or config.postgres_dsn
        self.min_size = config.postgres_pool_min
        self.max_size = config.postgres_pool_max
        self._pool: Optional[asyncpg.Pool] = None

        logger.info(
            f"PostgreSQL client initialized for {service_name}: "
            f"{config.postgres_host}:{config.postgres_port}/{config.postgres_db}"
        )

    async def connect(self) -> asyncpg.Pool:
        """Create the pool if needed"""
        if self._pool is None:
            self._pool = await asyncpg.create_pool(
                dsn=self.dsn,
                min_size=self.min_size,
                max_size=self.max_size,
                server_settings={"application_name": self.service_name},
            )
        return self._pool

    async def health_check(self) -> Dict[str, Any]:
        """Check database health"""
        try:
            pool = await self.connect()
            async with pool.acquire() as conn:
                version = await conn.fetchval("SELECT version()")
            return {"healthy": True, "version": version}
        except Exception as e:
            logger.error(f"PostgreSQL health check failed: {e}")
            return {"healthy": False, "error": str(e)}

    async def query(self, sql: str, params: Optional[List[Any]] = None) -> List[Dict[str, Any]]:
        """Execute query and return results"""
        pool = await self.connect()
        async with pool.acquire() as conn:
            rows = await conn.fetch(sql, *(params or []))
        return [dict(row) for row in rows]

    async def query_row(self, sql: str, params: Optional[List[Any]] = None) -> Optional[Dict[str, Any]]:
        """Execute query and return single row"""
        pool = await self.connect()
        async with pool.acquire() as conn:
            row = await conn.fetchrow(sql, *(params or []))
        return dict(row) if row else None

    async def execute(self, sql: str, params: Optional[List[Any]] = None) -> str:
        """Execute SQL statement, returning the status tag (e.g. 'UPDATE 1')"""
        pool = await self.connect()
        async with pool.acquire() as conn:
            return await conn.execute(sql, *(params or []))

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        """
        Acquire a connection and open a transaction on it.

        Commits when the block exits normally and rolls back when it raises.
        """
        pool = await self.connect()
        async with pool.acquire() as conn:
            async with conn.transaction():
                yield conn

    async def close(self):
        """Close the pool"""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info(f"PostgreSQL pool closed for {self.service_name}")


# Singleton instances per service
_postgres_clients: Dict[str, PostgresClientWrapper] = {}


async def get_postgres_client(
    service_name: str,
    config: Optional[InfraConfig] = None,
    dsn: Optional[str] = None,
) -> PostgresClientWrapper:
    """
    Get or create PostgreSQL client for a service.

    Args:
        service_name: Service name
        config: Optional infrastructure configuration
        dsn: Optional DSN override

    Returns:
        PostgresClientWrapper instance
    """
    global _postgres_clients

    if service_name not in _postgres_clients:
        _postgres_clients[service_name] = PostgresClientWrapper(
            service_name=service_name,
            config=config,
            dsn=dsn,
        )

    return _postgres_clients[service_name]
