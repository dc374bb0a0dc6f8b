"""asyncpg pool wrapper and transaction-scoped query runners."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import asyncpg
import structlog

logger = structlog.get_logger()


class QueryRunner:
    """Row-level query helpers shared by pool- and connection-bound runners.

    Subclasses provide acquire(), which yields the connection to run on.
    """

    def acquire(self) -> Any:
        """Yield a connection. Implemented by subclasses."""
        raise NotImplementedError

    async def fetch_one(self, query: str, *args: Any) -> dict[str, Any] | None:
        """Fetch a single row."""
        async with self.acquire() as conn:
            row = await conn.fetchrow(query, *args)
            if row:
                return dict(row)
            return None

    async def fetch_all(self, query: str, *args: Any) -> list[dict[str, Any]]:
        """Fetch all rows."""
        async with self.acquire() as conn:
            rows = await conn.fetch(query, *args)
            return [dict(row) for row in rows]

    async def fetch_val(self, query: str, *args: Any) -> Any:
        """Fetch the first column of the first row."""
        async with self.acquire() as conn:
            return await conn.fetchval(query, *args)

    async def execute(self, query: str, *args: Any) -> str:
        """Run a statement; returns the asyncpg status tag (e.g. "DELETE 1")."""
        async with self.acquire() as conn:
            result: str = await conn.execute(query, *args)
            return result

    async def execute_returning(self, query: str, *args: Any) -> dict[str, Any] | None:
        """Run an INSERT or UPDATE ... RETURNING and return the row."""
        async with self.acquire() as conn:
            row = await conn.fetchrow(query, *args)
            if row:
                return dict(row)
            return None


class ConnectionScope(QueryRunner):
    """Runner bound to one connection with an open transaction."""

    def __init__(self, conn: asyncpg.Connection[asyncpg.Record]) -> None:
        """Bind to an acquired connection."""
        self._conn = conn

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection[asyncpg.Record]]:
        """Yield the bound connection."""
        yield self._conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[ConnectionScope]:
        """Open a savepoint on the bound connection."""
        async with self._conn.transaction():
            yield self


class AppDatabase(QueryRunner):
    """Application database holding the asyncpg connection pool."""

    def __init__(self, dsn: str, min_size: int = 2, max_size: int = 10):
        """Configure the pool; call connect() before use."""
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.pool: asyncpg.Pool[asyncpg.Connection[asyncpg.Record]] | None = None

    async def connect(self) -> None:
        """Open the pool."""
        self.pool = await asyncpg.create_pool(
            self.dsn,
            min_size=self.min_size,
            max_size=self.max_size,
            command_timeout=60,
        )
        logger.info("app_database_connected", dsn=self.dsn.split("@")[-1])

    async def close(self) -> None:
        """Close the pool if it was opened."""
        if self.pool:
            await self.pool.close()
            logger.info("app_database_disconnected")

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection[asyncpg.Record]]:
        """Borrow a pooled connection for the duration of the block."""
        if self.pool is None:
            raise RuntimeError("Database pool not initialized")
        async with self.pool.acquire() as conn:
            yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[ConnectionScope]:
        """Acquire a connection and run the block in one transaction.

        Commits when the block exits normally, rolls back if it raises.
        """
        async with self.acquire() as conn:
            async with conn.transaction():
                yield ConnectionScope(conn)

    async def apply_schema(self, ddl: str) -> None:
        """Run idempotent DDL on startup."""
        async with self.acquire() as conn:
            await conn.execute(ddl)
        logger.info("app_database_schema_applied")
