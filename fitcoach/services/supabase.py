"""Direct Postgres access to the Supabase database.

The progress routines run with the service role, so there is no per-user
RLS identity to set.  Each statement runs in its own pooled transaction, and
driver failures surface as ``StoreError``.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

import asyncpg

from fitcoach.config import Settings, get_settings

logger = logging.getLogger("fitcoach.db")

# Module-level connection pool — initialized once at app startup
_pool: asyncpg.Pool | None = None

# command_timeout raises asyncio.TimeoutError, which is not an OSError before 3.11
_DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


class StoreError(RuntimeError):
    """A read or write against the backing database failed."""


async def init_pool(settings: Settings | None = None) -> asyncpg.Pool:
    """Create the asyncpg connection pool. Call once at app startup."""
    global _pool
    s = settings or get_settings()
    _pool = await asyncpg.create_pool(
        s.supabase_db_url,
        min_size=s.db_pool_min_size,
        max_size=s.db_pool_max_size,
        command_timeout=s.db_command_timeout,
    )
    logger.info(
        "Database pool initialized (min=%d, max=%d)",
        s.db_pool_min_size,
        s.db_pool_max_size,
    )
    return _pool


async def close_pool() -> None:
    """Drain the pool. Call at app shutdown."""
    global _pool
    if _pool:
        await _pool.close()
        _pool = None
        logger.info("Database pool closed")


def get_pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("Database pool not initialized — call init_pool() first")
    return _pool


@asynccontextmanager
async def get_connection() -> AsyncGenerator[asyncpg.Connection, None]:
    """Acquire a pooled connection inside a transaction.

    Usage::

        async with get_connection() as conn:
            rows = await conn.fetch("SELECT * FROM challenges WHERE id = $1", cid)
    """
    pool = get_pool()
    async with pool.acquire() as conn:
        async with conn.transaction():
            yield conn


async def execute(query: str, *args: Any) -> str:
    """Execute a single statement and return its status.

    Raises:
        StoreError: If the database rejects the statement.
    """
    try:
        async with get_connection() as conn:
            return await conn.execute(query, *args)
    except _DRIVER_ERRORS as exc:
        raise StoreError(str(exc) or type(exc).__name__) from exc


async def fetch(query: str, *args: Any) -> list[asyncpg.Record]:
    """Fetch rows.

    Raises:
        StoreError: If the query fails.
    """
    try:
        async with get_connection() as conn:
            return await conn.fetch(query, *args)
    except _DRIVER_ERRORS as exc:
        raise StoreError(str(exc) or type(exc).__name__) from exc


async def fetchval(query: str, *args: Any) -> Any:
    """Fetch a single value.

    Raises:
        StoreError: If the query fails.
    """
    try:
        async with get_connection() as conn:
            return await conn.fetchval(query, *args)
    except _DRIVER_ERRORS as exc:
        raise StoreError(str(exc) or type(exc).__name__) from exc
