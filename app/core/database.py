"""
Async database connection using asyncpg (NO ORM).

The pool is owned by the application lifespan and stored on ``app.state``;
request handlers receive connections through the ``get_db`` dependency.
"""

from typing import AsyncGenerator

import asyncpg
from fastapi import Request

from app.core.config import Settings
from app.core.logging_config import get_logger

logger = get_logger(__name__)


async def create_db_pool(settings: Settings) -> asyncpg.Pool:
    """
    Create the connection pool on startup.

    Call this in the FastAPI lifespan event.
    """
    pool = await asyncpg.create_pool(
        dsn=settings.DATABASE_URL,
        min_size=settings.DATABASE_POOL_MIN_SIZE,
        max_size=settings.DATABASE_POOL_MAX_SIZE,
        max_inactive_connection_lifetime=300,  # Close idle connections after 5 minutes
        timeout=30,
        command_timeout=60,
    )
    logger.info(
        f"Database pool initialized: {pool.get_size()} / {pool.get_max_size()} connections"
    )
    return pool


async def close_db_pool(pool: asyncpg.Pool | None) -> None:
    """Close the connection pool on shutdown."""
    if pool:
        await pool.close()
        logger.info("Database pool closed")


async def get_db(request: Request) -> AsyncGenerator[asyncpg.Connection, None]:
    """
    FastAPI dependency for database connections.

    Usage in routes:
        @router.get("/stations")
        async def get_stations(conn: asyncpg.Connection = Depends(get_db)):
            ...
    """
    pool: asyncpg.Pool | None = getattr(request.app.state, "db_pool", None)
    if not pool:
        raise RuntimeError("Database pool not initialized. Call create_db_pool() first.")

    async with pool.acquire() as connection:
        yield connection
