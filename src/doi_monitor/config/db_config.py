"""
Database configuration module for the DOI monitoring system.

This module creates the asyncpg connection pool backing the monitoring list
and the status store, checks that the database answers, and makes sure the
tables the stores rely on exist.
"""

import logging

import asyncpg

from doi_monitor.config import MonitoringContext
from doi_monitor.store.asyncpg_store import ensure_schema

# Module logger
logger = logging.getLogger(__name__)


async def initiate_db_pool(context: MonitoringContext) -> asyncpg.pool.Pool:
    """
    Create a connection pool, validate it and prepare the schema.

    A cycle cannot run without its persisted state, so any failure here is
    fatal: the pool is closed and the exception is re-raised.

    Args:
        context: Configuration context containing database connection parameters.

    Returns:
        asyncpg.pool.Pool: A ready-to-use connection pool.

    Raises:
        Exception: If the database cannot be reached or the schema cannot be created.
    """
    pool: asyncpg.pool.Pool = await asyncpg.create_pool(
        dsn=context.dsn, min_size=1, max_size=context.db_pool_size
    )

    try:
        async with pool.acquire() as connection:
            await connection.fetchval("SELECT 1")
        await ensure_schema(pool)
        logger.info("Database connection pool successfully created.")
        return pool
    except Exception as e:
        logger.error(f"Error: Could not prepare the database. {e}")
        await pool.close()
        raise
