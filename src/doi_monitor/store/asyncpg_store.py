"""
PostgreSQL-based implementations of the storage contracts.

This module stores one status record per identifier as a JSONB document and
reads the monitoring list from an ordered table, using an asyncpg connection
pool. Database errors are not caught here: losing a write would break
transition detection, so callers decide how to fail.
"""

import logging
from typing import List, Optional

from asyncpg import Pool

from doi_monitor.contracts import MonitoringList, StatusStore
from doi_monitor.domain import StatusRecord
from doi_monitor.serialization import decode_status_record, encode_status_record

# Module logger
logger = logging.getLogger(__name__)

CREATE_SCHEMA_QUERY = """
                      CREATE TABLE IF NOT EXISTS monitored_identifiers
                      (
                          identifier TEXT PRIMARY KEY,
                          position   BIGSERIAL   NOT NULL,
                          added_at   TIMESTAMPTZ NOT NULL DEFAULT NOW()
                      );
                      CREATE TABLE IF NOT EXISTS doi_status
                      (
                          identifier TEXT PRIMARY KEY,
                          record     JSONB       NOT NULL,
                          updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                      ); \
                      """

GET_STATUS_QUERY = "SELECT record::text FROM doi_status WHERE identifier = $1"

UPSERT_STATUS_QUERY = """
                      INSERT INTO doi_status (identifier, record, updated_at)
                      VALUES ($1, $2::jsonb, NOW())
                      ON CONFLICT (identifier) DO UPDATE
                          SET record     = EXCLUDED.record,
                              updated_at = EXCLUDED.updated_at; \
                      """

DELETE_STATUS_QUERY = "DELETE FROM doi_status WHERE identifier = $1"

LIST_IDENTIFIERS_QUERY = "SELECT identifier FROM monitored_identifiers ORDER BY position"


async def ensure_schema(pool: Pool) -> None:
    """Creates the monitoring-list and status tables if they do not exist."""
    async with pool.acquire() as conn:
        await conn.execute(CREATE_SCHEMA_QUERY)
    logger.debug("Database schema verified.")


class PostgresStatusStore(StatusStore):
    """A StatusStore keeping each record as a JSONB row in the doi_status table."""

    def __init__(self, pool: Pool) -> None:
        self._pool: Pool = pool

    async def get(self, identifier: str) -> Optional[StatusRecord]:
        async with self._pool.acquire() as conn:
            raw = await conn.fetchval(GET_STATUS_QUERY, identifier)
        return decode_status_record(raw)

    async def put(self, identifier: str, record: StatusRecord) -> None:
        async with self._pool.acquire() as conn:
            await conn.execute(UPSERT_STATUS_QUERY, identifier, encode_status_record(record))

    async def delete(self, identifier: str) -> None:
        async with self._pool.acquire() as conn:
            await conn.execute(DELETE_STATUS_QUERY, identifier)


class PostgresMonitoringList(MonitoringList):
    """Reads the monitored identifiers from the monitored_identifiers table."""

    def __init__(self, pool: Pool) -> None:
        self._pool: Pool = pool

    async def list_identifiers(self) -> List[str]:
        async with self._pool.acquire() as conn:
            records = await conn.fetch(LIST_IDENTIFIERS_QUERY)
        identifiers = [record["identifier"] for record in records]
        logger.debug(f"Loaded {len(identifiers)} monitored identifiers.")
        return identifiers
