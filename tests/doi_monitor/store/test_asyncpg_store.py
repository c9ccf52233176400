"""
Unit tests for the PostgreSQL store implementations.

The asyncpg pool is replaced with mocks; the tests check the queries issued,
their parameters, and how stored values are decoded.

The tests follow the Arrange-Act-Assert (AAA) pattern.
"""

from datetime import datetime, timezone
from typing import Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest

from doi_monitor.domain import StatusRecord
from doi_monitor.errors import MalformedStatusError
from doi_monitor.serialization import encode_status_record
from doi_monitor.store.asyncpg_store import (
    CREATE_SCHEMA_QUERY,
    DELETE_STATUS_QUERY,
    GET_STATUS_QUERY,
    LIST_IDENTIFIERS_QUERY,
    UPSERT_STATUS_QUERY,
    PostgresMonitoringList,
    PostgresStatusStore,
    ensure_schema,
)

AT = datetime(2024, 9, 1, tzinfo=timezone.utc)


@pytest.fixture
def mock_pool() -> Tuple[MagicMock, AsyncMock]:
    """
    Creates a mock asyncpg pool whose acquire() yields a mock connection.

    Returns:
        Tuple[MagicMock, AsyncMock]: The pool and the connection it hands out.
    """
    pool = MagicMock()
    connection = AsyncMock()
    pool.acquire.return_value.__aenter__.return_value = connection
    pool.acquire.return_value.__aexit__.return_value = False
    return pool, connection


@pytest.fixture
def record() -> StatusRecord:
    return StatusRecord(
        healthy=False,
        http_status=None,
        error="connection refused",
        last_checked_at=AT,
        first_checked_at=AT,
        first_failure_at=AT,
    )


@pytest.mark.asyncio
async def test_get_should_decode_the_stored_record(mock_pool, record: StatusRecord) -> None:
    # Arrange
    pool, connection = mock_pool
    connection.fetchval.return_value = encode_status_record(record)
    store = PostgresStatusStore(pool)

    # Act
    result = await store.get("10.1/a")

    # Assert
    assert result == record
    connection.fetchval.assert_awaited_once_with(GET_STATUS_QUERY, "10.1/a")


@pytest.mark.asyncio
async def test_get_should_return_none_when_no_row_exists(mock_pool) -> None:
    pool, connection = mock_pool
    connection.fetchval.return_value = None

    assert await PostgresStatusStore(pool).get("10.1/a") is None


@pytest.mark.asyncio
async def test_get_should_raise_on_a_corrupt_row(mock_pool) -> None:
    pool, connection = mock_pool
    connection.fetchval.return_value = '{"no": "health"}'

    with pytest.raises(MalformedStatusError):
        await PostgresStatusStore(pool).get("10.1/a")


@pytest.mark.asyncio
async def test_put_should_upsert_the_encoded_record(mock_pool, record: StatusRecord) -> None:
    """
    Tests that put issues a single upsert with the serialized record.
    """
    # Arrange
    pool, connection = mock_pool
    store = PostgresStatusStore(pool)

    # Act
    await store.put("10.1/a", record)

    # Assert
    connection.execute.assert_awaited_once_with(
        UPSERT_STATUS_QUERY, "10.1/a", encode_status_record(record)
    )


@pytest.mark.asyncio
async def test_put_should_propagate_database_errors(mock_pool, record: StatusRecord) -> None:
    pool, connection = mock_pool
    connection.execute.side_effect = ConnectionError("server closed the connection")

    with pytest.raises(ConnectionError):
        await PostgresStatusStore(pool).put("10.1/a", record)


@pytest.mark.asyncio
async def test_delete_should_remove_the_row(mock_pool) -> None:
    pool, connection = mock_pool

    await PostgresStatusStore(pool).delete("10.1/a")

    connection.execute.assert_awaited_once_with(DELETE_STATUS_QUERY, "10.1/a")


@pytest.mark.asyncio
async def test_monitoring_list_should_return_identifiers_in_order(mock_pool) -> None:
    # Arrange
    pool, connection = mock_pool
    connection.fetch.return_value = [{"identifier": "10.1/b"}, {"identifier": "10.1/a"}]

    # Act
    identifiers = await PostgresMonitoringList(pool).list_identifiers()

    # Assert
    assert identifiers == ["10.1/b", "10.1/a"]
    connection.fetch.assert_awaited_once_with(LIST_IDENTIFIERS_QUERY)


@pytest.mark.asyncio
async def test_ensure_schema_should_create_both_tables(mock_pool) -> None:
    pool, connection = mock_pool

    await ensure_schema(pool)

    connection.execute.assert_awaited_once_with(CREATE_SCHEMA_QUERY)
    assert "doi_status" in CREATE_SCHEMA_QUERY
    assert "monitored_identifiers" in CREATE_SCHEMA_QUERY
