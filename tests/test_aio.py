"""
Async Facade Tests
==================

Tests for AsyncDbfFile, which runs DbfFile operations in worker threads.
"""

from pathlib import Path

import pytest

from dbffile import (
    AsyncDbfFile,
    DbfFile,
    FieldDescriptor,
    RecordValidationError,
    create_dbf_async,
    open_dbf_async,
)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def fields() -> list[FieldDescriptor]:
    return [
        FieldDescriptor("ID", "N", 5, 0),
        FieldDescriptor("NAME", "C", 20),
    ]


@pytest.fixture
def table_path(tmp_path: Path) -> Path:
    return tmp_path / "async.dbf"


# =============================================================================
# AsyncDbfFile Tests
# =============================================================================

class TestAsyncDbfFile:
    """Tests for the asyncio facade."""

    @pytest.mark.asyncio
    async def test_create_append_read(self, table_path, fields):
        """Records appended asynchronously are read back in order."""
        table = await AsyncDbfFile.create(table_path, fields)
        await table.append_records([{"ID": 1, "NAME": "Alice"}, {"ID": 2, "NAME": "Bob"}])
        assert table.record_count == 2

        reopened = await open_dbf_async(table_path)
        records = await reopened.read_records(1)
        assert records == [{"ID": 1, "NAME": "Alice"}]
        assert reopened.cursor == 1

    @pytest.mark.asyncio
    async def test_async_iteration(self, table_path, fields):
        """async for visits every record."""
        table = await create_dbf_async(table_path, fields)
        await table.append_records([{"ID": i} for i in range(1, 8)])

        ids = [record["ID"] async for record in table.scan(page_size=3)]
        assert ids == [1, 2, 3, 4, 5, 6, 7]

        reopened = await AsyncDbfFile.open(table_path)
        assert len([record async for record in reopened]) == 7

    @pytest.mark.asyncio
    async def test_shares_state_with_sync_handle(self, table_path, fields):
        """The facade exposes the wrapped handle's cursor and fields."""
        sync_table = DbfFile.create(table_path, fields)
        table = AsyncDbfFile(sync_table)
        await table.append_records([{"ID": 1}])
        assert sync_table.record_count == 1
        assert table.fields == sync_table.fields

    @pytest.mark.asyncio
    async def test_errors_propagate(self, table_path, fields):
        """Validation errors raised in the worker thread reach the caller."""
        table = await AsyncDbfFile.create(table_path, fields)
        with pytest.raises(RecordValidationError):
            await table.append_records([{"ID": "one"}])
        assert table.record_count == 0

    @pytest.mark.asyncio
    async def test_invalid_page_size(self, table_path, fields):
        table = await AsyncDbfFile.create(table_path, fields)
        with pytest.raises(ValueError):
            async for _ in table.scan(page_size=0):
                pass
