"""
Asynchronous Table Access
=========================

AsyncDbfFile wraps a DbfFile for use from asyncio code. Each operation
runs the synchronous implementation in a worker thread with
asyncio.to_thread(), so the event loop is never blocked on disk I/O:

    >>> table = await AsyncDbfFile.open("people.dbf")
    >>> page = await table.read_records(50)
    >>> async for record in table:
    ...     print(record["NAME"])

Operations on one handle must be awaited one after another; the handle
shares the cursor and record count of the wrapped DbfFile.
"""

from typing import Any, AsyncIterator, Iterable, Mapping, Sequence, Union
import asyncio

from dbffile.dbf_file import DEFAULT_MAX_COUNT, DbfFile, FieldDefinition, PathLike
from dbffile.options import CreateOptions, OpenOptions
from dbffile.reader import SCAN_PAGE_SIZE
from dbffile.records import Record


class AsyncDbfFile:
    """Awaitable facade over a DbfFile."""

    def __init__(self, table: DbfFile):
        self.table = table

    @classmethod
    async def open(
        cls,
        path: PathLike,
        options: Union[OpenOptions, Mapping[str, Any], None] = None,
    ) -> "AsyncDbfFile":
        """Open an existing table (see DbfFile.open)."""
        table = await asyncio.to_thread(DbfFile.open, path, options)
        return cls(table)

    @classmethod
    async def create(
        cls,
        path: PathLike,
        fields: Iterable[FieldDefinition],
        options: Union[CreateOptions, Mapping[str, Any], None] = None,
    ) -> "AsyncDbfFile":
        """Create a new, empty table and open it (see DbfFile.create)."""
        table = await asyncio.to_thread(DbfFile.create, path, list(fields), options)
        return cls(table)

    @property
    def record_count(self) -> int:
        return self.table.record_count

    @property
    def cursor(self) -> int:
        return self.table.cursor

    @property
    def fields(self):
        return self.table.fields

    async def read_records(self, max_count: int = DEFAULT_MAX_COUNT) -> list[Record]:
        """Read up to max_count records from the cursor and advance it."""
        return await asyncio.to_thread(self.table.read_records, max_count)

    async def append_records(self, records: Sequence[Mapping[str, Any]]) -> "AsyncDbfFile":
        """Append records to the end of the table."""
        await asyncio.to_thread(self.table.append_records, list(records))
        return self

    async def scan(self, page_size: int = SCAN_PAGE_SIZE) -> AsyncIterator[Record]:
        """Yield the remaining records, reading page_size at a time."""
        if page_size < 1:
            raise ValueError(f"page_size must be at least 1, got {page_size}")
        while self.table.cursor < self.table.record_count:
            for record in await self.read_records(page_size):
                yield record

    def __aiter__(self) -> AsyncIterator[Record]:
        return self.scan()

    def __repr__(self) -> str:
        return f"AsyncDbfFile({self.table!r})"


async def open_dbf_async(
    path: PathLike,
    options: Union[OpenOptions, Mapping[str, Any], None] = None,
) -> AsyncDbfFile:
    """Open an existing table without blocking the event loop."""
    return await AsyncDbfFile.open(path, options)


async def create_dbf_async(
    path: PathLike,
    fields: Iterable[FieldDefinition],
    options: Union[CreateOptions, Mapping[str, Any], None] = None,
) -> AsyncDbfFile:
    """Create a new table without blocking the event loop."""
    return await AsyncDbfFile.create(path, fields, options)
