"""
DBF File Handle
===============

DbfFile is the object collaborators work with. It holds the parsed layout
of one table plus a read cursor, and re-opens the underlying file for
every operation, so no descriptor stays open between calls.

Usage Examples
--------------
Creating a table and adding a record:
    >>> from dbffile import DbfFile, FieldDescriptor
    >>> table = DbfFile.create("people.dbf", [
    ...     FieldDescriptor("ID", "N", 5, 0),
    ...     FieldDescriptor("NAME", "C", 30),
    ...     FieldDescriptor("ACTIVE", "L", 1),
    ... ])
    >>> table.append_records([{"ID": 1, "NAME": "Alice", "ACTIVE": True}])

Reading records page by page:
    >>> table = DbfFile.open("people.dbf")
    >>> first = table.read_records(10)
    >>> rest = table.read_records(10)    # continues where the first call stopped

Scanning the remaining records lazily:
    >>> for record in table.scan():
    ...     print(record["NAME"])

Cursor
------
``read_records()`` and ``scan()`` advance ``cursor`` by every record they
visit, including skipped deleted records. The cursor never moves backwards
on its own; call ``reset_cursor()`` to rewind, or use ``read_at()`` to read
from an explicit position without touching the cursor. A handle is meant
for one owner at a time.
"""

from datetime import date
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Optional, Sequence, Union
import logging

from dbffile.appender import RecordAppender
from dbffile.fields import FieldDescriptor, validate_field_descriptors
from dbffile.header import FileLayout, read_layout, write_new_table
from dbffile.options import CreateOptions, OpenOptions, ReadPolicy
from dbffile.reader import SCAN_PAGE_SIZE, ReadResult, RecordReader
from dbffile.records import Record
from dbffile.versions import create_memo_file, find_memo_file, requires_memo_file

# Logger for this module
logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
FieldDefinition = Union[FieldDescriptor, Mapping[str, Any]]

DEFAULT_MAX_COUNT = 10_000_000


class DbfFile:
    """
    An open DBF table.

    Use DbfFile.open() or DbfFile.create() rather than the constructor.

    Attributes:
        record_count: Number of records, including deleted ones
        last_update: Date of last update from the header (None if invalid)
        options: The options the table was opened with
    """

    def __init__(
        self,
        layout: FileLayout,
        record_count: int,
        last_update: Optional[date],
        options: OpenOptions,
    ):
        self._layout = layout
        self.record_count = record_count
        self.last_update = last_update
        self.options = options
        self._cursor = 0

    # =========================================================================
    # Opening and Creating
    # =========================================================================

    @classmethod
    def open(
        cls,
        path: PathLike,
        options: Union[OpenOptions, Mapping[str, Any], None] = None,
    ) -> "DbfFile":
        """
        Open an existing table.

        Args:
            path: Path to the .dbf file
            options: OpenOptions or a mapping of its keyword names

        Returns:
            A DbfFile positioned at the first record

        Raises:
            ConfigurationError: Invalid options
            FormatVersionError: Unsupported version byte (strict)
            MissingSideFileError: Memo file required but absent (strict)
            MalformedHeaderError: Header cannot be parsed
            StorageError: The file cannot be read
        """
        options = OpenOptions.coerce(options)
        layout, header = read_layout(path, options.policy)
        return cls(
            layout=layout,
            record_count=max(header.record_count, 0),
            last_update=header.last_update,
            options=options,
        )

    @classmethod
    def create(
        cls,
        path: PathLike,
        fields: Iterable[FieldDefinition],
        options: Union[CreateOptions, Mapping[str, Any], None] = None,
    ) -> "DbfFile":
        """
        Create a new, empty table and open it.

        The table is re-opened by parsing the bytes just written, so the
        returned layout is exactly what a later open() will see.

        Args:
            path: Path of the .dbf file to write (overwritten if present)
            fields: FieldDescriptors or mappings with name/type/size/decimal_places
            options: CreateOptions or a mapping of its keyword names

        Raises:
            ConfigurationError: Invalid options
            DescriptorError: Invalid field descriptor
            StorageError: The file cannot be written
        """
        options = CreateOptions.coerce(options)
        descriptors = [FieldDescriptor.coerce(f) for f in fields]
        validate_field_descriptors(descriptors, options.file_version)

        write_new_table(path, descriptors, options.file_version)
        if requires_memo_file(options.file_version) and find_memo_file(path) is None:
            logger.info(
                f"{path}: version 0x{options.file_version:02X} needs a memo file, "
                f"writing an empty one"
            )
            create_memo_file(path)

        return cls.open(path, options.reopen_options())

    # =========================================================================
    # Layout Properties
    # =========================================================================

    @property
    def layout(self) -> FileLayout:
        return self._layout

    @property
    def path(self) -> Path:
        return self._layout.path

    @property
    def fields(self) -> tuple[FieldDescriptor, ...]:
        return self._layout.fields

    @property
    def version(self) -> int:
        return self._layout.version

    @property
    def memo_path(self) -> Optional[Path]:
        return self._layout.memo_path

    @property
    def header_length(self) -> int:
        return self._layout.header_length

    @property
    def record_length(self) -> int:
        return self._layout.record_length

    @property
    def policy(self) -> ReadPolicy:
        return self.options.policy

    @property
    def cursor(self) -> int:
        """Number of records already visited by read_records() and scan()."""
        return self._cursor

    def reset_cursor(self, position: int = 0) -> None:
        """Move the cursor to a record position (0 rewinds to the start)."""
        if position < 0 or position > self.record_count:
            raise ValueError(
                f"Cursor position {position} outside 0..{self.record_count}"
            )
        self._cursor = position

    # =========================================================================
    # Reading
    # =========================================================================

    def _reader(self) -> RecordReader:
        return RecordReader(
            layout=self._layout,
            resolver=self.options.resolver,
            policy=self.options.policy,
            include_deleted=self.options.include_deleted_records,
        )

    def read_at(self, position: int, max_count: int = DEFAULT_MAX_COUNT) -> ReadResult:
        """
        Read up to max_count records from an explicit position.

        The handle's cursor is neither used nor changed.
        """
        if position < 0:
            raise ValueError(f"Read position {position} cannot be negative")
        return self._reader().read(position, self.record_count, max_count)

    def read_records(self, max_count: int = DEFAULT_MAX_COUNT) -> list[Record]:
        """
        Read up to max_count records from the cursor and advance it.

        Deleted records are skipped unless the table was opened with
        include_deleted_records, in which case they come back as
        DeletedRecord. Returns an empty list once every record was visited.
        """
        result = self.read_at(self._cursor, max_count)
        self._cursor = result.next_position
        return result.records

    def scan(self, page_size: int = SCAN_PAGE_SIZE) -> Iterator[Record]:
        """
        Lazily yield the remaining records, reading page_size at a time.

        Iteration starts at the current cursor and advances it; a second
        scan() after exhaustion yields nothing until reset_cursor().
        """
        if page_size < 1:
            raise ValueError(f"page_size must be at least 1, got {page_size}")
        while self._cursor < self.record_count:
            yield from self.read_records(page_size)

    def __iter__(self) -> Iterator[Record]:
        return self.scan()

    # =========================================================================
    # Appending
    # =========================================================================

    def append_records(self, records: Sequence[Mapping[str, Any]]) -> "DbfFile":
        """
        Append records to the end of the table.

        The whole batch is validated before anything is written. The header's
        record count and last-update date are rewritten afterwards.

        Returns:
            Self for method chaining

        Raises:
            RecordValidationError: A value does not match its field's type
            UnsupportedFieldTypeError: A field type has no codec
            StorageError: The file cannot be written
        """
        appender = RecordAppender(self._layout, self.options.resolver)
        self.record_count, self.last_update = appender.append(records, self.record_count)
        return self

    def __repr__(self) -> str:
        return (
            f"DbfFile(path={str(self.path)!r}, version=0x{self.version:02X}, "
            f"records={self.record_count}, fields={len(self.fields)}, cursor={self._cursor})"
        )


# =============================================================================
# Convenience Functions
# =============================================================================

def open_dbf(
    path: PathLike,
    options: Union[OpenOptions, Mapping[str, Any], None] = None,
) -> DbfFile:
    """Open an existing table (see DbfFile.open)."""
    return DbfFile.open(path, options)


def create_dbf(
    path: PathLike,
    fields: Iterable[FieldDefinition],
    options: Union[CreateOptions, Mapping[str, Any], None] = None,
) -> DbfFile:
    """Create a new, empty table and open it (see DbfFile.create)."""
    return DbfFile.create(path, fields, options)
