"""
Sequential Record Reader
========================

Records are read page by page from an explicit position. Each call to
RecordReader.read() opens the table, reads up to ``max_count`` fixed-width
records starting at ``position``, closes the table, and reports where the
next page begins:

    >>> reader = RecordReader(layout, resolver)
    >>> result = reader.read(position=0, record_count=header.record_count, max_count=100)
    >>> result.next_position
    100

The position counts every record visited, deleted or not, so it always
advances by the number of records inspected even when deleted records are
filtered out of the page.

Record Layout
-------------
    Offset  Size            Description
    ------  ----            -----------
    0       1               Delete marker: '*' deleted, ' ' active
    1       field[0].size   First field
    ...     ...             Remaining fields in descriptor order
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

from dbffile.encoding import EncodingResolver
from dbffile.errors import MalformedHeaderError, StorageError
from dbffile.field_codecs import decode_field
from dbffile.header import FileLayout
from dbffile.options import STRICT, ReadPolicy
from dbffile.records import DELETED_MARKER, ActiveRecord, DeletedRecord, Record

# Logger for this module
logger = logging.getLogger(__name__)


# Records fetched per underlying read when scanning a whole table
SCAN_PAGE_SIZE = 100


@dataclass
class ReadResult:
    """
    One page of records.

    Attributes:
        records: Records emitted, in file order
        next_position: Position of the first record of the next page
    """
    records: list[Record] = field(default_factory=list)
    next_position: int = 0


class RecordReader:
    """
    Decodes fixed-width records from a table.

    The reader holds no position of its own; callers pass the position in
    and receive the next one back.
    """

    def __init__(
        self,
        layout: FileLayout,
        resolver: Optional[EncodingResolver] = None,
        policy: ReadPolicy = STRICT,
        include_deleted: bool = False,
    ):
        self.layout = layout
        self.resolver = resolver or EncodingResolver()
        self.policy = policy
        self.include_deleted = include_deleted

    def read(self, position: int, record_count: int, max_count: int) -> ReadResult:
        """
        Read up to max_count records starting at position.

        Args:
            position: Index of the first record to visit
            record_count: Number of records the header declares
            max_count: Largest number of records to visit

        Returns:
            ReadResult with the emitted records and the next position

        Raises:
            MalformedHeaderError: The file ends before record_count records
                (strict policy)
            UnsupportedFieldTypeError: A field type has no codec (strict policy)
            StorageError: The file cannot be read
        """
        count = min(max_count, record_count - position)
        if count <= 0:
            return ReadResult(records=[], next_position=max(position, 0))

        layout = self.layout
        encodings = self.resolver.resolve_all(layout.field_names)
        windows = layout.field_windows()
        records: list[Record] = []

        try:
            with layout.path.open("rb") as f:
                f.seek(layout.record_offset(position))
                for _ in range(count):
                    buffer = f.read(layout.record_length)
                    if len(buffer) < layout.record_length:
                        self._handle_truncation(position, record_count)
                        return ReadResult(records=records, next_position=record_count)

                    deleted = buffer[0] == DELETED_MARKER
                    position += 1
                    if deleted and not self.include_deleted:
                        continue

                    values = {}
                    for fld, start, end in windows:
                        values[fld.name] = decode_field(
                            fld,
                            buffer[start:end],
                            encodings[fld.name],
                            self.policy.tolerate_unknown_types,
                        )
                    records.append(DeletedRecord(values) if deleted else ActiveRecord(values))
        except OSError as e:
            raise StorageError(f"cannot read records: {e.strerror or e}", str(layout.path)) from e

        logger.debug(
            f"Read {len(records)} record(s) from {layout.path}, next position {position}"
        )
        return ReadResult(records=records, next_position=position)

    def _handle_truncation(self, position: int, record_count: int) -> None:
        message = (
            f"header declares {record_count} records but the file ends at record {position}"
        )
        if not self.policy.tolerate_structure:
            raise MalformedHeaderError(message, str(self.layout.path))
        logger.warning(f"{self.layout.path}: {message}")
