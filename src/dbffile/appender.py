"""
Record Appender
===============

Appending is done in three steps:

1. Validate every record of the batch against the field descriptors. A
   single mismatch rejects the whole batch before anything is written.
2. Build each fixed-width record buffer (active delete marker followed by
   every field encoded into its window).
3. Write the buffers after the last existing record, rewrite the record
   count and last-update stamp in the header, and write the 0x1A marker
   after the new last record.

The header is rewritten only after all records are on disk. An I/O error
between the record writes and the header rewrite leaves more physical
records than the header declares; nothing is rolled back.

Value Kinds
-----------
    Type    Accepted Python values (None is always accepted)
    ----    ------------------------------------------------
    C       str, int, float, bool
    N, F    int, float, Decimal (not bool)
    L       bool
    D       datetime.date, datetime.datetime
    other   not checked
"""

from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Sequence
import logging
import struct

from dbffile.encoding import EncodingResolver
from dbffile.errors import MalformedHeaderError, RecordValidationError, StorageError
from dbffile.field_codecs import encode_field
from dbffile.fields import FieldDescriptor, FieldFamily
from dbffile.header import (
    EOF_MARKER,
    RECORD_COUNT_OFFSET,
    UPDATE_STAMP_OFFSET,
    FileLayout,
    compute_lengths,
    encode_update_stamp,
)
from dbffile.records import ACTIVE_MARKER

# Logger for this module
logger = logging.getLogger(__name__)


# =============================================================================
# Validation
# =============================================================================

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


_FAMILY_CHECKS = {
    FieldFamily.TEXT: (
        lambda v: isinstance(v, (str, int, float, bool)),
        "must be a string, number, or boolean",
    ),
    FieldFamily.NUMERIC: (_is_number, "must be a number"),
    FieldFamily.LOGICAL: (lambda v: isinstance(v, bool), "must be a boolean"),
    FieldFamily.DATE: (lambda v: isinstance(v, date), "must be a date"),
}


def validate_record(
    fields: Sequence[FieldDescriptor],
    record: Mapping[str, Any],
    record_index: Optional[int] = None,
) -> None:
    """
    Check that every provided value matches its field's type family.

    Keys that do not name a field are ignored; missing and None values are
    always accepted.

    Raises:
        RecordValidationError: On the first mismatching value
    """
    if not isinstance(record, Mapping):
        raise RecordValidationError(
            f"record must be a mapping, got {type(record).__name__}",
            field_name="*",
            record_index=record_index,
        )
    for field in fields:
        value = record.get(field.name)
        if value is None:
            continue
        field_type = field.get_field_type()
        if field_type is None:
            continue
        check = _FAMILY_CHECKS.get(field_type.family)
        if check is None:
            continue
        predicate, message = check
        if not predicate(value):
            raise RecordValidationError(message, field.name, record_index)


def validate_records(
    fields: Sequence[FieldDescriptor],
    records: Iterable[Mapping[str, Any]],
) -> None:
    """Validate a whole batch, raising on the first invalid record."""
    for index, record in enumerate(records):
        validate_record(fields, record, index)


# =============================================================================
# Appender
# =============================================================================

class RecordAppender:
    """Serializes records and appends them to a table."""

    def __init__(self, layout: FileLayout, resolver: Optional[EncodingResolver] = None):
        self.layout = layout
        self.resolver = resolver or EncodingResolver()

    def build_record(self, record: Mapping[str, Any], encodings: Mapping[str, str]) -> bytes:
        """
        Build the fixed-width buffer for one record.

        Raises:
            UnsupportedFieldTypeError: A field type has no codec
        """
        buffer = bytearray(self.layout.record_length)
        buffer[0] = ACTIVE_MARKER
        for field, start, end in self.layout.field_windows():
            buffer[start:end] = encode_field(field, record.get(field.name), encodings[field.name])
        return bytes(buffer)

    def append(
        self,
        records: Sequence[Mapping[str, Any]],
        record_count: int,
        today: Optional[date] = None,
    ) -> tuple[int, date]:
        """
        Append a batch of records after the existing ones.

        Args:
            records: Mappings from field name to value
            record_count: Number of records currently in the table
            today: Last-update date to stamp (defaults to today)

        Returns:
            Tuple of (new record count, last-update date written)

        Raises:
            RecordValidationError: A value does not match its field's type
            UnsupportedFieldTypeError: A field type has no codec
            StorageError: The file cannot be written
        """
        layout = self.layout
        records = list(records)
        validate_records(layout.fields, records)

        _, needed = compute_lengths(layout.fields)
        if needed > layout.record_length:
            raise MalformedHeaderError(
                f"record length {layout.record_length} cannot hold the declared fields "
                f"({needed} bytes); refusing to write",
                str(layout.path),
            )

        # Every buffer is built before the file is touched, so encoding
        # failures cannot leave a partial batch behind
        encodings = self.resolver.resolve_all(layout.field_names)
        buffers = [self.build_record(record, encodings) for record in records]

        stamp = today or date.today()
        new_count = record_count + len(buffers)
        position = layout.record_offset(record_count)

        try:
            with layout.path.open("r+b") as f:
                f.seek(position)
                for buffer in buffers:
                    f.write(buffer)
                    position += len(buffer)

                f.seek(RECORD_COUNT_OFFSET)
                f.write(struct.pack("<i", new_count))
                f.seek(UPDATE_STAMP_OFFSET)
                f.write(encode_update_stamp(stamp))

                f.seek(position)
                f.write(bytes([EOF_MARKER]))
        except OSError as e:
            raise StorageError(f"cannot append records: {e.strerror or e}", str(layout.path)) from e

        logger.debug(f"Appended {len(buffers)} record(s) to {layout.path}, now {new_count}")
        return new_count, stamp
