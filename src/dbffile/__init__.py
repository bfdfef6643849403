"""
dbffile - Reader and Writer for dBase (.DBF) Tables
===================================================

This package reads and appends to legacy fixed-layout DBF files: a
32-byte header, a table of 32-byte field descriptors, and a sequence of
fixed-width records.

Main Components
---------------
- **DbfFile**: Open or create a table, read records page by page, append
- **FieldDescriptor / FieldType**: Column definitions and type tags
- **Record types**: ActiveRecord and DeletedRecord mappings
- **Field codecs**: Per-type conversion between bytes and Python values
- **AsyncDbfFile**: asyncio facade running each operation in a thread

Quick Start
-----------
Create a table:
    >>> from dbffile import DbfFile, FieldDescriptor
    >>> table = DbfFile.create("people.dbf", [
    ...     FieldDescriptor("ID", "N", 5, 0),
    ...     FieldDescriptor("NAME", "C", 30),
    ...     FieldDescriptor("ACTIVE", "L", 1),
    ... ])
    >>> table.append_records([{"ID": 1, "NAME": "Alice", "ACTIVE": True}])

Read it back:
    >>> table = DbfFile.open("people.dbf", {"encoding": "cp1252"})
    >>> for record in table.scan():
    ...     print(record["ID"], record["NAME"])

Reference
---------
- dBase file structure: https://www.dbase.com/Knowledgebase/INT/db7_file_fmt.htm
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from dbffile.errors import (
    DbfError,
    ConfigurationError,
    DbfFormatError,
    FormatVersionError,
    MalformedHeaderError,
    MissingSideFileError,
    DescriptorError,
    UnsupportedFieldTypeError,
    RecordValidationError,
    StorageError,
)

from dbffile.fields import (
    FieldType,
    FieldFamily,
    FieldDescriptor,
    validate_field_descriptor,
    validate_field_descriptors,
)

from dbffile.versions import (
    FileVersion,
    SUPPORTED_VERSIONS,
    is_supported_version,
    requires_memo_file,
    find_memo_file,
)

from dbffile.options import (
    ReadMode,
    ReadPolicy,
    OpenOptions,
    CreateOptions,
)

from dbffile.encoding import EncodingResolver

from dbffile.field_codecs import (
    decode_field,
    encode_field,
    format_null_flags,
    parse_null_flags,
)

from dbffile.header import (
    DbfHeader,
    FileLayout,
    parse_field_descriptors,
    build_header,
    read_layout,
)

from dbffile.records import Record, ActiveRecord, DeletedRecord

from dbffile.reader import RecordReader, ReadResult

from dbffile.appender import RecordAppender, validate_record, validate_records

from dbffile.dbf_file import DbfFile, open_dbf, create_dbf

from dbffile.aio import AsyncDbfFile, open_dbf_async, create_dbf_async

__all__ = [
    "__version__",
    # Table handle
    "DbfFile",
    "open_dbf",
    "create_dbf",
    "AsyncDbfFile",
    "open_dbf_async",
    "create_dbf_async",
    # Fields and versions
    "FieldType",
    "FieldFamily",
    "FieldDescriptor",
    "validate_field_descriptor",
    "validate_field_descriptors",
    "FileVersion",
    "SUPPORTED_VERSIONS",
    "is_supported_version",
    "requires_memo_file",
    "find_memo_file",
    # Options
    "ReadMode",
    "ReadPolicy",
    "OpenOptions",
    "CreateOptions",
    "EncodingResolver",
    # Codecs
    "decode_field",
    "encode_field",
    "format_null_flags",
    "parse_null_flags",
    # Header
    "DbfHeader",
    "FileLayout",
    "parse_field_descriptors",
    "build_header",
    "read_layout",
    # Records
    "Record",
    "ActiveRecord",
    "DeletedRecord",
    "RecordReader",
    "ReadResult",
    "RecordAppender",
    "validate_record",
    "validate_records",
    # Exception hierarchy
    "DbfError",
    "ConfigurationError",
    "DbfFormatError",
    "FormatVersionError",
    "MalformedHeaderError",
    "MissingSideFileError",
    "DescriptorError",
    "UnsupportedFieldTypeError",
    "RecordValidationError",
    "StorageError",
]
