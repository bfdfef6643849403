"""
dbffile Error Hierarchy
=======================

This module defines the exception hierarchy for the dbffile package.
All exceptions inherit from DbfError, allowing callers to catch every
DBF-related failure with a single except clause if desired.

Exception Hierarchy
-------------------
DbfError (base)
├── ConfigurationError - invalid open/create options
├── DbfFormatError (structural problems found while opening a file)
│   ├── FormatVersionError - unknown/unsupported version byte
│   ├── MalformedHeaderError - header or record block cannot be parsed
│   └── MissingSideFileError - memo file required by the version is absent
├── DescriptorError - invalid field descriptor at create time
├── UnsupportedFieldTypeError - read or write of an unrecognised type tag
├── RecordValidationError - value does not match its field's type
└── StorageError - underlying file I/O failed

Strict and Loose Reads
----------------------
The DbfFormatError family is raised when a file is opened in strict mode.
In loose mode the same conditions are logged and the open continues with
best-effort defaults. Nothing on the write path is ever relaxed.
"""

from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class DbfError(Exception):
    """
    Base exception for all dbffile errors.

    All exceptions in the package inherit from this class, allowing callers
    to catch every DBF-related error with a single except clause:

        try:
            table = DbfFile.open("customers.dbf")
        except DbfError as e:
            print(f"Error: {e}")
    """
    pass


class ConfigurationError(DbfError):
    """
    Invalid open or create options.

    Raised before any I/O takes place, for example when the encoding
    mapping has no 'default' entry or the read mode is not recognised.
    """
    pass


# =============================================================================
# Structural Format Exceptions
# =============================================================================

class DbfFormatError(DbfError):
    """
    Base exception for structural problems in an existing DBF file.

    Attributes:
        path: The file being opened or read (optional)
    """

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        if path:
            message = f"{path}: {message}"
        super().__init__(message)


class FormatVersionError(DbfFormatError):
    """
    The file's version byte is not one of the supported dBase versions.

    Attributes:
        version: The version byte found in the header
    """

    def __init__(self, version: int, path: Optional[str] = None):
        self.version = version
        super().__init__(
            f"unknown/unsupported dBase version: 0x{version:02X}",
            path=path,
        )


class MalformedHeaderError(DbfFormatError):
    """
    The header, the field descriptor table or the record block is unreadable.

    Raised when:
    - The file is shorter than the 32-byte leading block
    - The declared header length is too small or extends past end of file
    - The record length cannot hold the declared fields (strict mode)
    - The record block is shorter than the header's record count (strict mode)
    """
    pass


class MissingSideFileError(DbfFormatError):
    """
    The memo side file required by the file version could not be found.

    Versions 0x83 and 0x8B store large text in a sibling .dbt file.
    """
    pass


# =============================================================================
# Field and Record Exceptions
# =============================================================================

class DescriptorError(DbfError):
    """
    Invalid field descriptor passed to create.

    Attributes:
        field_name: Name of the offending field (optional)
    """

    def __init__(self, message: str, field_name: Optional[str] = None):
        self.field_name = field_name
        if field_name is not None:
            message = f"field '{field_name}': {message}"
        super().__init__(message)


class UnsupportedFieldTypeError(DbfError):
    """
    A field's type tag has no value codec.

    Raised on read in strict mode and always on write.

    Attributes:
        field_name: Name of the field
        type_tag: The one-character type tag
    """

    def __init__(self, type_tag: str, field_name: Optional[str] = None):
        self.type_tag = type_tag
        self.field_name = field_name
        message = f"unsupported field type: '{type_tag}'"
        if field_name is not None:
            message = f"field '{field_name}': {message}"
        super().__init__(message)


class RecordValidationError(DbfError):
    """
    A record value does not belong to its field's type family.

    The whole append batch is rejected before any byte is written.

    Attributes:
        field_name: Name of the field whose value was rejected
        record_index: Position of the record within the batch (optional)
    """

    def __init__(
        self,
        message: str,
        field_name: str,
        record_index: Optional[int] = None,
    ):
        self.field_name = field_name
        self.record_index = record_index
        prefix = f"field '{field_name}'"
        if record_index is not None:
            prefix = f"record {record_index}, {prefix}"
        super().__init__(f"{prefix}: {message}")


# =============================================================================
# I/O Exceptions
# =============================================================================

class StorageError(DbfError):
    """
    Underlying storage failure.

    Wraps the OSError raised by the operating system; the original
    exception is available as __cause__.

    Attributes:
        path: The file being accessed
    """

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        if path:
            message = f"{path}: {message}"
        super().__init__(message)
