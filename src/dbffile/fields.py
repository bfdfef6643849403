"""
Field Types and Field Descriptors
=================================

Every DBF table declares its columns in a table of 32-byte field
descriptors that follows the 32-byte file header.

Descriptor Layout
-----------------
    Offset  Size    Description
    ------  ----    -----------
    0       11      Field name, NUL padded
    11      1       Type tag (ASCII character)
    12      4       Reserved
    16      1       Field size in bytes
    17      1       Decimal places
    18      14      Reserved

Type Tags
---------
    C   Character       text, space padded
    N   Numeric         ASCII number, right aligned
    F   Float           ASCII number, right aligned
    L   Logical         T/F/Y/N or space
    D   Date            YYYYMMDD
    0   Null flags      opaque per-record flag bytes
    Y   Currency        reserved
    I   Integer         reserved
    M   Memo            reserved (block pointer into the .dbt file)
    T   DateTime        reserved
    B   Double          reserved

Reserved types may be declared when creating a table but have no value
codec, so reading them fails in strict mode and writing them always fails.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Union
import struct

from dbffile.errors import DescriptorError
from dbffile.versions import max_decimal_places, memo_field_size


DESCRIPTOR_SIZE = 32
MAX_NAME_LENGTH = 10
NAME_SLOT_SIZE = 11

# Largest record a header can describe (signed 16-bit record length)
MAX_RECORD_LENGTH = 0x7FFF

# Largest header block a header can describe (signed 16-bit header length)
MAX_HEADER_LENGTH = 0x7FFF


# =============================================================================
# Field Types
# =============================================================================

class FieldFamily(Enum):
    """Kind of Python value a field type holds."""
    TEXT = "text"
    NUMERIC = "numeric"
    LOGICAL = "logical"
    DATE = "date"
    RAW = "raw"
    RESERVED = "reserved"


class FieldType(str, Enum):
    """One-character field type tags."""
    CHARACTER = "C"
    NUMERIC = "N"
    FLOAT = "F"
    LOGICAL = "L"
    DATE = "D"
    NULL_FLAGS = "0"
    CURRENCY = "Y"
    INTEGER = "I"
    MEMO = "M"
    DATETIME = "T"
    DOUBLE = "B"

    @classmethod
    def from_tag(cls, tag: str) -> "FieldType":
        """Convert a type tag character to a FieldType, raising ValueError."""
        return cls(tag)

    @classmethod
    def is_supported(cls, tag: str) -> bool:
        """Check if a type tag is one of the known tags."""
        try:
            cls(tag)
            return True
        except ValueError:
            return False

    @property
    def family(self) -> FieldFamily:
        return _FAMILIES[self]


_FAMILIES = {
    FieldType.CHARACTER: FieldFamily.TEXT,
    FieldType.NUMERIC: FieldFamily.NUMERIC,
    FieldType.FLOAT: FieldFamily.NUMERIC,
    FieldType.LOGICAL: FieldFamily.LOGICAL,
    FieldType.DATE: FieldFamily.DATE,
    FieldType.NULL_FLAGS: FieldFamily.RAW,
    FieldType.CURRENCY: FieldFamily.RESERVED,
    FieldType.INTEGER: FieldFamily.RESERVED,
    FieldType.MEMO: FieldFamily.RESERVED,
    FieldType.DATETIME: FieldFamily.RESERVED,
    FieldType.DOUBLE: FieldFamily.RESERVED,
}

# Types whose width is fixed regardless of the table version
_FIXED_SIZES = {
    FieldType.CURRENCY: 8,
    FieldType.LOGICAL: 1,
    FieldType.DATE: 8,
    FieldType.DATETIME: 8,
    FieldType.DOUBLE: 8,
}

# Upper bounds for variable-width types
_MAX_SIZES = {
    FieldType.CHARACTER: 255,
    FieldType.NUMERIC: 20,
    FieldType.FLOAT: 20,
}


# =============================================================================
# Field Descriptor
# =============================================================================

@dataclass(frozen=True)
class FieldDescriptor:
    """
    Metadata for one column of a DBF table.

    The type is stored as the raw tag string so that descriptors parsed
    from files with unknown tags can still be represented; use
    get_field_type() for the enum.

    Attributes:
        name: Field name (1-10 characters)
        type: One-character type tag
        size: Width of the field in bytes
        decimal_places: Decimal count for numeric fields (None if unset)
    """
    name: str
    type: str
    size: int
    decimal_places: Optional[int] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "FieldDescriptor":
        """
        Build a descriptor from a plain mapping.

        Example:
            >>> FieldDescriptor.from_mapping({"name": "ID", "type": "N", "size": 5})
        """
        try:
            name = data["name"]
            type_tag = data["type"]
            size = data["size"]
        except KeyError as e:
            raise DescriptorError(f"missing descriptor key {e}") from e
        if isinstance(type_tag, FieldType):
            type_tag = type_tag.value
        return cls(
            name=name,
            type=type_tag,
            size=size,
            decimal_places=data.get("decimal_places"),
        )

    @classmethod
    def coerce(cls, value: Union["FieldDescriptor", Mapping[str, Any]]) -> "FieldDescriptor":
        """Accept either a FieldDescriptor or a mapping of its attributes."""
        if isinstance(value, FieldDescriptor):
            return value
        if isinstance(value, Mapping):
            return cls.from_mapping(value)
        raise DescriptorError(f"expected a field descriptor, got {type(value).__name__}")

    def get_field_type(self) -> Optional[FieldType]:
        """Get the type as a FieldType, or None for an unknown tag."""
        try:
            return FieldType(self.type)
        except ValueError:
            return None

    def to_bytes(self) -> bytes:
        """Serialize the descriptor to its 32-byte header entry."""
        name_bytes = self.name.encode("latin-1")[:NAME_SLOT_SIZE]
        return struct.pack(
            "<11sc4xBB14x",
            name_bytes,
            self.type.encode("latin-1"),
            self.size,
            self.decimal_places or 0,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "FieldDescriptor":
        """Deserialize a descriptor from a 32-byte header entry."""
        if len(data) < DESCRIPTOR_SIZE:
            raise ValueError(
                f"Descriptor too short: need {DESCRIPTOR_SIZE} bytes, got {len(data)}"
            )
        raw_name, raw_type, size, decimals = struct.unpack("<11sc4xBB14x", data[:DESCRIPTOR_SIZE])

        # The name is NUL terminated within its 11-byte slot
        name = raw_name.split(b"\x00", 1)[0].decode("latin-1").strip()

        return cls(
            name=name,
            type=raw_type.decode("latin-1"),
            size=size,
            decimal_places=decimals or None,
        )


# =============================================================================
# Validation
# =============================================================================

def validate_field_descriptor(field: FieldDescriptor, version: int) -> None:
    """
    Validate a descriptor for a table about to be created.

    Args:
        field: The descriptor to check
        version: The file version the table will be written with

    Raises:
        DescriptorError: If the name, type, size or decimal count is invalid
    """
    name = field.name
    if not isinstance(name, str):
        raise DescriptorError("name must be a string")
    if len(name) < 1:
        raise DescriptorError(f"field name '{name}' is too short (minimum is 1 char)", name)
    if len(name) > MAX_NAME_LENGTH:
        raise DescriptorError(
            f"field name is too long (maximum is {MAX_NAME_LENGTH} chars)", name
        )
    try:
        name.encode("latin-1")
    except UnicodeEncodeError:
        raise DescriptorError("field name must be latin-1 encodable", name) from None
    if name != name.strip() or "\x00" in name:
        raise DescriptorError(
            "field name cannot contain NUL or leading/trailing whitespace", name
        )

    if not isinstance(field.type, str) or len(field.type) != 1:
        raise DescriptorError("type must be a single character", name)
    if not FieldType.is_supported(field.type):
        raise DescriptorError(f"type '{field.type}' is not supported", name)
    field_type = FieldType(field.type)

    size = field.size
    if not isinstance(size, int) or isinstance(size, bool):
        raise DescriptorError("size must be an integer", name)
    if size < 1:
        raise DescriptorError("field size is too small (minimum is 1)", name)
    if size > 255:
        raise DescriptorError("field size is too large (maximum is 255)", name)

    if field_type in _MAX_SIZES and size > _MAX_SIZES[field_type]:
        raise DescriptorError(
            f"field size is too large (maximum is {_MAX_SIZES[field_type]})", name
        )
    if field_type in _FIXED_SIZES and size != _FIXED_SIZES[field_type]:
        raise DescriptorError(
            f"invalid field size (must be {_FIXED_SIZES[field_type]})", name
        )
    if field_type is FieldType.MEMO and size != memo_field_size(version):
        raise DescriptorError(
            f"invalid field size (must be {memo_field_size(version)})", name
        )

    decimals = field.decimal_places
    if decimals is None:
        return
    if not isinstance(decimals, int) or isinstance(decimals, bool):
        raise DescriptorError("decimal_places must be None or an integer", name)
    if field_type is FieldType.NULL_FLAGS:
        # Flag bytes carry no decimal count
        if decimals != 0:
            raise DescriptorError("null-flags fields take no decimal places", name)
        return
    limit = max_decimal_places(version)
    if decimals < 0:
        raise DescriptorError("decimal count cannot be negative", name)
    if decimals > limit:
        raise DescriptorError(f"decimal count is too large (maximum is {limit})", name)


def validate_field_descriptors(fields: Iterable[FieldDescriptor], version: int) -> None:
    """
    Validate every descriptor of a table and the table as a whole.

    Field names must be unique (compared case-insensitively, as dBase
    does), and both the header block and the record must fit the header's
    16-bit length slots.

    Raises:
        DescriptorError: On the first invalid descriptor
    """
    seen: set[str] = set()
    record_length = 1
    field_count = 0
    for field in fields:
        validate_field_descriptor(field, version)
        key = field.name.upper()
        if key in seen:
            raise DescriptorError("duplicate field name", field.name)
        seen.add(key)
        record_length += field.size
        field_count += 1

    # 32-byte file header, one descriptor per field, then the terminator
    header_length = DESCRIPTOR_SIZE * (field_count + 1) + 1
    if header_length > MAX_HEADER_LENGTH:
        raise DescriptorError(
            f"{field_count} fields need a {header_length}-byte header, "
            f"exceeding the maximum of {MAX_HEADER_LENGTH}"
        )
    if record_length > MAX_RECORD_LENGTH:
        raise DescriptorError(
            f"record length {record_length} exceeds the maximum of {MAX_RECORD_LENGTH}"
        )
