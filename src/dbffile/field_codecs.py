"""
Field Value Codecs
==================

This module converts between the fixed-width byte window a field occupies
in a record and the Python value it represents.

Each supported FieldType has one codec object in the CODECS table. A codec
decodes a window of exactly ``field.size`` bytes and encodes a value back
into a window of the same size:

    Type    Python value            Stored as
    ----    ------------            ---------
    C       str                     text, right padded with spaces
    N, F    int / float             ASCII number, left padded with spaces
    L       bool                    'T' / 'F', space for None
    D       datetime.date           'YYYYMMDD', spaces for None
    0       bytes                   raw bytes, zero padded

Value-level problems never raise on decode: an unparseable number or an
impossible date decodes to None. Reserved type tags (Y, I, M, T, B) and
unknown tags have no codec; decoding them raises UnsupportedFieldTypeError
unless the read policy tolerates unknown types, and encoding them always
raises.

Null Flags Display Form
-----------------------
Null-flags fields hold per-record bit flags rather than a human value.
format_null_flags() renders them as an escaped-hex string such as
``b'\\x00\\x04'`` for diagnostics. parse_null_flags() reads that form back;
the encoder accepts it as a convenience, but raw bytes are the canonical
input.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional
import math
import re

from dbffile.errors import UnsupportedFieldTypeError
from dbffile.fields import FieldDescriptor, FieldType

SPACE = 0x20

# Leading floating point literal, as accepted by a lenient number parser
_NUMBER_PATTERN = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)
_INTEGER_PATTERN = re.compile(r"[+-]?\d+", re.ASCII)
_DATE_PATTERN = re.compile(r"\d{8}", re.ASCII)
_HEX_ESCAPE = re.compile(r"\\x([0-9A-Fa-f]{2})")


def _fit(data: bytes, size: int, fill: bytes = b" ") -> bytes:
    """Truncate or right-pad data to exactly size bytes."""
    return data[:size].ljust(size, fill)


# =============================================================================
# Codec Classes
# =============================================================================

class FieldCodec:
    """Base class for per-type value codecs."""

    def decode(self, field: FieldDescriptor, window: bytes, encoding: str) -> Any:
        raise NotImplementedError("Subclasses must implement decode()")

    def encode(self, field: FieldDescriptor, value: Any, encoding: str) -> bytes:
        raise NotImplementedError("Subclasses must implement encode()")


class TextCodec(FieldCodec):
    """Character ('C') fields."""

    def decode(self, field: FieldDescriptor, window: bytes, encoding: str) -> str:
        return window.decode(encoding, "replace").rstrip("\x00").strip()

    def encode(self, field: FieldDescriptor, value: Any, encoding: str) -> bytes:
        text = "" if value is None else str(value)
        data = text.encode(encoding, "replace")
        if len(data) > field.size:
            # Drop any multi-byte character cut in half by the truncation
            data = data[:field.size].decode(encoding, "ignore").encode(encoding, "replace")
        return _fit(data, field.size)


class NumericCodec(FieldCodec):
    """Numeric ('N') and float ('F') fields."""

    def decode(self, field: FieldDescriptor, window: bytes, encoding: str) -> Optional[float]:
        text = window.decode(encoding, "replace").strip()
        match = _NUMBER_PATTERN.match(text)
        if match is None:
            return None
        literal = match.group()
        if not field.decimal_places and _INTEGER_PATTERN.fullmatch(literal):
            return int(literal)
        return float(literal)

    def encode(self, field: FieldDescriptor, value: Any, encoding: str) -> bytes:
        if value is None:
            return b" " * field.size
        if isinstance(value, float) and not math.isfinite(value):
            return b" " * field.size
        if isinstance(value, Decimal) and not value.is_finite():
            return b" " * field.size

        if field.decimal_places:
            text = f"{value:.{field.decimal_places}f}"
        elif isinstance(value, int):
            text = str(value)
        else:
            # Round half up, so 2.5 -> 3 and -2.5 -> -2
            half = Decimal("0.5") if isinstance(value, Decimal) else 0.5
            text = str(math.floor(value + half))

        return text.rjust(field.size).encode(encoding, "replace")[:field.size]


class LogicalCodec(FieldCodec):
    """Logical ('L') fields."""

    _TRUE = frozenset("TY")
    _FALSE = frozenset("FN")

    def decode(self, field: FieldDescriptor, window: bytes, encoding: str) -> Optional[bool]:
        if not window:
            return None
        flag = chr(window[0]).upper()
        if flag in self._TRUE:
            return True
        if flag in self._FALSE:
            return False
        return None

    def encode(self, field: FieldDescriptor, value: Any, encoding: str) -> bytes:
        if value is True:
            marker = b"T"
        elif value is False:
            marker = b"F"
        else:
            marker = b" "
        return _fit(marker, field.size)


class DateCodec(FieldCodec):
    """Date ('D') fields stored as YYYYMMDD."""

    def decode(self, field: FieldDescriptor, window: bytes, encoding: str) -> Optional[date]:
        text = window.decode(encoding, "replace").strip()
        if not _DATE_PATTERN.fullmatch(text):
            return None
        try:
            return date(int(text[0:4]), int(text[4:6]), int(text[6:8]))
        except ValueError:
            return None

    def encode(self, field: FieldDescriptor, value: Any, encoding: str) -> bytes:
        if not isinstance(value, date):
            return b" " * field.size
        text = f"{value.year:04d}{value.month:02d}{value.day:02d}"
        return _fit(text.encode(encoding, "replace"), field.size)


class NullFlagsCodec(FieldCodec):
    """Opaque null-flags ('0') fields."""

    def decode(self, field: FieldDescriptor, window: bytes, encoding: str) -> bytes:
        return bytes(window)

    def encode(self, field: FieldDescriptor, value: Any, encoding: str) -> bytes:
        if isinstance(value, (bytes, bytearray, memoryview)):
            return _fit(bytes(value), field.size, b"\x00")
        if isinstance(value, str) and value.startswith("b'"):
            try:
                return _fit(parse_null_flags(value), field.size, b"\x00")
            except ValueError:
                pass
        return bytes(field.size)


# =============================================================================
# Null Flags Display Form
# =============================================================================

def format_null_flags(raw: bytes) -> str:
    """Render raw flag bytes as an escaped-hex string, one \\xNN per byte."""
    return "b'" + "".join(f"\\x{byte:02x}" for byte in raw) + "'"


def parse_null_flags(text: str) -> bytes:
    """
    Parse the escaped-hex display form back to bytes.

    Literal characters between the escapes are taken as latin-1 bytes.

    Raises:
        ValueError: If the text is not of the form b'...'
    """
    if not (text.startswith("b'") and text.endswith("'") and len(text) >= 3):
        raise ValueError(f"Not a byte string literal: {text!r}")
    body = _HEX_ESCAPE.sub(lambda m: chr(int(m.group(1), 16)), text[2:-1])
    return body.encode("latin-1")


# =============================================================================
# Dispatch
# =============================================================================

CODECS: dict[FieldType, FieldCodec] = {
    FieldType.CHARACTER: TextCodec(),
    FieldType.NUMERIC: NumericCodec(),
    FieldType.FLOAT: NumericCodec(),
    FieldType.LOGICAL: LogicalCodec(),
    FieldType.DATE: DateCodec(),
    FieldType.NULL_FLAGS: NullFlagsCodec(),
}


def get_codec(field: FieldDescriptor) -> Optional[FieldCodec]:
    """Get the codec for a field, or None if its type has no codec."""
    field_type = field.get_field_type()
    if field_type is None:
        return None
    return CODECS.get(field_type)


def decode_field(
    field: FieldDescriptor,
    window: bytes,
    encoding: str,
    tolerate_unknown_types: bool = False,
) -> Any:
    """
    Decode one field window.

    Args:
        field: The field's descriptor
        window: Exactly field.size bytes taken from the record
        encoding: Codec name for text-bearing types
        tolerate_unknown_types: Return None instead of raising for types
            without a codec

    Raises:
        UnsupportedFieldTypeError: For a type without a codec, unless tolerated
    """
    codec = get_codec(field)
    if codec is None:
        if tolerate_unknown_types:
            return None
        raise UnsupportedFieldTypeError(field.type, field.name)
    return codec.decode(field, window, encoding)


def encode_field(field: FieldDescriptor, value: Any, encoding: str) -> bytes:
    """
    Encode a value into a window of exactly field.size bytes.

    Raises:
        UnsupportedFieldTypeError: For a type without a codec
    """
    codec = get_codec(field)
    if codec is None:
        raise UnsupportedFieldTypeError(field.type, field.name)
    return codec.encode(field, value, encoding)
