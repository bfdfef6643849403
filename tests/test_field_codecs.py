"""
Field Codec Unit Tests
======================

Test Categories
---------------
1. Text: Padding, truncation and NUL stripping
2. Numeric: Lenient parsing and fixed-point formatting
3. Logical and Date: Flag characters and YYYYMMDD windows
4. Null flags: Raw bytes and the escaped-hex display form
5. Round trip: Decoding what was encoded, for every type
6. Dispatch: Types without a codec
"""

from datetime import date
from decimal import Decimal

import pytest

from dbffile.errors import UnsupportedFieldTypeError
from dbffile.field_codecs import (
    decode_field,
    encode_field,
    format_null_flags,
    parse_null_flags,
)
from dbffile.fields import FieldDescriptor


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def name_field() -> FieldDescriptor:
    return FieldDescriptor("NAME", "C", 8)


@pytest.fixture
def id_field() -> FieldDescriptor:
    """Integer numeric field: five characters, no decimals."""
    return FieldDescriptor("ID", "N", 5, 0)


@pytest.fixture
def price_field() -> FieldDescriptor:
    return FieldDescriptor("PRICE", "N", 8, 2)


# =============================================================================
# Text Tests
# =============================================================================

class TestTextCodec:
    """Tests for character fields."""

    def test_encode_pads_with_spaces(self, name_field):
        assert encode_field(name_field, "Alice", "utf-8") == b"Alice   "

    def test_encode_truncates(self, name_field):
        assert encode_field(name_field, "Bartholomew", "utf-8") == b"Bartholo"

    def test_encode_does_not_split_multibyte(self):
        """Test that a character cut by truncation is dropped, not half-written."""
        field = FieldDescriptor("CITY", "C", 2)
        assert encode_field(field, "hé", "utf-8") == b"h "

    def test_encode_number(self, name_field):
        assert encode_field(name_field, 42, "utf-8") == b"42      "

    def test_encode_none(self, name_field):
        assert encode_field(name_field, None, "utf-8") == b" " * 8

    def test_decode_strips(self, name_field):
        assert decode_field(name_field, b"  Alice ", "utf-8") == "Alice"

    def test_decode_strips_nul_padding(self, name_field):
        assert decode_field(name_field, b"Bob\x00\x00\x00\x00\x00", "utf-8") == "Bob"

    def test_decode_with_encoding(self, name_field):
        assert decode_field(name_field, b"Zo\xeb     ", "cp1252") == "Zoë"


# =============================================================================
# Numeric Tests
# =============================================================================

class TestNumericCodec:
    """Tests for numeric and float fields."""

    def test_decode_integer(self, id_field):
        value = decode_field(id_field, b"   42", "ascii")
        assert value == 42
        assert isinstance(value, int)

    def test_decode_negative(self, id_field):
        assert decode_field(id_field, b"  -17", "ascii") == -17

    def test_decode_decimal(self, price_field):
        assert decode_field(price_field, b"    3.14", "ascii") == pytest.approx(3.14)

    def test_decode_blank_is_none(self, id_field):
        """Test that an all-space numeric window decodes to None."""
        assert decode_field(id_field, b"     ", "ascii") is None

    def test_decode_garbage_is_none(self, id_field):
        assert decode_field(id_field, b"  abc", "ascii") is None

    def test_decode_leading_number(self, id_field):
        """Test that trailing garbage after a number is ignored."""
        assert decode_field(id_field, b"12abc", "ascii") == 12

    def test_decode_fraction_without_decimals(self, id_field):
        value = decode_field(id_field, b" 2.50", "ascii")
        assert value == pytest.approx(2.5)
        assert isinstance(value, float)

    def test_float_type_uses_same_codec(self):
        field = FieldDescriptor("RATE", "F", 6, 3)
        assert encode_field(field, 1.5, "ascii") == b" 1.500"
        assert decode_field(field, b" 1.500", "ascii") == pytest.approx(1.5)

    def test_encode_integer(self, id_field):
        assert encode_field(id_field, 42, "ascii") == b"   42"

    def test_encode_fixed_point(self, price_field):
        assert encode_field(price_field, 3.14159, "ascii") == b"    3.14"

    def test_encode_decimal_type(self, price_field):
        assert encode_field(price_field, Decimal("12.5"), "ascii") == b"   12.50"

    def test_encode_rounds_half_up(self, id_field):
        assert encode_field(id_field, 2.5, "ascii") == b"    3"
        assert encode_field(id_field, -2.5, "ascii") == b"   -2"

    def test_encode_none_is_blank(self, id_field):
        assert encode_field(id_field, None, "ascii") == b"     "

    def test_encode_non_finite_is_blank(self, id_field):
        assert encode_field(id_field, float("nan"), "ascii") == b"     "
        assert encode_field(id_field, float("inf"), "ascii") == b"     "

    def test_encode_overflow_truncates(self):
        field = FieldDescriptor("ID", "N", 3, 0)
        assert len(encode_field(field, 123456, "ascii")) == 3


# =============================================================================
# Logical and Date Tests
# =============================================================================

class TestLogicalCodec:
    """Tests for logical fields."""

    @pytest.fixture
    def flag_field(self) -> FieldDescriptor:
        return FieldDescriptor("ACTIVE", "L", 1)

    @pytest.mark.parametrize("raw", [b"T", b"t", b"Y", b"y"])
    def test_decode_true(self, flag_field, raw):
        assert decode_field(flag_field, raw, "ascii") is True

    @pytest.mark.parametrize("raw", [b"F", b"f", b"N", b"n"])
    def test_decode_false(self, flag_field, raw):
        assert decode_field(flag_field, raw, "ascii") is False

    @pytest.mark.parametrize("raw", [b" ", b"?"])
    def test_decode_unknown_is_none(self, flag_field, raw):
        assert decode_field(flag_field, raw, "ascii") is None

    def test_encode(self, flag_field):
        assert encode_field(flag_field, True, "ascii") == b"T"
        assert encode_field(flag_field, False, "ascii") == b"F"
        assert encode_field(flag_field, None, "ascii") == b" "


class TestDateCodec:
    """Tests for date fields."""

    @pytest.fixture
    def date_field(self) -> FieldDescriptor:
        return FieldDescriptor("BORN", "D", 8)

    def test_decode(self, date_field):
        assert decode_field(date_field, b"20240115", "ascii") == date(2024, 1, 15)

    def test_decode_impossible_date_is_none(self, date_field):
        """Test that a well-formed but impossible date decodes to None."""
        assert decode_field(date_field, b"20240230", "ascii") is None

    def test_decode_blank_is_none(self, date_field):
        assert decode_field(date_field, b"        ", "ascii") is None

    def test_decode_non_digits_is_none(self, date_field):
        assert decode_field(date_field, b"2024011X", "ascii") is None

    def test_encode(self, date_field):
        assert encode_field(date_field, date(1999, 12, 31), "ascii") == b"19991231"

    def test_encode_none_is_blank(self, date_field):
        assert encode_field(date_field, None, "ascii") == b" " * 8


# =============================================================================
# Null Flags Tests
# =============================================================================

class TestNullFlagsCodec:
    """Tests for null-flags fields."""

    @pytest.fixture
    def flags_field(self) -> FieldDescriptor:
        return FieldDescriptor("_NullFlags", "0", 2)

    def test_decode_raw_bytes(self, flags_field):
        assert decode_field(flags_field, b"\x00\x04", "ascii") == b"\x00\x04"

    def test_encode_pads_with_zeros(self, flags_field):
        assert encode_field(flags_field, b"\x01", "ascii") == b"\x01\x00"

    def test_encode_display_form(self, flags_field):
        assert encode_field(flags_field, "b'\\x01\\x02'", "ascii") == b"\x01\x02"

    def test_encode_other_values_are_zero(self, flags_field):
        assert encode_field(flags_field, None, "ascii") == b"\x00\x00"
        assert encode_field(flags_field, "garbage", "ascii") == b"\x00\x00"

    def test_format(self):
        assert format_null_flags(b"\x00\x04") == "b'\\x00\\x04'"

    def test_parse(self):
        assert parse_null_flags("b'\\x00\\x04'") == b"\x00\x04"

    def test_parse_rejects_other_text(self):
        with pytest.raises(ValueError):
            parse_null_flags("0004")


# =============================================================================
# Round Trip Tests
# =============================================================================

ROUND_TRIP_CASES = [
    (FieldDescriptor("NAME", "C", 8), "Alice", "Alice"),
    (FieldDescriptor("NAME", "C", 5), "Bartholomew", "Barth"),
    (FieldDescriptor("NAME", "C", 8), None, ""),
    (FieldDescriptor("ID", "N", 5, 0), 42, 42),
    (FieldDescriptor("ID", "N", 5, 0), -17, -17),
    (FieldDescriptor("ID", "N", 5, 0), None, None),
    (FieldDescriptor("PRICE", "N", 8, 2), 3.14, 3.14),
    (FieldDescriptor("PRICE", "N", 8, 2), -0.5, -0.5),
    (FieldDescriptor("RATE", "F", 10, 4), 2.5, 2.5),
    (FieldDescriptor("RATE", "F", 10, 4), None, None),
    (FieldDescriptor("ACTIVE", "L", 1), True, True),
    (FieldDescriptor("ACTIVE", "L", 1), False, False),
    (FieldDescriptor("ACTIVE", "L", 1), None, None),
    (FieldDescriptor("BORN", "D", 8), date(2024, 2, 29), date(2024, 2, 29)),
    (FieldDescriptor("BORN", "D", 8), None, None),
    (FieldDescriptor("_NullFlags", "0", 2), b"\x01\x02", b"\x01\x02"),
    (FieldDescriptor("_NullFlags", "0", 2), b"\x01", b"\x01\x00"),
    (FieldDescriptor("_NullFlags", "0", 2), None, b"\x00\x00"),
]


class TestRoundTrip:
    """Tests that decoding an encoded value gives the value back."""

    @pytest.mark.parametrize("field, value, expected", ROUND_TRIP_CASES)
    def test_decode_encoded_value(self, field, value, expected):
        window = encode_field(field, value, "utf-8")
        assert len(window) == field.size

        decoded = decode_field(field, window, "utf-8")
        if isinstance(expected, float):
            assert decoded == pytest.approx(expected)
        else:
            assert decoded == expected
            assert type(decoded) is type(expected)


# =============================================================================
# Dispatch Tests
# =============================================================================

class TestDispatch:
    """Tests for types without a codec."""

    @pytest.fixture
    def memo_field(self) -> FieldDescriptor:
        return FieldDescriptor("NOTES", "M", 10)

    def test_decode_reserved_type_raises(self, memo_field):
        with pytest.raises(UnsupportedFieldTypeError) as exc_info:
            decode_field(memo_field, b" " * 10, "ascii")
        assert exc_info.value.type_tag == "M"
        assert exc_info.value.field_name == "NOTES"

    def test_decode_reserved_type_tolerated(self, memo_field):
        assert decode_field(memo_field, b" " * 10, "ascii", tolerate_unknown_types=True) is None

    def test_decode_unknown_tag_tolerated(self):
        field = FieldDescriptor("ODD", "X", 3)
        assert decode_field(field, b"abc", "ascii", tolerate_unknown_types=True) is None

    def test_encode_reserved_type_always_raises(self, memo_field):
        with pytest.raises(UnsupportedFieldTypeError):
            encode_field(memo_field, None, "ascii")
