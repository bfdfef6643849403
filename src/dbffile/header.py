"""
DBF Header and Field Descriptor Table
=====================================

This module parses and serializes the part of a DBF file that precedes the
records: the 32-byte file header and the table of field descriptors.

File Structure Overview
-----------------------
A DBF file contains:
1. File Header (32 bytes)
2. Field Descriptors (32 bytes each, see dbffile.fields)
3. Header Terminator (1 byte): 0x0D
4. Records (record_count x record_length bytes)
5. End-of-file Marker (1 byte): 0x1A

File Header
-----------
    Offset  Size    Description
    ------  ----    -----------
    0       1       Version byte
    1       1       Last update year, as an offset from 1900
    2       1       Last update month (1-12)
    3       1       Last update day (1-31)
    4       4       Record count (little-endian, signed)
    8       2       Header length (little-endian, signed)
    10      2       Record length (little-endian, signed)
    12      20      Reserved

For tables written by this package the header length is always
``32 + 32 * field_count + 1`` and the record length is one delete-marker
byte plus the sum of the field sizes. Tables written by other tools may
carry extra bytes after the terminator (Visual FoxPro stores a 263-byte
backlink there), so the declared header length is trusted on open.
"""

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional, Sequence, Union
import logging
import struct

from dbffile.errors import (
    DbfFormatError,
    FormatVersionError,
    MalformedHeaderError,
    MissingSideFileError,
    StorageError,
)
from dbffile.fields import DESCRIPTOR_SIZE, FieldDescriptor
from dbffile.options import STRICT, ReadPolicy
from dbffile.versions import (
    FileVersion,
    find_memo_file,
    is_supported_version,
    requires_memo_file,
)

# Logger for this module
logger = logging.getLogger(__name__)


HEADER_SIZE = 32
HEADER_TERMINATOR = 0x0D
EOF_MARKER = 0x1A
EPOCH_YEAR = 1900

UPDATE_STAMP_OFFSET = 1
RECORD_COUNT_OFFSET = 4

_HEADER_FORMAT = "<BBBBihh20x"


# =============================================================================
# Date Stamp Helpers
# =============================================================================

def encode_update_stamp(stamp: Optional[date]) -> bytes:
    """Encode a last-update date as the 3-byte year-offset/month/day stamp."""
    if stamp is None:
        return bytes(3)
    return bytes([(stamp.year - EPOCH_YEAR) & 0xFF, stamp.month, stamp.day])


def decode_update_stamp(data: bytes) -> Optional[date]:
    """Decode the 3-byte stamp, returning None for an impossible date."""
    try:
        return date(EPOCH_YEAR + data[0], data[1], data[2])
    except ValueError:
        return None


# =============================================================================
# File Header
# =============================================================================

@dataclass
class DbfHeader:
    """
    The 32-byte leading block of a DBF file.

    Attributes:
        version: Version byte
        last_update: Date of last update (None if the stamp is invalid)
        record_count: Number of records, including deleted ones
        header_length: Bytes before the first record
        record_length: Bytes per record, including the delete marker
    """
    version: int = FileVersion.DBASE_III
    last_update: Optional[date] = None
    record_count: int = 0
    header_length: int = HEADER_SIZE + 1
    record_length: int = 1

    def to_bytes(self) -> bytes:
        """Serialize the header to 32 bytes."""
        stamp = encode_update_stamp(self.last_update)
        return struct.pack(
            _HEADER_FORMAT,
            self.version,
            stamp[0],
            stamp[1],
            stamp[2],
            self.record_count,
            self.header_length,
            self.record_length,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "DbfHeader":
        """Deserialize a header from bytes."""
        if len(data) < HEADER_SIZE:
            raise ValueError(f"Header too short: need {HEADER_SIZE} bytes, got {len(data)}")

        version, year, month, day, record_count, header_length, record_length = struct.unpack(
            _HEADER_FORMAT, data[:HEADER_SIZE]
        )
        return cls(
            version=version,
            last_update=decode_update_stamp(bytes([year, month, day])),
            record_count=record_count,
            header_length=header_length,
            record_length=record_length,
        )


# =============================================================================
# File Layout
# =============================================================================

@dataclass(frozen=True)
class FileLayout:
    """
    Immutable description of where everything lives in a DBF file.

    Attributes:
        path: Path to the .dbf file
        header_length: Offset of the first record
        record_length: Bytes per record, including the delete marker
        fields: Field descriptors in record order
        version: Version byte
        memo_path: Memo side file, if one was found
    """
    path: Path
    header_length: int
    record_length: int
    fields: tuple[FieldDescriptor, ...]
    version: int
    memo_path: Optional[Path] = None

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def record_offset(self, index: int) -> int:
        """File offset of the record at a 0-based position."""
        return self.header_length + index * self.record_length

    def field_windows(self) -> list[tuple[FieldDescriptor, int, int]]:
        """(field, start, end) slices of each field within a record buffer."""
        windows = []
        offset = 1  # Skip the delete marker
        for field in self.fields:
            windows.append((field, offset, offset + field.size))
            offset += field.size
        return windows


def compute_lengths(fields: Sequence[FieldDescriptor]) -> tuple[int, int]:
    """Header and record length for a table with these fields."""
    header_length = HEADER_SIZE + DESCRIPTOR_SIZE * len(fields) + 1
    record_length = 1 + sum(f.size for f in fields)
    return header_length, record_length


# =============================================================================
# Descriptor Table
# =============================================================================

def parse_field_descriptors(block: bytes) -> list[FieldDescriptor]:
    """
    Parse the descriptor table that follows the 32-byte header.

    Entries are read until a 0x0D terminator, an entry whose first name
    byte is NUL, or the end of the block.

    Args:
        block: Header bytes from offset 32 up to the declared header length

    Returns:
        List of descriptors in record order
    """
    fields = []
    offset = 0
    while offset + DESCRIPTOR_SIZE <= len(block):
        first_byte = block[offset]
        if first_byte == HEADER_TERMINATOR or first_byte == 0:
            break
        field = FieldDescriptor.from_bytes(block[offset:offset + DESCRIPTOR_SIZE])
        logger.debug(
            f"Parsed field '{field.name}' type={field.type} size={field.size} "
            f"decimals={field.decimal_places}"
        )
        fields.append(field)
        offset += DESCRIPTOR_SIZE
    return fields


def build_header(
    fields: Sequence[FieldDescriptor],
    version: int,
    today: Optional[date] = None,
) -> bytes:
    """
    Build the header, descriptor table and terminator for a new table.

    Args:
        fields: Validated field descriptors
        version: Version byte to write
        today: Last-update date (defaults to today)

    Returns:
        Exactly 32 + 32 * len(fields) + 1 bytes
    """
    header_length, record_length = compute_lengths(fields)
    header = DbfHeader(
        version=version,
        last_update=today or date.today(),
        record_count=0,
        header_length=header_length,
        record_length=record_length,
    )

    result = bytearray(header.to_bytes())
    for field in fields:
        result.extend(field.to_bytes())
    result.append(HEADER_TERMINATOR)
    return bytes(result)


def write_new_table(
    path: Union[str, Path],
    fields: Sequence[FieldDescriptor],
    version: int,
    today: Optional[date] = None,
) -> None:
    """Write an empty table: header block followed by the EOF marker."""
    path = Path(path)
    data = build_header(fields, version, today) + bytes([EOF_MARKER])
    try:
        with path.open("wb") as f:
            f.write(data)
    except OSError as e:
        raise StorageError(f"cannot create table: {e.strerror or e}", str(path)) from e
    logger.info(f"Created {path} with {len(fields)} field(s), version 0x{version:02X}")


# =============================================================================
# Reading a Layout From Disk
# =============================================================================

def read_layout(
    path: Union[str, Path],
    policy: ReadPolicy = STRICT,
) -> tuple[FileLayout, DbfHeader]:
    """
    Read and validate the header block of an existing table.

    Args:
        path: Path to the .dbf file
        policy: Structural tolerance for the version, memo and length checks

    Returns:
        Tuple of (layout, header)

    Raises:
        FormatVersionError: Unsupported version byte (strict)
        MissingSideFileError: Memo file required but absent (strict)
        MalformedHeaderError: Header cannot be parsed
        StorageError: The file cannot be read
    """
    path = Path(path)
    try:
        return _read_layout(path, policy)
    except DbfFormatError as e:
        logger.error(f"Failed to open DBF: {e}")
        raise


def _read_layout(path: Path, policy: ReadPolicy) -> tuple[FileLayout, DbfHeader]:
    try:
        with path.open("rb") as f:
            head = f.read(HEADER_SIZE)
            if len(head) < HEADER_SIZE:
                raise MalformedHeaderError(
                    f"file too small for a DBF header: {len(head)} bytes", str(path)
                )
            header = DbfHeader.from_bytes(head)

            # Checked before the descriptor table so an unknown dialect is
            # reported as such rather than as a parse failure
            _check_version(path, header.version, policy)

            if header.header_length < HEADER_SIZE + 1:
                raise MalformedHeaderError(
                    f"invalid header length {header.header_length}", str(path)
                )
            block_size = header.header_length - HEADER_SIZE - 1
            block = f.read(block_size)
    except OSError as e:
        raise StorageError(f"cannot read header: {e.strerror or e}", str(path)) from e

    if len(block) < block_size:
        raise MalformedHeaderError(
            f"header declares {header.header_length} bytes but file ends after "
            f"{HEADER_SIZE + len(block)}",
            str(path),
        )

    if header.record_length < 1:
        raise MalformedHeaderError(f"invalid record length {header.record_length}", str(path))

    memo_path = _locate_memo(path, header.version, policy)
    fields = parse_field_descriptors(block)

    _, needed = compute_lengths(fields)
    if header.record_length < needed:
        message = (
            f"record length {header.record_length} cannot hold the declared "
            f"fields ({needed} bytes)"
        )
        if not policy.tolerate_structure:
            raise MalformedHeaderError(message, str(path))
        logger.warning(f"{path}: {message}")

    layout = FileLayout(
        path=path,
        header_length=header.header_length,
        record_length=header.record_length,
        fields=tuple(fields),
        version=header.version,
        memo_path=memo_path,
    )
    logger.debug(
        f"Opened {path}: version 0x{header.version:02X}, {header.record_count} records, "
        f"{len(fields)} fields, header {header.header_length}, record {header.record_length}"
    )
    return layout, header


def _check_version(path: Path, version: int, policy: ReadPolicy) -> None:
    if is_supported_version(version):
        return
    if not policy.tolerate_structure:
        raise FormatVersionError(version, str(path))
    logger.warning(f"{path}: unsupported dBase version 0x{version:02X}, reading anyway")


def _locate_memo(path: Path, version: int, policy: ReadPolicy) -> Optional[Path]:
    if not requires_memo_file(version):
        return None
    memo_path = find_memo_file(path)
    if memo_path is None:
        if not policy.tolerate_structure:
            raise MissingSideFileError("memo file not found", str(path))
        logger.warning(f"{path}: memo file not found, continuing without it")
    return memo_path
