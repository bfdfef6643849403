"""
DBF File Versions
=================

The first byte of a DBF header identifies the dBase dialect that wrote the
file. Only a closed set of version bytes is understood by this package.

Supported Versions
------------------
    0x03    dBase III without memo
    0x83    dBase III with memo (.dbt side file)
    0x8B    dBase IV with memo (.dbt side file, 18 decimal places)
    0x30    Visual FoxPro
    0xF5    FoxPro with memo (read only)

Memo Side Files
---------------
Versions 0x83 and 0x8B keep large text fields in a sibling file sharing
the table's stem with a ``.dbt`` (or ``.DBT``) extension. Only the
presence of this file is checked; its contents are not read.
"""

from enum import IntEnum
from pathlib import Path
from typing import Optional, Union
import logging
import struct

from dbffile.errors import StorageError

logger = logging.getLogger(__name__)


class FileVersion(IntEnum):
    """Version bytes accepted in the DBF header."""
    DBASE_III = 0x03
    DBASE_III_MEMO = 0x83
    DBASE_IV_MEMO = 0x8B
    VISUAL_FOXPRO = 0x30
    FOXPRO_MEMO = 0xF5

    def get_description(self) -> str:
        """Get a human-readable description of the version."""
        descriptions = {
            FileVersion.DBASE_III: "dBase III",
            FileVersion.DBASE_III_MEMO: "dBase III with memo",
            FileVersion.DBASE_IV_MEMO: "dBase IV with memo",
            FileVersion.VISUAL_FOXPRO: "Visual FoxPro",
            FileVersion.FOXPRO_MEMO: "FoxPro with memo",
        }
        return descriptions.get(self, f"Unknown (0x{self:02X})")


# Versions a table may be opened with in strict mode
SUPPORTED_VERSIONS = frozenset(FileVersion)

# Versions create() is allowed to write
CREATABLE_VERSIONS = frozenset({
    FileVersion.DBASE_III,
    FileVersion.DBASE_III_MEMO,
    FileVersion.DBASE_IV_MEMO,
    FileVersion.VISUAL_FOXPRO,
})

# Versions whose tables need a .dbt side file
MEMO_VERSIONS = frozenset({FileVersion.DBASE_III_MEMO, FileVersion.DBASE_IV_MEMO})

MEMO_EXTENSIONS = (".dbt", ".DBT")
MEMO_BLOCK_SIZE = 512


def is_supported_version(version: int) -> bool:
    """Check if a version byte is one of the supported dBase versions."""
    return version in SUPPORTED_VERSIONS


def requires_memo_file(version: int) -> bool:
    """Check if tables of this version keep large text in a side file."""
    return version in MEMO_VERSIONS


def max_decimal_places(version: int) -> int:
    """Largest decimal count a numeric field may declare for a version."""
    return 18 if version == FileVersion.DBASE_IV_MEMO else 15


def memo_field_size(version: int) -> int:
    """Width of a memo ('M') field's block pointer for a version."""
    return 4 if version == FileVersion.VISUAL_FOXPRO else 10


def find_memo_file(path: Union[str, Path]) -> Optional[Path]:
    """
    Locate the memo side file belonging to a table.

    Sibling paths with the table's stem are tried with each extension in
    MEMO_EXTENSIONS, in order.

    Args:
        path: Path to the .dbf file

    Returns:
        The first existing memo path, or None if there is none
    """
    path = Path(path)
    for ext in MEMO_EXTENSIONS:
        candidate = path.with_suffix(ext)
        if candidate.is_file():
            logger.debug(f"Found memo file {candidate}")
            return candidate
    return None


def create_memo_file(path: Union[str, Path]) -> Path:
    """
    Write an empty dBase memo file next to a table.

    The memo file consists of a single 512-byte header block whose first
    four bytes hold the next free block number (1).

    Args:
        path: Path to the .dbf file

    Returns:
        Path of the memo file that was written
    """
    memo_path = Path(path).with_suffix(MEMO_EXTENSIONS[0])
    block = bytearray(MEMO_BLOCK_SIZE)
    block[0:4] = struct.pack("<I", 1)
    try:
        memo_path.write_bytes(bytes(block))
    except OSError as e:
        raise StorageError(f"cannot create memo file: {e.strerror or e}", str(memo_path)) from e
    logger.debug(f"Created empty memo file {memo_path}")
    return memo_path
