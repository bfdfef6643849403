"""
Open and Create Options
=======================

Options are plain dataclasses. Every public entry point also accepts a
mapping with the same keyword names, converted through ``coerce()``:

    >>> DbfFile.open("people.dbf", {"read_mode": "loose", "encoding": "cp1252"})
    >>> DbfFile.open("people.dbf", OpenOptions(include_deleted_records=True))

All validation happens here, before any file is touched.

Read Policies
-------------
A read mode is shorthand for a ReadPolicy made of two independent flags:

- ``tolerate_structure``: unknown version bytes, missing memo files,
  inconsistent record lengths and truncated record blocks are logged
  instead of raised.
- ``tolerate_unknown_types``: fields with reserved or unknown type tags
  decode to None instead of raising.

Policies only govern reading. Writes are always strict.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Mapping, Optional, Union

from dbffile.encoding import EncodingConfig, EncodingResolver
from dbffile.errors import ConfigurationError
from dbffile.versions import CREATABLE_VERSIONS, FileVersion


class ReadMode(str, Enum):
    """How tolerant a read is of structural anomalies."""
    STRICT = "strict"
    LOOSE = "loose"


@dataclass(frozen=True)
class ReadPolicy:
    """Independent tolerances applied while opening and reading a table."""
    tolerate_structure: bool = False
    tolerate_unknown_types: bool = False

    @classmethod
    def for_mode(cls, mode: Union[ReadMode, str]) -> "ReadPolicy":
        """Derive a policy from a read mode."""
        loose = ReadMode(mode) is ReadMode.LOOSE
        return cls(tolerate_structure=loose, tolerate_unknown_types=loose)


STRICT = ReadPolicy.for_mode(ReadMode.STRICT)
LOOSE = ReadPolicy.for_mode(ReadMode.LOOSE)


def _from_mapping(cls, data: Mapping[str, Any]):
    known = {f.name for f in fields(cls) if f.init}
    unknown = set(data) - known
    if unknown:
        names = ", ".join(sorted(unknown))
        raise ConfigurationError(f"Unknown {cls.__name__} option(s): {names}")
    return cls(**data)


@dataclass(frozen=True)
class OpenOptions:
    """
    Options for opening an existing table.

    Attributes:
        read_mode: 'strict' (default) or 'loose'
        encoding: Codec name, or a mapping of field name to codec name with
            a mandatory 'default' entry
        include_deleted_records: Emit deleted records as DeletedRecord
            instead of skipping them
        policy: Explicit read policy; derived from read_mode when omitted
    """
    read_mode: ReadMode = ReadMode.STRICT
    encoding: EncodingConfig = "utf-8"
    include_deleted_records: bool = False
    policy: Optional[ReadPolicy] = None
    resolver: EncodingResolver = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        try:
            mode = ReadMode(self.read_mode)
        except ValueError:
            raise ConfigurationError(
                f"Invalid read_mode option: '{self.read_mode}'. "
                f"Valid options are 'strict' or 'loose'."
            ) from None
        object.__setattr__(self, "read_mode", mode)
        if self.policy is None:
            object.__setattr__(self, "policy", ReadPolicy.for_mode(mode))
        object.__setattr__(self, "include_deleted_records", bool(self.include_deleted_records))
        object.__setattr__(self, "resolver", EncodingResolver(self.encoding))

    @classmethod
    def coerce(cls, value: Union["OpenOptions", Mapping[str, Any], None]) -> "OpenOptions":
        """Normalise None, an OpenOptions or a mapping to OpenOptions."""
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            return _from_mapping(cls, value)
        raise ConfigurationError(
            f"Invalid open options: expected OpenOptions or a mapping, got {type(value).__name__}"
        )


@dataclass(frozen=True)
class CreateOptions:
    """
    Options for creating a new table.

    Attributes:
        file_version: Version byte to write (0x03, 0x83, 0x8B or 0x30)
        encoding: Codec configuration, as for OpenOptions
    """
    file_version: int = FileVersion.DBASE_III
    encoding: EncodingConfig = "utf-8"
    resolver: EncodingResolver = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if isinstance(self.file_version, bool) or self.file_version not in CREATABLE_VERSIONS:
            raise ConfigurationError(f"Invalid file_version option: '{self.file_version}'.")
        object.__setattr__(self, "file_version", FileVersion(self.file_version))
        object.__setattr__(self, "resolver", EncodingResolver(self.encoding))

    @classmethod
    def coerce(cls, value: Union["CreateOptions", Mapping[str, Any], None]) -> "CreateOptions":
        """Normalise None, a CreateOptions or a mapping to CreateOptions."""
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            return _from_mapping(cls, value)
        raise ConfigurationError(
            f"Invalid create options: expected CreateOptions or a mapping, got {type(value).__name__}"
        )

    def reopen_options(self) -> OpenOptions:
        """Options used to re-open a table right after creating it."""
        return OpenOptions(read_mode=ReadMode.STRICT, encoding=self.encoding)
