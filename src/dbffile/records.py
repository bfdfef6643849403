"""
Record Types
============

A record read from a table is an immutable mapping from field name to
value, in descriptor order. Whether the record was logically deleted is
carried by its class rather than by a field value:

    >>> for record in table.scan():
    ...     if isinstance(record, DeletedRecord):
    ...         continue
    ...     print(record["NAME"])

Deleted records are only produced when a table is opened with
``include_deleted_records=True``.
"""

from collections.abc import Mapping
from typing import Any, Iterator

ACTIVE_MARKER = 0x20    # ' '
DELETED_MARKER = 0x2A   # '*'


class Record(Mapping):
    """Base class for records; use ActiveRecord or DeletedRecord."""

    __slots__ = ("_values",)

    deleted: bool = False

    def __init__(self, values: Mapping[str, Any] = ()):
        self._values = dict(values)

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Record) and other.deleted != self.deleted:
            return False
        return super().__eq__(other)

    __hash__ = None

    def to_dict(self) -> dict[str, Any]:
        """Get a plain, mutable copy of the field values."""
        return dict(self._values)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._values!r})"


class ActiveRecord(Record):
    """A record whose delete marker is not set."""
    __slots__ = ()
    deleted = False


class DeletedRecord(Record):
    """A record whose delete marker is set."""
    __slots__ = ()
    deleted = True
