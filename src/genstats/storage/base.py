"""Record store boundary."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from ..core.records import Record

__all__ = ["RecordNotFoundError", "RecordStore", "StoreError"]


class StoreError(Exception):
    """Raised when the record store cannot complete an operation."""


@runtime_checkable
class RecordStore(Protocol):
    """Persistence for generator usage records.

    ``find_created_after`` is the only query the aggregation needs; it makes
    no promise about the order of the returned records.
    """

    def save(self, record: Record) -> Record:
        """Persist a record and return it with its assigned id."""
        ...

    def find_all(self) -> list[Record]:
        """Return all records."""
        ...

    def find_one(self, record_id: int) -> Record | None:
        """Return one record or None."""
        ...

    def delete(self, record_id: int) -> bool:
        """Delete a record, returning whether it existed."""
        ...

    def count(self) -> int:
        """Return the number of stored records."""
        ...

    def find_created_after(self, after: datetime) -> list[Record]:
        """Return records with ``created_at`` strictly after ``after``."""
        ...


class RecordNotFoundError(LookupError):
    """Raised when a record id is not in the store."""

    def __init__(self, record_id: int) -> None:
        super().__init__(f"Record not found: {record_id}")
        self.record_id = record_id
