"""In-memory record store."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from ..core.time import ensure_utc
from ..observability import get_logger

if TYPE_CHECKING:
    from datetime import datetime

    from ..core.records import Record

__all__ = ["InMemoryRecordStore"]

log = get_logger("store")


class InMemoryRecordStore:
    """Thread-safe record store kept in a dictionary.

    Example
    -------
    >>> store = InMemoryRecordStore()
    >>> saved = store.save(Record.create(get_current_utc(), {"buildTool": "maven"}))
    >>> store.find_one(saved.id) == saved
    True
    """

    def __init__(self) -> None:
        self._records: dict[int, Record] = {}
        self._last_id = 0
        self._lock = threading.Lock()

    def save(self, record: Record) -> Record:
        with self._lock:
            if record.id is None:
                self._last_id += 1
                record = record.with_id(self._last_id)
            else:
                self._last_id = max(self._last_id, record.id)
            self._records[record.id] = record
        log.debug(f"Saved record {record.id}")
        return record

    def find_all(self) -> list[Record]:
        with self._lock:
            return list(self._records.values())

    def find_one(self, record_id: int) -> Record | None:
        with self._lock:
            return self._records.get(record_id)

    def delete(self, record_id: int) -> bool:
        with self._lock:
            existed = self._records.pop(record_id, None) is not None
        log.debug(f"Delete record {record_id}: existed={existed}")
        return existed

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def find_created_after(self, after: datetime) -> list[Record]:
        cutoff = ensure_utc(after)
        with self._lock:
            return [record for record in self._records.values() if record.created_at > cutoff]
