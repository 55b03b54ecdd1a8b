"""Storage layer for generator usage records."""

from __future__ import annotations

from pathlib import Path

from .base import RecordNotFoundError, RecordStore, StoreError
from .memory_store import InMemoryRecordStore
from .sqlite_store import SqliteRecordStore

__all__ = [
    "InMemoryRecordStore",
    "RecordNotFoundError",
    "RecordStore",
    "SqliteRecordStore",
    "StoreError",
    "create_store",
]


def create_store(db_path: Path | str | None = None) -> RecordStore:
    """Create a record store.

    Parameters
    ----------
    db_path
        SQLite file path; None gives an in-memory store

    Returns
    -------
    RecordStore
        Store instance
    """
    if db_path is None:
        return InMemoryRecordStore()
    return SqliteRecordStore(db_path)
