"""SQLite-backed record store.

Records live in a single table. The creation instant is kept twice: as an
ISO-8601 UTC string for readability and as integer microseconds since the
epoch for range queries. Fields and selected languages are JSON text columns.
"""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ..core.records import Record
from ..core.time import format_utc_iso8601, from_microseconds, to_microseconds
from ..observability import get_logger, log_timing
from .base import StoreError

if TYPE_CHECKING:
    from datetime import datetime

__all__ = ["SqliteRecordStore"]

log = get_logger("store")

_SELECT_COLUMNS = "SELECT id, created_at_us, fields, languages FROM records"


class SqliteRecordStore:
    """Record store persisted in a SQLite file.

    Example
    -------
    >>> store = SqliteRecordStore(Path("artifacts/genstats.db"))
    >>> store.save(Record.create(get_current_utc(), {"databaseType": "sql"}))
    >>> recent = store.find_created_after(datetime(2023, 1, 1, tzinfo=timezone.utc))
    """

    def __init__(self, db_path: Path | str) -> None:
        """Initialize the store, creating the schema if needed.

        Parameters
        ----------
        db_path
            Path to SQLite database file (":memory:" is not supported since
            every operation opens its own connection)
        """
        self.db_path = Path(db_path)
        self._init_db()
        log.info(f"SQLite record store ready at {self.db_path}")

    def _connect(self) -> sqlite3.Connection:
        try:
            return sqlite3.connect(self.db_path)
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot open record store {self.db_path}: {exc}") from exc

    def _init_db(self) -> None:
        """Initialize database schema."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreError(f"Cannot create directory for {self.db_path}: {exc}") from exc

        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS records (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        created_at TEXT NOT NULL,
                        created_at_us INTEGER NOT NULL,
                        fields TEXT NOT NULL DEFAULT '{}',
                        languages TEXT NOT NULL DEFAULT '[]'
                    )
                    """
                )
                columns = {row[1] for row in conn.execute("PRAGMA table_info(records)")}
                if "languages" not in columns:
                    # databases created before languages were tracked
                    conn.execute("ALTER TABLE records ADD COLUMN languages TEXT NOT NULL DEFAULT '[]'")
                conn.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_records_created_at
                    ON records(created_at_us)
                    """
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot initialize record store {self.db_path}: {exc}") from exc

    @staticmethod
    def _row_to_record(row: tuple[Any, ...]) -> Record:
        record_id, created_at_us, fields_json, languages_json = row
        return Record.create(
            created_at=from_microseconds(created_at_us),
            fields=json.loads(fields_json) if fields_json else {},
            record_id=record_id,
            languages=json.loads(languages_json) if languages_json else [],
        )

    def save(self, record: Record) -> Record:
        """Insert or replace a record.

        Parameters
        ----------
        record
            Record to persist; a record without id gets a new one

        Returns
        -------
        Record
            The stored record with its id
        """
        params = (
            format_utc_iso8601(record.created_at),
            to_microseconds(record.created_at),
            json.dumps(dict(record.fields), sort_keys=True),
            json.dumps(list(record.languages)),
        )
        try:
            with self._connect() as conn:
                if record.id is None:
                    cursor = conn.execute(
                        "INSERT INTO records (created_at, created_at_us, fields, languages) VALUES (?, ?, ?, ?)",
                        params,
                    )
                    record = record.with_id(int(cursor.lastrowid))
                else:
                    conn.execute(
                        "INSERT OR REPLACE INTO records (id, created_at, created_at_us, fields, languages) "
                        "VALUES (?, ?, ?, ?, ?)",
                        (record.id, *params),
                    )
                conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot save record: {exc}") from exc

        log.debug(f"Saved record {record.id}")
        return record

    def find_all(self) -> list[Record]:
        return self._query(f"{_SELECT_COLUMNS} ORDER BY id")

    def find_one(self, record_id: int) -> Record | None:
        rows = self._query(f"{_SELECT_COLUMNS} WHERE id = ?", (record_id,))
        return rows[0] if rows else None

    def delete(self, record_id: int) -> bool:
        try:
            with self._connect() as conn:
                cursor = conn.execute("DELETE FROM records WHERE id = ?", (record_id,))
                conn.commit()
                existed = cursor.rowcount > 0
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot delete record {record_id}: {exc}") from exc

        log.debug(f"Delete record {record_id}: existed={existed}")
        return existed

    def count(self) -> int:
        try:
            with self._connect() as conn:
                row = conn.execute("SELECT COUNT(*) FROM records").fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot count records: {exc}") from exc
        return int(row[0]) if row else 0

    @log_timing(component="store")
    def find_created_after(self, after: datetime) -> list[Record]:
        """Return records created strictly after ``after``.

        Parameters
        ----------
        after
            Exclusive lower bound

        Returns
        -------
        list[Record]
            Matching records, unordered
        """
        return self._query(f"{_SELECT_COLUMNS} WHERE created_at_us > ?", (to_microseconds(after),))

    def _query(self, sql: str, params: tuple[Any, ...] = ()) -> list[Record]:
        try:
            with self._connect() as conn:
                rows = conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Record store query failed: {exc}") from exc
        return [self._row_to_record(row) for row in rows]
