"""Tests for record stores (memory and SQLite)."""

import sqlite3
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from genstats.core.records import Record
from genstats.storage import (
    InMemoryRecordStore,
    RecordNotFoundError,
    RecordStore,
    SqliteRecordStore,
    StoreError,
    create_store,
)


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path: Path) -> RecordStore:
    if request.param == "memory":
        return InMemoryRecordStore()
    return SqliteRecordStore(tmp_path / "db" / "genstats.db")


class TestRecordStore:
    def test_implements_protocol(self, store):
        assert isinstance(store, RecordStore)

    def test_save_assigns_ids(self, store):
        first = store.save(Record.create(utc(2023, 1, 1), {"buildTool": "maven"}))
        second = store.save(Record.create(utc(2023, 1, 2)))
        assert first.id is not None
        assert second.id is not None
        assert first.id != second.id
        assert store.count() == 2

    def test_find_one(self, store):
        saved = store.save(Record.create(utc(2023, 1, 1, 10, 0, 0), {"enableTranslation": True, "cores": 8}))
        found = store.find_one(saved.id)
        assert found == saved
        assert found.get("enableTranslation") is True
        assert store.find_one(saved.id + 100) is None

    def test_save_with_id_replaces(self, store):
        saved = store.save(Record.create(utc(2023, 1, 1), {"buildTool": "maven"}))
        store.save(Record.create(utc(2023, 1, 1), {"buildTool": "gradle"}, record_id=saved.id))
        assert store.count() == 1
        assert store.find_one(saved.id).get("buildTool") == "gradle"

    def test_new_ids_do_not_collide_with_explicit_ids(self, store):
        store.save(Record.create(utc(2023, 1, 1), record_id=10))
        fresh = store.save(Record.create(utc(2023, 1, 2)))
        assert fresh.id > 10
        assert store.count() == 2

    def test_delete(self, store):
        saved = store.save(Record.create(utc(2023, 1, 1)))
        assert store.delete(saved.id) is True
        assert store.delete(saved.id) is False
        assert store.find_all() == []

    def test_languages_round_trip(self, store):
        saved = store.save(Record.create(utc(2023, 1, 1), {"nativeLanguage": "en"}, languages=["en", "fr"]))
        assert store.find_one(saved.id).languages == ("en", "fr")

    def test_find_created_after_is_strict(self, store):
        cutoff = utc(2023, 1, 1, 10)
        store.save(Record.create(cutoff - timedelta(microseconds=1)))
        store.save(Record.create(cutoff))
        later = store.save(Record.create(cutoff + timedelta(microseconds=1)))
        assert store.find_created_after(cutoff) == [later]

    def test_find_created_after_accepts_other_offsets(self, store):
        saved = store.save(Record.create(utc(2023, 1, 1, 10)))
        plus_two = timezone(timedelta(hours=2))
        assert store.find_created_after(datetime(2023, 1, 1, 11, 59, tzinfo=plus_two)) == [saved]
        assert store.find_created_after(datetime(2023, 1, 1, 12, 0, tzinfo=plus_two)) == []


class TestSqliteRecordStore:
    def test_persists_across_instances(self, tmp_path: Path):
        db_path = tmp_path / "genstats.db"
        saved = SqliteRecordStore(db_path).save(Record.create(utc(2023, 1, 1), {"serverPort": 8080}))
        reopened = SqliteRecordStore(db_path)
        assert reopened.find_all() == [saved]

    def test_schema(self, tmp_path: Path):
        db_path = tmp_path / "genstats.db"
        SqliteRecordStore(db_path)
        with sqlite3.connect(db_path) as conn:
            columns = [row[1] for row in conn.execute("PRAGMA table_info(records)")]
        assert columns == ["id", "created_at", "created_at_us", "fields", "languages"]

    def test_adds_languages_column_to_older_databases(self, tmp_path: Path):
        db_path = tmp_path / "genstats.db"
        with sqlite3.connect(db_path) as conn:
            conn.execute(
                "CREATE TABLE records (id INTEGER PRIMARY KEY AUTOINCREMENT, created_at TEXT NOT NULL, "
                "created_at_us INTEGER NOT NULL, fields TEXT NOT NULL DEFAULT '{}')"
            )
            conn.execute(
                "INSERT INTO records (created_at, created_at_us, fields) VALUES (?, ?, ?)",
                ("2023-01-01T00:00:00+00:00", 1672531200000000, '{"buildTool": "maven"}'),
            )

        store = SqliteRecordStore(db_path)

        [record] = store.find_all()
        assert record.get("buildTool") == "maven"
        assert record.languages == ()

    def test_unusable_path_raises_store_error(self, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        with pytest.raises(StoreError):
            SqliteRecordStore(blocker / "genstats.db")


class TestInMemoryRecordStore:
    def test_concurrent_saves_get_unique_ids(self):
        store = InMemoryRecordStore()

        def worker():
            for _ in range(50):
                store.save(Record.create(utc(2023, 1, 1)))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert store.count() == 200
        assert len({record.id for record in store.find_all()}) == 200


def test_record_not_found_error():
    error = RecordNotFoundError(42)
    assert error.record_id == 42
    assert str(error) == "Record not found: 42"
    assert isinstance(error, LookupError)


def test_create_store(tmp_path: Path):
    assert isinstance(create_store(), InMemoryRecordStore)
    assert isinstance(create_store(tmp_path / "genstats.db"), SqliteRecordStore)
