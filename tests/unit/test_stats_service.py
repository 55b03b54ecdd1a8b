"""Tests for the usage statistics service."""

from datetime import datetime, timezone

import pytest
import pytz

from genstats.config.settings import Settings
from genstats.core.fields import UnsupportedFieldError
from genstats.core.granularity import UnsupportedUnitError
from genstats.core.time import TimeConfig
from genstats.service import UsageStatsService, create_stats_service
from genstats.storage import InMemoryRecordStore, SqliteRecordStore, StoreError


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def service(sample_records) -> UsageStatsService:
    service = UsageStatsService(InMemoryRecordStore(), tz="UTC")
    for record in sample_records:
        service.save(record)
    return service


class TestQueries:
    def test_get_count(self, service):
        rows = service.get_count(utc(2022, 12, 31), "day")
        assert [(row.bucket_start, row.count) for row in rows] == [
            (utc(2023, 1, 1), 2),
            (utc(2023, 1, 2), 1),
        ]

    def test_get_field_count(self, service):
        rows = service.get_field_count(utc(2022, 12, 31), "enableTranslation", "day")
        assert [row.values for row in rows] == [{"true": 1, "false": 1}, {"true": 1}]

    def test_unsupported_selectors(self, service):
        with pytest.raises(UnsupportedUnitError):
            service.get_count(utc(2022, 12, 31), "minute")
        with pytest.raises(UnsupportedFieldError):
            service.get_field_count(utc(2022, 12, 31), "colour", "day")

    def test_service_timezone_drives_buckets(self, sample_records):
        service = UsageStatsService(InMemoryRecordStore(), tz="America/New_York")
        for record in sample_records:
            service.save(record)
        rows = service.get_count(utc(2022, 12, 31), "day")
        assert len(rows) == 1
        assert rows[0].count == 3

    def test_store_errors_propagate(self):
        class BrokenStore(InMemoryRecordStore):
            def find_created_after(self, after):
                raise StoreError("disk on fire")

        with pytest.raises(StoreError, match="disk on fire"):
            UsageStatsService(BrokenStore()).get_count(utc(2023, 1, 1), "day")


class TestRecordManagement:
    def test_ingest_saves_record(self, service):
        record = service.ingest({"generator-jhipster": {"buildTool": "maven"}}, created_at=utc(2023, 1, 3))
        assert record.id is not None
        assert service.find_one(record.id) == record
        assert service.count_all() == 4

    def test_delete(self, service):
        record = service.find_all()[0]
        assert service.delete(record.id) is True
        assert service.find_one(record.id) is None
        assert service.count_all() == 2


class TestCreateStatsService:
    def test_memory_store_without_db_path(self):
        service = create_stats_service(Settings())
        assert isinstance(service.store, InMemoryRecordStore)

    def test_sqlite_store_and_reference_timezone(self, tmp_path):
        service = create_stats_service(Settings(db_path=tmp_path / "genstats.db", reference_timezone="Europe/Paris"))
        assert isinstance(service.store, SqliteRecordStore)
        assert service.tz == pytz.timezone("Europe/Paris")
        assert TimeConfig.get_reference_timezone_name() == "Europe/Paris"
