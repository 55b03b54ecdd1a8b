"""Usage statistics service.

Facade over a record store: record management, configuration ingestion and
the two bucketed count queries.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, tzinfo
from typing import TYPE_CHECKING, Any

from .core.aggregator import CountResult, FieldDistributionResult, count_by_bucket, count_by_bucket_and_field
from .core.fields import FieldSelector
from .core.granularity import GranularityUnit
from .core.records import Record
from .core.time import format_utc_iso8601, resolve_timezone, set_reference_timezone
from .ingestion import parse_configuration
from .observability import get_logger, timing_context
from .storage import RecordStore, create_store

if TYPE_CHECKING:
    from .config.settings import Settings

__all__ = ["UsageStatsService", "create_stats_service"]

log = get_logger("stats")


class UsageStatsService:
    """Manage generator usage records and answer bucketed count queries.

    Store failures surface as :class:`~genstats.storage.StoreError`; they are
    neither retried nor translated here.

    Example
    -------
    >>> service = UsageStatsService(InMemoryRecordStore())
    >>> service.ingest('{"generator-jhipster": {"buildTool": "gradle"}}')
    >>> service.get_count(datetime(2023, 1, 1, tzinfo=timezone.utc), "month")
    """

    def __init__(self, store: RecordStore, tz: tzinfo | str | None = None) -> None:
        """Initialize service.

        Parameters
        ----------
        store
            Record store used as the only data source
        tz
            Reference timezone for calendar buckets (default: configured
            reference timezone)
        """
        self.store = store
        self.tz = resolve_timezone(tz)

    def save(self, record: Record) -> Record:
        log.debug(f"Request to save record: {record.id}")
        return self.store.save(record)

    def find_all(self) -> list[Record]:
        log.debug("Request to get all records")
        return self.store.find_all()

    def find_one(self, record_id: int) -> Record | None:
        log.debug(f"Request to get record: {record_id}")
        return self.store.find_one(record_id)

    def delete(self, record_id: int) -> bool:
        log.debug(f"Request to delete record: {record_id}")
        return self.store.delete(record_id)

    def count_all(self) -> int:
        return self.store.count()

    def ingest(
        self,
        payload: str | bytes | Mapping[str, Any],
        created_at: datetime | None = None,
    ) -> Record:
        """Parse a generator configuration and save it.

        Raises
        ------
        IngestionError
            If the payload cannot be parsed
        """
        record = self.save(parse_configuration(payload, created_at=created_at))
        log.info(f"Ingested record {record.id} with {len(record.fields)} fields")
        return record

    def get_count(self, after: datetime, unit: GranularityUnit | str) -> list[CountResult]:
        """Count records created after ``after`` per bucket.

        Parameters
        ----------
        after
            Exclusive cutoff
        unit
            Granularity unit

        Returns
        -------
        list[CountResult]
            Ascending by bucket start

        Raises
        ------
        UnsupportedUnitError
            If the unit is unknown
        """
        parsed = GranularityUnit.parse(unit)
        with timing_context("get_count", component="stats", unit=parsed.value, after=format_utc_iso8601(after)) as ctx:
            records = self.store.find_created_after(after)
            results = count_by_bucket(records, after, parsed, self.tz)
            ctx["records"] = len(records)
            ctx["buckets"] = len(results)
        return results

    def get_field_count(
        self,
        after: datetime,
        field: FieldSelector | str,
        unit: GranularityUnit | str,
    ) -> list[FieldDistributionResult]:
        """Count records created after ``after`` per bucket and field value.

        Parameters
        ----------
        after
            Exclusive cutoff
        field
            Field whose values are counted
        unit
            Granularity unit

        Returns
        -------
        list[FieldDistributionResult]
            Ascending by bucket start

        Raises
        ------
        UnsupportedUnitError
            If the unit is unknown
        UnsupportedFieldError
            If the field is unknown
        """
        parsed = GranularityUnit.parse(unit)
        selector = FieldSelector.parse(field)
        with timing_context(
            "get_field_count",
            component="stats",
            unit=parsed.value,
            field=selector.value,
            after=format_utc_iso8601(after),
        ) as ctx:
            records = self.store.find_created_after(after)
            results = count_by_bucket_and_field(records, after, parsed, selector, self.tz)
            ctx["records"] = len(records)
            ctx["buckets"] = len(results)
        return results


def create_stats_service(settings: Settings) -> UsageStatsService:
    """Create a service from settings.

    Applies the reference timezone process-wide and opens the configured
    store (SQLite when ``db_path`` is set, memory otherwise).

    Parameters
    ----------
    settings
        Loaded settings

    Returns
    -------
    UsageStatsService
        Ready service
    """
    set_reference_timezone(settings.reference_timezone)
    store = create_store(settings.db_path)
    log.debug(f"Stats service using {type(store).__name__}, tz={settings.reference_timezone}")
    return UsageStatsService(store, tz=settings.reference_timezone)
