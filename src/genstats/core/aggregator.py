"""Record aggregation by time bucket.

Counts records created after a cutoff, grouped by granularity bucket and
optionally by the value of one record field. Aggregation is a pure function
over records already fetched from a store.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Any

from .fields import FieldSelector
from .granularity import GranularityUnit, from_absolute_moment, to_absolute_moment
from .records import Record
from .time import ensure_utc, resolve_timezone

__all__ = [
    "CountResult",
    "FieldDistributionResult",
    "count_by_bucket",
    "count_by_bucket_and_field",
]


@dataclass(frozen=True)
class CountResult:
    """Number of records in one bucket.

    Attributes
    ----------
    bucket_start : datetime
        Start of the bucket in the reference timezone
    count : int
        Records whose creation instant falls in the bucket
    """

    bucket_start: datetime
    count: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"date": self.bucket_start.isoformat(), "count": self.count}


@dataclass(frozen=True)
class FieldDistributionResult:
    """Per-value record counts in one bucket.

    Attributes
    ----------
    bucket_start : datetime
        Start of the bucket in the reference timezone
    values : dict[str, int]
        Count per field value; values absent from the bucket are not listed
    """

    bucket_start: datetime
    values: dict[str, int] = field(default_factory=dict, hash=False)

    @property
    def total(self) -> int:
        """Sum of the per-value counts."""
        return sum(self.values.values())

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"date": self.bucket_start.isoformat(), "values": dict(self.values)}


def _created_after(records: Iterable[Record], after: datetime) -> Iterator[Record]:
    cutoff = ensure_utc(after)
    return (record for record in records if record.created_at > cutoff)


def count_by_bucket(
    records: Iterable[Record],
    after: datetime,
    unit: GranularityUnit | str,
    tz: tzinfo | str | None = None,
) -> list[CountResult]:
    """Count records created after ``after`` per bucket.

    Parameters
    ----------
    records
        Records to aggregate, in any order
    after
        Exclusive cutoff; a record created exactly at ``after`` is skipped
    unit
        Granularity unit
    tz
        Reference timezone for calendar units

    Returns
    -------
    list[CountResult]
        One entry per non-empty bucket, ascending by bucket start

    Raises
    ------
    UnsupportedUnitError
        If the unit is unknown

    Example
    -------
    >>> rows = count_by_bucket(records, datetime(2022, 12, 31), "day")
    >>> [(r.bucket_start.date().isoformat(), r.count) for r in rows]
    [('2023-01-01', 2), ('2023-01-02', 1)]
    """
    parsed = GranularityUnit.parse(unit)
    zone = resolve_timezone(tz)

    counts: Counter[int] = Counter(
        to_absolute_moment(record.created_at, parsed, zone) for record in _created_after(records, after)
    )

    return [
        CountResult(bucket_start=from_absolute_moment(moment, parsed, zone), count=count)
        for moment, count in sorted(counts.items())
    ]


def count_by_bucket_and_field(
    records: Iterable[Record],
    after: datetime,
    unit: GranularityUnit | str,
    field: FieldSelector | str,
    tz: tzinfo | str | None = None,
) -> list[FieldDistributionResult]:
    """Count records created after ``after`` per bucket and field value.

    Records that do not carry ``field`` cannot be attributed to a value and
    are left out. For ``languages`` a record counts once per selected
    language, so a bucket total can exceed its number of records.

    Parameters
    ----------
    records
        Records to aggregate, in any order
    after
        Exclusive cutoff
    unit
        Granularity unit
    field
        Field whose values are counted
    tz
        Reference timezone for calendar units

    Returns
    -------
    list[FieldDistributionResult]
        One entry per non-empty bucket, ascending by bucket start

    Raises
    ------
    UnsupportedUnitError
        If the unit is unknown
    UnsupportedFieldError
        If the field is unknown
    """
    parsed = GranularityUnit.parse(unit)
    selector = FieldSelector.parse(field)
    zone = resolve_timezone(tz)

    pair_counts: Counter[tuple[int, str]] = Counter()
    for record in _created_after(records, after):
        values = selector.values_of(record)
        if not values:
            continue
        moment = to_absolute_moment(record.created_at, parsed, zone)
        for value in values:
            pair_counts[(moment, value)] += 1

    by_moment: defaultdict[int, dict[str, int]] = defaultdict(dict)
    for (moment, value), count in pair_counts.items():
        by_moment[moment][value] = count

    return [
        FieldDistributionResult(bucket_start=from_absolute_moment(moment, parsed, zone), values=values)
        for moment, values in sorted(by_moment.items())
    ]
