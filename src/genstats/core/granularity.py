"""Temporal bucketing by granularity unit.

Maps an instant to the start of the unit-interval that contains it and to an
integer "absolute moment" (number of whole units since the Unix epoch) that
is used as the group-by and ordering key.

Calendar units (day, week, month, year) are truncated on the wall clock of a
reference timezone (UTC unless configured otherwise). Hours are counted on the
UTC timeline and do not depend on the reference timezone.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from enum import Enum
from typing import Callable, NamedTuple

import pytz

from .time import EPOCH_UTC, ensure_utc, resolve_timezone

__all__ = [
    "Bucket",
    "BucketRangeError",
    "GranularityUnit",
    "UnsupportedUnitError",
    "from_absolute_moment",
    "to_absolute_moment",
    "truncate",
]

_EPOCH_ORDINAL = date(1970, 1, 1).toordinal()
# Monday of the ISO week containing 1970-01-01 (a Thursday)
_EPOCH_WEEK_ORDINAL = date(1969, 12, 29).toordinal()
_EPOCH_YEAR = 1970


class UnsupportedUnitError(ValueError):
    """Raised when a granularity unit is unknown."""


class BucketRangeError(ValueError):
    """Raised when a bucket falls outside the range datetime can represent.

    Instants near ``datetime.min`` or ``datetime.max`` can have no local date
    or bucket start in the reference timezone.
    """


class GranularityUnit(str, Enum):
    """Bucket width for temporal aggregation."""

    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    @classmethod
    def parse(cls, value: GranularityUnit | str) -> GranularityUnit:
        """Resolve a unit from a member or its name.

        Parameters
        ----------
        value
            GranularityUnit member or case-insensitive name ("day", "WEEK")

        Returns
        -------
        GranularityUnit
            Matching unit

        Raises
        ------
        UnsupportedUnitError
            If the value names no unit
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        supported = ", ".join(unit.value for unit in cls)
        raise UnsupportedUnitError(f"Unsupported granularity unit: {value!r} (supported: {supported})")

    @property
    def is_calendar(self) -> bool:
        """Whether truncation depends on the reference timezone."""
        return self is not GranularityUnit.HOUR


@dataclass(frozen=True)
class Bucket:
    """Truncated moment for one instant under one unit.

    Attributes
    ----------
    unit : GranularityUnit
        Granularity used
    bucket_start : datetime
        Start of the unit-interval, aware, in the reference timezone
    absolute_moment : int
        Whole units between the epoch bucket and this bucket
    """

    unit: GranularityUnit
    bucket_start: datetime
    absolute_moment: int


class _UnitRule(NamedTuple):
    encode: Callable[[datetime, tzinfo], int]
    decode: Callable[[int, tzinfo], datetime]


def _local_date(instant: datetime, tz: tzinfo) -> date:
    return instant.astimezone(tz).date()


def _local_midnight(day: date, tz: tzinfo) -> datetime:
    naive = datetime(day.year, day.month, day.day)
    localize = getattr(tz, "localize", None)
    if localize is None:
        return naive.replace(tzinfo=tz)

    # pytz zones need localize() to pick the right DST offset
    try:
        return localize(naive, is_dst=None)
    except pytz.AmbiguousTimeError:
        # clocks fell back at midnight, the day starts at the first 00:00
        return localize(naive, is_dst=True)
    except pytz.NonExistentTimeError:
        # clocks sprang forward at midnight, the day starts at the first real instant
        return tz.normalize(localize(naive, is_dst=False))


def _encode_hour(instant: datetime, tz: tzinfo) -> int:
    delta = instant - EPOCH_UTC
    return delta.days * 24 + delta.seconds // 3600


def _decode_hour(moment: int, tz: tzinfo) -> datetime:
    return (EPOCH_UTC + timedelta(hours=moment)).astimezone(tz)


def _encode_day(instant: datetime, tz: tzinfo) -> int:
    return _local_date(instant, tz).toordinal() - _EPOCH_ORDINAL


def _decode_day(moment: int, tz: tzinfo) -> datetime:
    return _local_midnight(date.fromordinal(moment + _EPOCH_ORDINAL), tz)


def _encode_week(instant: datetime, tz: tzinfo) -> int:
    local = _local_date(instant, tz)
    monday = local.toordinal() - local.weekday()
    return (monday - _EPOCH_WEEK_ORDINAL) // 7


def _decode_week(moment: int, tz: tzinfo) -> datetime:
    return _local_midnight(date.fromordinal(_EPOCH_WEEK_ORDINAL + moment * 7), tz)


def _encode_month(instant: datetime, tz: tzinfo) -> int:
    local = _local_date(instant, tz)
    return (local.year - _EPOCH_YEAR) * 12 + (local.month - 1)


def _decode_month(moment: int, tz: tzinfo) -> datetime:
    years, month_index = divmod(moment, 12)
    return _local_midnight(date(_EPOCH_YEAR + years, month_index + 1, 1), tz)


def _encode_year(instant: datetime, tz: tzinfo) -> int:
    return _local_date(instant, tz).year - _EPOCH_YEAR


def _decode_year(moment: int, tz: tzinfo) -> datetime:
    return _local_midnight(date(_EPOCH_YEAR + moment, 1, 1), tz)


_RULES: dict[GranularityUnit, _UnitRule] = {
    GranularityUnit.HOUR: _UnitRule(_encode_hour, _decode_hour),
    GranularityUnit.DAY: _UnitRule(_encode_day, _decode_day),
    GranularityUnit.WEEK: _UnitRule(_encode_week, _decode_week),
    GranularityUnit.MONTH: _UnitRule(_encode_month, _decode_month),
    GranularityUnit.YEAR: _UnitRule(_encode_year, _decode_year),
}


def to_absolute_moment(
    timestamp: datetime,
    unit: GranularityUnit | str,
    tz: tzinfo | str | None = None,
) -> int:
    """Encode the bucket containing ``timestamp`` as an integer.

    Parameters
    ----------
    timestamp
        Instant to bucket (naive values are read as UTC)
    unit
        Granularity unit
    tz
        Reference timezone (default: configured reference timezone)

    Returns
    -------
    int
        Monotonic, injective bucket key

    Raises
    ------
    UnsupportedUnitError
        If the unit is unknown
    BucketRangeError
        If the local date of ``timestamp`` cannot be represented
    """
    parsed = GranularityUnit.parse(unit)
    try:
        return _RULES[parsed].encode(ensure_utc(timestamp), resolve_timezone(tz))
    except OverflowError as exc:
        raise BucketRangeError(f"{timestamp!r} is outside the supported range for {parsed.value} buckets") from exc


def from_absolute_moment(
    moment: int,
    unit: GranularityUnit | str,
    tz: tzinfo | str | None = None,
) -> datetime:
    """Decode an absolute moment back to its bucket start.

    Parameters
    ----------
    moment
        Value produced by :func:`to_absolute_moment`
    unit
        Granularity unit the moment was encoded with
    tz
        Reference timezone used for encoding

    Returns
    -------
    datetime
        Bucket start, aware, in the reference timezone

    Raises
    ------
    BucketRangeError
        If the bucket start cannot be represented

    Example
    -------
    >>> from_absolute_moment(19358, "day", "UTC").isoformat()
    '2023-01-01T00:00:00+00:00'
    """
    parsed = GranularityUnit.parse(unit)
    zone = resolve_timezone(tz)
    try:
        return _RULES[parsed].decode(moment, zone)
    except (OverflowError, ValueError) as exc:
        raise BucketRangeError(f"{parsed.value} moment {moment} is outside the supported range") from exc


def truncate(
    timestamp: datetime,
    unit: GranularityUnit | str,
    tz: tzinfo | str | None = None,
) -> Bucket:
    """Truncate an instant to the start of its unit-interval.

    Truncation is idempotent: truncating ``bucket_start`` again yields the
    same bucket.

    Parameters
    ----------
    timestamp
        Instant to truncate
    unit
        Granularity unit
    tz
        Reference timezone (default: configured reference timezone)

    Returns
    -------
    Bucket
        Bucket start and absolute moment
    """
    parsed = GranularityUnit.parse(unit)
    zone = resolve_timezone(tz)
    moment = to_absolute_moment(timestamp, parsed, zone)
    return Bucket(
        unit=parsed,
        bucket_start=from_absolute_moment(moment, parsed, zone),
        absolute_moment=moment,
    )
