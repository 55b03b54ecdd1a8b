"""Tests for temporal bucketing (hour/day/week/month/year)."""

from datetime import datetime, timedelta, timezone

import pytest
import pytz

from genstats.core.granularity import (
    Bucket,
    BucketRangeError,
    GranularityUnit,
    UnsupportedUnitError,
    from_absolute_moment,
    to_absolute_moment,
    truncate,
)
from genstats.core.time import set_reference_timezone


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class TestGranularityUnit:
    def test_parse_member_returns_member(self):
        assert GranularityUnit.parse(GranularityUnit.WEEK) is GranularityUnit.WEEK

    @pytest.mark.parametrize("raw", ["day", "DAY", " Day "])
    def test_parse_is_case_insensitive(self, raw):
        assert GranularityUnit.parse(raw) is GranularityUnit.DAY

    @pytest.mark.parametrize("raw", ["minute", "", "days", None, 3])
    def test_parse_rejects_unknown(self, raw):
        with pytest.raises(UnsupportedUnitError, match="Unsupported granularity unit"):
            GranularityUnit.parse(raw)

    def test_unsupported_unit_is_value_error(self):
        assert issubclass(UnsupportedUnitError, ValueError)

    def test_only_hour_ignores_reference_timezone(self):
        assert not GranularityUnit.HOUR.is_calendar
        assert all(unit.is_calendar for unit in GranularityUnit if unit is not GranularityUnit.HOUR)


class TestAbsoluteMoment:
    def test_epoch_maps_to_zero(self):
        epoch = utc(1970, 1, 1)
        assert to_absolute_moment(epoch, "hour", "UTC") == 0
        assert to_absolute_moment(epoch, "day", "UTC") == 0
        assert to_absolute_moment(epoch, "month", "UTC") == 0
        assert to_absolute_moment(epoch, "year", "UTC") == 0
        # 1970-01-01 is a Thursday; its ISO week starts 1969-12-29
        assert to_absolute_moment(epoch, "week", "UTC") == 0

    def test_day_example(self):
        assert to_absolute_moment(utc(2023, 1, 1, 10, 0), GranularityUnit.DAY, "UTC") == 19358
        assert from_absolute_moment(19358, GranularityUnit.DAY, "UTC") == utc(2023, 1, 1)

    def test_hour_counts_hours_since_epoch(self):
        assert to_absolute_moment(utc(1970, 1, 2, 3, 59), "hour", "UTC") == 27

    def test_month_and_year(self):
        ts = utc(2023, 3, 15, 12, 0)
        assert to_absolute_moment(ts, "month", "UTC") == 53 * 12 + 2
        assert to_absolute_moment(ts, "year", "UTC") == 53

    def test_pre_epoch_instants_are_negative(self):
        ts = utc(1969, 12, 31, 23, 30)
        assert to_absolute_moment(ts, "hour", "UTC") == -1
        assert to_absolute_moment(ts, "day", "UTC") == -1
        assert to_absolute_moment(ts, "month", "UTC") == -1
        assert to_absolute_moment(ts, "year", "UTC") == -1
        assert to_absolute_moment(ts, "week", "UTC") == 0
        assert to_absolute_moment(utc(1969, 12, 28, 12), "week", "UTC") == -1

    def test_naive_timestamp_is_read_as_utc(self):
        assert to_absolute_moment(datetime(2023, 1, 1, 10), "day", "UTC") == 19358

    @pytest.mark.parametrize("unit", list(GranularityUnit))
    def test_monotonic_over_a_year(self, unit):
        moments = [to_absolute_moment(utc(2023, 1, 1) + timedelta(hours=7 * i), unit, "UTC") for i in range(1300)]
        assert moments == sorted(moments)

    @pytest.mark.parametrize("unit", list(GranularityUnit))
    def test_decode_encode_is_identity(self, unit):
        for moment in (-30, -1, 0, 1, 640, 5000):
            assert to_absolute_moment(from_absolute_moment(moment, unit, "UTC"), unit, "UTC") == moment

    def test_uses_configured_reference_timezone(self):
        ts = utc(2023, 1, 1, 3, 0)
        assert to_absolute_moment(ts, "day") == 19358

        set_reference_timezone("America/New_York")
        # 22:00 on Dec 31 in New York
        assert to_absolute_moment(ts, "day") == 19357


class TestTruncate:
    def test_day_truncates_to_midnight(self):
        bucket = truncate(utc(2023, 1, 1, 15, 42, 7), "day", "UTC")
        assert bucket == Bucket(GranularityUnit.DAY, utc(2023, 1, 1), 19358)

    def test_hour_truncates_minutes(self):
        assert truncate(utc(2023, 1, 1, 15, 42, 7, 123), "hour", "UTC").bucket_start == utc(2023, 1, 1, 15)

    def test_week_starts_on_monday(self):
        # 2023-01-01 is a Sunday
        assert truncate(utc(2023, 1, 1, 12), "week", "UTC").bucket_start == utc(2022, 12, 26)
        assert truncate(utc(2023, 1, 2, 0, 0), "week", "UTC").bucket_start == utc(2023, 1, 2)
        assert truncate(utc(2023, 1, 8, 23, 59), "week", "UTC").bucket_start == utc(2023, 1, 2)

    def test_week_across_year_boundary(self):
        # 2020-12-31 is a Thursday; its week starts Monday 2020-12-28
        bucket = truncate(utc(2021, 1, 3, 8), "week", "UTC")
        assert bucket.bucket_start == utc(2020, 12, 28)
        assert bucket.absolute_moment == to_absolute_moment(utc(2020, 12, 31), "week", "UTC")

    def test_month_handles_leap_year(self):
        assert truncate(utc(2024, 2, 29, 23, 59), "month", "UTC").bucket_start == utc(2024, 2, 1)
        assert truncate(utc(2024, 3, 1), "month", "UTC").bucket_start == utc(2024, 3, 1)

    def test_year(self):
        assert truncate(utc(2024, 12, 31, 23, 59, 59), "year", "UTC").bucket_start == utc(2024, 1, 1)

    @pytest.mark.parametrize("unit", list(GranularityUnit))
    def test_idempotent(self, unit):
        first = truncate(utc(2023, 7, 19, 13, 27, 5), unit, "UTC")
        second = truncate(first.bucket_start, unit, "UTC")
        assert second == first

    @pytest.mark.parametrize("unit", list(GranularityUnit))
    def test_bucket_start_not_after_timestamp(self, unit):
        ts = utc(2023, 7, 19, 13, 27, 5)
        assert truncate(ts, unit, "UTC").bucket_start <= ts

    def test_unknown_unit(self):
        with pytest.raises(UnsupportedUnitError):
            truncate(utc(2023, 1, 1), "fortnight", "UTC")


class TestReferenceTimezone:
    def test_day_bucket_start_is_local_midnight(self):
        tz = pytz.timezone("Europe/Paris")
        bucket = truncate(utc(2023, 6, 30, 23, 30), "day", tz)
        assert bucket.bucket_start == tz.localize(datetime(2023, 7, 1))
        assert bucket.bucket_start.utcoffset() == timedelta(hours=2)

    def test_dst_day_is_one_bucket(self):
        tz = pytz.timezone("America/New_York")
        # 2023-03-12 is 23 hours long in New York
        early = truncate(utc(2023, 3, 12, 5, 30), "day", tz)
        late = truncate(utc(2023, 3, 13, 3, 30), "day", tz)
        assert early.absolute_moment == late.absolute_moment
        assert early.bucket_start == tz.localize(datetime(2023, 3, 12))
        assert early.bucket_start.utcoffset() == timedelta(hours=-5)

    def test_month_after_dst_change_keeps_local_offset(self):
        tz = pytz.timezone("America/New_York")
        bucket = truncate(utc(2023, 4, 15), "month", tz)
        assert bucket.bucket_start.utcoffset() == timedelta(hours=-4)
        assert bucket.bucket_start.astimezone(timezone.utc) == utc(2023, 4, 1, 4)

    def test_hour_does_not_depend_on_timezone(self):
        ts = utc(2023, 3, 12, 7, 45)
        assert to_absolute_moment(ts, "hour", "UTC") == to_absolute_moment(ts, "hour", "Asia/Kolkata")
        assert truncate(ts, "hour", "Asia/Kolkata").bucket_start == utc(2023, 3, 12, 7)

    def test_midnight_fall_back_starts_at_first_midnight(self):
        tz = pytz.timezone("America/Havana")
        # 00:00 happened twice in Havana on 2010-10-31, first at 04:00Z
        ts = utc(2010, 10, 31, 4, 0)
        for unit in ("day", "month"):
            bucket = truncate(ts, unit, tz)
            assert bucket.bucket_start <= ts
        assert truncate(ts, "day", tz).bucket_start == utc(2010, 10, 31, 4, 0)

    @pytest.mark.parametrize("unit", ["day", "week", "month", "year"])
    def test_bucket_contains_timestamp_around_midnight_transitions(self, unit):
        tz = pytz.timezone("America/Havana")
        for first_day in (utc(2010, 3, 10), utc(2010, 10, 27)):
            for step in range(9 * 48):
                ts = first_day + timedelta(minutes=30 * step)
                bucket = truncate(ts, unit, tz)
                assert bucket.bucket_start <= ts
                assert truncate(bucket.bucket_start, unit, tz) == bucket

    def test_invalid_timezone_name(self):
        with pytest.raises(ValueError, match="Invalid timezone"):
            truncate(utc(2023, 1, 1), "day", "Mars/Olympus")


class TestSupportedRange:
    @pytest.mark.parametrize(
        "ts, tz, unit",
        [
            (datetime.min.replace(tzinfo=timezone.utc), "America/New_York", "day"),
            (datetime.max.replace(tzinfo=timezone.utc), "Asia/Tokyo", "hour"),
            (datetime.max.replace(tzinfo=timezone.utc), "Asia/Tokyo", "day"),
        ],
    )
    def test_out_of_range_instants_raise_bucket_range_error(self, ts, tz, unit):
        with pytest.raises(BucketRangeError, match="outside the supported range"):
            truncate(ts, unit, tz)

    def test_out_of_range_moment(self):
        with pytest.raises(BucketRangeError):
            from_absolute_moment(10_000, "year", "UTC")

    def test_bucket_range_error_is_value_error(self):
        assert issubclass(BucketRangeError, ValueError)

    def test_extremes_in_utc_still_bucket(self):
        assert truncate(datetime.min.replace(tzinfo=timezone.utc), "year", "UTC").bucket_start.year == 1
