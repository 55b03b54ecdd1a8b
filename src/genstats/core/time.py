"""Time and timezone utilities for genstats.

Provides consistent timezone handling across the system with:
- UTC discipline: all record timestamps are held as aware UTC datetimes
- ISO-8601 format enforcement at the boundaries
- A process-wide reference timezone for calendar truncation
- Integer microsecond encoding for storage ordering
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo

import pytz

__all__ = [
    "EPOCH_UTC",
    "TimeConfig",
    "ensure_utc",
    "format_utc_iso8601",
    "from_microseconds",
    "get_current_utc",
    "get_reference_timezone",
    "parse_utc_iso8601",
    "resolve_timezone",
    "set_reference_timezone",
    "to_microseconds",
]

EPOCH_UTC = datetime(1970, 1, 1, tzinfo=timezone.utc)


class TimeConfig:
    """Global time configuration."""

    _reference_timezone = "UTC"

    @classmethod
    def get_reference_timezone_name(cls) -> str:
        """Get reference timezone name.

        Returns
        -------
        str
            Timezone name (e.g., "UTC", "Europe/Paris")
        """
        return cls._reference_timezone

    @classmethod
    def set_reference_timezone_name(cls, timezone_name: str) -> None:
        """Set reference timezone.

        Parameters
        ----------
        timezone_name
            IANA timezone name (e.g., "Europe/Paris", "America/New_York")

        Raises
        ------
        ValueError
            If timezone is invalid
        """
        try:
            pytz.timezone(timezone_name)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Invalid timezone: {timezone_name}") from exc

        cls._reference_timezone = timezone_name


def get_reference_timezone() -> tzinfo:
    """Get the reference timezone used for day/week/month/year truncation.

    Returns
    -------
    tzinfo
        pytz timezone object
    """
    return pytz.timezone(TimeConfig.get_reference_timezone_name())


def set_reference_timezone(timezone_name: str) -> None:
    """Set reference timezone for calendar truncation.

    Parameters
    ----------
    timezone_name
        IANA timezone name

    Raises
    ------
    ValueError
        If timezone is invalid
    """
    TimeConfig.set_reference_timezone_name(timezone_name)


def resolve_timezone(tz: tzinfo | str | None = None) -> tzinfo:
    """Resolve a timezone argument.

    Parameters
    ----------
    tz
        tzinfo, IANA name, or None for the reference timezone

    Returns
    -------
    tzinfo
        Resolved timezone

    Raises
    ------
    ValueError
        If a name is given that pytz does not know
    """
    if tz is None:
        return get_reference_timezone()
    if isinstance(tz, str):
        try:
            return pytz.timezone(tz)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Invalid timezone: {tz}") from exc
    return tz


def get_current_utc() -> datetime:
    """Get current time in UTC.

    Returns
    -------
    datetime
        Current time in UTC with timezone info
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Normalize a datetime to aware UTC.

    Naive datetimes are assumed to already be UTC.

    Parameters
    ----------
    dt
        Datetime (may be naive)

    Returns
    -------
    datetime
        Timezone-aware UTC datetime
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_utc_iso8601(dt: datetime) -> str:
    """Format datetime as ISO-8601 UTC string.

    Always converts to UTC before formatting.

    Parameters
    ----------
    dt
        Datetime to format (with or without timezone)

    Returns
    -------
    str
        ISO-8601 UTC string (e.g., "2023-01-01T10:00:00+00:00")

    Example
    -------
    >>> dt = datetime(2023, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
    >>> format_utc_iso8601(dt)
    '2023-01-01T10:00:00+00:00'
    """
    return ensure_utc(dt).isoformat()


def parse_utc_iso8601(iso_string: str) -> datetime:
    """Parse ISO-8601 string to UTC datetime.

    Parameters
    ----------
    iso_string
        ISO-8601 formatted string; a trailing 'Z' is accepted and strings
        without an offset are read as UTC

    Returns
    -------
    datetime
        Datetime in UTC

    Raises
    ------
    ValueError
        If string is not valid ISO-8601

    Example
    -------
    >>> dt = parse_utc_iso8601("2023-01-01T14:30:00+02:00")
    >>> dt.hour
    12
    """
    iso_string = iso_string.strip().replace("Z", "+00:00")
    return ensure_utc(datetime.fromisoformat(iso_string))


def to_microseconds(dt: datetime) -> int:
    """Encode an instant as integer microseconds since the Unix epoch."""
    delta = ensure_utc(dt) - EPOCH_UTC
    return (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds


def from_microseconds(value: int) -> datetime:
    """Decode integer microseconds since the Unix epoch to aware UTC."""
    return EPOCH_UTC + timedelta(microseconds=value)
