"""Core components of genstats: bucketing, records and aggregation."""

from .aggregator import CountResult, FieldDistributionResult, count_by_bucket, count_by_bucket_and_field
from .fields import FieldSelector, UnsupportedFieldError, coerce_field_value
from .granularity import (
    Bucket,
    BucketRangeError,
    GranularityUnit,
    UnsupportedUnitError,
    from_absolute_moment,
    to_absolute_moment,
    truncate,
)
from .records import FieldValue, Record
from .time import (
    TimeConfig,
    ensure_utc,
    format_utc_iso8601,
    get_current_utc,
    get_reference_timezone,
    parse_utc_iso8601,
    set_reference_timezone,
)

__all__ = [
    # Bucketing
    "Bucket",
    "BucketRangeError",
    "GranularityUnit",
    "UnsupportedUnitError",
    "from_absolute_moment",
    "to_absolute_moment",
    "truncate",
    # Fields
    "FieldSelector",
    "UnsupportedFieldError",
    "coerce_field_value",
    # Records
    "FieldValue",
    "Record",
    # Aggregation
    "CountResult",
    "FieldDistributionResult",
    "count_by_bucket",
    "count_by_bucket_and_field",
    # Time
    "TimeConfig",
    "ensure_utc",
    "format_utc_iso8601",
    "get_current_utc",
    "get_reference_timezone",
    "parse_utc_iso8601",
    "set_reference_timezone",
]
