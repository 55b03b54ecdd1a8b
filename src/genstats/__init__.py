"""genstats - generator usage statistics bucketed by time."""

from .core import (
    CountResult,
    FieldDistributionResult,
    FieldSelector,
    GranularityUnit,
    Record,
    count_by_bucket,
    count_by_bucket_and_field,
    truncate,
)
from .service import UsageStatsService, create_stats_service

__version__ = "0.1.0"

__all__ = [
    "CountResult",
    "FieldDistributionResult",
    "FieldSelector",
    "GranularityUnit",
    "Record",
    "UsageStatsService",
    "count_by_bucket",
    "count_by_bucket_and_field",
    "create_stats_service",
    "truncate",
]
