"""Observability module for genstats.

Provides loguru logging and timing instrumentation.
"""

from .loguru_config import COMPONENTS, configure_loguru, get_logger, log_timing, timing_context

__all__ = [
    "COMPONENTS",
    "configure_loguru",
    "get_logger",
    "log_timing",
    "timing_context",
]
