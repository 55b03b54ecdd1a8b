"""Loguru configuration with timing for genstats.

This module provides centralized loguru configuration with:
- Colored console output
- Structured JSON log files with per-component routing
- Context managers and decorators for timing operations

Components: ingest, store, stats, api, cli
"""

from __future__ import annotations

import functools
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from loguru import logger

if TYPE_CHECKING:
    from collections.abc import Generator

__all__ = [
    "COMPONENTS",
    "configure_loguru",
    "get_logger",
    "log_timing",
    "timing_context",
]

F = TypeVar("F", bound=Callable[..., Any])

COMPONENTS = ("ingest", "store", "stats", "api", "cli")


def configure_loguru(
    *,
    log_dir: Path | None = None,
    level: str = "INFO",
    rotation: str = "100 MB",
    retention: str = "10 days",
    compression: str = "zip",
    enable_console: bool = True,
    enable_timing_logs: bool = True,
) -> None:
    """Configure loguru sinks.

    Parameters
    ----------
    log_dir
        Directory for JSONL log files (None = console only)
    level
        Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    rotation
        Log rotation policy (e.g., "100 MB", "1 day")
    retention
        Log retention policy (e.g., "10 days", "1 week")
    compression
        Compression for rotated logs (zip, gz, bz2, xz)
    enable_console
        Enable console output on stderr
    enable_timing_logs
        Write timing records to a separate timing.jsonl

    Example
    -------
    >>> configure_loguru(log_dir=Path("logs"), level="DEBUG")
    """
    logger.remove()

    if enable_console:
        logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[component]}</cyan> | "
            "<level>{message}</level>",
            level=level,
            colorize=True,
            backtrace=True,
            diagnose=False,
            filter=_ensure_component,
        )

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_dir / "genstats.jsonl",
            format="{message}",
            level=level,
            rotation=rotation,
            retention=retention,
            compression=compression,
            serialize=True,
            backtrace=True,
            diagnose=False,
        )

        if enable_timing_logs:
            logger.add(
                log_dir / "timing.jsonl",
                format="{message}",
                level="DEBUG",
                rotation=rotation,
                retention=retention,
                compression=compression,
                serialize=True,
                filter=lambda record: record["extra"].get("timing", False),
            )

        for component in COMPONENTS:
            logger.add(
                log_dir / f"{component}.jsonl",
                format="{message}",
                level=level,
                rotation=rotation,
                retention=retention,
                compression=compression,
                serialize=True,
                filter=lambda record, comp=component: record["extra"].get("component") == comp,
            )

    logger.bind(component="genstats").debug("Loguru configured", log_dir=str(log_dir), level=level)


def _ensure_component(record: dict[str, Any]) -> bool:
    record["extra"].setdefault("component", "genstats")
    return True


def get_logger(component: str = "genstats") -> Any:
    """Get logger instance bound to a component.

    Parameters
    ----------
    component
        Component name (ingest, store, stats, api, cli)

    Returns
    -------
    Logger
        Loguru logger bound to component
    """
    return logger.bind(component=component)


@contextmanager
def timing_context(
    operation: str,
    *,
    component: str = "genstats",
    trace_id: str | None = None,
    **metadata: Any,
) -> Generator[dict[str, Any], None, None]:
    """Context manager for timing operations.

    Parameters
    ----------
    operation
        Name of the operation being timed
    component
        Component name for filtering logs
    trace_id
        Trace ID for correlation
    **metadata
        Additional metadata to log

    Yields
    ------
    dict
        Context dictionary that can be updated with result data

    Example
    -------
    >>> with timing_context("count_by_bucket", component="stats", unit="day") as ctx:
    ...     rows = count_by_bucket(records, after, "day")
    ...     ctx["buckets"] = len(rows)
    """
    start_ns = time.perf_counter_ns()
    context: dict[str, Any] = {}
    bound = logger.bind(component=component, timing=True, operation=operation, trace_id=trace_id)

    bound.debug(f"START: {operation}", phase="start", **metadata)

    try:
        yield context
    finally:
        duration_ns = time.perf_counter_ns() - start_ns
        bound.debug(
            f"END: {operation}",
            phase="end",
            duration_ms=duration_ns / 1_000_000,
            duration_ns=duration_ns,
            **{**metadata, **context},
        )


def log_timing(component: str = "genstats") -> Callable[[F], F]:
    """Decorator for automatic function timing.

    Parameters
    ----------
    component
        Component name for filtering logs

    Example
    -------
    >>> @log_timing(component="store")
    ... def find_created_after(self, after):
    ...     ...
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with timing_context(f"{func.__module__}.{func.__qualname__}", component=component):
                return func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator
