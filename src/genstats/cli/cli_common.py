"""Common CLI utilities: JSON output, stable exit codes and shared options."""

from __future__ import annotations

import functools
import json
import traceback
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timedelta
from enum import IntEnum
from pathlib import Path
from typing import Any

import click

from ..config.settings import ConfigError, load_settings
from ..core.fields import UnsupportedFieldError
from ..core.granularity import BucketRangeError, UnsupportedUnitError
from ..core.time import get_current_utc, parse_utc_iso8601
from ..ingestion import IngestionError
from ..observability import configure_loguru, get_logger
from ..service import UsageStatsService, create_stats_service
from ..storage import RecordNotFoundError, StoreError

DEFAULT_DB_PATH = Path("artifacts") / "genstats.db"
DEFAULT_LOOKBACK_DAYS = 30

log = get_logger("cli")


class ExitCode(IntEnum):
    """Stable exit codes for CLI commands."""

    SUCCESS = 0  # Successful execution
    VALIDATION_ERROR = 2  # Bad unit, field, payload or option
    NOT_FOUND = 3  # Record id not in store
    IO_ERROR = 5  # Store or file I/O error
    CONFIG_ERROR = 6  # Configuration error
    UNKNOWN_ERROR = 7  # Unknown/unexpected error


class CLIContext:
    """Context for CLI execution with JSON output and trace ID."""

    def __init__(
        self,
        json_output: bool = False,
        yes: bool = False,
        trace_id: str | None = None,
        verbose: bool = False,
    ):
        """Initialize CLI context.

        Args:
            json_output: Enable JSON output mode
            yes: Non-interactive mode (assume yes)
            trace_id: Trace ID for correlation
            verbose: Verbose output
        """
        self.json_output = json_output
        self.yes = yes
        self.trace_id = trace_id or f"trace-{uuid.uuid4().hex[:12]}"
        self.verbose = verbose

    def output(
        self,
        data: Any,
        status: str = "success",
        error: str | None = None,
        meta: dict[str, Any] | None = None,
        text: str | None = None,
    ) -> None:
        """Output result in appropriate format.

        Args:
            data: Result data
            status: Status ("success", "error")
            error: Error message if status is error
            meta: Additional metadata
            text: Preformatted human-readable rendering of data
        """
        if self.json_output:
            # JSON mode: print only JSON, no logs
            result: dict[str, Any] = {"status": status, "trace_id": self.trace_id}

            if error:
                result["error"] = error
            else:
                result["data"] = data

            if meta:
                result["meta"] = meta

            click.echo(json.dumps(result, ensure_ascii=False, indent=2))
        elif status == "error":
            click.echo(f"❌ {error}", err=True)
        elif text is not None:
            click.echo(text)
        elif isinstance(data, dict):
            for key, value in data.items():
                click.echo(f"{key}: {value}")
        elif isinstance(data, list):
            for item in data:
                click.echo(f"  - {item}")
        else:
            click.echo(data)

    def confirm(self, message: str) -> bool:
        """Ask for confirmation (or auto-confirm in yes mode).

        Args:
            message: Confirmation message

        Returns:
            True if confirmed, False otherwise
        """
        if self.yes:
            return True

        if self.json_output:
            raise click.ClickException("Cannot confirm in --json mode. Use --yes for non-interactive execution.")

        return click.confirm(message)

    def open_service(self, db: str | None) -> UsageStatsService:
        """Load settings, configure logging and open the stats service.

        Args:
            db: Database path overriding GENSTATS_DB_PATH

        Returns:
            Service bound to the SQLite store
        """
        settings = load_settings()
        configure_loguru(
            log_dir=settings.log_dir,
            level="DEBUG" if self.verbose else settings.log_level,
            enable_console=self.verbose and not self.json_output,
        )

        db_path = Path(db) if db else settings.db_path or DEFAULT_DB_PATH
        log.debug(f"[{self.trace_id}] Opening record store {db_path}")
        return create_stats_service(replace(settings, db_path=db_path))


def cli_command(func: Callable[..., int]) -> Callable[..., int]:
    """Decorator to add common CLI options to commands.

    Adds:
    - --json: JSON output mode
    - --yes: Non-interactive mode
    - --trace-id: Trace ID for correlation
    - --verbose: Verbose output
    """

    @click.option("--json", "json_output", is_flag=True, help="Output as JSON (machine-readable)")
    @click.option("--yes", is_flag=True, help="Non-interactive mode (assume yes)")
    @click.option("--trace-id", type=str, help="Trace ID for correlation")
    @click.option("--verbose", "-v", is_flag=True, help="Verbose output")
    @functools.wraps(func)
    def wrapper(
        json_output: bool,
        yes: bool,
        trace_id: str | None,
        verbose: bool,
        *args: Any,
        **kwargs: Any,
    ) -> int:
        ctx = CLIContext(json_output=json_output, yes=yes, trace_id=trace_id, verbose=verbose)
        return func(ctx, *args, **kwargs)

    return wrapper


def resolve_since(since: str | None, days: int | None) -> datetime:
    """Resolve the exclusive cutoff from --since or --days.

    Args:
        since: ISO-8601 instant
        days: Look back this many days from now

    Returns:
        Cutoff as aware UTC datetime

    Raises:
        click.BadParameter: If both are given or --since does not parse
    """
    if since and days is not None:
        raise click.BadParameter("use either --since or --days, not both")

    if since:
        try:
            return parse_utc_iso8601(since)
        except ValueError as exc:
            raise click.BadParameter(f"invalid ISO-8601 instant: {since}", param_hint="--since") from exc

    return get_current_utc() - timedelta(days=DEFAULT_LOOKBACK_DAYS if days is None else days)


def exit_code_for(exc: Exception) -> ExitCode:
    """Map an exception to its stable exit code."""
    if isinstance(
        exc, (UnsupportedUnitError, UnsupportedFieldError, BucketRangeError, IngestionError, click.ClickException)
    ):
        return ExitCode.VALIDATION_ERROR
    if isinstance(exc, RecordNotFoundError):
        return ExitCode.NOT_FOUND
    if isinstance(exc, ConfigError):
        return ExitCode.CONFIG_ERROR
    if isinstance(exc, (StoreError, OSError)):
        return ExitCode.IO_ERROR
    return ExitCode.UNKNOWN_ERROR


def handle_cli_error(ctx: CLIContext, exc: Exception, cmd: str) -> int:
    """Handle CLI error and return appropriate exit code.

    Args:
        ctx: CLI context
        exc: Exception to handle
        cmd: Command name

    Returns:
        Appropriate exit code
    """
    exit_code = exit_code_for(exc)
    error_msg = exc.format_message() if isinstance(exc, click.ClickException) else str(exc)

    log.bind(trace_id=ctx.trace_id).warning(f"{cmd} failed with exit code {int(exit_code)}: {error_msg}")

    ctx.output(None, status="error", error=error_msg, meta={"exit_code": int(exit_code)})

    if ctx.verbose and not ctx.json_output:
        click.echo("\nTraceback:", err=True)
        click.echo(traceback.format_exc(), err=True)

    return int(exit_code)


def handle_cli_success(
    ctx: CLIContext,
    data: Any,
    cmd: str,
    meta: dict[str, Any] | None = None,
    text: str | None = None,
) -> int:
    """Handle CLI success and return success code.

    Args:
        ctx: CLI context
        data: Success data
        cmd: Command name
        meta: Additional metadata
        text: Human-readable rendering

    Returns:
        Success exit code (0)
    """
    log.bind(trace_id=ctx.trace_id).debug(f"{cmd} succeeded")
    ctx.output(data, status="success", meta=meta, text=text)
    return int(ExitCode.SUCCESS)
