"""CLI commands for bucketed usage statistics."""

from __future__ import annotations

import click

from ..config.settings import get_settings
from ..core.aggregator import CountResult, FieldDistributionResult
from ..core.fields import FieldSelector
from ..core.granularity import GranularityUnit
from ..core.time import format_utc_iso8601
from .cli_common import CLIContext, cli_command, handle_cli_error, handle_cli_success, resolve_since

__all__ = ["breakdown_command", "count_command", "fields_command", "units_command"]

UNIT_CHOICES = [unit.value for unit in GranularityUnit]


def window_options(func):
    """Add --since/--days/--unit/--db options."""
    func = click.option("--db", type=click.Path(dir_okay=False), help="SQLite database (default: GENSTATS_DB_PATH)")(func)
    func = click.option(
        "--unit",
        type=click.Choice(UNIT_CHOICES, case_sensitive=False),
        default=None,
        help="Bucket granularity (default: GENSTATS_DEFAULT_UNIT)",
    )(func)
    func = click.option("--days", type=click.IntRange(min=0), default=None, help="Look back N days (default: 30)")(func)
    func = click.option("--since", type=str, default=None, help="Count records created after this ISO-8601 instant")(func)
    return func


def format_counts(rows: list[CountResult]) -> str:
    if not rows:
        return "No records in range"
    width = max(len(row.bucket_start.isoformat()) for row in rows)
    lines = [f"{row.bucket_start.isoformat():<{width}}  {row.count}" for row in rows]
    lines.append(f"{'total':<{width}}  {sum(row.count for row in rows)}")
    return "\n".join(lines)


def format_distribution(rows: list[FieldDistributionResult]) -> str:
    if not rows:
        return "No records in range"
    lines = []
    for row in rows:
        values = ", ".join(f"{value}={count}" for value, count in sorted(row.values.items()))
        lines.append(f"{row.bucket_start.isoformat()}  {values}")
    return "\n".join(lines)


@click.command("count", help="Count records per time bucket")
@window_options
@cli_command
def count_command(ctx: CLIContext, since: str | None, days: int | None, unit: str | None, db: str | None) -> int:
    """Count records created after the cutoff, per bucket."""
    cmd = "stats.count"
    try:
        after = resolve_since(since, days)
        service = ctx.open_service(db)
        chosen = GranularityUnit.parse(unit or get_settings().default_unit)
        rows = service.get_count(after, chosen)

        meta = {"after": format_utc_iso8601(after), "unit": chosen.value, "total": sum(row.count for row in rows)}
        return handle_cli_success(ctx, [row.to_dict() for row in rows], cmd, meta=meta, text=format_counts(rows))
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd)


@click.command("breakdown", help="Count records per time bucket and field value")
@click.argument("field")
@window_options
@cli_command
def breakdown_command(
    ctx: CLIContext,
    field: str,
    since: str | None,
    days: int | None,
    unit: str | None,
    db: str | None,
) -> int:
    """Count records per bucket and value of FIELD."""
    cmd = "stats.breakdown"
    try:
        selector = FieldSelector.parse(field)
        after = resolve_since(since, days)
        service = ctx.open_service(db)
        chosen = GranularityUnit.parse(unit or get_settings().default_unit)
        rows = service.get_field_count(after, selector, chosen)

        meta = {"after": format_utc_iso8601(after), "unit": chosen.value, "field": selector.value}
        return handle_cli_success(ctx, [row.to_dict() for row in rows], cmd, meta=meta, text=format_distribution(rows))
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd)


@click.command("fields", help="List fields supported by breakdown")
@cli_command
def fields_command(ctx: CLIContext) -> int:
    return handle_cli_success(
        ctx,
        [selector.value for selector in FieldSelector],
        "stats.fields",
        text="\n".join(selector.value for selector in FieldSelector),
    )


@click.command("units", help="List supported granularity units")
@cli_command
def units_command(ctx: CLIContext) -> int:
    return handle_cli_success(ctx, UNIT_CHOICES, "stats.units", text="\n".join(UNIT_CHOICES))
