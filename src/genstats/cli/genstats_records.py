"""CLI commands for managing usage records."""

from __future__ import annotations

from pathlib import Path

import click

from ..core.records import Record
from ..core.time import parse_utc_iso8601
from ..storage import RecordNotFoundError
from .cli_common import CLIContext, cli_command, handle_cli_error, handle_cli_success

__all__ = ["delete_command", "ingest_command", "list_command", "show_command", "total_command"]

db_option = click.option("--db", type=click.Path(dir_okay=False), help="SQLite database (default: GENSTATS_DB_PATH)")


def format_record(record: Record) -> str:
    lines = [f"id: {record.id}", f"created_at: {record.created_at.isoformat()}"]
    lines.extend(f"{name}: {value}" for name, value in sorted(record.fields.items()))
    if record.languages:
        lines.append(f"languages: {', '.join(record.languages)}")
    return "\n".join(lines)


@click.command("ingest", help="Ingest a generator configuration (.yo-rc.json)")
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--created-at", type=str, default=None, help="Creation instant (ISO-8601, default: now)")
@db_option
@cli_command
def ingest_command(ctx: CLIContext, config_file: Path, created_at: str | None, db: str | None) -> int:
    cmd = "records.ingest"
    try:
        created = None
        if created_at:
            try:
                created = parse_utc_iso8601(created_at)
            except ValueError as exc:
                raise click.BadParameter(f"invalid ISO-8601 instant: {created_at}", param_hint="--created-at") from exc

        service = ctx.open_service(db)
        record = service.ingest(config_file.read_text(encoding="utf-8"), created_at=created)
        return handle_cli_success(ctx, record.to_dict(), cmd, text=f"✅ Ingested record {record.id}")
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd)


@click.command("show", help="Show one record")
@click.argument("record_id", type=int)
@db_option
@cli_command
def show_command(ctx: CLIContext, record_id: int, db: str | None) -> int:
    cmd = "records.show"
    try:
        record = ctx.open_service(db).find_one(record_id)
        if record is None:
            raise RecordNotFoundError(record_id)
        return handle_cli_success(ctx, record.to_dict(), cmd, text=format_record(record))
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd)


@click.command("list", help="List stored records")
@db_option
@cli_command
def list_command(ctx: CLIContext, db: str | None) -> int:
    cmd = "records.list"
    try:
        records = ctx.open_service(db).find_all()
        text = "\n".join(
            f"{record.id}  {record.created_at.isoformat()}  {record.get('jhipsterVersion') or '-'}" for record in records
        )
        return handle_cli_success(ctx, [record.to_dict() for record in records], cmd, text=text or "No records")
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd)


@click.command("delete", help="Delete one record")
@click.argument("record_id", type=int)
@db_option
@cli_command
def delete_command(ctx: CLIContext, record_id: int, db: str | None) -> int:
    cmd = "records.delete"
    try:
        service = ctx.open_service(db)
        if not ctx.confirm(f"Delete record {record_id}?"):
            return handle_cli_success(ctx, {"deleted": False, "id": record_id}, cmd, text="Aborted")
        if not service.delete(record_id):
            raise RecordNotFoundError(record_id)
        return handle_cli_success(ctx, {"deleted": True, "id": record_id}, cmd, text=f"✅ Deleted record {record_id}")
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd)


@click.command("total", help="Count all stored records")
@db_option
@cli_command
def total_command(ctx: CLIContext, db: str | None) -> int:
    cmd = "records.total"
    try:
        total = ctx.open_service(db).count_all()
        return handle_cli_success(ctx, {"total": total}, cmd, text=str(total))
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd)
