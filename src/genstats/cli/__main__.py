#!/usr/bin/env python3
"""Main CLI module for genstats."""

from __future__ import annotations

import sys

import click

from .genstats_config import config_group
from .genstats_records import delete_command, ingest_command, list_command, show_command, total_command
from .genstats_serve import serve_command
from .genstats_stats import breakdown_command, count_command, fields_command, units_command

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
EPILOG = """
Examples:
  genstats ingest .yo-rc.json                  # Store one generator run
  genstats count --days 7 --unit day           # Runs per day over the last week
  genstats count --since 2023-01-01T00:00:00Z --unit month --json
  genstats breakdown databaseType --unit week  # Runs per week and database type
  genstats fields                              # Fields usable with breakdown
  genstats serve --port 8000                   # HTTP service
  genstats config example -o .env              # Example configuration
""".strip()


@click.group(
    context_settings=CONTEXT_SETTINGS,
    help="genstats - generator usage statistics bucketed by time",
    epilog=EPILOG,
)
def cli() -> None:
    """Root CLI command."""


cli.add_command(ingest_command, "ingest")
cli.add_command(list_command, "list")
cli.add_command(show_command, "show")
cli.add_command(delete_command, "delete")
cli.add_command(total_command, "total")
cli.add_command(count_command, "count")
cli.add_command(breakdown_command, "breakdown")
cli.add_command(fields_command, "fields")
cli.add_command(units_command, "units")
cli.add_command(serve_command, "serve")
cli.add_command(config_group, "config")


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    if args is None:
        args = sys.argv[1:]

    try:
        return cli.main(args=list(args), prog_name="genstats", standalone_mode=False) or 0
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        return 1
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except SystemExit as exc:
        return int(exc.code) if exc.code is not None else 0


if __name__ == "__main__":
    sys.exit(main())
