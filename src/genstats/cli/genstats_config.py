"""CLI commands for genstats configuration."""

from __future__ import annotations

from pathlib import Path

import click

from ..config.settings import generate_example_env
from .cli_common import CLIContext, cli_command, handle_cli_error, handle_cli_success

__all__ = ["config_group"]


@click.group("config", help="Inspect genstats configuration")
def config_group() -> None:
    """Configuration commands."""


@config_group.command("example", help="Print or write an example .env file")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Write to this file")
@cli_command
def example_command(ctx: CLIContext, output: Path | None) -> int:
    cmd = "config.example"
    try:
        if output is None:
            content = generate_example_env()
            return handle_cli_success(ctx, {"path": None, "content": content}, cmd, text=content.rstrip())

        if output.exists() and not ctx.confirm(f"Overwrite {output}?"):
            return handle_cli_success(ctx, {"path": str(output), "written": False}, cmd, text="Aborted")

        content = generate_example_env(output)
        return handle_cli_success(
            ctx,
            {"path": str(output), "written": True, "content": content},
            cmd,
            text=f"✅ Wrote example configuration to {output}",
        )
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd)
