"""CLI command to start the genstats HTTP service.

Usage:
    python -m genstats.cli serve --port 8000
"""

from __future__ import annotations

import click

from ..api.service import create_stats_app
from ..config.settings import get_settings
from .cli_common import CLIContext, cli_command, handle_cli_error

__all__ = ["serve_command"]


@click.command("serve", help="Start the HTTP service")
@click.option("--host", default=None, help="Host to bind to (default: GENSTATS_API_HOST)")
@click.option("--port", default=None, type=int, help="Port to bind to (default: GENSTATS_API_PORT)")
@click.option("--db", type=click.Path(dir_okay=False), help="SQLite database (default: GENSTATS_DB_PATH)")
@cli_command
def serve_command(ctx: CLIContext, host: str | None, port: int | None, db: str | None) -> int:
    cmd = "serve"
    try:
        import uvicorn

        service = ctx.open_service(db)
        settings = get_settings()
        host = host or settings.api_host
        port = port or settings.api_port

        click.echo(f"Starting genstats on {host}:{port} (tz={settings.reference_timezone})...")
        app = create_stats_app(service, default_unit=settings.default_unit)
        uvicorn.run(app, host=host, port=port, log_level=settings.log_level.lower())
        return 0
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd)
