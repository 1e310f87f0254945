"""
Root Typer application for the agency-spine CLI.

Every data command reads the ``DB_*`` settings (or ``--sqlite PATH``),
opens the store for the duration of the command and closes it again.
"""

from __future__ import annotations

import sys
from datetime import datetime, timezone

import typer
from typer import Typer

from agency_spine import __version__
from agency_spine.cli.utils import (
    console,
    open_access,
    output_dict,
    output_rows,
    parse_pairs,
)
from agency_spine.core.logging import configure_logging
from agency_spine.core.settings import get_api_settings

app = Typer(
    name="agency-spine",
    help="agency-spine - table-driven data access for the agency back office.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"agency-spine {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str = typer.Option("WARNING", "--log-level", "-l", help="Log level for store events."),
) -> None:
    """agency-spine CLI - browse tables, run queries, serve the API."""
    # Logs go to stderr so table and JSON output on stdout stay clean.
    configure_logging(level=log_level, json_format=False, stream=sys.stderr)


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Bind address (default: API_HOST)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port (default: API_PORT)"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on changes"),
    log_level: str | None = typer.Option(None, "--log-level", help="Log level (default: API_LOG_LEVEL)"),
) -> None:
    """Start the REST API server."""
    import uvicorn

    settings = get_api_settings()
    host = host or settings.host
    port = port or settings.port
    log_level = (log_level or settings.log_level).lower()

    configure_logging(level=log_level, json_format=settings.log_format == "json")
    console.print(f"[bold green]Starting agency-spine API[/bold green] on {host}:{port}")
    uvicorn.run(
        "agency_spine.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )


@app.command("tables")
def tables(
    sqlite: str | None = typer.Option(None, "--sqlite", help="Use this sqlite file instead of DB_* settings"),
    json_out: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """List the tables of the store."""
    with open_access(sqlite) as access:
        rows = [{"table_name": name} for name in access.list_resources()]
    output_rows(rows, as_json=json_out, title="Tables")


@app.command("describe")
def describe(
    name: str = typer.Argument(..., help="Table name"),
    sqlite: str | None = typer.Option(None, "--sqlite", help="Use this sqlite file instead of DB_* settings"),
    json_out: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Show the columns of a table."""
    with open_access(sqlite) as access:
        rows = [info.to_dict() for info in access.describe(name)]
    output_rows(rows, as_json=json_out, title=name)


@app.command("list")
def list_rows(
    name: str = typer.Argument(..., help="Table name"),
    filter_: list[str] | None = typer.Option(None, "--filter", "-f", help="field=value (repeatable, ANDed)"),
    order_by: str | None = typer.Option(None, "--order-by", help="Column to sort by"),
    sqlite: str | None = typer.Option(None, "--sqlite", help="Use this sqlite file instead of DB_* settings"),
    json_out: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """List rows of a table with equality filters."""
    with open_access(sqlite) as access:
        rows = access.list(name, parse_pairs(filter_, "--filter"), order_by=order_by)
    output_rows(rows, as_json=json_out, title=name)


@app.command("query")
def query(
    statement: str = typer.Argument(..., help="Statement with @name markers"),
    param: list[str] | None = typer.Option(None, "--param", "-p", help="Positional value (@param0, @param1, ...)"),
    named: list[str] | None = typer.Option(None, "--named", "-n", help="name=value for @name"),
    sqlite: str | None = typer.Option(None, "--sqlite", help="Use this sqlite file instead of DB_* settings"),
    json_out: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Run a parameterized statement."""
    with open_access(sqlite) as access:
        params = parse_pairs(named, "--named") if named else list(param or [])
        rows = access.execute(statement, params)
    output_rows(rows, as_json=json_out, title="Result")


@app.command("health")
def health(
    sqlite: str | None = typer.Option(None, "--sqlite", help="Use this sqlite file instead of DB_* settings"),
    json_out: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Probe store connectivity (exit code 1 when disconnected)."""
    with open_access(sqlite) as access:
        access.store.ping()
        data = {
            "status": "connected",
            "database": access.store.database_name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    output_dict(data, as_json=json_out, title="Health")


if __name__ == "__main__":
    app()
