"""
CLI utility helpers -- output formatting and store management.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from agency_spine.core.errors import AgencyError, ValidationError
from agency_spine.core.settings import StoreSettings, get_store_settings
from agency_spine.core.store import StoreClient
from agency_spine.resources.protocol import ResourceAccess

console = Console()
err_console = Console(stderr=True)


# ── Store helper ─────────────────────────────────────────────────────────


def store_settings(sqlite: str | None = None) -> StoreSettings:
    """``DB_*`` settings, or a sqlite file when ``--sqlite`` is given."""
    if sqlite:
        return StoreSettings(backend="sqlite", path=sqlite)
    return get_store_settings()


@contextmanager
def open_access(sqlite: str | None = None) -> Iterator[ResourceAccess]:
    """Open the store for one command and close it afterwards.

    Typed errors are printed and turned into exit code 1.
    """
    try:
        with StoreClient(store_settings(sqlite)) as store:
            yield ResourceAccess(store)
    except AgencyError as e:
        fail(e)


def fail(error: AgencyError) -> None:
    err_console.print(f"[bold red]Error[/bold red] ({error.__class__.__name__}): {error.message}")
    raise typer.Exit(code=1)


def parse_pairs(pairs: list[str] | None, option: str) -> dict[str, str]:
    """``["a=1", "b=x"]`` -> ``{"a": "1", "b": "x"}``."""
    parsed: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValidationError(f"{option} expects key=value, got {pair!r}", field=option)
        parsed[key] = value
    return parsed


# ── Output helpers ───────────────────────────────────────────────────────


def output_rows(rows: list[dict[str, Any]], *, as_json: bool = False, title: str = "") -> None:
    """Render rows as a Rich table or JSON."""
    if as_json:
        console.print_json(json.dumps(rows, default=str))
        return
    if not rows:
        console.print("[dim]No rows.[/dim]")
        return

    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in rows[0]:
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*("" if v is None else str(v) for v in row.values()))
    console.print(table)


def output_dict(data: dict[str, Any], *, as_json: bool = False, title: str = "") -> None:
    """Render a single dict as key-value pairs."""
    if as_json:
        console.print_json(json.dumps(data, default=str))
        return
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {v}")
