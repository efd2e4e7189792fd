"""
CLI utility helpers: settings, connection management and output.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.table import Table

from quarry.core.adapters.base import DatabaseAdapter
from quarry.core.connection import connect
from quarry.core.errors import QuarryError
from quarry.core.settings import QuarrySettings

console = Console()
err_console = Console(stderr=True)


# ── Settings / connection helpers ────────────────────────────────────────


def load_settings() -> QuarrySettings:
    return QuarrySettings()


@contextmanager
def open_database(database: str | None = None) -> Iterator[DatabaseAdapter]:
    """Connect to ``database`` (or ``QUARRY_DATABASE_URL``) for one command.

    Any :class:`QuarryError` raised inside the block is printed and turned
    into exit code 1.
    """
    settings = load_settings()
    try:
        db = connect(database or settings.database_url, strict_relations=settings.strict_relations)
    except QuarryError as e:
        fail(e)
    try:
        yield db
    except QuarryError as e:
        fail(e)
    finally:
        db.disconnect()


def fail(error: QuarryError) -> NoReturn:
    """Print ``error`` and exit with code 1."""
    err_console.print(f"[bold red]Error[/bold red] ({type(error).__name__}): {error.message}")
    version = getattr(error.context, "version", None)
    if version:
        err_console.print(f"  version: {version}")
    raise typer.Exit(code=1)


# ── Output helpers ───────────────────────────────────────────────────────


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert dataclass / dict to plain dict."""
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": str(obj)}


def output_list(items: list[Any], *, as_json: bool = False, title: str = "") -> None:
    """Render a list of rows/dataclasses as a table or JSON."""
    if as_json:
        console.print_json(json.dumps([_to_dict(i) for i in items], default=str))
        return
    if not items:
        console.print("[dim]No items.[/dim]")
        return

    rows = [_to_dict(i) for i in items]
    table = Table(title=title or None, show_lines=False)
    for column in rows[0].keys():
        table.add_column(str(column))
    for row in rows:
        table.add_row(*("" if v is None else str(v) for v in row.values()))
    console.print(table)


def output_names(names: list[str], *, verb: str, empty: str, as_json: bool = False) -> None:
    """Print ``verb: name`` per item, or ``empty`` when there are none."""
    if as_json:
        console.print_json(json.dumps(names))
        return
    if not names:
        console.print(f"[dim]{empty}[/dim]")
        return
    for name in names:
        console.print(f"[green]{verb}:[/green] {name}")
