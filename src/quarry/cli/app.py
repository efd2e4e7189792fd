"""
Root Typer application for the quarry CLI.

Commands work against ``--database`` or ``QUARRY_DATABASE_URL`` and the
script directories from ``--path`` or ``QUARRY_MIGRATIONS_DIR`` /
``QUARRY_SEEDERS_DIR``.
"""

from __future__ import annotations

from pathlib import Path

import typer
from typer import Typer

from quarry.cli.utils import (
    console,
    fail,
    load_settings,
    open_database,
    output_list,
    output_names,
)
from quarry.core.errors import QuarryError
from quarry.core.logging import bind_context, clear_context, configure_logging

app = Typer(
    name="quarry",
    help="quarry: migrations, seeders and queries for SQLite, MySQL and PostgreSQL.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("quarry-db")
        except PackageNotFoundError:
            v = "0.1.0"
        typer.echo(f"quarry {v}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every statement."),
) -> None:
    """quarry CLI: manage schema migrations and seed data."""
    settings = load_settings()
    configure_logging(
        level="DEBUG" if verbose else settings.log_level,
        json_format=settings.log_json,
    )
    clear_context()
    bind_context(command=ctx.invoked_subcommand)


# ── Commands ─────────────────────────────────────────────────────────────

DatabaseOption = typer.Option(None, "--database", "-d", help="Database URL or SQLite path")
PathOption = typer.Option(None, "--path", "-p", help="Script directory")
JsonOption = typer.Option(False, "--json", help="JSON output")


@app.command()
def migrate(
    database: str | None = DatabaseOption,
    path: Path | None = PathOption,
    json_out: bool = JsonOption,
) -> None:
    """Apply pending migrations in filename order."""
    from quarry.core.migrations import MigrationRunner

    directory = path or load_settings().migrations_dir
    with open_database(database) as db:
        applied = MigrationRunner(db).migrate(directory)
    output_names(applied, verb="Migrated", empty="Nothing to migrate.", as_json=json_out)


@app.command()
def rollback(
    database: str | None = DatabaseOption,
    path: Path | None = PathOption,
    steps: int = typer.Option(1, "--steps", "-s", min=1, help="Number of migrations to roll back"),
    json_out: bool = JsonOption,
) -> None:
    """Roll back the most recently applied migration(s)."""
    from quarry.core.migrations import MigrationRunner

    directory = path or load_settings().migrations_dir
    rolled_back: list[str] = []
    with open_database(database) as db:
        runner = MigrationRunner(db)
        for _ in range(steps):
            version = runner.rollback(directory)
            if version is None:
                break
            rolled_back.append(version)
    output_names(rolled_back, verb="Rolled back", empty="Nothing to roll back.", as_json=json_out)


@app.command()
def status(
    database: str | None = DatabaseOption,
    path: Path | None = PathOption,
    json_out: bool = JsonOption,
) -> None:
    """Show applied and pending migrations."""
    from quarry.core.migrations import MigrationRunner

    directory = path or load_settings().migrations_dir
    with open_database(database) as db:
        states = MigrationRunner(db).status(directory)

    rows = [
        {
            "version": s.version,
            "status": "missing" if s.missing else ("applied" if s.applied else "pending"),
            "applied_at": s.applied_at,
        }
        for s in states
    ]
    output_list(rows, as_json=json_out, title="Migrations")


@app.command()
def seed(
    database: str | None = DatabaseOption,
    path: Path | None = PathOption,
    json_out: bool = JsonOption,
) -> None:
    """Run every seeder in filename order."""
    from quarry.core.seeders import SeederRunner

    directory = path or load_settings().seeders_dir
    with open_database(database) as db:
        ran = SeederRunner(db).seed(directory)
    output_names(ran, verb="Seeded", empty="No seeders found.", as_json=json_out)


@app.command("make-migration")
def make_migration_cmd(
    name: str = typer.Argument(..., help="Migration name, e.g. AddUsersIndexes"),
    path: Path | None = PathOption,
) -> None:
    """Create a new, empty migration file."""
    from quarry.core.migrations import make_migration

    directory = path or load_settings().migrations_dir
    try:
        created = make_migration(directory, name)
    except QuarryError as e:
        fail(e)
    console.print(f"[green]Created migration:[/green] {created}")


if __name__ == "__main__":  # pragma: no cover
    app()
