"""
Shared pytest fixtures and configuration for quarry tests.

This module provides:
- In-memory SQLite adapters (plain and statement-recording)
- A small users/posts/profiles schema for query and relation tests
- Helpers for writing migration and seeder scripts into ``tmp_path``

Usage:
    Fixtures are auto-discovered by pytest. Use them as function arguments.

    def test_something(db):
        db.table("users").insert({"name": "Ada"})
"""

from __future__ import annotations

import textwrap
from collections.abc import Generator, Sequence
from pathlib import Path
from typing import Any

import pytest

from quarry.core.adapters import ResultSet, SQLiteAdapter


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Adapters
# =============================================================================


class RecordingAdapter(SQLiteAdapter):
    """SQLite adapter that remembers every statement it executes."""

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.statements: list[tuple[str, list[Any]]] = []

    def execute(self, sql: str, bindings: Sequence[Any] = ()) -> ResultSet:
        self.statements.append((sql, list(bindings)))
        return super().execute(sql, bindings)

    def selects(self) -> list[tuple[str, list[Any]]]:
        return [s for s in self.statements if s[0].startswith("SELECT")]

    def reset(self) -> None:
        self.statements.clear()


@pytest.fixture()
def db() -> Generator[SQLiteAdapter, None, None]:
    """Connected in-memory SQLite adapter."""
    adapter = SQLiteAdapter()
    adapter.connect()
    yield adapter
    adapter.disconnect()


@pytest.fixture()
def recording_db() -> Generator[RecordingAdapter, None, None]:
    """In-memory SQLite adapter that records executed statements."""
    adapter = RecordingAdapter()
    adapter.connect()
    yield adapter
    adapter.disconnect()


# =============================================================================
# Sample schema
# =============================================================================

SCHEMA = [
    "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL, email TEXT, "
    "status INTEGER DEFAULT 1, age INTEGER)",
    "CREATE TABLE posts (id INTEGER PRIMARY KEY, user_id INTEGER, title TEXT NOT NULL)",
    "CREATE TABLE profiles (id INTEGER PRIMARY KEY, user_id INTEGER, bio TEXT)",
]


def create_schema(adapter: SQLiteAdapter) -> None:
    for statement in SCHEMA:
        adapter.execute(statement)


@pytest.fixture()
def users_db(db: SQLiteAdapter) -> SQLiteAdapter:
    """``db`` with users/posts/profiles tables and a few users."""
    create_schema(db)
    db.table("users").insert_many(
        [
            {"id": 1, "name": "Ada", "email": "ada@example.com", "status": 1, "age": 36},
            {"id": 2, "name": "Brian", "email": "brian@example.com", "status": 0, "age": 41},
            {"id": 3, "name": "Carmen", "email": None, "status": 1, "age": 28},
            {"id": 4, "name": "Dmitri", "email": "dmitri@example.org", "status": 1, "age": 52},
        ]
    )
    return db


# =============================================================================
# Script helpers
# =============================================================================


def write_script(directory: Path, name: str, body: str) -> Path:
    """Write a dedented ``.py`` script and return its path."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{name}.py"
    path.write_text(textwrap.dedent(body), encoding="utf-8")
    return path


def migration_source(up_sql: str, down_sql: str, class_name: str = "Step") -> str:
    """Source of a migration script running one statement each way."""
    return f'''
from quarry.core.migrations import Migration


class {class_name}(Migration):
    def up(self):
        self.db.execute({up_sql!r})

    def down(self):
        self.db.execute({down_sql!r})
'''


@pytest.fixture()
def migrations_dir(tmp_path: Path) -> Path:
    d = tmp_path / "migrations"
    d.mkdir()
    return d


@pytest.fixture()
def seeders_dir(tmp_path: Path) -> Path:
    d = tmp_path / "seeders"
    d.mkdir()
    return d
