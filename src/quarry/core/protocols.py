"""
Structural protocols for the DB-API objects quarry drives.

Adapters wrap a driver connection (``sqlite3``, ``mysql.connector``,
``psycopg2``); the rest of quarry only sees these shapes, so any PEP 249
driver (or a test double) that matches them works.

Architecture:
    ::

        protocols.py
        ├── Cursor        — execute / fetchall / description / rowcount / lastrowid
        └── Connection    — cursor / commit / rollback / close

Guardrails:
    ❌ DON'T: Import driver modules outside ``quarry.core.adapters``
    ✅ DO: Type against these protocols

Tags:
    protocol, connection, cursor, dbapi, quarry
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Cursor(Protocol):
    """Minimal PEP 249 cursor."""

    @property
    def description(self) -> Sequence[Sequence[Any]] | None:
        """Column metadata of the last SELECT (first item is the name)."""
        ...

    @property
    def rowcount(self) -> int:
        """Rows affected by the last DML statement (-1 when unknown)."""
        ...

    @property
    def lastrowid(self) -> Any:
        """Generated key of the last INSERT, where the driver reports it."""
        ...

    def execute(self, sql: str, params: Sequence[Any] = ()) -> Any:
        """Execute one statement with positional parameters."""
        ...

    def fetchall(self) -> list[Any]:
        """Fetch all remaining rows."""
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class Connection(Protocol):
    """Minimal PEP 249 connection."""

    def cursor(self) -> Cursor:
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...

    def close(self) -> None:
        ...


__all__ = [
    "Connection",
    "Cursor",
]
