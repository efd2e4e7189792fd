"""Database adapter base class: the connection facade.

Manifesto:
    One adapter owns one driver connection. Everything that touches the
    database goes through :meth:`DatabaseAdapter.execute`, which always
    sends the statement and its bindings separately, so values never end
    up in SQL text.

Features:
    - Abstract ``connect()`` / ``disconnect()`` per driver
    - ``execute(sql, bindings)`` returning a :class:`ResultSet`
    - ``insert_and_return_id()`` for generated primary keys
    - Explicit ``begin_transaction()`` / ``commit()`` / ``rollback()``
      plus a ``transaction()`` context manager
    - ``table(name)`` / ``new_query_builder(name)`` factories for fresh builders
    - Context-manager protocol for connection lifecycle

Guardrails:
    ❌ Sharing one adapter between threads without external locking
    ✅ One adapter per thread of control
    ❌ Calling ``begin_transaction()`` twice; transactions do not nest
    ✅ ``with db.transaction(): ...``

Tags:
    quarry, database, abstract-base, adapter-pattern, facade
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from quarry.core.errors import QueryFailure
from quarry.core.logging import get_logger
from quarry.core.protocols import Connection, Cursor
from quarry.core.query.grammar import Grammar, get_grammar

from .types import ConnectionConfig, DatabaseType, ResultSet, Row

if TYPE_CHECKING:
    from quarry.core.query.builder import QueryBuilder

logger = get_logger(__name__)


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    Subclasses open the driver connection in :meth:`connect` and list the
    driver's exception base classes in ``driver_errors`` so that
    :meth:`execute` can turn them into :class:`QueryFailure`.
    """

    driver_errors: tuple[type[BaseException], ...] = ()

    def __init__(self, config: ConnectionConfig):
        self._config = config
        # Default for builders created by table(); with_(strict=...) overrides
        self.strict_relations = False
        self._conn: Connection | None = None
        self._grammar: Grammar = get_grammar(config.driver.value)

    # -- Introspection -----------------------------------------------------

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    @property
    def driver(self) -> DatabaseType:
        return self._config.driver

    @property
    def grammar(self) -> Grammar:
        """Grammar used by builders created from this adapter."""
        return self._grammar

    def set_grammar(self, grammar: Grammar) -> None:
        """Swap the grammar (e.g. a custom dialect)."""
        self._grammar = grammar

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    # -- Lifecycle ---------------------------------------------------------

    @abstractmethod
    def connect(self) -> None:
        """Open the driver connection.

        Raises:
            ConnectionFailure: Host, credentials, or SQLite path rejected.
            ConfigurationError: The driver package is not installed.
        """
        ...

    def disconnect(self) -> None:
        """Close the driver connection (idempotent)."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.debug("database.disconnected", driver=self.driver.value)

    def get_connection(self) -> Connection:
        """Return the open driver connection, connecting on first use."""
        if self._conn is None:
            self.connect()
        assert self._conn is not None
        return self._conn

    # -- Execution ---------------------------------------------------------

    def prepare(self, sql: str) -> str:
        """Translate ``?`` placeholders to the driver's paramstyle."""
        return sql

    def execute(self, sql: str, bindings: Sequence[Any] = ()) -> ResultSet:
        """Execute one parametrized statement.

        Raises:
            QueryFailure: The engine rejected the statement (syntax,
                constraint, type mismatch, binding count).
        """
        params = tuple(bindings)
        cursor = self.get_connection().cursor()
        try:
            if params:
                cursor.execute(self.prepare(sql), params)
            else:
                cursor.execute(sql)
            rows = self._fetch_rows(cursor)
            result = ResultSet(rows=rows, rowcount=cursor.rowcount, lastrowid=cursor.lastrowid)
        except self.driver_errors as e:
            logger.debug("query.failed", sql=sql, bindings=len(params), error=str(e))
            raise QueryFailure(str(e), sql=sql, bindings=params, cause=e) from e
        finally:
            cursor.close()

        logger.debug("query.executed", sql=sql, bindings=len(params), rows=len(rows))
        return result

    def insert_and_return_id(self, sql: str, bindings: Sequence[Any] = ()) -> Any:
        """Execute an INSERT and return the generated primary key."""
        result = self.execute(sql, bindings)
        if result.rows:
            # RETURNING clause
            return result.scalar()
        return result.lastrowid

    @staticmethod
    def _fetch_rows(cursor: Cursor) -> list[Row]:
        if not cursor.description:
            return []
        columns = [desc[0] for desc in cursor.description]
        return [dict(zip(columns, row, strict=False)) for row in cursor.fetchall()]

    # -- Transactions ------------------------------------------------------

    def begin_transaction(self) -> None:
        """Start a transaction; the connection is in autocommit mode otherwise."""
        self.execute("BEGIN")

    def commit(self) -> None:
        self.execute("COMMIT")

    def rollback(self) -> None:
        self.execute("ROLLBACK")

    @contextmanager
    def transaction(self) -> Iterator[DatabaseAdapter]:
        """Commit on success, roll back and re-raise on error."""
        self.begin_transaction()
        try:
            yield self
        except BaseException:
            self.rollback()
            raise
        self.commit()

    # -- Query builders ----------------------------------------------------

    def table(self, table: str) -> QueryBuilder:
        """Begin a fluent query on ``table`` (always a fresh builder)."""
        from quarry.core.query.builder import QueryBuilder

        return QueryBuilder(self, table)

    def new_query_builder(self, table: str) -> QueryBuilder:
        """Alias of :meth:`table`."""
        return self.table(table)

    # -- Context manager ---------------------------------------------------

    def __enter__(self) -> DatabaseAdapter:
        self.get_connection()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()

    def __repr__(self) -> str:
        state = "connected" if self.is_connected else "disconnected"
        return f"{type(self).__name__}({self._config!r}, {state})"


def qmark_to_format(sql: str) -> str:
    """Rewrite ``?`` placeholders to ``%s`` for format-paramstyle drivers.

    ``?`` inside quoted literals or identifiers is left alone; literal
    ``%`` is doubled because the driver applies %-formatting to the whole
    statement when parameters are passed.
    """
    out: list[str] = []
    quote: str | None = None
    for ch in sql:
        if quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"', "`"):
            quote = ch
        elif ch == "?":
            out.append("%s")
            continue
        out.append("%%" if ch == "%" else ch)
    return "".join(out)


__all__ = [
    "DatabaseAdapter",
    "qmark_to_format",
]
