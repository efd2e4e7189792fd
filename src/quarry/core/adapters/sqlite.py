"""SQLite database adapter."""

from __future__ import annotations

import sqlite3

from quarry.core.errors import ConnectionFailure
from quarry.core.logging import get_logger

from .base import DatabaseAdapter
from .types import ConnectionConfig, DatabaseType

logger = get_logger(__name__)


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter.

    Uses the built-in sqlite3 module in autocommit mode
    (``isolation_level=None``); transactions are opened explicitly with
    :meth:`begin_transaction`. Suitable for:
    - Development and testing
    - Single-process applications
    """

    driver_errors = (sqlite3.Error,)

    def __init__(self, config: ConnectionConfig | None = None, *, timeout: float = 5.0):
        config = config or ConnectionConfig()
        if config.driver is not DatabaseType.SQLITE:
            raise ValueError(f"SQLiteAdapter cannot open a {config.driver.value} config")
        super().__init__(config)
        self._timeout = timeout

    def connect(self) -> None:
        """Connect to the SQLite database file (or ``:memory:``)."""
        path = self._config.path or ":memory:"
        uri = path.startswith("file:")

        try:
            conn = sqlite3.connect(
                path,
                timeout=self._timeout,
                isolation_level=None,
                check_same_thread=False,
                uri=uri,
            )
            conn.execute("PRAGMA foreign_keys = ON")
        except sqlite3.Error as e:
            raise ConnectionFailure(
                f"Failed to connect to SQLite: {e}",
                cause=e,
            ).with_context(path=path) from e

        self._conn = conn
        logger.debug("database.connected", driver="sqlite", path=path)

    @property
    def in_transaction(self) -> bool:
        return bool(self._conn is not None and self._conn.in_transaction)


__all__ = [
    "SQLiteAdapter",
]
