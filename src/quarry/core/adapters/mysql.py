"""MySQL database adapter.

Uses ``mysql.connector`` from the ``mysql-connector-python`` package.
MySQL uses **format** (``%s``) placeholder style, so statements are
rewritten from ``?`` before they reach the driver.

Install the driver::

    pip install mysql-connector-python
    # or:  pip install quarry-db[mysql]

The driver is imported at ``connect()`` time: without it a clear
:class:`~quarry.core.errors.ConfigurationError` is raised.
"""

from __future__ import annotations

from typing import Any

from quarry.core.errors import ConfigurationError, ConnectionFailure
from quarry.core.logging import get_logger

from .base import DatabaseAdapter, qmark_to_format
from .types import ConnectionConfig

logger = get_logger(__name__)


class MySQLAdapter(DatabaseAdapter):
    """MySQL / MariaDB adapter over a single ``mysql.connector`` connection.

    The connection runs with ``autocommit=True``; explicit transactions use
    the driver's ``start_transaction()``.
    """

    def __init__(self, config: ConnectionConfig):
        super().__init__(config)
        self.driver_errors: tuple[type[BaseException], ...] = ()

    def connect(self) -> None:
        """Connect to MySQL database."""
        try:
            import mysql.connector
        except ImportError:
            raise ConfigurationError(
                "mysql-connector-python is required for MySQL. "
                "Install with: pip install mysql-connector-python"
            ) from None

        cfg = self._config
        try:
            conn: Any = mysql.connector.connect(
                host=cfg.host,
                port=cfg.effective_port,
                database=cfg.database,
                user=cfg.username,
                password=cfg.password,
                charset=cfg.charset,
                connection_timeout=cfg.connect_timeout,
                autocommit=True,
                **cfg.options,
            )
        except mysql.connector.Error as e:
            raise ConnectionFailure(
                f"Failed to connect to MySQL: {e}",
                cause=e,
            ).with_context(host=cfg.host, database=cfg.database) from e

        self.driver_errors = (mysql.connector.Error,)
        self._conn = conn
        logger.debug("database.connected", driver="mysql", host=cfg.host, database=cfg.database)

    def prepare(self, sql: str) -> str:
        return qmark_to_format(sql)

    def begin_transaction(self) -> None:
        self.get_connection().start_transaction()  # type: ignore[attr-defined]

    def commit(self) -> None:
        self.get_connection().commit()

    def rollback(self) -> None:
        self.get_connection().rollback()


__all__ = [
    "MySQLAdapter",
]
