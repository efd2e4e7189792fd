"""PostgreSQL database adapter.

Uses ``psycopg2``; statements are rewritten from ``?`` to ``%s``.
Inserts built by the query builder carry a ``RETURNING`` clause so
:meth:`insert_and_return_id` can report the generated key.

Install the driver::

    pip install psycopg2-binary
    # or:  pip install quarry-db[postgresql]
"""

from __future__ import annotations

from typing import Any

from quarry.core.errors import ConfigurationError, ConnectionFailure
from quarry.core.logging import get_logger

from .base import DatabaseAdapter, qmark_to_format
from .types import ConnectionConfig

logger = get_logger(__name__)


class PostgreSQLAdapter(DatabaseAdapter):
    """
    PostgreSQL database adapter over a single psycopg2 connection.

    The connection runs in autocommit mode; ``BEGIN`` / ``COMMIT`` /
    ``ROLLBACK`` are issued as statements for explicit transactions.
    """

    def __init__(self, config: ConnectionConfig):
        super().__init__(config)
        self.driver_errors: tuple[type[BaseException], ...] = ()

    def connect(self) -> None:
        """Connect to PostgreSQL database."""
        try:
            import psycopg2
        except ImportError:
            raise ConfigurationError(
                "psycopg2 is required for PostgreSQL. Install with: pip install psycopg2-binary"
            ) from None

        cfg = self._config
        try:
            conn: Any = psycopg2.connect(
                host=cfg.host,
                port=cfg.effective_port,
                dbname=cfg.database,
                user=cfg.username,
                password=cfg.password,
                connect_timeout=cfg.connect_timeout,
                **cfg.options,
            )
            conn.autocommit = True
        except psycopg2.Error as e:
            raise ConnectionFailure(
                f"Failed to connect to PostgreSQL: {e}",
                cause=e,
            ).with_context(host=cfg.host, database=cfg.database) from e

        self.driver_errors = (psycopg2.Error,)
        self._conn = conn
        logger.debug("database.connected", driver="postgresql", host=cfg.host, database=cfg.database)

    def prepare(self, sql: str) -> str:
        return qmark_to_format(sql)


__all__ = [
    "PostgreSQLAdapter",
]
