"""Connection configuration and result types."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from urllib.parse import parse_qsl, unquote, urlsplit

from quarry.core.errors import ConnectionFailure

Row = dict[str, Any]
"""A fetched row: column name -> scalar value, in column order."""


class DatabaseType(str, Enum):
    """Supported database drivers."""

    SQLITE = "sqlite"
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"


_DEFAULT_PORTS = {
    DatabaseType.MYSQL: 3306,
    DatabaseType.POSTGRESQL: 5432,
}

_SCHEME_ALIASES = {
    "sqlite": DatabaseType.SQLITE,
    "mysql": DatabaseType.MYSQL,
    "mariadb": DatabaseType.MYSQL,
    "postgresql": DatabaseType.POSTGRESQL,
    "postgres": DatabaseType.POSTGRESQL,
}


@dataclass(frozen=True)
class ConnectionConfig:
    """
    Connection parameters, immutable once the adapter is created.

    Different fields are used by different drivers: SQLite only reads
    ``path``; MySQL and PostgreSQL read the network fields.
    """

    driver: DatabaseType = DatabaseType.SQLITE

    # SQLite
    path: str = ":memory:"

    # MySQL / PostgreSQL
    host: str = "localhost"
    port: int | None = None
    database: str = ""
    username: str | None = None
    password: str | None = None
    charset: str = "utf8mb4"

    connect_timeout: int = 10

    # Driver-specific extras, passed through to the driver's connect()
    options: dict[str, Any] = field(default_factory=dict)

    @property
    def effective_port(self) -> int | None:
        return self.port if self.port is not None else _DEFAULT_PORTS.get(self.driver)

    @classmethod
    def from_url(cls, url: str | None) -> ConnectionConfig:
        """Parse a database URL.

        Accepted forms::

            None / "memory" / ":memory:"          in-memory SQLite
            sqlite:///relative/or/absolute.db     SQLite file
            ./data/app.db                         SQLite file (bare path)
            mysql://user:pw@host:3306/db?charset=utf8mb4
            postgresql://user:pw@host:5432/db

        Raises:
            ConnectionFailure: malformed DSN (unknown scheme, missing database
                name, bad port).
        """
        if url is None or url in ("", "memory", ":memory:"):
            return cls()

        if url.startswith("sqlite:///"):
            return cls(path=url[len("sqlite:///"):] or ":memory:")

        if url.startswith("sqlite://"):
            return cls(path=url[len("sqlite://"):] or ":memory:")

        if "://" not in url:
            # Bare file path
            return cls(path=url)

        parts = urlsplit(url)
        scheme = parts.scheme.split("+", 1)[0].lower()
        driver = _SCHEME_ALIASES.get(scheme)
        if driver is None:
            raise ConnectionFailure(
                f"Unsupported database URL scheme {parts.scheme!r}. "
                f"Supported: {sorted(_SCHEME_ALIASES)}"
            )

        database = parts.path.lstrip("/")
        if not database:
            raise ConnectionFailure(f"Database name missing from URL {_redact(url)!r}")

        query = dict(parse_qsl(parts.query))
        charset = query.pop("charset", "utf8mb4")
        try:
            port = parts.port
        except ValueError as e:
            raise ConnectionFailure(f"Invalid port in URL {_redact(url)!r}", cause=e) from e

        return cls(
            driver=driver,
            host=parts.hostname or "localhost",
            port=port,
            database=database,
            username=unquote(parts.username) if parts.username else None,
            password=unquote(parts.password) if parts.password else None,
            charset=charset,
            options=query,
        )

    def __repr__(self) -> str:
        if self.driver is DatabaseType.SQLITE:
            return f"ConnectionConfig(driver='sqlite', path={self.path!r})"
        return (
            f"ConnectionConfig(driver={self.driver.value!r}, host={self.host!r}, "
            f"port={self.effective_port}, database={self.database!r}, "
            f"username={self.username!r})"
        )


def _redact(url: str) -> str:
    parts = urlsplit(url)
    if parts.password:
        return url.replace(f":{parts.password}@", ":***@", 1)
    return url


@dataclass(frozen=True)
class ResultSet:
    """Rows returned by one executed statement.

    ``rows`` is empty for statements that return nothing; ``rowcount`` and
    ``lastrowid`` mirror the driver cursor.
    """

    rows: list[Row] = field(default_factory=list)
    rowcount: int = -1
    lastrowid: Any = None

    def __iter__(self) -> Iterator[Row]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def first(self) -> Row | None:
        return self.rows[0] if self.rows else None

    def scalar(self) -> Any:
        """First column of the first row, or None."""
        row = self.first()
        if row is None:
            return None
        return next(iter(row.values()), None)


__all__ = [
    "Row",
    "DatabaseType",
    "ConnectionConfig",
    "ResultSet",
]
