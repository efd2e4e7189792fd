"""Connection factory: open a connected adapter from a config or URL.

This is the **single entry point** for opening a database in quarry.
Callers pass a :class:`ConnectionConfig`, a URL string, or nothing (an
in-memory SQLite database) and get back a connected
:class:`~quarry.core.adapters.base.DatabaseAdapter`.

Supported URL schemes
---------------------
==================  ==========================================  ============
Scheme              Example                                     Backend
==================  ==========================================  ============
``memory``          ``memory`` or ``:memory:`` or ``None``       SQLite RAM
``sqlite``          ``sqlite:///path/to/file.db``                SQLite file
``(file path)``     ``./data/app.db``                            SQLite file
``mysql``           ``mysql://user:pw@host:3306/db``             MySQL
``postgresql``      ``postgresql://user:pw@host:5432/db``        PostgreSQL
==================  ==========================================  ============

Usage
-----
::

    from quarry.core.connection import connect

    db = connect("sqlite:///app.db")
    users = db.table("users").where("active", 1).fetch_all()
    db.disconnect()

No pooling, no retry: a failed connect raises
:class:`~quarry.core.errors.ConnectionFailure` immediately.
"""

from __future__ import annotations

from quarry.core.adapters.base import DatabaseAdapter
from quarry.core.adapters.registry import adapter_registry
from quarry.core.adapters.types import ConnectionConfig
from quarry.core.logging import get_logger

logger = get_logger(__name__)


def connect(
    target: ConnectionConfig | str | None = None,
    *,
    strict_relations: bool = False,
) -> DatabaseAdapter:
    """Create and connect the adapter for ``target``.

    Parameters
    ----------
    target:
        A :class:`ConnectionConfig`, a database URL / SQLite path, or
        ``None`` for in-memory SQLite.
    strict_relations:
        Builders from this adapter raise on unknown ``with_()`` relations
        instead of skipping them.

    Raises
    ------
    ConnectionFailure
        Malformed DSN, or the engine refused the connection.
    ConfigurationError
        The driver package is missing.
    """
    config = target if isinstance(target, ConnectionConfig) else ConnectionConfig.from_url(target)
    adapter = adapter_registry.create(config)
    adapter.strict_relations = strict_relations
    adapter.connect()
    logger.info("database.opened", config=repr(config))
    return adapter


__all__ = [
    "connect",
]
