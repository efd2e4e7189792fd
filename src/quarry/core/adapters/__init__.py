"""Database adapters -- the connection facade over three drivers.

Manifesto:
    The query builder, migration runner and eager loader should run
    unchanged on SQLite (dev/tests), MySQL and PostgreSQL. Each adapter
    owns one driver connection and exposes the same small surface:
    parametrized ``execute``, ``insert_and_return_id``, explicit
    transactions and fresh query builders.

    Driver packages are imported at ``connect()`` time, not at import
    time. Install the corresponding extra::

        pip install quarry-db[mysql]        # mysql-connector-python
        pip install quarry-db[postgresql]   # psycopg2-binary

Architecture::

    DatabaseAdapter (base.py)        Abstract facade: execute / transactions / table()
        |-- SQLiteAdapter            stdlib sqlite3 (always available)
        |-- MySQLAdapter             mysql.connector (optional)
        |-- PostgreSQLAdapter        psycopg2 (optional)

    AdapterRegistry (registry.py)    driver name -> adapter class
    ConnectionConfig (types.py)      immutable connection parameters
    ResultSet (types.py)             rows + rowcount + lastrowid

Guardrails:
    ❌ ``db.execute("SELECT * FROM t WHERE id=" + user_input)``
    ✅ ``db.execute("SELECT * FROM t WHERE id = ?", [user_input])``

Tags:
    quarry, database, adapters, facade, registry-pattern
"""

from .base import DatabaseAdapter, qmark_to_format
from .mysql import MySQLAdapter
from .postgresql import PostgreSQLAdapter
from .registry import AdapterRegistry, adapter_registry, get_adapter
from .sqlite import SQLiteAdapter
from .types import ConnectionConfig, DatabaseType, ResultSet, Row

__all__ = [
    # Types
    "Row",
    "DatabaseType",
    "ConnectionConfig",
    "ResultSet",
    # Base class
    "DatabaseAdapter",
    "qmark_to_format",
    # Implementations
    "SQLiteAdapter",
    "MySQLAdapter",
    "PostgreSQLAdapter",
    # Registry
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
]
