"""Quarry Core -- the persistence layer under the web framework.

Manifesto:
    Controllers, models and console commands all need the same few things
    from the database: run a parametrized statement, build a query without
    string concatenation, evolve the schema one versioned step at a time,
    and load related rows without an N+1 query storm. ``quarry.core`` is
    that layer, synchronous and small, over SQLite, MySQL and PostgreSQL.

    - **Sync-only primitives:** one adapter, one connection, one thread
    - **Bindings always separate:** values never reach SQL text
    - **Protocol-first:** Connection, Cursor and Grammar are protocols
    - **Import-guarded drivers:** mysql.connector and psycopg2 loaded at connect()

Architecture::

    Layer 1 -- Type System & Errors
        errors.py          Structured error hierarchy (QuarryError, QueryFailure)
        protocols.py       DB-API Connection / Cursor protocols
        logging.py         structlog configuration
        settings.py        pydantic-settings (QUARRY_ env prefix)

    Layer 2 -- Connections & Queries
        adapters/          DatabaseAdapter + SQLite / MySQL / PostgreSQL, registry
        connection.py      connect(url) -> DatabaseAdapter
        query/             QueryDescriptor, Grammar, QueryBuilder, Page

    Layer 3 -- Schema & Data
        migrations/        Migration, MigrationRunner, make_migration
        seeders/           SeederRunner
        loader.py          script discovery / loading

    Layer 4 -- Relations
        orm/               Model, @relation, RelationDescriptor, EagerLoader

Tags:
    quarry, core, database, query-builder, migrations, eager-loading
"""

from quarry.core.adapters import (
    ConnectionConfig,
    DatabaseAdapter,
    DatabaseType,
    MySQLAdapter,
    PostgreSQLAdapter,
    ResultSet,
    SQLiteAdapter,
    get_adapter,
)
from quarry.core.connection import connect
from quarry.core.errors import (
    ConfigurationError,
    ConnectionFailure,
    InvalidPredicateError,
    MigrationFailure,
    QuarryError,
    QueryFailure,
    RelationError,
    ValidationError,
)
from quarry.core.migrations import Migration, MigrationRunner, SchemaVersion, make_migration
from quarry.core.orm import EagerLoader, Model, RelationDescriptor, RelationKind, relation
from quarry.core.query import CompiledQuery, Page, QueryBuilder, get_grammar
from quarry.core.seeders import SeederRunner

__all__ = [
    # Connections
    "connect",
    "ConnectionConfig",
    "DatabaseAdapter",
    "DatabaseType",
    "MySQLAdapter",
    "PostgreSQLAdapter",
    "ResultSet",
    "SQLiteAdapter",
    "get_adapter",
    # Queries
    "CompiledQuery",
    "Page",
    "QueryBuilder",
    "get_grammar",
    # Migrations / seeders
    "Migration",
    "MigrationRunner",
    "SchemaVersion",
    "SeederRunner",
    "make_migration",
    # Relations
    "EagerLoader",
    "Model",
    "RelationDescriptor",
    "RelationKind",
    "relation",
    # Errors
    "QuarryError",
    "ConnectionFailure",
    "QueryFailure",
    "ConfigurationError",
    "ValidationError",
    "InvalidPredicateError",
    "MigrationFailure",
    "RelationError",
]
