"""Schema migration runner for quarry.

Manifesto:
    Database schemas must evolve safely across deployments. Manual DDL
    execution is error-prone and unrepeatable. The migration runner
    applies versioned ``.py`` scripts in filename order, tracking what
    has been applied in the ``schema_migrations`` table, and can walk
    them back one at a time.

Modules
-------
base       Migration abstract class (``up`` / ``down``)
runner     MigrationRunner with migrate() / rollback() / status()
generator  make_migration() file generator

Tags:
    quarry, migrations, schema, database, ledger
"""

from quarry.core.migrations.base import Migration
from quarry.core.migrations.generator import make_migration
from quarry.core.migrations.runner import (
    LEDGER_TABLE,
    MigrationRunner,
    MigrationStatus,
    SchemaVersion,
)

__all__ = [
    "LEDGER_TABLE",
    "Migration",
    "MigrationRunner",
    "MigrationStatus",
    "SchemaVersion",
    "make_migration",
]
