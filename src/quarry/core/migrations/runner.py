"""Migration runner.

Reads ``.py`` migration scripts from a directory, tracks applied versions
in the ``schema_migrations`` ledger, and applies pending ones in filename
order. A version is the file stem (``20240101120000_CreateUsers``).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from quarry.core.errors import ConfigurationError, MigrationFailure, QueryFailure
from quarry.core.loader import discover_scripts, load_script
from quarry.core.logging import LogContext, get_logger
from quarry.core.migrations.base import Migration

if TYPE_CHECKING:
    from quarry.core.adapters.base import DatabaseAdapter

logger = get_logger(__name__)

LEDGER_TABLE = "schema_migrations"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class SchemaVersion:
    """One ledger row."""

    version: str
    applied_at: str


@dataclass(frozen=True)
class MigrationStatus:
    """State of one version, from the files and the ledger together.

    ``missing`` marks a ledger row whose script is gone from disk.
    """

    version: str
    applied_at: str | None = None
    missing: bool = False

    @property
    def applied(self) -> bool:
        return self.applied_at is not None


class MigrationRunner:
    """Applies and rolls back migration scripts.

    Parameters
    ----------
    db
        A connected :class:`~quarry.core.adapters.base.DatabaseAdapter`.
    clock
        Returns the timestamp recorded for each applied version.
        Defaults to :func:`datetime.now`.

    Example::

        from quarry.core.connection import connect
        from quarry.core.migrations import MigrationRunner

        db = connect("sqlite:///app.db")
        runner = MigrationRunner(db)
        applied = runner.migrate("database/migrations")
        print(f"Applied {len(applied)} migrations")
    """

    def __init__(
        self,
        db: DatabaseAdapter,
        clock: Callable[[], datetime] | None = None,
        table: str = LEDGER_TABLE,
    ) -> None:
        self._db = db
        self._clock = clock or datetime.now
        self._table = table
        self._ensure_ledger()

    @property
    def table(self) -> str:
        return self._table

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def migrate(self, path: Path | str) -> list[str]:
        """Apply every pending migration in filename order.

        Stops at the first failure. Versions applied before it stay
        recorded; the failing version is not recorded.

        Raises:
            MigrationFailure: loading or ``up()`` failed; names the version.
        """
        done = {v.version for v in self.applied()}
        ran: list[str] = []

        for script in discover_scripts(path):
            version = script.stem
            if version in done:
                continue

            try:
                with LogContext(migration=version):
                    self._load(script).up()
            except Exception as e:
                logger.error("migration.failed", version=version, error=str(e))
                raise MigrationFailure(
                    f"Migration {version} failed: {e}",
                    version=version,
                    path=str(script),
                    cause=e,
                ) from e

            self._record(version)
            ran.append(version)
            logger.info("migration.applied", version=version)

        if not ran:
            logger.info("migration.nothing_to_migrate", path=str(path))
        return ran

    def rollback(self, path: Path | str) -> str | None:
        """Reverse the most recently applied migration.

        The latest version is picked by ``applied_at`` then ``version``,
        both descending. Returns the rolled-back version, or ``None`` when
        the ledger is empty. If the script no longer exists the ledger row
        is removed anyway.

        Raises:
            MigrationFailure: loading or ``down()`` failed; the row is kept.
        """
        latest = self.latest()
        if latest is None:
            logger.info("migration.nothing_to_rollback")
            return None

        version = latest.version
        script = Path(path) / f"{version}.py"
        if not script.is_file():
            logger.warning("migration.file_missing", version=version, path=str(script))
            self._forget(version)
            return version

        try:
            with LogContext(migration=version):
                self._load(script).down()
        except Exception as e:
            logger.error("migration.rollback_failed", version=version, error=str(e))
            raise MigrationFailure(
                f"Rollback of {version} failed: {e}",
                version=version,
                path=str(script),
                cause=e,
            ) from e

        self._forget(version)
        logger.info("migration.rolled_back", version=version)
        return version

    def applied(self) -> list[SchemaVersion]:
        """Ledger rows, oldest first."""
        rows = (
            self._db.table(self._table)
            .order_by("applied_at")
            .order_by("version")
            .fetch_all()
        )
        return [_to_version(row) for row in rows]

    def latest(self) -> SchemaVersion | None:
        row = (
            self._db.table(self._table)
            .order_by("applied_at", "DESC")
            .order_by("version", "DESC")
            .fetch_one()
        )
        return _to_version(row) if row else None

    def pending(self, path: Path | str) -> list[str]:
        """Versions with a script on disk and no ledger row."""
        done = {v.version for v in self.applied()}
        return [s.stem for s in discover_scripts(path) if s.stem not in done]

    def status(self, path: Path | str) -> list[MigrationStatus]:
        """Every known version, sorted, with its applied timestamp if any."""
        ledger = {v.version: v.applied_at for v in self.applied()}
        on_disk = {s.stem for s in discover_scripts(path)}
        return [
            MigrationStatus(
                version=version,
                applied_at=ledger.get(version),
                missing=version not in on_disk,
            )
            for version in sorted(on_disk | ledger.keys())
        ]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _ensure_ledger(self) -> None:
        """Create the ledger table; an "already exists" failure is expected."""
        try:
            self._db.execute(self._db.grammar.compile_create_ledger(self._table))
            logger.debug("migration.ledger_created", table=self._table)
        except QueryFailure as e:
            if "already exists" not in str(e).lower():
                raise

    def _load(self, script: Path) -> Migration:
        module = load_script(script, "migration")
        found = [
            obj
            for obj in vars(module).values()
            if isinstance(obj, type)
            and issubclass(obj, Migration)
            and obj is not Migration
            and obj.__module__ == module.__name__
        ]
        if len(found) != 1:
            raise ConfigurationError(
                f"{script.name} must define exactly one Migration subclass, found {len(found)}",
                path=str(script),
            )
        return found[0](self._db)

    def _record(self, version: str) -> None:
        applied_at = self._clock().strftime(TIMESTAMP_FORMAT)
        self._db.table(self._table).insert({"version": version, "applied_at": applied_at})

    def _forget(self, version: str) -> None:
        self._db.table(self._table).where("version", version).delete()


def _to_version(row: dict[str, Any]) -> SchemaVersion:
    applied_at = row["applied_at"]
    if isinstance(applied_at, datetime):
        applied_at = applied_at.strftime(TIMESTAMP_FORMAT)
    return SchemaVersion(version=str(row["version"]), applied_at=str(applied_at))


__all__ = [
    "LEDGER_TABLE",
    "MigrationRunner",
    "MigrationStatus",
    "SchemaVersion",
]
