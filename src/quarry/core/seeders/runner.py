"""Seeder runner.

Each seeder is a ``.py`` file exposing a module-level ``seed(db)``
callable. Seeders run in filename order and are not tracked: running
them twice inserts twice.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from quarry.core.errors import ConfigurationError
from quarry.core.loader import discover_scripts, load_script
from quarry.core.logging import LogContext, get_logger

if TYPE_CHECKING:
    from quarry.core.adapters.base import DatabaseAdapter

logger = get_logger(__name__)


class SeederRunner:
    """Runs every seeder in a directory.

    Example::

        # database/seeders/0001_users.py
        def seed(db):
            db.table("users").insert({"name": "Test User", "email": "test@example.com"})

        SeederRunner(db).seed("database/seeders")
    """

    def __init__(self, db: DatabaseAdapter) -> None:
        self._db = db

    def seed(self, path: Path | str) -> list[str]:
        """Run seeders in filename order and return the file names executed.

        Every file is loaded and checked before the first one runs.

        Raises:
            ConfigurationError: A file fails to import or has no callable
                ``seed``.
        """
        seeders = []
        for script in discover_scripts(path):
            module = load_script(script, "seeder")
            fn = getattr(module, "seed", None)
            if not callable(fn):
                raise ConfigurationError(
                    f"Seeder {script.name} must define a callable seed(db)",
                    path=str(script),
                )
            seeders.append((script.name, fn))

        ran: list[str] = []
        for name, fn in seeders:
            with LogContext(seeder=name):
                fn(self._db)
            ran.append(name)
            logger.info("seeder.ran", seeder=name)
        return ran


__all__ = [
    "SeederRunner",
]
