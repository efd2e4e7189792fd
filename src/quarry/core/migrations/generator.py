"""Migration file generator (``quarry make-migration``)."""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path

from quarry.core.errors import ConfigurationError
from quarry.core.logging import get_logger

logger = get_logger(__name__)

VERSION_FORMAT = "%Y%m%d%H%M%S"

_UNSAFE = re.compile(r"[^A-Za-z0-9_]")

_TEMPLATE = '''"""Migration: {version}"""

from quarry.core.migrations import Migration


class {class_name}(Migration):
    def up(self) -> None:
        # self.db.execute("CREATE INDEX idx_users_status ON users (status)")
        pass

    def down(self) -> None:
        # self.db.execute("DROP INDEX idx_users_status")
        pass
'''


def make_migration(path: Path | str, name: str, now: datetime | None = None) -> Path:
    """Write ``<YYYYMMDDHHMMSS>_<name>.py`` into ``path`` and return its path.

    ``name`` is reduced to ``[A-Za-z0-9_]``; the directory is created if
    needed.

    Raises:
        ConfigurationError: Nothing usable is left of ``name``, or the file
            already exists.
    """
    clean = _UNSAFE.sub("", name)
    if not clean:
        raise ConfigurationError(f"Invalid migration name: {name!r}")

    version = f"{(now or datetime.now()).strftime(VERSION_FORMAT)}_{clean}"
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / f"{version}.py"
    if target.exists():
        raise ConfigurationError(f"Migration already exists: {target}", path=str(target))

    target.write_text(
        _TEMPLATE.format(version=version, class_name=_class_name(clean)),
        encoding="utf-8",
    )
    logger.info("migration.created", version=version, path=str(target))
    return target


def _class_name(name: str) -> str:
    camel = "".join(part[:1].upper() + part[1:] for part in name.split("_") if part)
    if not camel or not camel[0].isalpha():
        camel = f"Migration{camel}"
    return camel


__all__ = [
    "VERSION_FORMAT",
    "make_migration",
]
