"""Quarry settings.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.
    The CLI and applications embedding quarry read the same
    ``QUARRY_*`` variables (or a ``.env`` file) instead of each parsing
    its own.

    - **Pydantic validation:** Type-checked at startup, not at first query
    - **Environment-driven:** Reads from env vars and .env files
    - **Sensible defaults:** In-memory SQLite and ``database/`` folders

Examples:
    >>> from quarry.core.settings import QuarrySettings
    >>> settings = QuarrySettings(database_url="sqlite:///app.db")
    >>> settings.connection_config().path
    'app.db'

Tags:
    settings, configuration, pydantic, environment, quarry
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from quarry.core.adapters.types import ConnectionConfig


class QuarrySettings(BaseSettings):
    """Settings for connections, script directories and logging.

    Fields
    ──────
    database_url      : ``sqlite:///file.db``, ``memory``, ``mysql://...``, ``postgresql://...``
    migrations_dir    : Directory of migration scripts
    seeders_dir       : Directory of seeder scripts
    log_level         : Structlog log level
    log_json          : Render logs as JSON lines
    strict_relations  : Unknown eager-load relation names raise instead of being skipped
    """

    model_config = SettingsConfigDict(
        env_prefix="QUARRY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Database ─────────────────────────────────────────────────
    database_url: str = "memory"

    # ── Scripts ──────────────────────────────────────────────────
    migrations_dir: Path = Field(
        default=Path("database/migrations"),
        description="Directory of migration scripts",
    )
    seeders_dir: Path = Field(
        default=Path("database/seeders"),
        description="Directory of seeder scripts",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool = False

    # ── Relations ────────────────────────────────────────────────
    strict_relations: bool = False

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    def connection_config(self) -> ConnectionConfig:
        """Parse ``database_url``.

        Raises:
            ConnectionFailure: Malformed URL (unknown scheme, missing database
                name, bad port).
        """
        return ConnectionConfig.from_url(self.database_url)


__all__ = [
    "QuarrySettings",
]
