"""Tests for QuarrySettings (pydantic-settings)."""

from __future__ import annotations

from pathlib import Path

import pytest

from quarry.core.adapters import DatabaseType
from quarry.core.errors import ConnectionFailure
from quarry.core.settings import QuarrySettings


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """No QUARRY_* variables and no stray .env file."""
    for key in [
        "QUARRY_DATABASE_URL",
        "QUARRY_MIGRATIONS_DIR",
        "QUARRY_SEEDERS_DIR",
        "QUARRY_LOG_LEVEL",
        "QUARRY_LOG_JSON",
        "QUARRY_STRICT_RELATIONS",
    ]:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


class TestDefaults:
    def test_defaults(self):
        s = QuarrySettings()
        assert s.database_url == "memory"
        assert s.migrations_dir == Path("database/migrations")
        assert s.seeders_dir == Path("database/seeders")
        assert s.log_level == "INFO"
        assert s.log_json is False
        assert s.strict_relations is False

    def test_connection_config_default_is_memory(self):
        config = QuarrySettings().connection_config()
        assert config.driver is DatabaseType.SQLITE
        assert config.path == ":memory:"


class TestEnvironment:
    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("QUARRY_DATABASE_URL", "mysql://u:p@db/app")
        monkeypatch.setenv("QUARRY_STRICT_RELATIONS", "true")
        monkeypatch.setenv("QUARRY_LOG_LEVEL", "debug")
        s = QuarrySettings()
        assert s.connection_config().driver is DatabaseType.MYSQL
        assert s.strict_relations is True
        assert s.log_level == "DEBUG"

    def test_dotenv_file(self, tmp_path):
        (tmp_path / ".env").write_text("QUARRY_MIGRATIONS_DIR=db/migrate\nUNRELATED=1\n")
        s = QuarrySettings()
        assert s.migrations_dir == Path("db/migrate")

    def test_explicit_values_win(self, monkeypatch):
        monkeypatch.setenv("QUARRY_DATABASE_URL", "mysql://u:p@db/app")
        assert QuarrySettings(database_url="sqlite:///x.db").connection_config().path == "x.db"

    def test_bad_url_fails_on_connection_config(self):
        s = QuarrySettings(database_url="oracle://x/y")
        with pytest.raises(ConnectionFailure):
            s.connection_config()
