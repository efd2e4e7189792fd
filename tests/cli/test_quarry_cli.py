"""Tests for quarry.cli commands via typer.testing.CliRunner against a file database."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import structlog
from conftest import migration_source, write_script
from typer.testing import CliRunner

from quarry.cli.app import app
from quarry.core.connection import connect

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated(monkeypatch, tmp_path):
    """Quiet logging, no QUARRY_* leakage, and structlog reset afterwards."""
    for key in ["QUARRY_DATABASE_URL", "QUARRY_MIGRATIONS_DIR", "QUARRY_SEEDERS_DIR", "QUARRY_LOG_JSON"]:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("QUARRY_LOG_LEVEL", "WARNING")
    monkeypatch.chdir(tmp_path)
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


@pytest.fixture()
def database(tmp_path) -> str:
    return str(tmp_path / "app.db")


@pytest.fixture()
def scripts(tmp_path) -> Path:
    directory = tmp_path / "migrations"
    for version, table in [("0001_users", "users"), ("0002_posts", "posts")]:
        write_script(
            directory,
            version,
            migration_source(f"CREATE TABLE {table} (id INTEGER PRIMARY KEY)", f"DROP TABLE {table}"),
        )
    return directory


def invoke(*args: str):
    return runner.invoke(app, list(args))


def tables(database: str) -> list[str]:
    db = connect(database)
    try:
        return db.table("sqlite_master").where("type", "table").order_by("name").pluck("name")
    finally:
        db.disconnect()


# ── Root ─────────────────────────────────────────────────────────────────


class TestRoot:
    def test_version(self):
        result = invoke("--version")
        assert result.exit_code == 0
        assert result.stdout.startswith("quarry ")

    def test_help_lists_commands(self):
        result = invoke("--help")
        assert result.exit_code == 0
        for command in ["migrate", "rollback", "status", "seed", "make-migration"]:
            assert command in result.stdout


# ── migrate / rollback / status ──────────────────────────────────────────


class TestMigrateCommands:
    def test_migrate(self, database, scripts):
        result = invoke("migrate", "-d", database, "-p", str(scripts))
        assert result.exit_code == 0, result.output
        assert "Migrated: 0001_users" in result.stdout
        assert "Migrated: 0002_posts" in result.stdout
        assert tables(database) == ["posts", "schema_migrations", "users"]

    def test_migrate_twice(self, database, scripts):
        invoke("migrate", "-d", database, "-p", str(scripts))
        result = invoke("migrate", "-d", database, "-p", str(scripts))
        assert result.exit_code == 0
        assert "Nothing to migrate." in result.stdout

    def test_migrate_json(self, database, scripts):
        result = invoke("migrate", "-d", database, "-p", str(scripts), "--json")
        assert result.exit_code == 0
        assert json.loads(result.stdout) == ["0001_users", "0002_posts"]

    def test_migrate_uses_settings_directory(self, monkeypatch, database, scripts):
        monkeypatch.setenv("QUARRY_MIGRATIONS_DIR", str(scripts))
        monkeypatch.setenv("QUARRY_DATABASE_URL", database)
        result = invoke("migrate", "--json")
        assert json.loads(result.stdout) == ["0001_users", "0002_posts"]

    def test_failed_migration_exits_1(self, database, scripts):
        write_script(scripts, "0003_bad", migration_source("CREATE TABLE users (id INTEGER)", "SELECT 1"))
        result = invoke("migrate", "-d", database, "-p", str(scripts))
        assert result.exit_code == 1
        # Earlier migrations stay applied
        assert "users" in tables(database)

    def test_rollback_steps(self, database, scripts):
        invoke("migrate", "-d", database, "-p", str(scripts))
        result = invoke("rollback", "-d", database, "-p", str(scripts), "--steps", "5", "--json")
        assert result.exit_code == 0
        assert json.loads(result.stdout) == ["0002_posts", "0001_users"]
        assert tables(database) == ["schema_migrations"]

    def test_rollback_default_one_step(self, database, scripts):
        invoke("migrate", "-d", database, "-p", str(scripts))
        result = invoke("rollback", "-d", database, "-p", str(scripts))
        assert result.exit_code == 0
        assert "Rolled back: 0002_posts" in result.stdout
        assert "users" in tables(database)

    def test_rollback_nothing(self, database, scripts):
        result = invoke("rollback", "-d", database, "-p", str(scripts))
        assert result.exit_code == 0
        assert "Nothing to roll back." in result.stdout

    def test_rollback_rejects_zero_steps(self, database, scripts):
        result = invoke("rollback", "-d", database, "-p", str(scripts), "--steps", "0")
        assert result.exit_code != 0

    def test_status_json(self, database, scripts):
        invoke("migrate", "-d", database, "-p", str(scripts))
        (scripts / "0001_users.py").unlink()
        write_script(scripts, "0003_tags", migration_source("CREATE TABLE tags (id INTEGER)", "DROP TABLE tags"))

        result = invoke("status", "-d", database, "-p", str(scripts), "--json")

        assert result.exit_code == 0
        rows = json.loads(result.stdout)
        assert [(r["version"], r["status"]) for r in rows] == [
            ("0001_users", "missing"),
            ("0002_posts", "applied"),
            ("0003_tags", "pending"),
        ]
        assert rows[2]["applied_at"] is None

    def test_bad_database_url_exits_1(self, scripts):
        result = invoke("migrate", "-d", "oracle://u:p@h/db", "-p", str(scripts))
        assert result.exit_code == 1
        assert "ConnectionFailure" in result.output


# ── seed ─────────────────────────────────────────────────────────────────


class TestSeedCommand:
    def test_seed(self, database, scripts, tmp_path):
        invoke("migrate", "-d", database, "-p", str(scripts))
        seeders = tmp_path / "seeders"
        write_script(seeders, "0001_users", 'def seed(db):\n    db.table("users").insert({"id": 7})\n')

        result = invoke("seed", "-d", database, "-p", str(seeders))

        assert result.exit_code == 0, result.output
        assert "Seeded: 0001_users.py" in result.stdout
        db = connect(database)
        try:
            assert db.table("users").pluck("id") == [7]
        finally:
            db.disconnect()

    def test_seed_empty(self, database, tmp_path):
        result = invoke("seed", "-d", database, "-p", str(tmp_path / "none"))
        assert result.exit_code == 0
        assert "No seeders found." in result.stdout

    def test_invalid_seeder_exits_1(self, database, tmp_path):
        seeders = tmp_path / "seeders"
        write_script(seeders, "0001_broken", "VALUE = 1\n")
        result = invoke("seed", "-d", database, "-p", str(seeders))
        assert result.exit_code == 1


# ── make-migration ───────────────────────────────────────────────────────


class TestMakeMigrationCommand:
    def test_creates_file(self, tmp_path):
        directory = tmp_path / "new"
        result = invoke("make-migration", "CreateUsers", "-p", str(directory))
        assert result.exit_code == 0
        files = list(directory.glob("*_CreateUsers.py"))
        assert len(files) == 1
        assert "class CreateUsers(Migration):" in files[0].read_text()

    def test_invalid_name_exits_1(self, tmp_path):
        result = invoke("make-migration", "!!!", "-p", str(tmp_path))
        assert result.exit_code == 1
        assert list(tmp_path.glob("*.py")) == []
