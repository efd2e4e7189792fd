"""Database adapter registry and factory.

Manifesto:
    Consumers never hard-code adapter class names. The registry maps
    driver names to adapter classes and ``get_adapter()`` builds an
    unconnected instance from a :class:`ConnectionConfig`.

Tags:
    quarry, database, registry, factory
"""

from __future__ import annotations

from quarry.core.errors import ConfigurationError

from .base import DatabaseAdapter
from .mysql import MySQLAdapter
from .postgresql import PostgreSQLAdapter
from .sqlite import SQLiteAdapter
from .types import ConnectionConfig, DatabaseType


class AdapterRegistry:
    """
    Registry for database adapter classes.

    Pre-registered adapters:
    - ``sqlite`` — :class:`SQLiteAdapter`
    - ``mysql`` / ``mariadb`` — :class:`MySQLAdapter`
    - ``postgresql`` / ``postgres`` — :class:`PostgreSQLAdapter`
    """

    def __init__(self):
        self._factories: dict[str, type[DatabaseAdapter]] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        self._factories["sqlite"] = SQLiteAdapter
        self._factories["mysql"] = MySQLAdapter
        self._factories["mariadb"] = MySQLAdapter  # Alias
        self._factories["postgresql"] = PostgreSQLAdapter
        self._factories["postgres"] = PostgreSQLAdapter  # Alias

    def register(self, name: str, adapter_class: type[DatabaseAdapter]) -> None:
        """Register an adapter class (replaces an existing registration)."""
        self._factories[name.lower()] = adapter_class

    def create(self, config: ConnectionConfig, name: str | None = None) -> DatabaseAdapter:
        """Create an adapter for ``config`` (``name`` overrides ``config.driver``)."""
        key = (name or config.driver.value).lower()
        if key not in self._factories:
            raise ConfigurationError(f"Unknown database adapter: {key}")
        return self._factories[key](config)

    def list_adapters(self) -> list[str]:
        """List registered adapter names."""
        return sorted(self._factories.keys())


# Global registry
adapter_registry = AdapterRegistry()


def get_adapter(
    driver: DatabaseType | str,
    config: ConnectionConfig | None = None,
) -> DatabaseAdapter:
    """
    Get an unconnected adapter by driver name.

    Usage:
        adapter = get_adapter(DatabaseType.SQLITE, ConnectionConfig(path="data.db"))
        adapter = get_adapter("mysql", ConnectionConfig.from_url("mysql://u:p@db/app"))
    """
    name = driver.value if isinstance(driver, DatabaseType) else driver
    return adapter_registry.create(config or ConnectionConfig(), name=name)


__all__ = [
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
]
