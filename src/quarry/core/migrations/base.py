"""Base class for migration scripts."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from quarry.core.adapters.base import DatabaseAdapter


class Migration(ABC):
    """
    One schema change, reversible.

    A migration file defines exactly one subclass. The runner builds it
    with the adapter, calls :meth:`up` (or :meth:`down`) once and drops
    it.

    Example::

        from quarry.core.migrations import Migration


        class CreateUsers(Migration):
            def up(self) -> None:
                self.db.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, email TEXT)")

            def down(self) -> None:
                self.db.execute("DROP TABLE users")
    """

    def __init__(self, db: DatabaseAdapter):
        self.db = db

    @abstractmethod
    def up(self) -> None:
        """Apply the change."""
        ...

    @abstractmethod
    def down(self) -> None:
        """Reverse :meth:`up`."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


__all__ = [
    "Migration",
]
