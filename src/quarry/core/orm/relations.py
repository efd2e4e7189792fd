"""Relation descriptors and their batch loaders.

Every relation is loaded the same way: collect one key per parent, run a
single ``SELECT * FROM related WHERE foreign_key IN (...) ORDER BY
related_key``, index the rows by ``foreign_key`` and attach. The three
kinds differ only in how the index is built and what a parent gets when
nothing matches.

================  ====================  ====================  ===========
Kind              ``local_key``         ``foreign_key``       No match
================  ====================  ====================  ===========
BELONGS_TO        FK on parent          owner key on related  ``None``
HAS_MANY          key on parent         FK on related         ``[]``
HAS_ONE           key on parent         FK on related         ``None``
================  ====================  ====================  ===========
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from quarry.core.adapters.types import Row
from quarry.core.logging import get_logger

if TYPE_CHECKING:
    from quarry.core.adapters.base import DatabaseAdapter

logger = get_logger(__name__)


class RelationKind(str, Enum):
    BELONGS_TO = "belongs_to"
    HAS_MANY = "has_many"
    HAS_ONE = "has_one"


@dataclass(frozen=True)
class RelationDescriptor:
    """How one parent table relates to one related table.

    ``local_key`` is always a column of the parent rows and
    ``foreign_key`` always a column of the related rows; loaders match
    ``parent[local_key] == related[foreign_key]``.
    Related rows are read in ``related_key`` order, so has-one and
    belongs-to keep the matching row with the lowest key.
    """

    name: str
    kind: RelationKind
    parent_table: str
    related_table: str
    local_key: str
    foreign_key: str
    related_key: str = "id"

    @property
    def default(self) -> Any:
        """Value attached when a parent has no match."""
        return [] if self.kind is RelationKind.HAS_MANY else None


# =============================================================================
# Parent row access (dicts or attribute objects)
# =============================================================================


def get_value(parent: Any, key: str) -> Any:
    if isinstance(parent, dict):
        return parent.get(key)
    return getattr(parent, key, None)


def set_value(parent: Any, key: str, value: Any) -> None:
    if isinstance(parent, dict):
        parent[key] = value
    else:
        setattr(parent, key, value)


def collect_keys(parents: Sequence[Any], key: str) -> list[Any]:
    """Distinct non-null ``key`` values in first-seen order."""
    return list(dict.fromkeys(v for v in (get_value(p, key) for p in parents) if v is not None))


# =============================================================================
# Indexers
# =============================================================================


def _index_one(rows: list[Row], key: str) -> dict[Any, Row]:
    """First row per key."""
    index: dict[Any, Row] = {}
    for row in rows:
        value = row.get(key)
        if value is not None and value not in index:
            index[value] = row
    return index


def _index_many(rows: list[Row], key: str) -> dict[Any, list[Row]]:
    """All rows per key, in result order."""
    index: dict[Any, list[Row]] = {}
    for row in rows:
        value = row.get(key)
        if value is not None:
            index.setdefault(value, []).append(row)
    return index


_INDEXERS: dict[RelationKind, Callable[[list[Row], str], dict[Any, Any]]] = {
    RelationKind.BELONGS_TO: _index_one,
    RelationKind.HAS_ONE: _index_one,
    RelationKind.HAS_MANY: _index_many,
}


# =============================================================================
# Loader
# =============================================================================


def eager_load(
    db: DatabaseAdapter,
    relation: RelationDescriptor,
    parents: list[Any],
    attach_as: str | None = None,
) -> None:
    """Attach ``relation`` to every row in ``parents`` (modified in place).

    Runs one query, or none when no parent has a usable key.
    """
    name = attach_as or relation.name
    keys = collect_keys(parents, relation.local_key)

    if not keys:
        for parent in parents:
            set_value(parent, name, relation.default)
        logger.debug("relation.no_keys", relation=name, table=relation.related_table)
        return

    rows = (
        db.table(relation.related_table)
        .where_in(relation.foreign_key, keys)
        .order_by(relation.related_key)
        .fetch_all()
    )
    index = _INDEXERS[relation.kind](rows, relation.foreign_key)

    for parent in parents:
        match = index.get(get_value(parent, relation.local_key))
        if match is None:
            set_value(parent, name, relation.default)
        elif relation.kind is RelationKind.HAS_MANY:
            # Each parent gets its own list
            set_value(parent, name, list(match))
        else:
            set_value(parent, name, match)

    logger.debug(
        "relation.loaded",
        relation=name,
        kind=relation.kind.value,
        keys=len(keys),
        rows=len(rows),
    )


__all__ = [
    "RelationKind",
    "RelationDescriptor",
    "collect_keys",
    "eager_load",
    "get_value",
    "set_value",
]
