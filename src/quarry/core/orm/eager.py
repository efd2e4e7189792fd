"""Eager loader: attach named relations to a batch of parent rows.

One query per relation, whatever the number of parents. Rows passed in
are never modified; the loader works on copies and returns them.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from quarry.core.errors import RelationError
from quarry.core.logging import get_logger
from quarry.core.orm.relations import RelationDescriptor, eager_load

if TYPE_CHECKING:
    from quarry.core.adapters.base import DatabaseAdapter
    from quarry.core.orm.model import Model

logger = get_logger(__name__)


class EagerLoader:
    """
    Batch relation loader.

    Parameters
    ----------
    db
        Adapter the relation queries run on.
    strict
        Raise :class:`RelationError` for unknown relations (or factories
        that do not return a :class:`RelationDescriptor`). When false such
        names are skipped with a debug log.
    """

    def __init__(self, db: DatabaseAdapter, strict: bool = False):
        self._db = db
        self._strict = strict

    def load(
        self,
        model_cls: type[Model],
        parents: Sequence[Any],
        relations: Iterable[str],
    ) -> list[Any]:
        """Return copies of ``parents`` with each relation attached under its name."""
        rows = [_copy_row(p) for p in parents]
        names = list(relations)
        if not rows or not names:
            return rows

        for name in names:
            descriptor = self._resolve(model_cls, name)
            if descriptor is None:
                continue
            eager_load(self._db, descriptor, rows, attach_as=name)
        return rows

    def _resolve(self, model_cls: type[Model], name: str) -> RelationDescriptor | None:
        result = model_cls.resolve_relation(name)
        if isinstance(result, RelationDescriptor):
            return result if result.name else replace(result, name=name)

        if result is None:
            reason = f"{model_cls.__name__} has no relation {name!r}"
        else:
            reason = f"{model_cls.__name__}.{name} did not return a RelationDescriptor"

        if self._strict:
            raise RelationError(reason, relation=name, table=model_cls.__table__)
        logger.debug("relation.skipped", relation=name, model=model_cls.__name__, reason=reason)
        return None


def _copy_row(parent: Any) -> Any:
    if isinstance(parent, dict):
        return dict(parent)
    return copy.copy(parent)


__all__ = [
    "EagerLoader",
]
