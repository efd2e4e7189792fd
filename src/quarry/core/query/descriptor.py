"""Query descriptor: the plain data a :class:`QueryBuilder` accumulates.

Predicates, joins and sort keys are frozen dataclasses; the descriptor
itself is a mutable container of ordered lists. Grammars read it and
never change it, so compiling the same descriptor twice yields the same
SQL and the same binding order.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Union

OPERATORS = frozenset({"=", "!=", "<>", "<", "<=", ">", ">=", "LIKE", "NOT LIKE"})
BOOLEANS = frozenset({"AND", "OR"})
JOIN_TYPES = frozenset({"INNER", "LEFT", "RIGHT", "CROSS"})
DIRECTIONS = frozenset({"ASC", "DESC"})


@dataclass(frozen=True)
class BasicWhere:
    """``column <operator> ?``"""

    column: str
    operator: str
    value: Any
    boolean: str = "AND"


@dataclass(frozen=True)
class InWhere:
    """``column [NOT] IN (?, ?, ...)``; one placeholder per value."""

    column: str
    values: tuple[Any, ...]
    negated: bool = False
    boolean: str = "AND"


@dataclass(frozen=True)
class BetweenWhere:
    """``column [NOT] BETWEEN ? AND ?``"""

    column: str
    low: Any
    high: Any
    negated: bool = False
    boolean: str = "AND"


@dataclass(frozen=True)
class NullWhere:
    """``column IS [NOT] NULL``"""

    column: str
    negated: bool = False
    boolean: str = "AND"


@dataclass(frozen=True)
class NestedWhere:
    """A parenthesized group of predicates."""

    wheres: tuple[Where, ...]
    boolean: str = "AND"


Where = Union[BasicWhere, InWhere, BetweenWhere, NullWhere, NestedWhere]


@dataclass(frozen=True)
class Join:
    kind: str
    table: str
    first: str
    operator: str
    second: str


@dataclass(frozen=True)
class Order:
    column: str
    direction: str = "ASC"


@dataclass
class QueryDescriptor:
    """Fluent query state for one logical query against ``table``."""

    table: str
    alias: str | None = None
    columns: list[str] = field(default_factory=lambda: ["*"])
    wheres: list[Where] = field(default_factory=list)
    joins: list[Join] = field(default_factory=list)
    groups: list[str] = field(default_factory=list)
    orders: list[Order] = field(default_factory=list)
    limit: int | None = None
    offset: int | None = None

    def copy(self, **changes: Any) -> QueryDescriptor:
        """Independent copy; predicates are immutable so the lists are copied shallowly."""
        clone = replace(
            self,
            columns=list(self.columns),
            wheres=list(self.wheres),
            joins=list(self.joins),
            groups=list(self.groups),
            orders=list(self.orders),
        )
        for key, value in changes.items():
            setattr(clone, key, value)
        return clone


@dataclass(frozen=True)
class CompiledQuery:
    """SQL text plus its bindings, in placeholder order."""

    sql: str
    bindings: list[Any] = field(default_factory=list)

    def __iter__(self):
        # Allows ``sql, bindings = builder.to_sql()``
        yield self.sql
        yield self.bindings


__all__ = [
    "OPERATORS",
    "BOOLEANS",
    "JOIN_TYPES",
    "DIRECTIONS",
    "BasicWhere",
    "InWhere",
    "BetweenWhere",
    "NullWhere",
    "NestedWhere",
    "Where",
    "Join",
    "Order",
    "QueryDescriptor",
    "CompiledQuery",
]
