"""Fluent query builder.

A :class:`QueryBuilder` accumulates a :class:`QueryDescriptor` through
chained calls and hands it to the adapter's grammar only when a terminal
operation runs. Fluent calls never touch the connection; terminal calls
(``fetch_all``, ``count``, ``insert`` ...) run exactly one statement,
except ``paginate`` (count + page) and eager loading (one more per
relation).

Manifesto:
    Predicates are validated where they are written. A typo'd operator
    raises :class:`InvalidPredicateError` at the ``where()`` call, not as
    an engine syntax error three frames later.

Examples:
    >>> db.table("users").where("active", 1).where_in("role", ["a", "b"]).to_sql()
    CompiledQuery(sql='SELECT * FROM "users" WHERE "active" = ? AND "role" IN (?, ?)', bindings=[1, 'a', 'b'])

    >>> db.table("posts").where(lambda q: q.where("a", 1).or_where("b", 2)).count()

Tags:
    query-builder, fluent, sql, quarry
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from quarry.core.errors import InvalidPredicateError, ValidationError
from quarry.core.logging import get_logger
from quarry.core.query.descriptor import (
    BOOLEANS,
    DIRECTIONS,
    JOIN_TYPES,
    OPERATORS,
    BasicWhere,
    BetweenWhere,
    CompiledQuery,
    InWhere,
    Join,
    NestedWhere,
    NullWhere,
    Order,
    QueryDescriptor,
    Where,
)
from quarry.core.query.grammar import Grammar
from quarry.core.query.pagination import Page, check_page, offset_for

if TYPE_CHECKING:
    from quarry.core.adapters.base import DatabaseAdapter
    from quarry.core.orm.model import Model

logger = get_logger(__name__)

_MISSING = object()
_SET_OPERATORS = frozenset({"IN", "NOT IN"})


class QueryBuilder:
    """Fluent SELECT / INSERT / UPDATE / DELETE builder for one table."""

    def __init__(self, db: DatabaseAdapter, table: str, *, grammar: Grammar | None = None):
        self._db = db
        self._grammar = grammar or db.grammar
        self._query = QueryDescriptor(table=table)
        self._eager: list[str] = []
        self._strict = db.strict_relations
        self._model: type[Model] | None = None

    # -- Introspection -----------------------------------------------------

    @property
    def table_name(self) -> str:
        return self._query.table

    @property
    def descriptor(self) -> QueryDescriptor:
        """A copy of the accumulated query state."""
        return self._query.copy()

    @property
    def eager_relations(self) -> list[str]:
        return list(self._eager)

    def clone(self) -> QueryBuilder:
        """Independent builder with the same state."""
        other = QueryBuilder(self._db, self._query.table, grammar=self._grammar)
        other._query = self._query.copy()
        other._eager = list(self._eager)
        other._strict = self._strict
        other._model = self._model
        return other

    def _new_group(self) -> QueryBuilder:
        return QueryBuilder(self._db, self._query.table, grammar=self._grammar)

    # -- Validation --------------------------------------------------------

    def _boolean(self, boolean: str) -> str:
        value = boolean.upper().strip() if isinstance(boolean, str) else boolean
        if value not in BOOLEANS:
            raise InvalidPredicateError(
                f"Unknown boolean connective {boolean!r}; expected AND or OR",
                table=self._query.table,
            )
        return value

    def _operator(self, operator: Any) -> str:
        value = " ".join(operator.upper().split()) if isinstance(operator, str) else operator
        if value not in OPERATORS and value not in _SET_OPERATORS:
            raise InvalidPredicateError(
                f"Unknown operator {operator!r}", table=self._query.table
            )
        return value

    def _in_values(self, column: str, values: Any) -> tuple[Any, ...]:
        if isinstance(values, (str, bytes, Mapping)) or not isinstance(values, Iterable):
            raise InvalidPredicateError(
                f"IN on {column!r} needs a list of values, got {type(values).__name__}",
                table=self._query.table,
            )
        return tuple(values)

    def _add(self, where: Where) -> QueryBuilder:
        self._query.wheres.append(where)
        return self

    # -- SELECT / FROM -----------------------------------------------------

    def select(self, *columns: str) -> QueryBuilder:
        """Columns to select; ``select()`` with no arguments selects ``*``."""
        flat: list[str] = []
        for column in columns:
            if isinstance(column, (list, tuple)):
                flat.extend(column)
            else:
                flat.append(column)
        self._query.columns = flat or ["*"]
        return self

    def from_(self, table: str, alias: str | None = None) -> QueryBuilder:
        self._query.table = table
        self._query.alias = alias
        return self

    # -- WHERE -------------------------------------------------------------

    def where(
        self,
        column: str | Mapping[str, Any] | Callable[[QueryBuilder], Any],
        operator: Any = _MISSING,
        value: Any = _MISSING,
        boolean: str = "AND",
    ) -> QueryBuilder:
        """Add a predicate.

        Forms::

            where("age", ">", 18)
            where("status", "active")           # operator "="
            where("id", [1, 2, 3])              # IN
            where("deleted_at", None)           # IS NULL
            where({"status": "active", "role": "admin"})
            where(lambda q: q.where("a", 1).or_where("b", 2))
        """
        boolean = self._boolean(boolean)

        if callable(column):
            return self.where_group(column, boolean)

        if isinstance(column, Mapping):
            group = self._new_group()
            for key, val in column.items():
                group.where(key, "=", val)
            if group._query.wheres:
                self._add(NestedWhere(tuple(group._query.wheres), boolean))
            return self

        if value is _MISSING:
            if operator is _MISSING:
                raise InvalidPredicateError(
                    f"where({column!r}) needs a value", table=self._query.table
                )
            operator, value = "=", operator

        op = self._operator(operator)

        if op in _SET_OPERATORS:
            negated = op == "NOT IN"
            return self._add(InWhere(column, self._in_values(column, value), negated, boolean))

        if isinstance(value, (list, tuple, set, frozenset)) and op in ("=", "!=", "<>"):
            return self._add(InWhere(column, tuple(value), op != "=", boolean))

        if value is None and op in ("=", "!=", "<>"):
            return self._add(NullWhere(column, op != "=", boolean))

        return self._add(BasicWhere(column, op, value, boolean))

    def or_where(
        self,
        column: str | Mapping[str, Any] | Callable[[QueryBuilder], Any],
        operator: Any = _MISSING,
        value: Any = _MISSING,
    ) -> QueryBuilder:
        return self.where(column, operator, value, boolean="OR")

    def where_group(self, callback: Callable[[QueryBuilder], Any], boolean: str = "AND") -> QueryBuilder:
        """Parenthesized group built by ``callback``; empty groups are dropped."""
        boolean = self._boolean(boolean)
        group = self._new_group()
        callback(group)
        if group._query.wheres:
            self._add(NestedWhere(tuple(group._query.wheres), boolean))
        return self

    def or_where_group(self, callback: Callable[[QueryBuilder], Any]) -> QueryBuilder:
        return self.where_group(callback, "OR")

    def where_in(self, column: str, values: Iterable[Any], boolean: str = "AND") -> QueryBuilder:
        values = self._in_values(column, values)
        return self._add(InWhere(column, values, False, self._boolean(boolean)))

    def or_where_in(self, column: str, values: Iterable[Any]) -> QueryBuilder:
        return self.where_in(column, values, "OR")

    def where_not_in(self, column: str, values: Iterable[Any], boolean: str = "AND") -> QueryBuilder:
        values = self._in_values(column, values)
        return self._add(InWhere(column, values, True, self._boolean(boolean)))

    def or_where_not_in(self, column: str, values: Iterable[Any]) -> QueryBuilder:
        return self.where_not_in(column, values, "OR")

    def where_between(self, column: str, low: Any, high: Any, boolean: str = "AND") -> QueryBuilder:
        return self._add(BetweenWhere(column, low, high, False, self._boolean(boolean)))

    def or_where_between(self, column: str, low: Any, high: Any) -> QueryBuilder:
        return self.where_between(column, low, high, "OR")

    def where_not_between(self, column: str, low: Any, high: Any, boolean: str = "AND") -> QueryBuilder:
        return self._add(BetweenWhere(column, low, high, True, self._boolean(boolean)))

    def where_null(self, column: str, boolean: str = "AND") -> QueryBuilder:
        return self._add(NullWhere(column, False, self._boolean(boolean)))

    def or_where_null(self, column: str) -> QueryBuilder:
        return self.where_null(column, "OR")

    def where_not_null(self, column: str, boolean: str = "AND") -> QueryBuilder:
        return self._add(NullWhere(column, True, self._boolean(boolean)))

    def or_where_not_null(self, column: str) -> QueryBuilder:
        return self.where_not_null(column, "OR")

    # LIKE helpers. A list of values becomes an OR-group of LIKEs.

    def _where_like(self, column: str, values: Any, pattern: str, boolean: str) -> QueryBuilder:
        if isinstance(values, (list, tuple)):

            def _any(group: QueryBuilder) -> None:
                for value in values:
                    group.or_where(column, "LIKE", pattern.format(value))

            return self.where_group(_any, boolean)
        return self.where(column, "LIKE", pattern.format(values), boolean)

    def where_starts(self, column: str, values: str | Sequence[str], boolean: str = "AND") -> QueryBuilder:
        return self._where_like(column, values, "{}%", boolean)

    def or_where_starts(self, column: str, values: str | Sequence[str]) -> QueryBuilder:
        return self._where_like(column, values, "{}%", "OR")

    def where_contains(self, column: str, values: str | Sequence[str], boolean: str = "AND") -> QueryBuilder:
        return self._where_like(column, values, "%{}%", boolean)

    def or_where_contains(self, column: str, values: str | Sequence[str]) -> QueryBuilder:
        return self._where_like(column, values, "%{}%", "OR")

    def where_ends(self, column: str, values: str | Sequence[str], boolean: str = "AND") -> QueryBuilder:
        return self._where_like(column, values, "%{}", boolean)

    def or_where_ends(self, column: str, values: str | Sequence[str]) -> QueryBuilder:
        return self._where_like(column, values, "%{}", "OR")

    # -- JOIN / GROUP / ORDER ----------------------------------------------

    def join(
        self,
        table: str,
        first: str = "",
        operator: str = "=",
        second: str = "",
        kind: str = "INNER",
    ) -> QueryBuilder:
        join_type = kind.upper().strip() if isinstance(kind, str) else kind
        if join_type not in JOIN_TYPES:
            raise InvalidPredicateError(f"Unknown join type {kind!r}", table=self._query.table)
        if join_type != "CROSS":
            if not first or not second:
                raise InvalidPredicateError(
                    f"{join_type} JOIN on {table!r} needs both columns", table=self._query.table
                )
            operator = self._operator(operator)
        self._query.joins.append(Join(join_type, table, first, operator, second))
        return self

    def left_join(self, table: str, first: str, operator: str, second: str) -> QueryBuilder:
        return self.join(table, first, operator, second, kind="LEFT")

    def right_join(self, table: str, first: str, operator: str, second: str) -> QueryBuilder:
        return self.join(table, first, operator, second, kind="RIGHT")

    def cross_join(self, table: str) -> QueryBuilder:
        return self.join(table, kind="CROSS")

    def group_by(self, *columns: str) -> QueryBuilder:
        self._query.groups.extend(columns)
        return self

    def order_by(self, column: str, direction: str = "ASC") -> QueryBuilder:
        value = direction.upper().strip() if isinstance(direction, str) else direction
        if value not in DIRECTIONS:
            raise InvalidPredicateError(
                f"Unknown sort direction {direction!r}; expected ASC or DESC",
                table=self._query.table,
            )
        self._query.orders.append(Order(column, value))
        return self

    def order_by_desc(self, column: str) -> QueryBuilder:
        return self.order_by(column, "DESC")

    # -- LIMIT / OFFSET ----------------------------------------------------

    def limit(self, limit: int) -> QueryBuilder:
        self._query.limit = _non_negative("limit", limit)
        return self

    def offset(self, offset: int) -> QueryBuilder:
        self._query.offset = _non_negative("offset", offset)
        return self

    def for_page(self, page: int, per_page: int = 15) -> QueryBuilder:
        """Set limit/offset for a 1-based ``page``."""
        if page < 1 or per_page < 1:
            raise ValidationError(f"for_page() needs page >= 1 and per_page >= 1, got {page}, {per_page}")
        return self.limit(per_page).offset(offset_for(page, per_page))

    # -- Eager loading -----------------------------------------------------

    def with_(self, *relations: str, strict: bool | None = None) -> QueryBuilder:
        """Eager-load relations of the bound model after the rows are fetched.

        ``strict`` defaults to the adapter's ``strict_relations``.
        """
        for name in relations:
            if isinstance(name, (list, tuple)):
                self._eager.extend(name)
            else:
                self._eager.append(name)
        if strict is not None:
            self._strict = strict
        return self

    def model(self, model_cls: type[Model]) -> QueryBuilder:
        """Bind the model class whose relations ``with_()`` resolves."""
        self._model = model_cls
        return self

    def _load_relations(self, rows: list[Any]) -> list[Any]:
        if not self._eager or self._model is None or not rows:
            return rows
        from quarry.core.orm.eager import EagerLoader

        return EagerLoader(self._db, strict=self._strict).load(self._model, rows, self._eager)

    # -- Compilation -------------------------------------------------------

    def to_sql(self) -> CompiledQuery:
        """Compile the SELECT without executing it."""
        return self._grammar.compile_select(self._query)

    def __repr__(self) -> str:
        return f"QueryBuilder(table={self._query.table!r}, wheres={len(self._query.wheres)})"

    # -- Terminal: reads ---------------------------------------------------

    def fetch_all(self) -> list[Any]:
        """Run the SELECT and return every row (with eager relations attached)."""
        sql, bindings = self.to_sql()
        rows = self._db.execute(sql, bindings).rows
        return self._load_relations(rows)

    get = fetch_all

    def fetch_one(self) -> Any | None:
        """First row (``LIMIT 1`` on a copy of this builder) or ``None``."""
        rows = self.clone().limit(1).fetch_all()
        return rows[0] if rows else None

    first = fetch_one

    def exists(self) -> bool:
        clone = self.clone()
        clone._eager = []
        sql, bindings = clone.select("*").limit(1).to_sql()
        return len(self._db.execute(sql, bindings)) > 0

    def count(self) -> int:
        sql, bindings = self._grammar.compile_count(self._query)
        value = self._db.execute(sql, bindings).scalar()
        return int(value or 0)

    def pluck(self, column: str) -> list[Any]:
        """Values of one column, in row order."""
        clone = self.clone()
        clone._eager = []
        rows = clone.select(column).fetch_all()
        key = column.split(".")[-1]
        return [row[key] if key in row else next(iter(row.values())) for row in rows]

    def paginate(self, per_page: int = 15, page: int = 1) -> Page:
        """Count, validate the page, then fetch it.

        Raises:
            ValidationError: ``per_page`` < 1, ``page`` < 1, or ``page``
                past the last page of a non-empty result.
        """
        if per_page < 1:
            raise ValidationError(f"per_page must be at least 1, got {per_page}")
        if page < 1:
            raise ValidationError(f"page must be at least 1, got {page}")
        total = self.count()
        check_page(total, per_page, page)
        items = self.clone().for_page(page, per_page).fetch_all()
        return Page(items=items, total=total, per_page=per_page, current_page=page)

    # -- Terminal: writes --------------------------------------------------

    def insert(self, data: Mapping[str, Any], returning: str | None = None) -> Any:
        """Insert one row and return its generated key.

        ``returning`` names the key column for grammars that use
        ``RETURNING``; it defaults to the bound model's ``__primary_key__``.
        With neither, the driver's ``lastrowid`` is returned.
        """
        if not data:
            raise ValidationError(f"insert() into {self._query.table!r} needs at least one column")
        if returning is None and self._model is not None:
            returning = self._model.__primary_key__
        sql, bindings = self._grammar.compile_insert(
            self._query.table, list(data.keys()), [list(data.values())], returning=returning
        )
        return self._db.insert_and_return_id(sql, bindings)

    def insert_many(self, rows: Sequence[Mapping[str, Any]]) -> int:
        """Insert several rows in one statement; all rows must share their keys."""
        if not rows:
            return 0
        columns = list(rows[0].keys())
        values = []
        for row in rows:
            if list(row.keys()) != columns:
                raise ValidationError(
                    f"insert_many() rows must share the same columns: {columns} != {list(row.keys())}"
                )
            values.append(list(row.values()))
        sql, bindings = self._grammar.compile_insert(self._query.table, columns, values)
        result = self._db.execute(sql, bindings)
        return result.rowcount if result.rowcount >= 0 else len(rows)

    def update(self, data: Mapping[str, Any]) -> int:
        """Update matching rows; returns the affected row count."""
        if not data:
            raise ValidationError(f"update() on {self._query.table!r} needs at least one column")
        sql, bindings = self._grammar.compile_update(self._query, dict(data))
        return self._db.execute(sql, bindings).rowcount

    def delete(self) -> int:
        """Delete matching rows; returns the affected row count."""
        sql, bindings = self._grammar.compile_delete(self._query)
        return self._db.execute(sql, bindings).rowcount


def _non_negative(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{name} must be a non-negative integer, got {value!r}")
    return value


__all__ = [
    "QueryBuilder",
]
