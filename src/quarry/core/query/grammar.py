"""SQL grammars: compile a query descriptor into SQL text plus bindings.

A ``Grammar`` turns a :class:`~quarry.core.query.descriptor.QueryDescriptor`
into one statement with ``?`` placeholders and the binding list in the
textual order of those placeholders. Adapters whose driver uses another
paramstyle rewrite the placeholders at execution time, so grammars only
differ in identifier quoting, pagination syntax and DDL details.

Manifesto:
    The builder should never concatenate values into SQL, and two
    compilations of the same query must be byte-identical so statements
    can be cached and asserted on in tests.

    - **One interface:** Grammar protocol for every statement kind
    - **Deterministic:** Declaration order in, textual order out
    - **Bindings travel with SQL:** every compile returns both together

Architecture::

    QueryDescriptor ──► Grammar.compile_select() ──► CompiledQuery(sql, bindings)

    ┌──────────────┐ ┌──────────────┐ ┌──────────────────┐
    │ SQLite       │ │ MySQL        │ │ PostgreSQL       │
    │ "col"        │ │ `col`        │ │ "col"            │
    │ LIMIT -1 OFF │ │ LIMIT 2^64-1 │ │ OFFSET n         │
    │              │ │              │ │ RETURNING pk     │
    └──────────────┘ └──────────────┘ └──────────────────┘

Examples:
    >>> from quarry.core.query.descriptor import QueryDescriptor, InWhere
    >>> g = get_grammar("sqlite")
    >>> q = QueryDescriptor(table="users", wheres=[InWhere("id", (1, 2))])
    >>> g.compile_select(q).sql
    'SELECT * FROM "users" WHERE "id" IN (?, ?)'

Guardrails:
    ❌ DON'T: Put values into the SQL text
    ✅ DO: Emit a placeholder and append the value to the bindings

    ❌ DON'T: Reorder predicates
    ✅ DO: Join clauses by their declared connective, in declaration order

Tags:
    grammar, sql, compiler, dialect, quarry
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from quarry.core.errors import ConfigurationError
from quarry.core.query.descriptor import (
    BasicWhere,
    BetweenWhere,
    CompiledQuery,
    InWhere,
    Join,
    NestedWhere,
    NullWhere,
    QueryDescriptor,
    Where,
)

_ALIAS_RE = re.compile(r"\s+AS\s+", re.IGNORECASE)


@runtime_checkable
class Grammar(Protocol):
    """SQL grammar contract."""

    @property
    def name(self) -> str:
        """Grammar name (``'sqlite'``, ``'mysql'``, ``'postgresql'``)."""
        ...

    def wrap_identifier(self, identifier: str) -> str:
        """Quote a table/column identifier, keeping ``a.b`` and ``AS alias``."""
        ...

    def compile_select(self, query: QueryDescriptor) -> CompiledQuery:
        ...

    def compile_count(self, query: QueryDescriptor) -> CompiledQuery:
        """``SELECT COUNT(*) AS aggregate FROM (<select>) AS sub`` without limit/offset."""
        ...

    def compile_insert(
        self,
        table: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        returning: str | None = None,
    ) -> CompiledQuery:
        ...

    def compile_update(self, query: QueryDescriptor, values: dict[str, Any]) -> CompiledQuery:
        """SET bindings first, then WHERE bindings."""
        ...

    def compile_delete(self, query: QueryDescriptor) -> CompiledQuery:
        ...

    def compile_create_ledger(self, table: str) -> str:
        """DDL for the migration ledger table (no ``IF NOT EXISTS``)."""
        ...

    @property
    def supports_returning(self) -> bool:
        """Whether inserts report generated keys via ``RETURNING``."""
        ...


# =========================================================================
# Shared compiler
# =========================================================================


class BaseGrammar:
    """Compiler shared by every dialect; subclasses set quoting and overrides."""

    opening = '"'
    closing = '"'
    supports_returning = False

    @property
    def name(self) -> str:
        raise NotImplementedError

    # -- Identifiers -------------------------------------------------------

    def wrap_identifier(self, identifier: str) -> str:
        clean = identifier.replace(self.opening, "").replace(self.closing, "").strip()

        # Function calls and wildcards pass through untouched
        if "(" in clean or "*" in clean:
            return identifier

        alias = ""
        match = _ALIAS_RE.search(clean)
        if match:
            alias = " AS " + self._wrap_segment(clean[match.end():].strip())
            clean = clean[: match.start()]

        wrapped = ".".join(self._wrap_segment(s) for s in clean.split("."))
        return wrapped + alias

    def _wrap_segment(self, segment: str) -> str:
        return f"{self.opening}{segment.strip()}{self.closing}"

    def columnize(self, columns: Sequence[str]) -> str:
        return ", ".join(self.wrap_identifier(c) for c in columns)

    # -- SELECT ------------------------------------------------------------

    def compile_select(self, query: QueryDescriptor) -> CompiledQuery:
        bindings: list[Any] = []
        columns = query.columns or ["*"]

        sql = f"SELECT {self.columnize(columns)} FROM {self.wrap_identifier(query.table)}"
        if query.alias:
            sql += f" AS {self.wrap_identifier(query.alias)}"

        if query.joins:
            sql += " " + self.compile_joins(query.joins)

        if query.wheres:
            where_sql = self.compile_wheres(query.wheres, bindings)
            sql += f" WHERE {where_sql}"

        if query.groups:
            sql += f" GROUP BY {self.columnize(query.groups)}"

        if query.orders:
            orders = ", ".join(
                f"{self.wrap_identifier(o.column)} {o.direction}" for o in query.orders
            )
            sql += f" ORDER BY {orders}"

        pagination = self.compile_limit(query.limit, query.offset)
        if pagination:
            sql += f" {pagination}"

        return CompiledQuery(sql, bindings)

    def compile_count(self, query: QueryDescriptor) -> CompiledQuery:
        inner = self.compile_select(query.copy(limit=None, offset=None))
        return CompiledQuery(
            f"SELECT COUNT(*) AS aggregate FROM ({inner.sql}) AS sub",
            inner.bindings,
        )

    def compile_limit(self, limit: int | None, offset: int | None) -> str:
        if limit is None and offset is None:
            return ""
        if limit is None:
            return f"LIMIT -1 OFFSET {offset}"
        if offset is None:
            return f"LIMIT {limit}"
        return f"LIMIT {limit} OFFSET {offset}"

    def compile_joins(self, joins: Sequence[Join]) -> str:
        clauses = []
        for join in joins:
            clause = f"{join.kind} JOIN {self.wrap_identifier(join.table)}"
            if join.kind != "CROSS":
                clause += (
                    f" ON {self.wrap_identifier(join.first)} {join.operator} "
                    f"{self.wrap_identifier(join.second)}"
                )
            clauses.append(clause)
        return " ".join(clauses)

    # -- WHERE -------------------------------------------------------------

    def compile_wheres(self, wheres: Sequence[Where], bindings: list[Any]) -> str:
        """Compile predicates in declaration order, appending to ``bindings``."""
        parts: list[str] = []
        for index, where in enumerate(wheres):
            clause = self._compile_where(where, bindings)
            parts.append(clause if index == 0 else f" {where.boolean} {clause}")
        return "".join(parts)

    def _compile_where(self, where: Where, bindings: list[Any]) -> str:
        if isinstance(where, BasicWhere):
            bindings.append(where.value)
            return f"{self.wrap_identifier(where.column)} {where.operator} ?"

        if isinstance(where, InWhere):
            if not where.values:
                # Empty IN matches nothing; empty NOT IN matches everything
                return "1 = 1" if where.negated else "1 = 0"
            bindings.extend(where.values)
            placeholders = ", ".join("?" for _ in where.values)
            operator = "NOT IN" if where.negated else "IN"
            return f"{self.wrap_identifier(where.column)} {operator} ({placeholders})"

        if isinstance(where, BetweenWhere):
            bindings.extend([where.low, where.high])
            operator = "NOT BETWEEN" if where.negated else "BETWEEN"
            return f"{self.wrap_identifier(where.column)} {operator} ? AND ?"

        if isinstance(where, NullWhere):
            operator = "IS NOT NULL" if where.negated else "IS NULL"
            return f"{self.wrap_identifier(where.column)} {operator}"

        if isinstance(where, NestedWhere):
            return f"({self.compile_wheres(where.wheres, bindings)})"

        raise TypeError(f"Unknown predicate type {type(where).__name__}")

    # -- DML ---------------------------------------------------------------

    def compile_insert(
        self,
        table: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        returning: str | None = None,
    ) -> CompiledQuery:
        bindings: list[Any] = []
        groups = []
        for row in rows:
            bindings.extend(row)
            groups.append("(" + ", ".join("?" for _ in row) + ")")

        sql = (
            f"INSERT INTO {self.wrap_identifier(table)} ({self.columnize(columns)}) "
            f"VALUES {', '.join(groups)}"
        )
        if returning and self.supports_returning:
            sql += f" RETURNING {self.wrap_identifier(returning)}"
        return CompiledQuery(sql, bindings)

    def compile_update(self, query: QueryDescriptor, values: dict[str, Any]) -> CompiledQuery:
        bindings: list[Any] = list(values.values())
        sets = ", ".join(f"{self.wrap_identifier(c)} = ?" for c in values)
        sql = f"UPDATE {self.wrap_identifier(query.table)} SET {sets}"
        if query.wheres:
            sql += f" WHERE {self.compile_wheres(query.wheres, bindings)}"
        return CompiledQuery(sql, bindings)

    def compile_delete(self, query: QueryDescriptor) -> CompiledQuery:
        bindings: list[Any] = []
        sql = f"DELETE FROM {self.wrap_identifier(query.table)}"
        if query.wheres:
            sql += f" WHERE {self.compile_wheres(query.wheres, bindings)}"
        return CompiledQuery(sql, bindings)

    # -- DDL ---------------------------------------------------------------

    def compile_create_ledger(self, table: str) -> str:
        return (
            f"CREATE TABLE {self.wrap_identifier(table)} ("
            f"{self.wrap_identifier('version')} VARCHAR(255) PRIMARY KEY, "
            f"{self.wrap_identifier('applied_at')} DATETIME NOT NULL)"
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


# =========================================================================
# Concrete Grammars
# =========================================================================


class SQLiteGrammar(BaseGrammar):
    """SQLite grammar: ``"`` quoting, ``LIMIT -1`` for offset-only pages."""

    @property
    def name(self) -> str:
        return "sqlite"

    def compile_create_ledger(self, table: str) -> str:
        return (
            f"CREATE TABLE {self.wrap_identifier(table)} ("
            f"{self.wrap_identifier('version')} TEXT PRIMARY KEY, "
            f"{self.wrap_identifier('applied_at')} DATETIME NOT NULL)"
        )


class MySQLGrammar(BaseGrammar):
    """MySQL / MariaDB grammar: backtick quoting, InnoDB ledger."""

    opening = "`"
    closing = "`"

    @property
    def name(self) -> str:
        return "mysql"

    def compile_limit(self, limit: int | None, offset: int | None) -> str:
        if limit is None and offset is not None:
            # MySQL has no OFFSET without LIMIT; use the documented max row count
            return f"LIMIT 18446744073709551615 OFFSET {offset}"
        return super().compile_limit(limit, offset)

    def compile_create_ledger(self, table: str) -> str:
        return super().compile_create_ledger(table) + " ENGINE=InnoDB DEFAULT CHARSET=utf8mb4"


class PostgreSQLGrammar(BaseGrammar):
    """PostgreSQL grammar: ``"`` quoting, ``RETURNING`` for generated keys."""

    supports_returning = True

    @property
    def name(self) -> str:
        return "postgresql"

    def compile_limit(self, limit: int | None, offset: int | None) -> str:
        if limit is None and offset is not None:
            return f"OFFSET {offset}"
        return super().compile_limit(limit, offset)

    def compile_create_ledger(self, table: str) -> str:
        return (
            f"CREATE TABLE {self.wrap_identifier(table)} ("
            f"{self.wrap_identifier('version')} VARCHAR(255) PRIMARY KEY, "
            f"{self.wrap_identifier('applied_at')} TIMESTAMP NOT NULL)"
        )


# =========================================================================
# Registry / Factory
# =========================================================================

# Grammars are stateless; share one instance per dialect
_GRAMMARS: dict[str, Grammar] = {
    "sqlite": SQLiteGrammar(),
    "mysql": MySQLGrammar(),
    "mariadb": MySQLGrammar(),
    "postgresql": PostgreSQLGrammar(),
    "postgres": PostgreSQLGrammar(),
}


def get_grammar(name: str) -> Grammar:
    """Get a grammar by dialect name.

    Raises:
        ConfigurationError: If ``name`` is not registered.
    """
    key = name.lower() if isinstance(name, str) else name.value
    if key not in _GRAMMARS:
        raise ConfigurationError(
            f"Unknown grammar '{name}'. Supported: {sorted(_GRAMMARS)}"
        )
    return _GRAMMARS[key]


def register_grammar(name: str, grammar: Grammar) -> None:
    """Register a custom grammar (third-party dialects, test doubles)."""
    _GRAMMARS[name.lower()] = grammar


__all__ = [
    "Grammar",
    "BaseGrammar",
    "SQLiteGrammar",
    "MySQLGrammar",
    "PostgreSQLGrammar",
    "get_grammar",
    "register_grammar",
]
