"""
Structured error types for quarry.

Every failure the persistence core surfaces is a :class:`QuarryError`
subclass carrying a category, structured context and the chained engine
exception. Callers (CLI commands, web controllers) decide how to present
them; the core never logs-and-continues.

Manifesto:
    - **Typed Error Hierarchy:** One class per failure mode of the core
    - **Rich Context:** Errors carry the SQL, bindings, version or path involved
    - **Error Chaining:** The driver exception is kept as ``cause``
    - **No swallowing:** Errors propagate to the immediate caller

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                        QuarryError                           │
        │              (category, context, cause)                      │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  DatabaseError        ConfigurationError   ValidationError   │
        │  (DATABASE)           (CONFIG)             (VALIDATION)      │
        │     │                                          │             │
        │  ConnectionFailure                     InvalidPredicateError │
        │  QueryFailure                                                │
        │                                                              │
        │  MigrationFailure     RelationError                          │
        │  (MIGRATION)          (RELATION)                             │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> err = QueryFailure("no such table: users", sql="SELECT * FROM users")
    >>> err.category
    <ErrorCategory.DATABASE: 'DATABASE'>
    >>> err.context.sql
    'SELECT * FROM users'

    >>> try:
    ...     raise ValueError("boom")
    ... except ValueError as e:
    ...     err = MigrationFailure("up() failed", version="2024_add_users", cause=e)
    >>> err.version
    '2024_add_users'

Guardrails:
    ❌ DON'T: Raise bare Exception from the core
    ✅ DO: Use the QuarryError subclass for the failure mode

    ❌ DON'T: Drop the driver exception
    ✅ DO: Pass it as cause= so tracebacks keep the engine message

Tags:
    error-handling, exception-hierarchy, error-context, quarry
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used for classification and CLI exit reporting."""

    DATABASE = "DATABASE"  # Connection, execution
    CONFIG = "CONFIG"  # Settings, bad script files
    VALIDATION = "VALIDATION"  # Malformed fluent calls
    MIGRATION = "MIGRATION"  # up()/down() failures
    RELATION = "RELATION"  # Eager-loading resolution
    INTERNAL = "INTERNAL"  # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only the fields relevant to the failure are set; ``to_dict()`` drops
    the rest so log lines stay small.

    Attributes:
        sql: Statement text that failed
        bindings: Positional bindings sent with the statement
        table: Table the builder was scoped to
        version: Migration version identifier
        path: Script file or directory involved
        relation: Relation name during eager loading
        metadata: Additional key-value pairs
    """

    sql: str | None = None
    bindings: list[Any] | None = None
    table: str | None = None
    version: str | None = None
    path: str | None = None
    relation: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        for key in ["sql", "bindings", "table", "version", "path", "relation"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class QuarryError(Exception):
    """
    Base exception for all quarry errors.

    Subclasses set ``default_category``. Context can be given up front or
    added fluently with :meth:`with_context`.

    Examples:
        >>> error = QuarryError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(table="users").context.table
        'users'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> QuarryError:
        """
        Add context to this error (fluent API).

        Usage:
            raise QueryFailure("failed").with_context(table="users")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(QuarryError):
    """Database-related error."""

    default_category = ErrorCategory.DATABASE


class ConnectionFailure(DatabaseError):
    """The connection could not be established (host, credentials, SQLite path).

    Fatal and never retried by the core.
    """


class QueryFailure(DatabaseError):
    """A statement failed at execution; the engine message is kept verbatim."""

    def __init__(
        self,
        message: str,
        *,
        sql: str | None = None,
        bindings: list[Any] | tuple[Any, ...] | None = None,
        cause: BaseException | None = None,
    ):
        context = ErrorContext(
            sql=sql,
            bindings=list(bindings) if bindings is not None else None,
        )
        super().__init__(message, context=context, cause=cause)

    @property
    def sql(self) -> str | None:
        return self.context.sql

    @property
    def bindings(self) -> list[Any] | None:
        return self.context.bindings


# =============================================================================
# CONFIGURATION / VALIDATION ERRORS
# =============================================================================


class ConfigurationError(QuarryError):
    """Invalid settings or a script file that does not produce what it must."""

    default_category = ErrorCategory.CONFIG

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message, context=ErrorContext(path=path), cause=cause)

    @property
    def path(self) -> str | None:
        return self.context.path


class ValidationError(QuarryError):
    """Input validation error."""

    default_category = ErrorCategory.VALIDATION


class InvalidPredicateError(ValidationError):
    """A fluent builder call used an unknown operator, connective, join type or direction.

    Raised at the call site, not at compile time.
    """

    def __init__(self, message: str, *, table: str | None = None):
        super().__init__(message, context=ErrorContext(table=table))


# =============================================================================
# MIGRATION / RELATION ERRORS
# =============================================================================


class MigrationFailure(QuarryError):
    """A migration could not be loaded, or its ``up()``/``down()`` raised.

    The ledger is left as "not yet applied" (migrate) or "still applied"
    (rollback) for the named version.
    """

    default_category = ErrorCategory.MIGRATION

    def __init__(
        self,
        message: str,
        *,
        version: str,
        path: str | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(
            message,
            context=ErrorContext(version=version, path=path),
            cause=cause,
        )

    @property
    def version(self) -> str:
        return self.context.version or ""


class RelationError(QuarryError):
    """Relation name could not be resolved (strict eager loading only)."""

    default_category = ErrorCategory.RELATION

    def __init__(self, message: str, *, relation: str, table: str | None = None):
        super().__init__(message, context=ErrorContext(relation=relation, table=table))

    @property
    def relation(self) -> str:
        return self.context.relation or ""


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "QuarryError",
    "DatabaseError",
    "ConnectionFailure",
    "QueryFailure",
    "ConfigurationError",
    "ValidationError",
    "InvalidPredicateError",
    "MigrationFailure",
    "RelationError",
]
