"""
quarry logging - structured logging for the persistence core.

Manifesto:
    Schema changes and failed statements must leave a trail that can be
    grepped and shipped to a log store. Every quarry module logs through
    ``get_logger(__name__)`` with a dotted event name and key/value fields:

    - ``database.*``   connect / disconnect
    - ``query.*``      executed and failed statements (debug)
    - ``migration.*``  applied, rolled back, failed, missing files
    - ``seeder.*``     seeders run
    - ``relation.*``   eager-loading decisions (debug)

    Output goes to stderr so command output on stdout stays parseable.

Examples:
    >>> from quarry.core.logging import configure_logging, get_logger
    >>> configure_logging(level="INFO", json_format=True)
    >>> logger = get_logger(__name__)
    >>> logger.info("migration.applied", version="20240101000000_create_users")

Tags:
    logging, structlog, observability, quarry
"""

from __future__ import annotations

import logging
import re
import sys
from typing import Any, TextIO

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

SQL_LOG_LIMIT = 500

_service_name = "quarry"
_WHITESPACE = re.compile(r"\s+")


# =============================================================================
# Processors
# =============================================================================


def _add_service(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service.name", _service_name)
    return event_dict


def _compact_sql(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Fold whitespace in ``sql`` fields and cap their length."""
    sql = event_dict.get("sql")
    if isinstance(sql, str):
        sql = _WHITESPACE.sub(" ", sql).strip()
        if len(sql) > SQL_LOG_LIMIT:
            sql = sql[:SQL_LOG_LIMIT] + "..."
        event_dict["sql"] = sql
    return event_dict


def _ecs_fields(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Rename ``timestamp``/``level`` to their ECS names for log shippers."""
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")
    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")
    return event_dict


def _processors(json_format: bool, add_timestamp: bool, colors: bool) -> list[Processor]:
    chain: list[Processor] = []
    if add_timestamp:
        chain.append(structlog.processors.TimeStamper(fmt="iso"))
    chain += [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service,
        _compact_sql,
    ]
    if json_format:
        chain += [_ecs_fields, structlog.processors.JSONRenderer()]
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=colors))
    return chain


# =============================================================================
# Configuration
# =============================================================================


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "quarry",
    add_timestamp: bool = True,
    stream: TextIO | None = None,
) -> None:
    """Configure structlog for quarry.

    Args:
        level: DEBUG logs every statement; INFO logs migrations and seeders.
        json_format: True for JSON lines, False for console output, None
            for JSON unless ``stream`` is a terminal.
        service: Value of the ``service.name`` field.
        add_timestamp: Include an ISO timestamp.
        stream: Destination, stderr by default.
    """
    global _service_name
    _service_name = service

    out = stream or sys.stderr
    is_tty = out.isatty()
    if json_format is None:
        json_format = not is_tty

    numeric_level = getattr(logging, level.upper())
    structlog.configure(
        processors=_processors(json_format, add_timestamp, colors=is_tty),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        cache_logger_on_first_use=False,
    )

    # Driver libraries log through the stdlib
    logging.basicConfig(format="%(name)s %(message)s", stream=out, level=numeric_level)


def get_logger(name: str | None = None) -> Any:
    """Structured logger, usually ``get_logger(__name__)``."""
    if name is None:
        return structlog.get_logger()
    return structlog.get_logger(name)


# =============================================================================
# Context binding
# =============================================================================


def bind_context(**kwargs: Any) -> None:
    """Attach fields to every later log line in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Bind fields for the duration of a ``with`` block.

    Example:
        with LogContext(command="migrate", path="database/migrations"):
            runner.migrate(path)
    """

    def __init__(self, **fields: Any):
        self._fields = fields

    def __enter__(self) -> LogContext:
        bind_context(**self._fields)
        return self

    def __exit__(self, *exc: Any) -> None:
        unbind_context(*self._fields)


__all__ = [
    "LogContext",
    "SQL_LOG_LIMIT",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "unbind_context",
]
