"""Query building and SQL compilation.

Tags:
    quarry, query-builder, grammar, sql
"""

from .builder import QueryBuilder
from .descriptor import (
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
from .grammar import (
    BaseGrammar,
    Grammar,
    MySQLGrammar,
    PostgreSQLGrammar,
    SQLiteGrammar,
    get_grammar,
    register_grammar,
)
from .pagination import Page

__all__ = [
    # Builder
    "QueryBuilder",
    "Page",
    # Descriptor
    "QueryDescriptor",
    "CompiledQuery",
    "Where",
    "BasicWhere",
    "InWhere",
    "BetweenWhere",
    "NullWhere",
    "NestedWhere",
    "Join",
    "Order",
    # Grammars
    "Grammar",
    "BaseGrammar",
    "SQLiteGrammar",
    "MySQLGrammar",
    "PostgreSQLGrammar",
    "get_grammar",
    "register_grammar",
]
