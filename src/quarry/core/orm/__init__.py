"""Models, relations and eager loading.

Manifesto:
    Loading a relation per parent row turns one page of 50 posts into 51
    queries. The eager loader batches every relation into a single
    ``IN (...)`` query and attaches the results in memory.

Modules
-------
relations  RelationKind, RelationDescriptor, batch loader
model      Model base class and the ``@relation`` decorator
eager      EagerLoader (strict or tolerant name resolution)

Tags:
    quarry, orm, relations, eager-loading, n-plus-one
"""

from quarry.core.orm.eager import EagerLoader
from quarry.core.orm.model import Model, relation
from quarry.core.orm.relations import RelationDescriptor, RelationKind, eager_load

__all__ = [
    "EagerLoader",
    "Model",
    "RelationDescriptor",
    "RelationKind",
    "eager_load",
    "relation",
]
