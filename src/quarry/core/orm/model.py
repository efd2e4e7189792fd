"""Model base class with a declarative relation registry.

A model is a table name, a primary key and a set of named relations.
Rows stay plain dicts; the model class is what the query builder and
the eager loader consult to resolve ``with_("posts")``.

Example::

    class User(Model):
        __table__ = "users"

        @relation
        def posts(cls):
            return cls.has_many(Post, "user_id")


    class Post(Model):
        __table__ = "posts"

        @relation
        def author(cls):
            return cls.belongs_to(User, "user_id")


    Post.query(db).with_("author").fetch_all()
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, ClassVar

from quarry.core.orm.relations import RelationDescriptor, RelationKind

if TYPE_CHECKING:
    from quarry.core.adapters.base import DatabaseAdapter
    from quarry.core.query.builder import QueryBuilder

_RELATION_MARK = "__quarry_relation__"


def relation(fn: Callable[..., Any]) -> classmethod:
    """Declare a relation factory on a :class:`Model` subclass.

    The decorated function receives the class and returns a
    :class:`RelationDescriptor`, usually via :meth:`Model.belongs_to`,
    :meth:`Model.has_many` or :meth:`Model.has_one`.
    """
    setattr(fn, _RELATION_MARK, True)
    return classmethod(fn)


def _table_of(related: type[Model] | str) -> str:
    if isinstance(related, str):
        return related
    return related.__table__


def _key_of(related: type[Model] | str) -> str:
    if isinstance(related, str):
        return "id"
    return related.__primary_key__


class Model:
    """Base class for table-backed models."""

    __table__: ClassVar[str] = ""
    __primary_key__: ClassVar[str] = "id"
    __relations__: ClassVar[frozenset[str]] = frozenset()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        names = set()
        for base in cls.__mro__[1:]:
            names.update(getattr(base, "__relations__", ()))
        for name, attr in vars(cls).items():
            if isinstance(attr, classmethod) and getattr(attr.__func__, _RELATION_MARK, False):
                names.add(name)
        cls.__relations__ = frozenset(names)

    # -- Relation registry -------------------------------------------------

    @classmethod
    def relation_names(cls) -> list[str]:
        return sorted(cls.__relations__)

    @classmethod
    def has_relation(cls, name: str) -> bool:
        return name in cls.__relations__

    @classmethod
    def resolve_relation(cls, name: str) -> Any:
        """Call the factory registered as ``name``; ``None`` if there is none.

        The result is returned unchecked so callers can tell a missing
        relation from a factory that returned the wrong type.
        """
        if name not in cls.__relations__:
            return None
        return getattr(cls, name)()

    # -- Descriptor helpers ------------------------------------------------

    @classmethod
    def belongs_to(
        cls,
        related: type[Model] | str,
        foreign_key: str,
        owner_key: str = "id",
        name: str = "",
    ) -> RelationDescriptor:
        """This model's ``foreign_key`` column points at ``related.owner_key``."""
        return RelationDescriptor(
            name=name,
            kind=RelationKind.BELONGS_TO,
            parent_table=cls.__table__,
            related_table=_table_of(related),
            local_key=foreign_key,
            foreign_key=owner_key,
            related_key=_key_of(related),
        )

    @classmethod
    def has_many(
        cls,
        related: type[Model] | str,
        foreign_key: str,
        local_key: str | None = None,
        name: str = "",
    ) -> RelationDescriptor:
        """``related.foreign_key`` points at this model's ``local_key`` (primary key by default)."""
        return RelationDescriptor(
            name=name,
            kind=RelationKind.HAS_MANY,
            parent_table=cls.__table__,
            related_table=_table_of(related),
            local_key=local_key or cls.__primary_key__,
            foreign_key=foreign_key,
            related_key=_key_of(related),
        )

    @classmethod
    def has_one(
        cls,
        related: type[Model] | str,
        foreign_key: str,
        local_key: str | None = None,
        name: str = "",
    ) -> RelationDescriptor:
        """Like :meth:`has_many`, keeping the first related row."""
        return RelationDescriptor(
            name=name,
            kind=RelationKind.HAS_ONE,
            parent_table=cls.__table__,
            related_table=_table_of(related),
            local_key=local_key or cls.__primary_key__,
            foreign_key=foreign_key,
            related_key=_key_of(related),
        )

    # -- Queries -----------------------------------------------------------

    @classmethod
    def query(cls, db: DatabaseAdapter) -> QueryBuilder:
        """Builder on ``__table__`` bound to this model for ``with_()``."""
        return db.table(cls.__table__).model(cls)

    @classmethod
    def find(cls, db: DatabaseAdapter, id: Any) -> dict[str, Any] | None:
        return cls.query(db).where(cls.__primary_key__, id).fetch_one()

    @classmethod
    def all(cls, db: DatabaseAdapter) -> list[dict[str, Any]]:
        return cls.query(db).fetch_all()


__all__ = [
    "Model",
    "relation",
]
