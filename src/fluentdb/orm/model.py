"""Active-record style models on top of the query builders."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from typing import TYPE_CHECKING, Any, ClassVar, Self

from fluentdb.core.inflector import WordInflector, default_inflector, snake_case
from fluentdb.core.types import Dialect
from fluentdb.exceptions import BadMethodCallError, InvalidArgumentError, ModelNotFoundError
from fluentdb.orm.collection import ModelCollection
from fluentdb.orm.mixins import SoftDeletes, now
from fluentdb.orm.query import ModelQuery
from fluentdb.orm.relations import HasMany, HasOne, Relation
from fluentdb.query.facade import Query

if TYPE_CHECKING:
    from fluentdb.core.executor import StatementExecutor
    from fluentdb.query.clauses import WhereBuilder

logger = logging.getLogger(__name__)


class Model:
    """Base class for models.

    Attributes are the row's columns and can be read as attributes or
    items (``user.name`` / ``user["name"]``). Loaded relations are available
    by item access under the relation method's name (``user["posts"]``).

    Class configuration:
        __table__: Table name; defaults to the pluralized snake_case class name
        primary_key: Primary key column (default ``id``)
        find_by: Column used by ``find()`` (default: the primary key)

    Example:
        class User(Model):
            def posts(self) -> HasMany:
                return self.has_many(Post)

        User.use(connection)
        user = User.create({"name": "Ada"})
        users = User.where("name", "like", "A%").with_("posts").get()
    """

    __table__: ClassVar[str | None] = None
    primary_key: ClassVar[str] = "id"
    find_by: ClassVar[str | None] = None

    _connection: ClassVar[StatementExecutor | None] = None
    _dialect: ClassVar[Dialect | str | None] = None
    _inflector: ClassVar[WordInflector | None] = None

    def __init__(self, attributes: Mapping[str, Any] | None = None, **values: Any) -> None:
        object.__setattr__(self, "_attributes", {**(attributes or {}), **values})
        object.__setattr__(self, "_relations", {})
        object.__setattr__(self, "_exists", False)
        object.__setattr__(self, "old_attributes", {})

    # -------------------------------------------------------------------------
    # Class configuration
    # -------------------------------------------------------------------------

    @classmethod
    def use(
        cls,
        connection: StatementExecutor | None,
        *,
        dialect: Dialect | str | None = None,
        inflector: WordInflector | None = None,
    ) -> None:
        """Bind this model class (and its subclasses) to a connection."""
        cls._connection = connection
        cls._dialect = dialect
        cls._inflector = inflector

    @classmethod
    def inflector(cls) -> WordInflector:
        return cls._inflector or default_inflector()

    @classmethod
    def table_name(cls) -> str:
        if cls.__table__:
            return cls.__table__
        return cls.inflector().pluralize(snake_case(cls.__name__))

    @classmethod
    def lookup_column(cls) -> str:
        return cls.find_by or cls.primary_key

    @classmethod
    def soft_delete_column(cls) -> str | None:
        if issubclass(cls, SoftDeletes):
            return cls.deleted_at_column
        return None

    @classmethod
    def timestamp(cls) -> str:
        return now()

    @classmethod
    def facade(cls) -> Query:
        """Query facade targeting this model's table and hydrating rows."""
        return (
            Query(cls._connection, dialect=cls._dialect, inflector=cls.inflector())
            .table(cls.table_name())
            .model(cls._hydrate)
        )

    @classmethod
    def _hydrate(cls, row: Mapping[str, Any]) -> Self:
        model = cls(row)
        object.__setattr__(model, "_exists", True)
        return model

    @classmethod
    def relation_method(cls, name: str) -> Callable[[Model], Relation]:
        """Return the unbound relation method ``name``.

        Raises:
            BadMethodCallError: If the model defines no such method
        """
        method = getattr(cls, name, None) if not name.startswith("_") else None
        if not callable(method):
            candidates = [attr for attr in vars(cls) if callable(getattr(cls, attr)) and not attr.startswith("_")]
            raise BadMethodCallError(
                name,
                cls.__name__,
                candidates,
                message=f"Unknown relationship method `{name}` on `{cls.__name__}`.",
            )
        return method

    # -------------------------------------------------------------------------
    # Class-level query API
    # -------------------------------------------------------------------------

    @classmethod
    def query(cls) -> ModelQuery[Self]:
        return ModelQuery(cls)

    @classmethod
    def where(
        cls,
        column: str | Callable[[WhereBuilder], Any],
        comparison: Any = None,
        *value: Any,
    ) -> ModelQuery[Self]:
        return cls.query().where(column, comparison, *value)

    @classmethod
    def all(cls) -> ModelCollection:
        return cls.query().get()

    @classmethod
    def find(cls, value: Any) -> Self | None:
        return cls.query().find(value)

    @classmethod
    def find_or_fail(cls, value: Any) -> Self:
        return cls.query().find_or_fail(value)

    @classmethod
    def first(cls) -> Self | None:
        return cls.query().first()

    @classmethod
    def last(cls) -> Self | None:
        return cls.query().last()

    @classmethod
    def with_(cls, *relations: str) -> ModelQuery[Self]:
        return cls.query().with_(*relations)

    @classmethod
    def create(cls, data: Mapping[str, Any]) -> Self:
        """Insert a row and return it as a saved model."""
        model = cls(data)
        model.save()
        return model

    # -------------------------------------------------------------------------
    # Write hooks
    # -------------------------------------------------------------------------

    def _before_insert(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return dict(data)

    def _before_update(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return dict(data)

    # -------------------------------------------------------------------------
    # Instance API
    # -------------------------------------------------------------------------

    @property
    def exists(self) -> bool:
        """Whether this model was loaded from or saved to the database."""
        return self._exists

    def get_id(self) -> Any:
        return self._attributes.get(self.primary_key)

    def save(self) -> bool:
        """Insert the model, or update it when it already exists."""
        if self._exists and self.get_id() is not None:
            changes = {key: value for key, value in self._attributes.items() if key != self.primary_key}
            return self.update(changes)

        data = self._before_insert(self._attributes)
        statement = self.facade().insert(data)
        statement.execute()

        self._attributes.update(data)
        if self.get_id() is None:
            self._attributes[self.primary_key] = statement.last_insert_id
        object.__setattr__(self, "_exists", True)
        logger.debug(f"Inserted {type(self).__name__} {self.get_id()!r}")
        return True

    def update(self, data: Mapping[str, Any] | None = None, **values: Any) -> bool:
        """Update columns of this model's row; keeps the previous values in ``old_attributes``.

        Raises:
            InvalidArgumentError: If the model has no primary key value yet
        """
        changes = {**(data or {}), **values}
        if not changes:
            return False
        if self.get_id() is None:
            raise InvalidArgumentError(
                f"Cannot update a `{type(self).__name__}` that has no `{self.primary_key}`; save() it first.",
            )

        changes = self._before_update(changes)
        statement = self.facade().update().set(changes).where(self.primary_key, self.get_id())
        statement.execute()

        object.__setattr__(self, "old_attributes", dict(self._attributes))
        self._attributes.update(changes)
        return statement.rowcount > 0

    def destroy(self) -> bool:
        """Delete this model's row (or soft delete it)."""
        if self.get_id() is None:
            return False

        deleted_at = self.soft_delete_column()
        if deleted_at is not None:
            return self.update({deleted_at: self.timestamp()})

        statement = self.facade().delete().where(self.primary_key, self.get_id())
        statement.execute()
        object.__setattr__(self, "_exists", False)
        return statement.rowcount > 0

    def delete(self) -> bool:
        return self.destroy()

    def refresh(self) -> Self:
        """Reload the attributes from the database.

        Raises:
            ModelNotFoundError: If the row no longer exists
        """
        if self.get_id() is None:
            return self
        fresh = type(self).query().with_trashed().where(self.primary_key, self.get_id()).first()
        if fresh is None:
            raise ModelNotFoundError(type(self).__name__, self.primary_key, self.get_id())
        self._attributes.clear()
        self._attributes.update(fresh.to_dict())
        self._relations.clear()
        return self

    def load(self, *relations: str) -> Self:
        """Load relations onto this model now."""
        for name in relations:
            relation = self.relation_method(name)(self)
            self._relations[name] = relation.get_results()
        return self

    def has_one(
        self,
        related: type[Model],
        foreign_key: str | None = None,
        local_key: str | None = None,
    ) -> HasOne:
        return HasOne(self, related, foreign_key, local_key)

    def has_many(
        self,
        related: type[Model],
        foreign_key: str | None = None,
        local_key: str | None = None,
    ) -> HasMany:
        return HasMany(self, related, foreign_key, local_key)

    def set_relation(self, name: str, value: Any) -> None:
        self._relations[name] = value

    @property
    def relations(self) -> dict[str, Any]:
        return dict(self._relations)

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._attributes:
            return self._attributes[key]
        return self._relations.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        """Attributes plus loaded relations, as plain dicts and lists."""
        data = dict(self._attributes)
        for name, value in self._relations.items():
            if isinstance(value, Model):
                data[name] = value.to_dict()
            elif isinstance(value, ModelCollection):
                data[name] = value.to_dicts()
            else:
                data[name] = value
        return data

    # -------------------------------------------------------------------------
    # Attribute and item access
    # -------------------------------------------------------------------------

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._attributes[name]
        except KeyError:
            raise AttributeError(
                f"Attribute `{name}` does not exist on model `{type(self).__name__}`."
            ) from None

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_") or name in self.__dict__ or hasattr(type(self), name):
            object.__setattr__(self, name, value)
        else:
            self._attributes[name] = value

    def __getitem__(self, key: str) -> Any:
        if key in self._attributes:
            return self._attributes[key]
        return self._relations[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._attributes[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._attributes or key in self._relations

    def __iter__(self) -> Iterator[str]:
        return iter(self._attributes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Model):
            return NotImplemented
        return type(self) is type(other) and self._attributes == other._attributes

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._attributes!r})"
