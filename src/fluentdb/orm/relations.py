"""HasOne and HasMany relations between models.

A relation is built from a parent model instance and knows how to query the
related rows for that parent, how to batch-load them for many parents at
once (eager loading), and how to correlate an EXISTS subquery for
``where_has()``.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from fluentdb.core.inflector import snake_case
from fluentdb.orm.collection import ModelCollection
from fluentdb.query.grammar import format_column

if TYPE_CHECKING:
    from fluentdb.orm.model import Model
    from fluentdb.orm.query import ModelQuery
    from fluentdb.query.clauses import WhereBuilder
    from fluentdb.query.statements import Select

logger = logging.getLogger(__name__)


class Relation:
    """Base class for relations.

    Unknown attributes are forwarded to the constrained ModelQuery, so
    ``user.posts().where("published", True).get()`` works as expected.
    """

    def __init__(self, parent: Model, related: type[Model], foreign_key: str, local_key: str) -> None:
        self.parent = parent
        self.related = related
        self.foreign_key = foreign_key
        self.local_key = local_key

    def query(self) -> ModelQuery[Any]:
        """Related-model query constrained to this parent."""
        raise NotImplementedError

    def get_results(self) -> Any:
        raise NotImplementedError

    def eager_load(self, models: list[Model], name: str) -> None:
        """Load the relation for every model with one query and attach it."""
        raise NotImplementedError

    def correlation(self) -> tuple[str, str]:
        """``(related column, parent column)`` joined by the relation."""
        raise NotImplementedError

    def exists_query(self, callback: Callable[[WhereBuilder], Any] | None = None) -> Select:
        """Select on the related table correlated to the parent table."""
        related_column, parent_column = self.correlation()
        select = self.related.query().select_statement(related_column)
        dialect = select.dialect
        related = format_column(f"{self.related.table_name()}.{related_column}", dialect)
        parent = format_column(f"{self.parent.table_name()}.{parent_column}", dialect)
        select.where_raw(f"{related} = {parent}")
        if callback is not None:
            select.where(callback)
        return select

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self.query(), name)


class HasMany(Relation):
    """Parent owns many related rows: ``related.<foreign_key> = parent.<local_key>``.

    The foreign key defaults to ``<snake(parent class)>_id`` and the local
    key to the parent's primary key.
    """

    def __init__(
        self,
        parent: Model,
        related: type[Model],
        foreign_key: str | None = None,
        local_key: str | None = None,
    ) -> None:
        super().__init__(
            parent,
            related,
            foreign_key or f"{snake_case(type(parent).__name__)}_id",
            local_key or parent.primary_key,
        )

    def query(self) -> ModelQuery[Any]:
        return self.related.where(self.foreign_key, self.parent.get(self.local_key))

    def get_results(self) -> ModelCollection:
        return self.query().get()

    def create(self, data: dict[str, Any]) -> Model:
        """Create a related model linked to the parent."""
        return self.related.create({**data, self.foreign_key: self.parent.get(self.local_key)})

    def eager_load(self, models: list[Model], name: str) -> None:
        keys = [key for model in models if (key := model.get(self.local_key)) is not None]
        grouped: dict[Any, ModelCollection] = defaultdict(ModelCollection)
        if keys:
            for related in self.related.query().where_in(self.foreign_key, list(dict.fromkeys(keys))).get():
                grouped[related.get(self.foreign_key)].append(related)

        logger.debug(f"Eager loaded '{name}' for {len(models)} {type(self.parent).__name__} models")
        for model in models:
            model.set_relation(name, ModelCollection(grouped.get(model.get(self.local_key), [])))

    def correlation(self) -> tuple[str, str]:
        return self.foreign_key, self.local_key


class HasOne(Relation):
    """Parent references one related row: ``related.<local_key> = parent.<foreign_key>``.

    The foreign key lives on the parent and defaults to
    ``<snake(related class)>_id``; the local key defaults to the related
    model's primary key.
    """

    def __init__(
        self,
        parent: Model,
        related: type[Model],
        foreign_key: str | None = None,
        local_key: str | None = None,
    ) -> None:
        super().__init__(
            parent,
            related,
            foreign_key or f"{snake_case(related.__name__)}_id",
            local_key or related.primary_key,
        )

    def query(self) -> ModelQuery[Any]:
        return self.related.where(self.local_key, self.parent.get(self.foreign_key))

    def get_results(self) -> Model | None:
        if self.parent.get(self.foreign_key) is None:
            return None
        return self.query().first()

    def eager_load(self, models: list[Model], name: str) -> None:
        keys = [key for model in models if (key := model.get(self.foreign_key)) is not None]
        by_key: dict[Any, Model] = {}
        if keys:
            for related in self.related.query().where_in(self.local_key, list(dict.fromkeys(keys))).get():
                by_key.setdefault(related.get(self.local_key), related)

        logger.debug(f"Eager loaded '{name}' for {len(models)} {type(self.parent).__name__} models")
        for model in models:
            model.set_relation(name, by_key.get(model.get(self.foreign_key)))

    def correlation(self) -> tuple[str, str]:
        return self.local_key, self.foreign_key
