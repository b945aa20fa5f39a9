"""Deferred, replayable query over one model class.

A ModelQuery records chain calls (``where``, ``order_desc``, ``limit``, ...)
and replays them onto a fresh statement builder when a terminal method runs.
Each chain call returns a new ModelQuery, so a partially built query can be
reused as a base for several others.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from fluentdb.exceptions import BadMethodCallError, ModelNotFoundError
from fluentdb.orm.collection import ModelCollection
from fluentdb.query.facade import Query

if TYPE_CHECKING:
    from fluentdb.orm.model import Model
    from fluentdb.orm.relations import Relation
    from fluentdb.query.clauses import WhereBuilder
    from fluentdb.query.statements import Delete, Select, Update

M = TypeVar("M", bound="Model")

logger = logging.getLogger(__name__)

# Builder methods a ModelQuery records and replays
QUERY_METHODS = frozenset(
    {
        "distinct",
        "columns",
        "count",
        "sum",
        "avg",
        "min",
        "max",
        "where",
        "or_where",
        "where_raw",
        "or_where_raw",
        "where_like",
        "where_not_like",
        "or_where_like",
        "or_where_not_like",
        "where_null",
        "where_not_null",
        "or_where_null",
        "or_where_not_null",
        "where_between",
        "where_not_between",
        "or_where_between",
        "or_where_not_between",
        "where_in",
        "where_not_in",
        "or_where_in",
        "or_where_not_in",
        "where_exists",
        "where_not_exists",
        "having",
        "or_having",
        "having_raw",
        "having_null",
        "or_having_null",
        "having_not_null",
        "or_having_not_null",
        "order_asc",
        "order_desc",
        "group_by",
        "inner_join",
        "left_join",
        "right_join",
        "full_join",
        "cross_join",
        "on",
        "limit",
        "offset",
        "union",
    }
)


class TrashedScope:
    """Which rows a soft-deleting model's queries see."""

    WITHOUT = "without"
    WITH = "with"
    ONLY = "only"


class ModelQuery(Generic[M]):
    """Recorded query over ``model``."""

    def __init__(self, model: type[M]) -> None:
        self._model = model
        self._clauses: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []
        self._eager: list[str] = []
        self._trashed = TrashedScope.WITHOUT

    @property
    def model(self) -> type[M]:
        return self._model

    def _copy(self) -> ModelQuery[M]:
        clone = copy.copy(self)
        clone._clauses = list(self._clauses)
        clone._eager = list(self._eager)
        return clone

    def _record(self, name: str, *args: Any, **kwargs: Any) -> ModelQuery[M]:
        clone = self._copy()
        clone._clauses.append((name, args, kwargs))
        return clone

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        if name in QUERY_METHODS:

            def record(*args: Any, **kwargs: Any) -> ModelQuery[M]:
                return self._record(name, *args, **kwargs)

            return record

        candidates = QUERY_METHODS | {attr for attr in dir(type(self)) if not attr.startswith("_")}
        raise BadMethodCallError(name, f"{self._model.__name__} query", candidates)

    # -------------------------------------------------------------------------
    # Scopes and relations
    # -------------------------------------------------------------------------

    def with_trashed(self) -> ModelQuery[M]:
        """Include soft-deleted rows."""
        clone = self._copy()
        clone._trashed = TrashedScope.WITH
        return clone

    def only_trashed(self) -> ModelQuery[M]:
        """Only soft-deleted rows."""
        clone = self._copy()
        clone._trashed = TrashedScope.ONLY
        return clone

    def with_(self, *relations: str) -> ModelQuery[M]:
        """Eager-load the named relations on every fetched model."""
        for name in relations:
            self._model.relation_method(name)
        clone = self._copy()
        clone._eager.extend(name for name in relations if name not in clone._eager)
        return clone

    def where_has(
        self,
        relation: str,
        callback: Callable[[WhereBuilder], Any] | None = None,
    ) -> ModelQuery[M]:
        """Keep rows that have at least one related row (optionally constrained)."""
        subquery = self._relation(relation).exists_query(callback)
        return self._record("where_exists", subquery)

    def where_doesnt_have(
        self,
        relation: str,
        callback: Callable[[WhereBuilder], Any] | None = None,
    ) -> ModelQuery[M]:
        """Keep rows without any related row."""
        subquery = self._relation(relation).exists_query(callback)
        return self._record("where_not_exists", subquery)

    def _relation(self, name: str) -> Relation:
        return self._model.relation_method(name)(self._model())

    # -------------------------------------------------------------------------
    # Building
    # -------------------------------------------------------------------------

    def _facade(self) -> Query:
        return self._model.facade()

    def _apply(self, builder: Any) -> Any:
        deleted_at = self._model.soft_delete_column()
        if deleted_at is not None:
            if self._trashed == TrashedScope.WITHOUT:
                builder.where_null(deleted_at)
            elif self._trashed == TrashedScope.ONLY:
                builder.where_not_null(deleted_at)

        for name, args, kwargs in self._clauses:
            getattr(builder, name)(*args, **kwargs)
        return builder

    def select_statement(self, *columns: Any) -> Select:
        """Build the Select this query runs, without executing it."""
        return self._apply(self._facade().select(*columns))

    def update_statement(self, data: dict[str, Any]) -> Update:
        return self._apply(self._facade().update().set(data))

    def delete_statement(self) -> Delete:
        return self._apply(self._facade().delete())

    def to_sql(self, *columns: Any) -> str:
        return self.select_statement(*columns).to_sql()

    def to_raw_sql(self, *columns: Any) -> str:
        return self.select_statement(*columns).to_raw_sql()

    # -------------------------------------------------------------------------
    # Terminal methods
    # -------------------------------------------------------------------------

    def _load_relations(self, models: list[M]) -> None:
        if not models or not self._eager:
            return
        for name in self._eager:
            self._relation(name).eager_load(list(models), name)

    def get(self, *columns: Any) -> ModelCollection:
        """Fetch every matching model."""
        models = ModelCollection(self.select_statement(*columns).get())
        self._load_relations(models)
        return models

    def all(self) -> ModelCollection:
        return self.get()

    def first(self, *columns: Any) -> M | None:
        """Fetch the first matching model, or None."""
        model = self.select_statement(*columns).limit(1).first()
        if model is not None:
            self._load_relations([model])
        return model

    def last(self, *columns: Any) -> M | None:
        """Fetch the matching model with the highest primary key, or None."""
        model = self.select_statement(*columns).order_desc(self._model.primary_key).limit(1).first()
        if model is not None:
            self._load_relations([model])
        return model

    def find(self, value: Any) -> M | None:
        """Fetch by the model's lookup column (``find_by``, default primary key)."""
        return self._record("where", self._model.lookup_column(), value).first()

    def find_or_fail(self, value: Any) -> M:
        model = self.find(value)
        if model is None:
            raise ModelNotFoundError(self._model.__name__, self._model.lookup_column(), value)
        return model

    def exists(self) -> bool:
        return self.first() is not None

    def update(self, data: dict[str, Any]) -> int:
        """Update every matching row; returns the affected row count."""
        statement = self.update_statement(self._model()._before_update(data))
        statement.execute()
        logger.debug(f"Updated {statement.rowcount} {self._model.__name__} rows")
        return statement.rowcount

    def delete(self) -> int:
        """Delete every matching row (soft delete where enabled)."""
        deleted_at = self._model.soft_delete_column()
        if deleted_at is not None:
            return self.update({deleted_at: self._model.timestamp()})

        statement = self.delete_statement()
        statement.execute()
        logger.debug(f"Deleted {statement.rowcount} {self._model.__name__} rows")
        return statement.rowcount
