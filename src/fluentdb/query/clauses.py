"""Clause components shared by the statement builders.

Each clause keeps its own entries and renders its SQL fragment from a
``CompileContext``; an empty clause renders as an empty string. The mixins
expose the chainable methods and delegate to the clause objects a builder
holds (``_wheres``, ``_havings``, ``_joins``, ``_orders``, ``_groups``,
``_aggregates``). Every chain method returns the builder itself.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Self

from fluentdb.core.types import Aggregate, Dialect, Reserved
from fluentdb.exceptions import InvalidArgumentError
from fluentdb.query.conditions import (
    CompileContext,
    ConditionList,
    ExistsCondition,
    SubqueryExists,
    compile_conditions,
    conditional_params,
    raw_condition,
)
from fluentdb.query.grammar import Raw, concat, format_column, quote

if TYPE_CHECKING:
    from fluentdb.core.inflector import WordInflector
    from fluentdb.query.conditions import Subquery

_MISSING: Any = object()


# =============================================================================
# WHERE / HAVING
# =============================================================================


class WhereMixin:
    """WHERE chain methods. Requires ``self._wheres: ConditionList``."""

    _wheres: ConditionList
    _dialect: Dialect
    _inflector: WordInflector

    def _where_scope(self) -> WhereBuilder:
        return WhereBuilder(dialect=self._dialect, inflector=self._inflector)

    def _add_where(self, operator: Reserved, column: Any, comparison: Any, value: Any) -> Self:
        if callable(column) and not isinstance(column, (str, Raw)):
            return self._add_where_group(operator, column)
        entry = conditional_params(column, comparison, value, value is not _MISSING)
        self._wheres.add(operator, entry)
        return self

    def _add_where_group(self, operator: Reserved, callback: Callable[[WhereBuilder], Any]) -> Self:
        scope = self._where_scope()
        result = callback(scope)
        if isinstance(result, WhereBuilder):
            scope = result
        if scope.conditions:
            self._wheres.add(operator, scope.conditions, grouped=True)
        return self

    def where(
        self,
        column: str | Raw | Callable[[WhereBuilder], Any],
        comparison: Any = None,
        value: Any = _MISSING,
    ) -> Self:
        """Add an AND condition, or an AND-ed group when given a callable.

        ``where("age", 18)`` compares with ``=``; ``where("age", ">", 18)``
        uses the given operator. ``where(lambda q: q.where(...).or_where(...))``
        wraps the inner conditions in parentheses.
        """
        return self._add_where(Reserved.AND, column, comparison, value)

    def or_where(
        self,
        column: str | Raw | Callable[[WhereBuilder], Any],
        comparison: Any = None,
        value: Any = _MISSING,
    ) -> Self:
        """Add an OR condition, or an OR-ed group when given a callable."""
        return self._add_where(Reserved.OR, column, comparison, value)

    def where_raw(self, sql: str | Raw, parameters: Mapping[str, Any] | None = None) -> Self:
        """Add a raw SQL condition; ``parameters`` are bound as given."""
        self._wheres.add(Reserved.AND, raw_condition(sql, parameters))
        return self

    def or_where_raw(self, sql: str | Raw, parameters: Mapping[str, Any] | None = None) -> Self:
        """OR variant of where_raw."""
        self._wheres.add(Reserved.OR, raw_condition(sql, parameters))
        return self

    def where_like(self, column: str, value: str) -> Self:
        return self._add_where(Reserved.AND, column, Reserved.LIKE, value)

    def where_not_like(self, column: str, value: str) -> Self:
        return self._add_where(Reserved.AND, column, Reserved.NOT_LIKE, value)

    def or_where_like(self, column: str, value: str) -> Self:
        return self._add_where(Reserved.OR, column, Reserved.LIKE, value)

    def or_where_not_like(self, column: str, value: str) -> Self:
        return self._add_where(Reserved.OR, column, Reserved.NOT_LIKE, value)

    def where_null(self, column: str) -> Self:
        return self._add_where(Reserved.AND, column, Reserved.IS, None)

    def where_not_null(self, column: str) -> Self:
        return self._add_where(Reserved.AND, column, Reserved.IS_NOT, None)

    def or_where_null(self, column: str) -> Self:
        return self._add_where(Reserved.OR, column, Reserved.IS, None)

    def or_where_not_null(self, column: str) -> Self:
        return self._add_where(Reserved.OR, column, Reserved.IS_NOT, None)

    def where_between(self, column: str, lower: Any, upper: Any) -> Self:
        return self._add_where(Reserved.AND, column, Reserved.BETWEEN, (lower, upper))

    def where_not_between(self, column: str, lower: Any, upper: Any) -> Self:
        return self._add_where(Reserved.AND, column, Reserved.NOT_BETWEEN, (lower, upper))

    def or_where_between(self, column: str, lower: Any, upper: Any) -> Self:
        return self._add_where(Reserved.OR, column, Reserved.BETWEEN, (lower, upper))

    def or_where_not_between(self, column: str, lower: Any, upper: Any) -> Self:
        return self._add_where(Reserved.OR, column, Reserved.NOT_BETWEEN, (lower, upper))

    def _add_where_in(self, operator: Reserved, comparison: Reserved, column: str, values: Iterable[Any]) -> Self:
        return self._add_where(operator, column, comparison, list(values))

    def where_in(self, column: str, values: Iterable[Any]) -> Self:
        return self._add_where_in(Reserved.AND, Reserved.IN, column, values)

    def where_not_in(self, column: str, values: Iterable[Any]) -> Self:
        return self._add_where_in(Reserved.AND, Reserved.NOT_IN, column, values)

    def or_where_in(self, column: str, values: Iterable[Any]) -> Self:
        return self._add_where_in(Reserved.OR, Reserved.IN, column, values)

    def or_where_not_in(self, column: str, values: Iterable[Any]) -> Self:
        return self._add_where_in(Reserved.OR, Reserved.NOT_IN, column, values)

    def _add_exists(
        self,
        table: str | Subquery,
        table_column: str | None,
        parent_column: str | None,
        exists: bool,
    ) -> Self:
        if isinstance(table, str):
            payload: Any = ExistsCondition(
                table=table,
                column=table_column,
                value=parent_column,
                exists=exists,
            )
        elif hasattr(table, "compile_sql"):
            payload = SubqueryExists(select=table, exists=exists)
        else:
            raise InvalidArgumentError(
                "where_exists() expects a table name or a Select statement.",
                {"received": type(table).__name__},
            )
        self._wheres.add(Reserved.AND, payload)
        return self

    def where_exists(
        self,
        table: str | Subquery,
        table_column: str | None = None,
        parent_column: str | None = None,
    ) -> Self:
        """Add ``EXISTS (...)`` against a related table or a Select.

        With a table name, ``table.table_column = current.parent_column`` is
        correlated; the columns default to ``<singular(current)>_id`` and
        ``id``.
        """
        return self._add_exists(table, table_column, parent_column, True)

    def where_not_exists(
        self,
        table: str | Subquery,
        table_column: str | None = None,
        parent_column: str | None = None,
    ) -> Self:
        """Add ``NOT EXISTS (...)``; see where_exists."""
        return self._add_exists(table, table_column, parent_column, False)

    def get_where_clause(self, context: CompileContext) -> str:
        """Render ``WHERE ...`` or an empty string."""
        conditions = compile_conditions(self._wheres, Reserved.WHERE, context)
        return concat(Reserved.WHERE, conditions) if conditions.strip() else ""


class HavingMixin:
    """HAVING chain methods. Requires ``self._havings: ConditionList``."""

    _havings: ConditionList
    _dialect: Dialect
    _inflector: WordInflector

    def _add_having(self, operator: Reserved, column: Any, comparison: Any, value: Any) -> Self:
        if callable(column) and not isinstance(column, (str, Raw)):
            scope = HavingBuilder(dialect=self._dialect, inflector=self._inflector)
            result = column(scope)
            if isinstance(result, HavingBuilder):
                scope = result
            if scope.conditions:
                self._havings.add(operator, scope.conditions, grouped=True)
            return self
        entry = conditional_params(column, comparison, value, value is not _MISSING)
        self._havings.add(operator, entry)
        return self

    def having(
        self,
        column: str | Raw | Callable[[HavingBuilder], Any],
        comparison: Any = None,
        value: Any = _MISSING,
    ) -> Self:
        """Add an AND HAVING condition, or a group when given a callable."""
        return self._add_having(Reserved.AND, column, comparison, value)

    def or_having(
        self,
        column: str | Raw | Callable[[HavingBuilder], Any],
        comparison: Any = None,
        value: Any = _MISSING,
    ) -> Self:
        """Add an OR HAVING condition, or a group when given a callable."""
        return self._add_having(Reserved.OR, column, comparison, value)

    def having_raw(self, sql: str | Raw, parameters: Mapping[str, Any] | None = None) -> Self:
        self._havings.add(Reserved.AND, raw_condition(sql, parameters))
        return self

    def having_null(self, column: str) -> Self:
        return self._add_having(Reserved.AND, column, Reserved.IS, None)

    def or_having_null(self, column: str) -> Self:
        return self._add_having(Reserved.OR, column, Reserved.IS, None)

    def having_not_null(self, column: str) -> Self:
        return self._add_having(Reserved.AND, column, Reserved.IS_NOT, None)

    def or_having_not_null(self, column: str) -> Self:
        return self._add_having(Reserved.OR, column, Reserved.IS_NOT, None)

    def get_having_clause(self, context: CompileContext) -> str:
        """Render ``HAVING ...`` or an empty string."""
        conditions = compile_conditions(self._havings, Reserved.HAVING, context)
        return concat(Reserved.HAVING, conditions) if conditions.strip() else ""


class WhereBuilder(WhereMixin):
    """Where-only view handed to ``where(callable)`` groups."""

    def __init__(self, dialect: Dialect, inflector: WordInflector) -> None:
        self._dialect = dialect
        self._inflector = inflector
        self._wheres = ConditionList()

    @property
    def conditions(self) -> ConditionList:
        return self._wheres


class HavingBuilder(HavingMixin):
    """Having-only view handed to ``having(callable)`` groups."""

    def __init__(self, dialect: Dialect, inflector: WordInflector) -> None:
        self._dialect = dialect
        self._inflector = inflector
        self._havings = ConditionList()

    @property
    def conditions(self) -> ConditionList:
        return self._havings


# =============================================================================
# ORDER BY / GROUP BY
# =============================================================================


class OrderClause:
    """ORDER BY entries in insertion order, column -> ASC/DESC."""

    def __init__(self) -> None:
        self._orders: dict[str, Reserved] = {}

    def add(self, column: str, direction: Reserved) -> None:
        self._orders[column] = direction

    def clear(self) -> None:
        self._orders.clear()

    def render(self, context: CompileContext) -> str:
        if not self._orders:
            return ""
        columns = ", ".join(
            f"{format_column(column, context.dialect)} {direction}"
            for column, direction in self._orders.items()
        )
        return concat(Reserved.ORDER_BY, columns)


class OrderByMixin:
    """ORDER BY chain methods. Requires ``self._orders: OrderClause``."""

    _orders: OrderClause

    def order_asc(self, column: str) -> Self:
        self._orders.add(column, Reserved.ASC)
        return self

    def order_desc(self, column: str) -> Self:
        self._orders.add(column, Reserved.DESC)
        return self

    def get_order_clause(self, context: CompileContext) -> str:
        return self._orders.render(context)


class GroupClause:
    """GROUP BY columns."""

    def __init__(self) -> None:
        self._columns: list[str] = []

    def add(self, column: str) -> None:
        if column not in self._columns:
            self._columns.append(column)

    def clear(self) -> None:
        self._columns.clear()

    def render(self, context: CompileContext) -> str:
        if not self._columns:
            return ""
        columns = ", ".join(format_column(column, context.dialect) for column in self._columns)
        return concat(Reserved.GROUP_BY, columns)


class GroupByMixin:
    """GROUP BY chain methods.

    Grouped columns are also added to the select list when the builder has
    one (``_add_column``).
    """

    _groups: GroupClause

    def group_by(self, *columns: str) -> Self:
        for column in columns:
            self._groups.add(column)
            add_column = getattr(self, "_add_column", None)
            if add_column is not None:
                add_column(column)
        return self

    def get_group_by_clause(self, context: CompileContext) -> str:
        return self._groups.render(context)


# =============================================================================
# JOIN
# =============================================================================


@dataclass
class JoinEntry:
    """One JOIN. ``local``/``foreign`` left as None use the naming convention."""

    type: Reserved
    table: str
    alias: str | None = None
    local: str | None = None
    foreign: str | None = None
    comparison: str | None = "="


class JoinClause:
    """JOIN entries in the order they were added.

    The default predicate follows the convention that the joined table
    references the current one: ``<current>.id = <joined>.<singular(current)>_id``.
    Cross joins never render an ON predicate.
    """

    def __init__(self) -> None:
        self._joins: list[JoinEntry] = []

    def add(self, entry: JoinEntry) -> None:
        self._joins.append(entry)

    def last(self) -> JoinEntry | None:
        return self._joins[-1] if self._joins else None

    def clear(self) -> None:
        self._joins.clear()

    def __bool__(self) -> bool:
        return bool(self._joins)

    def render(self, context: CompileContext) -> str:
        dialect = context.dialect
        parts: list[str] = []
        for join in self._joins:
            table = quote(join.table, dialect)
            alias = quote(join.alias, dialect)
            if join.type == Reserved.CROSS_JOIN:
                parts.append(concat(join.type, table, alias))
                continue

            local = join.local or f"{context.table}.id"
            foreign = join.foreign or (
                f"{join.alias or join.table}.{context.inflector.singularize(context.table)}_id"
            )
            parts.append(
                concat(
                    join.type,
                    table,
                    alias,
                    Reserved.ON,
                    format_column(local, dialect),
                    join.comparison,
                    format_column(foreign, dialect),
                )
            )
        return " ".join(parts)


class JoinMixin:
    """JOIN chain methods. Requires ``self._joins: JoinClause``."""

    _joins: JoinClause

    def _add_join(self, type_: Reserved, table: str, alias: str | None) -> Self:
        if type_ == Reserved.CROSS_JOIN:
            entry = JoinEntry(type=type_, table=table, alias=alias, comparison=None)
        else:
            entry = JoinEntry(type=type_, table=table, alias=alias)
        self._joins.add(entry)
        return self

    def inner_join(self, table: str, alias: str | None = None) -> Self:
        return self._add_join(Reserved.INNER_JOIN, table, alias)

    def left_join(self, table: str, alias: str | None = None) -> Self:
        return self._add_join(Reserved.LEFT_JOIN, table, alias)

    def right_join(self, table: str, alias: str | None = None) -> Self:
        return self._add_join(Reserved.RIGHT_JOIN, table, alias)

    def full_join(self, table: str, alias: str | None = None) -> Self:
        return self._add_join(Reserved.FULL_JOIN, table, alias)

    def cross_join(self, table: str, alias: str | None = None) -> Self:
        return self._add_join(Reserved.CROSS_JOIN, table, alias)

    def on(self, local: str, comparison: str, foreign: str | None = None) -> Self:
        """Set the predicate of the most recently added join.

        ``on("tasks.owner_id", "users.id")`` compares with ``=``;
        ``on("a.x", ">", "b.y")`` uses the given operator.
        """
        last = self._joins.last()
        if last is None:
            raise InvalidArgumentError("on() must follow a join; no join has been added yet.")
        if last.type == Reserved.CROSS_JOIN:
            raise InvalidArgumentError(
                f"Cross join on `{last.table}` takes no ON predicate.",
                {"table": last.table},
            )

        if foreign is None:
            comparison, foreign = "=", comparison
        last.local = local
        last.foreign = foreign
        last.comparison = comparison
        return self

    def get_join_clause(self, context: CompileContext) -> str:
        return self._joins.render(context)


# =============================================================================
# Aggregates
# =============================================================================


class AggregateClause:
    """Aggregate expressions per kind, keyed by alias.

    Several kinds can coexist in one SELECT; aggregates of the same kind on
    different columns accumulate under distinct aliases.
    """

    def __init__(self) -> None:
        self._aggregates: dict[Aggregate, dict[str, tuple[str | Raw, str | None]]] = {
            kind: {} for kind in Aggregate
        }

    def add(self, kind: Aggregate, column: str | Raw | None, alias: str | None) -> None:
        if column is None or column == "":
            if kind != Aggregate.COUNT:
                raise InvalidArgumentError(f"{kind}() needs a column.", {"aggregate": str(kind)})
            column = Reserved.ALL.value

        key = alias if alias is not None else str(column)
        self._aggregates[kind][key] = (column, alias)

    def clear(self) -> None:
        for entries in self._aggregates.values():
            entries.clear()

    def render(self, kind: Aggregate, context: CompileContext) -> str:
        rendered: list[str] = []
        for column, alias in self._aggregates[kind].values():
            expression = f"{kind}({format_column(column, context.dialect)})"
            if alias is not None and alias != str(column):
                expression = concat(expression, Reserved.AS, quote(alias, context.dialect))
            rendered.append(expression)
        return ", ".join(rendered)


class AggregatesMixin:
    """COUNT/SUM/AVG/MIN/MAX chain methods."""

    _aggregates: AggregateClause

    def count(self, column: str | Raw | None = None, alias: str | None = None) -> Self:
        self._aggregates.add(Aggregate.COUNT, column, alias)
        return self

    def sum(self, column: str | Raw, alias: str | None = None) -> Self:
        self._aggregates.add(Aggregate.SUM, column, alias)
        return self

    def avg(self, column: str | Raw, alias: str | None = None) -> Self:
        self._aggregates.add(Aggregate.AVG, column, alias)
        return self

    def min(self, column: str | Raw, alias: str | None = None) -> Self:
        self._aggregates.add(Aggregate.MIN, column, alias)
        return self

    def max(self, column: str | Raw, alias: str | None = None) -> Self:
        self._aggregates.add(Aggregate.MAX, column, alias)
        return self

    def get_aggregate(self, kind: Aggregate, context: CompileContext) -> str:
        return self._aggregates.render(kind, context)
