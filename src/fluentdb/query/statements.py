"""Statement builders: Select, Insert, Update, Delete and raw SQL.

A builder accumulates clause state through chain calls and compiles it on
demand. Every ``to_sql()`` compiles into a fresh ParameterStore, so calling
it twice yields identical SQL and the parameters always match the
placeholders in the text. Nested statements (unions, EXISTS subqueries)
compile into the parent's store through ``compile_sql()``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from typing import Any, Self

from fluentdb.core.executor import PreparedStatement, StatementExecutor, infer_type
from fluentdb.core.inflector import WordInflector, default_inflector
from fluentdb.core.types import Aggregate, CompiledStatement, Dialect, Reserved
from fluentdb.exceptions import BadMethodCallError, ConnectionError, InvalidArgumentError
from fluentdb.query.clauses import (
    AggregateClause,
    AggregatesMixin,
    GroupByMixin,
    GroupClause,
    HavingMixin,
    JoinClause,
    JoinMixin,
    OrderByMixin,
    OrderClause,
    WhereMixin,
)
from fluentdb.query.conditions import CompileContext, ConditionList
from fluentdb.query.grammar import Raw, concat, format_column, normalize_whitespace, quote
from fluentdb.query.parameters import ParameterStore, interpolate

logger = logging.getLogger(__name__)

RowFactory = Callable[[dict[str, Any]], Any]


def resolve_dialect(connection: Any, dialect: Dialect | str | None) -> Dialect:
    """Pick the quoting dialect: explicit argument, then the connection's.

    Without either, identifiers are quoted ANSI style (double quotes).
    """
    if dialect:
        return Dialect.from_name(dialect)
    connection_dialect = getattr(connection, "dialect", None) if connection is not None else None
    if connection_dialect:
        return Dialect.from_name(connection_dialect)
    return Dialect.PGSQL


class Statement(ABC):
    """Abstract base class for all statement builders.

    Args:
        connection: Executor used by ``execute()``; anything with
            ``prepare(sql)`` returning a PreparedStatement
        dialect: Quoting dialect; defaults to the connection's
        inflector: Word inflector for default key names
        table: Target table; can also be set later, once
    """

    def __init__(
        self,
        connection: StatementExecutor | None = None,
        *,
        dialect: Dialect | str | None = None,
        inflector: WordInflector | None = None,
        table: str | None = None,
    ) -> None:
        self._connection = connection
        self._dialect = resolve_dialect(connection, dialect)
        self._inflector = inflector or default_inflector()
        self._table = ""
        self._table_alias: str | None = None
        self._statement: PreparedStatement | None = None
        self._set_table(table)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def table(self) -> str:
        """Target table, or an empty string when not yet set."""
        return self._table

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    @property
    def connection(self) -> StatementExecutor | None:
        return self._connection

    def _set_table(self, table: str | None) -> None:
        # The first non-empty table wins until clean()
        if table and not self._table:
            self._table = table

    def _context(self, parameters: ParameterStore) -> CompileContext:
        return CompileContext(
            dialect=self._dialect,
            parameters=parameters,
            table=self._table,
            inflector=self._inflector,
        )

    def _scope_kwargs(self) -> dict[str, Any]:
        return {"dialect": self._dialect, "inflector": self._inflector}

    # -------------------------------------------------------------------------
    # Compilation
    # -------------------------------------------------------------------------

    @abstractmethod
    def compile_sql(self, parameters: ParameterStore) -> str:
        """Render SQL, registering bound values into ``parameters``.

        Returns an empty string when no table has been set.
        """
        ...

    def compile(self) -> CompiledStatement:
        """Compile into SQL text plus its bound parameters."""
        store = ParameterStore()
        sql = self.compile_sql(store)
        return CompiledStatement(sql=sql, parameters=store.all())

    def to_sql(self) -> str:
        """Return the parameterized SQL text."""
        return self.compile().sql

    def get_parameters(self) -> dict[str, Any]:
        """Return the placeholder -> value map matching ``to_sql()``."""
        return self.compile().parameters

    def to_raw_sql(self) -> str:
        """Return SQL with values substituted as literals.

        For logging and debugging only; never execute the result.
        """
        compiled = self.compile()
        return interpolate(compiled.sql, compiled.parameters)

    def __str__(self) -> str:
        return self.to_sql()

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def execute(self) -> bool:
        """Prepare, bind every parameter with its inferred type, and run.

        Raises:
            ConnectionError: If the builder has no connection
        """
        if self._connection is None:
            raise ConnectionError(
                f"{type(self).__name__} has no connection to execute on.",
                {"table": self._table},
            )

        compiled = self.compile()
        logger.debug(f"{type(self).__name__} on '{self._table}': {compiled.placeholders()}")

        self._statement = self._connection.prepare(compiled.sql)
        for placeholder, value in compiled.parameters.items():
            self._statement.bind(placeholder, value, infer_type(value))
        return self._statement.execute()

    @property
    def rowcount(self) -> int:
        """Rows affected by the last ``execute()``, or -1."""
        return getattr(self._statement, "rowcount", -1)

    @property
    def last_insert_id(self) -> Any:
        """Driver-reported id of the last inserted row, if any."""
        return getattr(self._statement, "last_insert_id", None)

    def clean(self) -> Self:
        """Reset all accumulated state; the connection and dialect stay."""
        self._table = ""
        self._table_alias = None
        self._statement = None
        return self

    # -------------------------------------------------------------------------
    # Unknown chain methods
    # -------------------------------------------------------------------------

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        candidates = [attr for attr in dir(type(self)) if not attr.startswith("_")]
        raise BadMethodCallError(name, type(self).__name__, candidates)


class ReturnsRows:
    """``get()``/``first()`` for statements whose execution yields rows."""

    _statement: PreparedStatement | None
    _row_factory: RowFactory | None
    execute: Callable[[], bool]

    def _hydrate(self, row: dict[str, Any]) -> Any:
        return self._row_factory(row) if self._row_factory else row

    def _executed(self) -> PreparedStatement:
        self.execute()
        if self._statement is None:
            raise ConnectionError(f"{type(self).__name__} has no prepared statement to fetch from.")
        return self._statement

    def get(self) -> list[Any]:
        """Execute and return every row (hydrated by the row factory)."""
        return [self._hydrate(row) for row in self._executed().fetch_all()]

    def first(self) -> Any:
        """Execute and return the first row, or None."""
        row = self._executed().fetch()
        return None if row is None else self._hydrate(row)


# =============================================================================
# SELECT
# =============================================================================


class SelectScope:
    """Hands out the nested Select of a ``union()`` callback."""

    def __init__(self, connection: StatementExecutor | None, **kwargs: Any) -> None:
        self._connection = connection
        self._kwargs = kwargs
        self.built: Select | None = None

    def select(self, *columns: Any) -> Select:
        self.built = Select(*columns, connection=self._connection, **self._kwargs)
        return self.built


class Select(
    ReturnsRows,
    WhereMixin,
    HavingMixin,
    OrderByMixin,
    GroupByMixin,
    AggregatesMixin,
    JoinMixin,
    Statement,
):
    """SELECT builder.

    Columns may be plain (``"name"``), table-qualified (``"users.name"``),
    Raw fragments, or ``{"column": "alias"}`` mappings.

    Example:
        >>> Select("id", {"name": "n"}, dialect="pgsql").from_("users").where("id", 1).to_sql()
        'SELECT "id", "name" AS "n" FROM "users" WHERE "id" = :users_id_0'
    """

    def __init__(
        self,
        *columns: str | Raw | Mapping[str, str],
        connection: StatementExecutor | None = None,
        dialect: Dialect | str | None = None,
        inflector: WordInflector | None = None,
        table: str | None = None,
        row_factory: RowFactory | None = None,
    ) -> None:
        super().__init__(connection, dialect=dialect, inflector=inflector, table=table)
        self._row_factory = row_factory
        self._init_state()
        self.columns(*columns)

    def _init_state(self) -> None:
        self._columns: list[tuple[str | Raw, str | None]] = []
        self._distinct = False
        self._limit: int | None = None
        self._offset: int | None = None
        self._unions: list[Select] = []
        self._wheres = ConditionList()
        self._havings = ConditionList()
        self._orders = OrderClause()
        self._groups = GroupClause()
        self._aggregates = AggregateClause()
        self._joins = JoinClause()

    def columns(self, *columns: str | Raw | Mapping[str, str]) -> Self:
        """Append columns to the select list."""
        for column in columns:
            if isinstance(column, Mapping):
                for name, alias in column.items():
                    self._columns.append((name, alias))
            elif isinstance(column, (str, Raw)):
                self._add_column(column)
            else:
                raise InvalidArgumentError(
                    f"Unsupported column type: {type(column).__name__}",
                    {"column": repr(column)},
                )
        return self

    def _add_column(self, column: str | Raw) -> None:
        if any(existing == column for existing, _ in self._columns):
            return
        self._columns.append((column, None))

    def distinct(self) -> Self:
        self._distinct = True
        return self

    def from_(self, table: str, alias: str | None = None) -> Self:
        """Set the source table (and optional alias)."""
        self._set_table(table)
        if alias is not None:
            self._table_alias = alias
        return self

    def limit(self, limit: int) -> Self:
        self._limit = _non_negative(limit, "limit")
        return self

    def offset(self, offset: int) -> Self:
        self._offset = _non_negative(offset, "offset")
        return self

    def union(self, callback: Callable[[SelectScope], Any]) -> Self:
        """Append ``UNION <select>`` built by ``callback``.

        The callback receives a SelectScope; the Select it creates through
        ``scope.select(...)`` (or returns) is compiled with this statement.
        """
        scope = SelectScope(self._connection, **self._scope_kwargs())
        result = callback(scope)
        select = result if isinstance(result, Select) else scope.built
        if select is None:
            raise InvalidArgumentError("union() callback must build a Select with scope.select().")
        self._unions.append(select)
        return self

    def compile_sql(self, parameters: ParameterStore) -> str:
        if not self._table:
            return ""

        context = self._context(parameters)
        sql = concat(
            self._select_clause(context),
            self.get_join_clause(context),
            self.get_where_clause(context),
            self.get_group_by_clause(context),
            self.get_having_clause(context),
            self.get_order_clause(context),
            self._union_clause(parameters),
            self._limit_clause(parameters),
            self._offset_clause(parameters),
        )
        return normalize_whitespace(sql)

    def _select_clause(self, context: CompileContext) -> str:
        dialect = context.dialect
        parts = [self._render_column(column, alias, dialect) for column, alias in self._columns]
        parts.extend(
            rendered for kind in Aggregate if (rendered := self.get_aggregate(kind, context))
        )
        columns = ", ".join(parts) or Reserved.ALL.value
        return concat(
            Reserved.SELECT,
            Reserved.DISTINCT if self._distinct else None,
            columns,
            Reserved.FROM,
            quote(self._table, dialect),
            quote(self._table_alias, dialect),
        )

    @staticmethod
    def _render_column(column: str | Raw, alias: str | None, dialect: Dialect) -> str:
        if not alias or alias == str(column):
            return format_column(column, dialect)
        return concat(format_column(column, dialect), Reserved.AS, quote(alias, dialect))

    def _union_clause(self, parameters: ParameterStore) -> str:
        return " ".join(
            concat(Reserved.UNION, sql)
            for union in self._unions
            if (sql := union.compile_sql(parameters))
        )

    def _limit_clause(self, parameters: ParameterStore) -> str:
        if self._limit is None:
            return ""
        return concat(Reserved.LIMIT, parameters.bind(self._table, "limit", self._limit))

    def _offset_clause(self, parameters: ParameterStore) -> str:
        if self._offset is None:
            return ""
        return concat(Reserved.OFFSET, parameters.bind(self._table, "offset", self._offset))

    def clean(self) -> Self:
        super().clean()
        self._init_state()
        return self


def _non_negative(value: int, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidArgumentError(
            f"{name}() expects a non-negative integer, got {value!r}.",
            {name: repr(value)},
        )
    return value


# =============================================================================
# INSERT
# =============================================================================


class Insert(Statement):
    """INSERT builder for one row (a mapping) or many (a list of mappings).

    Column names come from the first row; rows are expected to share the
    same keys.
    """

    def __init__(
        self,
        data: Mapping[str, Any] | Sequence[Mapping[str, Any]] | None = None,
        connection: StatementExecutor | None = None,
        *,
        dialect: Dialect | str | None = None,
        inflector: WordInflector | None = None,
        table: str | None = None,
    ) -> None:
        super().__init__(connection, dialect=dialect, inflector=inflector, table=table)
        self._rows: list[dict[str, Any]] = []
        if data is not None:
            self.values(data)

    def into(self, table: str) -> Self:
        self._set_table(table)
        return self

    def values(self, data: Mapping[str, Any] | Sequence[Mapping[str, Any]]) -> Self:
        """Replace the rows to insert."""
        rows = [data] if isinstance(data, Mapping) else list(data)
        if not rows:
            raise InvalidArgumentError("Insert needs at least one row.")
        for row in rows:
            if not isinstance(row, Mapping) or not row:
                raise InvalidArgumentError(
                    "Each inserted row must be a non-empty mapping of column to value.",
                    {"row": repr(row)},
                )
            if not all(isinstance(key, str) for key in row):
                raise InvalidArgumentError(
                    "Inserted column names must be strings.",
                    {"columns": [repr(key) for key in row]},
                )
        self._rows = [dict(row) for row in rows]
        return self

    def compile_sql(self, parameters: ParameterStore) -> str:
        if not self._table:
            return ""
        if not self._rows:
            raise InvalidArgumentError("Nothing to insert; pass data or call values().", {"table": self._table})

        dialect = self._dialect
        columns = ", ".join(quote(column, dialect) for column in self._rows[0])
        tuples = []
        for row in self._rows:
            placeholders = [parameters.bind(self._table, column, value) for column, value in row.items()]
            tuples.append(f"({', '.join(placeholders)})")

        return concat(
            Reserved.INSERT_INTO,
            quote(self._table, dialect),
            f"({columns})",
            Reserved.VALUES,
            ", ".join(tuples),
        )

    def clean(self) -> Self:
        super().clean()
        self._rows = []
        return self


# =============================================================================
# UPDATE / DELETE
# =============================================================================


class Update(WhereMixin, JoinMixin, Statement):
    """UPDATE builder: ``UPDATE t [JOIN ...] SET c = :p, ... [WHERE ...]``."""

    def __init__(
        self,
        connection: StatementExecutor | None = None,
        *,
        dialect: Dialect | str | None = None,
        inflector: WordInflector | None = None,
        table: str | None = None,
    ) -> None:
        super().__init__(connection, dialect=dialect, inflector=inflector, table=table)
        self._data: dict[str, Any] = {}
        self._wheres = ConditionList()
        self._joins = JoinClause()

    def set(self, data: Mapping[str, Any]) -> Self:
        """Set column values; every key must be a column name.

        Raises:
            InvalidArgumentError: For positional data (a list or tuple) or
                non-string keys
        """
        if not isinstance(data, Mapping):
            raise InvalidArgumentError(
                "Update data must map column names to values, not a positional sequence.",
                {"received": type(data).__name__},
            )
        bad_keys = [key for key in data if not isinstance(key, str) or not key]
        if bad_keys:
            raise InvalidArgumentError(
                "Update data keys must be column names.",
                {"keys": [repr(key) for key in bad_keys]},
            )
        self._data.update(data)
        return self

    def compile_sql(self, parameters: ParameterStore) -> str:
        if not self._table:
            return ""
        if not self._data:
            raise InvalidArgumentError("Nothing to update; call set() first.", {"table": self._table})

        context = self._context(parameters)
        join = self.get_join_clause(context)
        assignments = ", ".join(
            f"{format_column(column, self._dialect)} = {parameters.bind(self._table, column, value)}"
            for column, value in self._data.items()
        )
        sql = concat(
            Reserved.UPDATE,
            quote(self._table, self._dialect),
            join,
            Reserved.SET,
            assignments,
            self.get_where_clause(context),
        )
        return normalize_whitespace(sql)

    def clean(self) -> Self:
        super().clean()
        self._data = {}
        self._wheres.clear()
        self._joins.clear()
        return self


class Delete(WhereMixin, JoinMixin, Statement):
    """DELETE builder: ``DELETE [t] FROM t [JOIN ...] [WHERE ...]``.

    The table is repeated after DELETE only when joins are present.
    """

    def __init__(
        self,
        connection: StatementExecutor | None = None,
        *,
        dialect: Dialect | str | None = None,
        inflector: WordInflector | None = None,
        table: str | None = None,
    ) -> None:
        super().__init__(connection, dialect=dialect, inflector=inflector, table=table)
        self._wheres = ConditionList()
        self._joins = JoinClause()

    def from_(self, table: str) -> Self:
        self._set_table(table)
        return self

    def compile_sql(self, parameters: ParameterStore) -> str:
        if not self._table:
            return ""

        context = self._context(parameters)
        table = quote(self._table, self._dialect)
        sql = concat(
            Reserved.DELETE,
            table if self._joins else None,
            Reserved.FROM,
            table,
            self.get_join_clause(context),
            self.get_where_clause(context),
        )
        return normalize_whitespace(sql)

    def clean(self) -> Self:
        super().clean()
        self._wheres.clear()
        self._joins.clear()
        return self


# =============================================================================
# Raw SQL
# =============================================================================


class RawStatement(ReturnsRows, Statement):
    """Verbatim SQL with caller-supplied parameters.

    Nothing is quoted, escaped or validated; the caller owns the safety of
    the SQL text.
    """

    def __init__(
        self,
        sql: str = "",
        parameters: Mapping[str, Any] | None = None,
        connection: StatementExecutor | None = None,
        *,
        dialect: Dialect | str | None = None,
        inflector: WordInflector | None = None,
        row_factory: RowFactory | None = None,
    ) -> None:
        super().__init__(connection, dialect=dialect, inflector=inflector)
        self._sql = sql
        self._parameters = ParameterStore(_with_colons(parameters))
        self._row_factory = row_factory

    def query(self, sql: str, parameters: Mapping[str, Any] | None = None) -> Self:
        """Replace the SQL text (and parameters, when given)."""
        self._sql = sql
        if parameters is not None:
            self._parameters = ParameterStore(_with_colons(parameters))
        return self

    def bind(self, placeholder: str, value: Any) -> Self:
        """Add one parameter."""
        self._parameters.add(_with_colon(placeholder), value)
        return self

    def compile_sql(self, parameters: ParameterStore) -> str:
        parameters.merge(self._parameters)
        return self._sql

    def clean(self) -> Self:
        super().clean()
        self._sql = ""
        self._parameters.reset()
        return self


def _with_colon(placeholder: str) -> str:
    return placeholder if placeholder.startswith(":") else f":{placeholder}"


def _with_colons(parameters: Mapping[str, Any] | None) -> dict[str, Any]:
    return {_with_colon(key): value for key, value in (parameters or {}).items()}
