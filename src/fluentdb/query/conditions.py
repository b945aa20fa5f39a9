"""Condition entries and the WHERE/HAVING condition compiler.

A clause is an ordered list of ``Condition`` entries. Each entry joins to its
preceding sibling with AND/OR; the first entry of any list (top level or
nested group) never carries an operator.

Compilation walks the list in order, rendering SQL text and registering a
bound value for every placeholder it emits, at the moment it emits it.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, Union

from fluentdb.core.types import Dialect, Reserved
from fluentdb.exceptions import InvalidArgumentError
from fluentdb.query.grammar import Raw, concat, format_column, quote
from fluentdb.query.parameters import ParameterStore

if TYPE_CHECKING:
    from fluentdb.core.inflector import WordInflector


class Subquery(Protocol):
    """A statement that can render itself into a shared parameter store."""

    def compile_sql(self, parameters: ParameterStore) -> str: ...


@dataclass
class Comparison:
    """``column comparison value`` (also BETWEEN/IN/IS forms)."""

    column: str | Raw
    comparison: str
    value: Any


@dataclass
class RawCondition:
    """A pre-formed SQL fragment with any values it binds."""

    sql: str
    parameters: dict[str, Any] = field(default_factory=dict)


@dataclass
class ExistsCondition:
    """EXISTS test correlating ``table`` against the current table.

    ``column`` lives on ``table``; ``value`` names the column on the current
    table. Either may be None, in which case the naming convention applies
    at compile time: ``<singular(current table)>_id`` and ``id``.
    """

    table: str
    column: str | None
    value: str | None
    comparison: str = "="
    exists: bool = True


@dataclass
class SubqueryExists:
    """EXISTS test over a fully built Select statement."""

    select: Subquery
    exists: bool = True


Payload = Union[Comparison, RawCondition, ExistsCondition, SubqueryExists, "ConditionList"]


@dataclass
class Condition:
    """One entry in a WHERE/HAVING list."""

    operator: str | None
    payload: Payload
    grouped: bool = False


class ConditionList:
    """Ordered condition entries for one clause (or one nested group)."""

    def __init__(self) -> None:
        self._entries: list[Condition] = []

    def add(self, operator: str | None, payload: Payload, grouped: bool = False) -> None:
        """Append an entry; the first entry always has no operator."""
        self._entries.append(
            Condition(
                operator=operator if self._entries else None,
                payload=payload,
                grouped=grouped,
            )
        )

    def clear(self) -> None:
        self._entries.clear()

    def __iter__(self) -> Iterator[Condition]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)


@dataclass
class CompileContext:
    """Everything a clause needs to render: dialect, store, current table."""

    dialect: Dialect
    parameters: ParameterStore
    table: str
    inflector: WordInflector


def _last_keyword(comparison: str) -> str:
    words = comparison.split()
    return words[-1] if words else ""


def _is_pair(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and len(value) == 2


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def compile_conditions(
    conditions: ConditionList,
    clause: Reserved,
    context: CompileContext,
) -> str:
    """Render condition entries as SQL, registering parameters as it goes.

    Args:
        conditions: Entries to render
        clause: Reserved.WHERE or Reserved.HAVING; WHERE columns may be
            table-qualified, HAVING columns are quoted as plain identifiers
        context: Dialect, parameter store and current table

    Returns:
        SQL text without the clause keyword ("" when there are no entries)
    """
    parts: list[str] = []
    store = context.parameters
    dialect = context.dialect

    for condition in conditions:
        operator = condition.operator or ""
        payload = condition.payload

        if condition.grouped:
            nested = compile_conditions(payload, clause, context)  # type: ignore[arg-type]
            parts.append(concat(operator, f"({nested})"))
            continue

        if isinstance(payload, RawCondition):
            store.merge(payload.parameters)
            parts.append(concat(operator, payload.sql))
            continue

        if isinstance(payload, SubqueryExists):
            keyword = Reserved.EXISTS if payload.exists else Reserved.NOT_EXISTS
            sql = payload.select.compile_sql(store)
            parts.append(concat(operator, keyword, f"({sql})"))
            continue

        if isinstance(payload, ExistsCondition):
            parts.append(concat(operator, _compile_exists(payload, context)))
            continue

        if not isinstance(payload, Comparison):
            raise TypeError(f"Unsupported condition payload: {type(payload).__name__}")

        raw_column = str(payload.column)
        if clause == Reserved.WHERE:
            column = format_column(payload.column, dialect)
        else:
            column = quote(payload.column, dialect)
        comparison = payload.comparison
        value = payload.value
        keyword = _last_keyword(comparison)

        if keyword == Reserved.BETWEEN and _is_pair(value):
            lower, upper = value
            low = store.bind(context.table, raw_column, lower)
            high = store.bind(context.table, raw_column, upper)
            parts.append(concat(operator, column, comparison, low, Reserved.AND, high))
        elif keyword == Reserved.IN and _is_sequence(value):
            placeholders = [store.bind(context.table, raw_column, item) for item in value]
            parts.append(concat(operator, column, comparison, f"({', '.join(placeholders)})"))
        elif value is None and comparison in (Reserved.IS, Reserved.IS_NOT):
            # PostgreSQL and MySQL only accept the NULL keyword after IS
            parts.append(concat(operator, column, comparison, "NULL"))
        else:
            placeholder = store.bind(context.table, raw_column, value)
            parts.append(concat(operator, column, comparison, placeholder))

    return " ".join(parts)


def _compile_exists(condition: ExistsCondition, context: CompileContext) -> str:
    dialect = context.dialect
    column = condition.column or f"{context.inflector.singularize(context.table)}_id"
    parent_column = condition.value or "id"

    table = quote(condition.table, dialect)
    subquery = concat(
        Reserved.SELECT,
        quote(column, dialect),
        Reserved.FROM,
        table,
        Reserved.WHERE,
        f"{table}.{quote(column, dialect)}",
        condition.comparison,
        f"{quote(context.table, dialect)}.{quote(parent_column, dialect)}",
    )
    keyword = Reserved.EXISTS if condition.exists else Reserved.NOT_EXISTS
    return f"{keyword} ({subquery})"


def conditional_params(
    column: str | Raw,
    comparison: Any,
    value: Any,
    has_value: bool,
) -> Comparison:
    """Normalize ``(column, value)`` / ``(column, op, value)`` call forms.

    Two-argument calls compare with ``=``. Comparing against None renders
    as ``IS``/``IS NOT`` so NULL checks behave as expected.

    Raises:
        InvalidArgumentError: If an IN/NOT IN comparison gets an empty sequence
    """
    if not has_value:
        comparison, value = "=", comparison
    comparison = str(comparison).strip().upper()

    if value is None:
        if comparison == "=":
            comparison = Reserved.IS
        elif comparison in ("!=", "<>"):
            comparison = Reserved.IS_NOT

    if _last_keyword(comparison) == Reserved.IN and _is_sequence(value) and not value:
        raise InvalidArgumentError(
            f"{comparison} on `{column}` needs at least one value.",
            {"column": str(column), "comparison": comparison},
        )

    return Comparison(column=column, comparison=str(comparison), value=value)


def raw_condition(sql: str | Raw, parameters: Mapping[str, Any] | None) -> RawCondition:
    """Build a raw condition entry; parameter names get a leading colon."""
    named = {
        key if key.startswith(":") else f":{key}": value for key, value in (parameters or {}).items()
    }
    return RawCondition(sql=str(sql), parameters=named)
