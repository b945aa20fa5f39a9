"""Statement execution for compiled FluentDB queries.

The query builders only depend on the two protocols below. The SQLAlchemy
implementation prepares a ``text()`` construct, binds each placeholder with
its bind type and runs it in its own transaction. String values are
bound untyped.
"""

from __future__ import annotations

import io
import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from sqlalchemy import Boolean, Integer, LargeBinary, bindparam, text
from sqlalchemy.types import NullType, TypeEngine

from fluentdb.core.types import ParamType
from fluentdb.exceptions import InvalidArgumentError

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


def infer_type(value: Any) -> ParamType:
    """Decide the bind type of a value.

    bool is checked before int, since bool is an int subclass.
    """
    if value is None:
        return ParamType.NULL
    if isinstance(value, bool):
        return ParamType.BOOL
    if isinstance(value, int):
        return ParamType.INT
    if isinstance(value, (bytes, bytearray, memoryview, io.IOBase)):
        return ParamType.LOB
    return ParamType.STRING


# STRING binds untyped: a String type renders every bind as ::VARCHAR on
# postgresql+psycopg.
_SQLALCHEMY_TYPES: dict[ParamType, type[TypeEngine[Any]]] = {
    ParamType.NULL: NullType,
    ParamType.BOOL: Boolean,
    ParamType.INT: Integer,
    ParamType.LOB: LargeBinary,
    ParamType.STRING: NullType,
}


@runtime_checkable
class PreparedStatement(Protocol):
    """A statement ready to receive bound values and run."""

    def bind(self, placeholder: str, value: Any, type_: ParamType) -> None: ...

    def execute(self) -> bool: ...

    def fetch_all(self) -> list[dict[str, Any]]: ...

    def fetch(self) -> dict[str, Any] | None: ...


@runtime_checkable
class StatementExecutor(Protocol):
    """Anything that can prepare SQL text into a PreparedStatement."""

    def prepare(self, sql: str) -> PreparedStatement: ...


class SQLAlchemyStatement:
    """PreparedStatement backed by a SQLAlchemy engine.

    Result rows are buffered as dicts once the statement runs, so fetching
    never holds a connection open.
    """

    def __init__(self, engine: Engine, sql: str) -> None:
        self._engine = engine
        self._sql = sql
        self._bindings: dict[str, tuple[Any, ParamType]] = {}
        self._rows: list[dict[str, Any]] = []
        self._cursor = 0
        self.rowcount: int = -1
        self.last_insert_id: Any = None

    @property
    def sql(self) -> str:
        """The SQL text this statement was prepared with."""
        return self._sql

    def bind(self, placeholder: str, value: Any, type_: ParamType) -> None:
        """Bind a value to a placeholder (leading ``:`` is optional)."""
        self._bindings[placeholder.lstrip(":")] = (value, type_)

    def _build(self) -> Any:
        clause = text(self._sql)
        if not self._bindings:
            return clause

        params = []
        for name, (value, type_) in self._bindings.items():
            if type_ is ParamType.LOB and isinstance(value, io.IOBase):
                value = value.read()
            params.append(bindparam(name, value, type_=_SQLALCHEMY_TYPES[type_]()))
        return clause.bindparams(*params)

    def execute(self) -> bool:
        """Run the statement in its own transaction.

        Driver errors propagate unmodified.

        Raises:
            InvalidArgumentError: If the statement has no SQL text, which is
                what a builder without a target table compiles to
        """
        if not self._sql.strip():
            raise InvalidArgumentError("Cannot execute an empty SQL statement; was a table set?")

        statement = self._build()
        logger.debug(f"Executing: {self._sql} {sorted(self._bindings)}")

        with self._engine.begin() as conn:
            result = conn.execute(statement)
            self.rowcount = result.rowcount
            if result.returns_rows:
                self._rows = [dict(row._mapping) for row in result]
            else:
                self._rows = []
                self.last_insert_id = result.lastrowid
        self._cursor = 0
        return True

    def fetch_all(self) -> list[dict[str, Any]]:
        """Return all remaining rows."""
        rows = self._rows[self._cursor :]
        self._cursor = len(self._rows)
        return rows

    def fetch(self) -> dict[str, Any] | None:
        """Return the next row, or None when exhausted."""
        if self._cursor >= len(self._rows):
            return None
        row = self._rows[self._cursor]
        self._cursor += 1
        return row
