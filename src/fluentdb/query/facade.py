"""Query facade and the top-level Database entry point."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy.engine import URL

from fluentdb.core.connection import DatabaseConnection
from fluentdb.core.executor import StatementExecutor
from fluentdb.core.inflector import WordInflector, default_inflector
from fluentdb.core.types import DatabaseConfig, Dialect
from fluentdb.query.grammar import Raw
from fluentdb.query.statements import (
    Delete,
    Insert,
    RawStatement,
    RowFactory,
    Select,
    Update,
    resolve_dialect,
)

logger = logging.getLogger(__name__)


class Query:
    """Factory for statement builders sharing one connection.

    ``table()`` and ``model()`` remember a target table and a row factory;
    every builder call returns a fresh instance, so builders never share
    state.

    Example:
        >>> q = Query(dialect="sqlite").table("users")
        >>> q.select("id").where("active", True).to_sql()
        'SELECT `id` FROM `users` WHERE `active` = :users_active_0'
    """

    def __init__(
        self,
        connection: StatementExecutor | None = None,
        *,
        dialect: Dialect | str | None = None,
        inflector: WordInflector | None = None,
    ) -> None:
        self._connection = connection
        self._dialect = resolve_dialect(connection, dialect)
        self._inflector = inflector or default_inflector()
        self._table: str | None = None
        self._row_factory: RowFactory | None = None

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    def table(self, table: str) -> Query:
        self._table = table
        return self

    def model(self, row_factory: RowFactory) -> Query:
        """Hydrate selected rows through ``row_factory``."""
        self._row_factory = row_factory
        return self

    def _kwargs(self) -> dict[str, Any]:
        return {"dialect": self._dialect, "inflector": self._inflector}

    def select(self, *columns: str | Raw | Mapping[str, str]) -> Select:
        return Select(
            *columns,
            connection=self._connection,
            table=self._table,
            row_factory=self._row_factory,
            **self._kwargs(),
        )

    def insert(self, data: Mapping[str, Any] | Sequence[Mapping[str, Any]]) -> Insert:
        return Insert(data, self._connection, table=self._table, **self._kwargs())

    def update(self, table: str | None = None) -> Update:
        return Update(self._connection, table=self._table or table, **self._kwargs())

    def delete(self, table: str | None = None) -> Delete:
        return Delete(self._connection, table=self._table or table, **self._kwargs())

    def raw(self, sql: str, parameters: Mapping[str, Any] | None = None) -> RawStatement:
        return RawStatement(
            sql,
            parameters,
            self._connection,
            row_factory=self._row_factory,
            **self._kwargs(),
        )


class Database:
    """Owns a DatabaseConnection and hands out Query facades.

    Args:
        config: Database URL or DatabaseConfig
        echo: Echo SQL statements (ignored when a DatabaseConfig is given)
        inflector: Word inflector shared by every builder

    Example:
        >>> with Database("sqlite:///:memory:") as db:
        ...     db.raw("SELECT 1 AS one").first()
        {'one': 1}
    """

    def __init__(
        self,
        config: str | URL | DatabaseConfig,
        echo: bool = False,
        inflector: WordInflector | None = None,
    ) -> None:
        self._connection = DatabaseConnection(config, echo=echo)
        self._inflector = inflector or default_inflector()

    @property
    def connection(self) -> DatabaseConnection:
        return self._connection

    @property
    def dialect(self) -> Dialect:
        return self._connection.dialect

    def query(self) -> Query:
        """Return a fresh Query facade bound to this database."""
        return Query(self._connection, inflector=self._inflector)

    def table(self, table: str) -> Query:
        return self.query().table(table)

    def raw(self, sql: str, parameters: Mapping[str, Any] | None = None) -> RawStatement:
        return self.query().raw(sql, parameters)

    def close(self) -> None:
        self._connection.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()
