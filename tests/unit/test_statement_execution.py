"""Tests for executing statements through a StatementExecutor."""

import io
from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy.dialects.postgresql import psycopg

from fluentdb.core.executor import SQLAlchemyStatement, infer_type
from fluentdb.core.types import Dialect, ParamType
from fluentdb.exceptions import ConnectionError
from fluentdb.query.statements import Insert, RawStatement, Select, Statement, Update, resolve_dialect


class TestInferType:
    """Tests for bind type inference."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, ParamType.NULL),
            (True, ParamType.BOOL),
            (False, ParamType.BOOL),
            (0, ParamType.INT),
            (42, ParamType.INT),
            (b"\x00\x01", ParamType.LOB),
            (bytearray(b"ab"), ParamType.LOB),
            (io.BytesIO(b"stream"), ParamType.LOB),
            ("text", ParamType.STRING),
            (1.5, ParamType.STRING),
        ],
    )
    def test_types(self, value, expected):
        assert infer_type(value) == expected


class TestResolveDialect:
    """Tests for picking the quoting dialect."""

    def test_explicit_wins(self, executor):
        assert resolve_dialect(executor, "mysql") == Dialect.MYSQL

    def test_from_connection(self, executor):
        assert resolve_dialect(executor, None) == Dialect.SQLITE

    def test_default_is_ansi(self):
        assert resolve_dialect(None, None) == Dialect.PGSQL


class TestExecute:
    """Tests for Statement.execute and the row helpers."""

    def test_binds_every_parameter_with_its_type(self, executor):
        query = (
            Select(connection=executor)
            .from_("users")
            .where("active", True)
            .where("age", 30)
            .where("name", "Ada")
            .where_raw("avatar = :avatar", {"avatar": b"\x89PNG"})
            .where_raw("deleted_at IS :deleted", {"deleted": None})
        )
        assert query.execute() is True

        statement = executor.last
        assert statement.sql == query.to_sql()
        assert statement.executed
        assert statement.bindings == {
            ":users_active_0": (True, ParamType.BOOL),
            ":users_age_1": (30, ParamType.INT),
            ":users_name_2": ("Ada", ParamType.STRING),
            ":avatar": (b"\x89PNG", ParamType.LOB),
            ":deleted": (None, ParamType.NULL),
        }

    def test_dialect_comes_from_connection(self, executor):
        Select(connection=executor).from_("users").execute()
        assert executor.last.sql == "SELECT * FROM `users`"

    def test_get_returns_all_rows(self, executor):
        executor.rows = [{"id": 1}, {"id": 2}]
        assert Select(connection=executor).from_("users").get() == [{"id": 1}, {"id": 2}]

    def test_first_returns_one_row_or_none(self, executor):
        assert Select(connection=executor).from_("users").first() is None

        executor.rows = [{"id": 7}, {"id": 8}]
        assert Select(connection=executor).from_("users").first() == {"id": 7}

    def test_row_factory_hydrates_rows(self, executor):
        executor.rows = [{"id": 1}, {"id": 2}]
        query = Select(connection=executor, row_factory=lambda row: row["id"] * 10).from_("users")
        assert query.get() == [10, 20]
        assert query.first() == 10

    def test_raw_statement_rows(self, executor):
        executor.rows = [{"one": 1}]
        query = RawStatement("SELECT 1 AS one", connection=executor)
        assert query.get() == [{"one": 1}]
        assert executor.last.sql == "SELECT 1 AS one"

    def test_rowcount_and_last_insert_id(self, executor):
        query = Insert({"name": "Ada"}, executor, table="users")
        assert query.rowcount == -1
        assert query.last_insert_id is None

        query.execute()
        assert query.rowcount == 0
        assert query.last_insert_id == 42

    def test_each_execute_prepares_a_new_statement(self, executor):
        query = Update(executor, table="users").set({"active": False})
        query.execute()
        query.execute()
        assert len(executor.statements) == 2
        assert executor.statements[0].sql == executor.statements[1].sql

    def test_execute_without_connection(self):
        with pytest.raises(ConnectionError) as exc_info:
            Select().from_("users").execute()
        assert exc_info.value.context == {"table": "users"}


class TestStatementBase:
    def test_base_class_is_abstract(self):
        with pytest.raises(TypeError):
            Statement()


def _postgresql_sql(query) -> str:
    """Bind a compiled builder as execute() does and render it for psycopg."""
    compiled = query.compile()
    statement = SQLAlchemyStatement(None, compiled.sql)
    for placeholder, value in compiled.parameters.items():
        statement.bind(placeholder, value, infer_type(value))
    return str(statement._build().compile(dialect=psycopg.dialect()))


class TestPostgreSQLBindCasts:
    """String-typed binds must reach PostgreSQL without a VARCHAR cast."""

    def test_float_comparison(self):
        query = Select(dialect="pgsql").from_("orders").where("total", ">", 9.5)
        assert _postgresql_sql(query) == 'SELECT * FROM "orders" WHERE "total" > %(orders_total_0)s'

    def test_decimal_and_text_values(self):
        query = (
            Select(dialect="pgsql")
            .from_("orders")
            .where("total", Decimal("10.25"))
            .where("status", "paid")
        )
        assert "::VARCHAR" not in _postgresql_sql(query)

    def test_datetime_insert(self):
        query = Insert({"created_at": datetime(2024, 1, 1)}, table="users", dialect="pgsql")
        sql = _postgresql_sql(query)
        assert sql == 'INSERT INTO "users" ("created_at") VALUES (%(users_created_at_0)s)'

    def test_timestamp_strings(self):
        query = Update(table="users", dialect="pgsql").set({"updated_at": "2024-01-01 12:00:00"})
        assert "::VARCHAR" not in _postgresql_sql(query)
