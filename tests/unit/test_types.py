"""Tests for core types."""

import pytest
from pydantic import ValidationError

from fluentdb.core.types import Aggregate, CompiledStatement, DatabaseConfig, Dialect


class TestDialect:
    """Tests for Dialect enum."""

    def test_values(self):
        assert Dialect.values() == ["mysql", "pgsql", "sqlite"]

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("mysql", Dialect.MYSQL),
            ("mysql+pymysql", Dialect.MYSQL),
            ("mariadb", Dialect.MYSQL),
            ("postgresql", Dialect.PGSQL),
            ("postgresql+psycopg", Dialect.PGSQL),
            ("PGSQL", Dialect.PGSQL),
            ("sqlite", Dialect.SQLITE),
            ("oracle", Dialect.PGSQL),
            (Dialect.SQLITE, Dialect.SQLITE),
        ],
    )
    def test_from_name(self, name, expected):
        assert Dialect.from_name(name) == expected

    def test_backticks(self):
        assert Dialect.MYSQL.uses_backticks
        assert Dialect.SQLITE.uses_backticks
        assert not Dialect.PGSQL.uses_backticks


class TestAggregate:
    def test_render_order(self):
        assert [a.value for a in Aggregate] == ["COUNT", "SUM", "AVG", "MIN", "MAX"]


class TestCompiledStatement:
    """Tests for CompiledStatement model."""

    def test_placeholders_in_binding_order(self):
        compiled = CompiledStatement(sql="x", parameters={":b_1": 2, ":a_0": 1})
        assert compiled.placeholders() == [":b_1", ":a_0"]

    def test_json_dump(self):
        compiled = CompiledStatement(sql="SELECT 1")
        assert compiled.model_dump() == {"sql": "SELECT 1", "parameters": {}}


class TestDatabaseConfig:
    """Tests for DatabaseConfig model."""

    def test_defaults(self):
        config = DatabaseConfig(url="sqlite:///:memory:")
        assert config.echo is False
        assert config.dialect is None

    def test_url_required(self):
        with pytest.raises(ValidationError):
            DatabaseConfig()
