"""Tests for identifier quoting, raw fragments and dialect resolution."""

import pytest

from fluentdb.core.types import Dialect
from fluentdb.query.grammar import Raw, concat, format_column, normalize_whitespace, quote


class TestQuote:
    """Tests for quote()."""

    @pytest.mark.parametrize("dialect", ["mysql", "sqlite", Dialect.MYSQL, Dialect.SQLITE])
    def test_backtick_dialects(self, dialect):
        """MySQL and SQLite wrap identifiers in backticks."""
        assert quote("users", dialect) == "`users`"

    @pytest.mark.parametrize("dialect", ["pgsql", "postgresql", "oracle", Dialect.PGSQL])
    def test_other_dialects_use_double_quotes(self, dialect):
        """Anything else gets ANSI double quotes."""
        assert quote("users", dialect) == '"users"'

    def test_none_is_empty(self):
        """None renders as an empty string."""
        assert quote(None, "pgsql") == ""

    def test_raw_is_verbatim(self):
        """Raw fragments are never quoted."""
        assert quote(Raw("COUNT(*)"), "mysql") == "COUNT(*)"


class TestFormatColumn:
    """Tests for format_column()."""

    def test_plain_column(self):
        assert format_column("name", "pgsql") == '"name"'

    def test_dotted_column_quotes_each_segment(self):
        """table.column is split and each part quoted."""
        assert format_column("users.name", "pgsql") == '"users"."name"'
        assert format_column("users.name", "mysql") == "`users`.`name`"

    def test_star_is_never_quoted(self):
        """A bare * stays bare, qualified or not."""
        assert format_column("*", "pgsql") == "*"
        assert format_column("users.*", "pgsql") == '"users".*'

    def test_raw_column(self):
        assert format_column(Raw("LOWER(name)"), "sqlite") == "LOWER(name)"


class TestRaw:
    """Tests for the Raw value type."""

    def test_str_and_equality(self):
        raw = Raw("NOW()")
        assert str(raw) == "NOW()"
        assert raw == Raw("NOW()")
        assert raw != Raw("NOW( )")
        assert {raw, Raw("NOW()")} == {raw}

    def test_raw_is_not_a_string(self):
        """Raw fragments never compare equal to plain strings."""
        assert Raw("x") != "x"


class TestDialect:
    """Tests for Dialect resolution."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("mysql", Dialect.MYSQL),
            ("mariadb", Dialect.MYSQL),
            ("mysql+pymysql", Dialect.MYSQL),
            ("sqlite", Dialect.SQLITE),
            ("pgsql", Dialect.PGSQL),
            ("postgresql", Dialect.PGSQL),
            ("postgresql+psycopg", Dialect.PGSQL),
            ("mssql", Dialect.PGSQL),
        ],
    )
    def test_from_name(self, name, expected):
        assert Dialect.from_name(name) == expected

    def test_values(self):
        assert Dialect.values() == ["mysql", "pgsql", "sqlite"]

    def test_uses_backticks(self):
        assert Dialect.MYSQL.uses_backticks
        assert Dialect.SQLITE.uses_backticks
        assert not Dialect.PGSQL.uses_backticks


class TestHelpers:
    """Tests for SQL string helpers."""

    def test_normalize_whitespace(self):
        assert normalize_whitespace("  SELECT   *\n\tFROM  users ") == "SELECT * FROM users"

    def test_concat_skips_empty_parts(self):
        assert concat("SELECT", "", None, "*") == "SELECT *"
