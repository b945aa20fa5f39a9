"""Core types and value objects for FluentDB.

Enums cover SQL keywords, dialects and bind parameter types; the pydantic
models are the JSON-serializable shapes exchanged with callers.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class Dialect(StrEnum):
    """Database drivers FluentDB can compile identifiers for."""

    MYSQL = "mysql"
    PGSQL = "pgsql"
    SQLITE = "sqlite"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid dialect values."""
        return [d.value for d in cls]

    @classmethod
    def from_name(cls, name: str | Dialect) -> Dialect:
        """Resolve a driver or SQLAlchemy dialect name to a Dialect.

        Unknown names resolve to PGSQL, which quotes with ANSI double quotes.
        """
        if isinstance(name, Dialect):
            return name
        normalized = name.lower().split("+", 1)[0]
        aliases = {
            "mysql": cls.MYSQL,
            "mariadb": cls.MYSQL,
            "sqlite": cls.SQLITE,
            "pgsql": cls.PGSQL,
            "postgres": cls.PGSQL,
            "postgresql": cls.PGSQL,
        }
        return aliases.get(normalized, cls.PGSQL)

    @property
    def uses_backticks(self) -> bool:
        """Whether identifiers are wrapped in backticks for this dialect."""
        return self in (Dialect.MYSQL, Dialect.SQLITE)


class ParamType(StrEnum):
    """Bind parameter types, decided once per value at bind time."""

    NULL = "null"
    BOOL = "bool"
    INT = "int"
    LOB = "lob"
    STRING = "string"


class Reserved(StrEnum):
    """SQL keywords used when rendering statements."""

    SELECT = "SELECT"
    ALL = "*"
    FROM = "FROM"
    WHERE = "WHERE"
    AND = "AND"
    OR = "OR"
    EXISTS = "EXISTS"
    NOT_EXISTS = "NOT EXISTS"
    INSERT_INTO = "INSERT INTO"
    VALUES = "VALUES"
    UPDATE = "UPDATE"
    SET = "SET"
    DELETE = "DELETE"
    LIKE = "LIKE"
    NOT_LIKE = "NOT LIKE"
    IS = "IS"
    IS_NOT = "IS NOT"
    BETWEEN = "BETWEEN"
    NOT_BETWEEN = "NOT BETWEEN"
    IN = "IN"
    NOT_IN = "NOT IN"
    AS = "AS"
    GROUP_BY = "GROUP BY"
    ORDER_BY = "ORDER BY"
    ASC = "ASC"
    DESC = "DESC"
    DISTINCT = "DISTINCT"
    HAVING = "HAVING"
    LIMIT = "LIMIT"
    OFFSET = "OFFSET"
    INNER_JOIN = "INNER JOIN"
    LEFT_JOIN = "LEFT JOIN"
    RIGHT_JOIN = "RIGHT JOIN"
    FULL_JOIN = "FULL JOIN"
    CROSS_JOIN = "CROSS JOIN"
    ON = "ON"
    UNION = "UNION"


class Aggregate(StrEnum):
    """Aggregate functions, in the order they render in a SELECT list."""

    COUNT = "COUNT"
    SUM = "SUM"
    AVG = "AVG"
    MIN = "MIN"
    MAX = "MAX"


class DatabaseConfig(BaseModel):
    """Connection settings for a FluentDB database."""

    url: str = Field(..., description="SQLAlchemy database URL")
    echo: bool = Field(default=False, description="Echo SQL statements (debugging)")
    dialect: str | None = Field(
        default=None,
        description="Override the dialect used for identifier quoting",
    )


class CompiledStatement(BaseModel):
    """A compiled statement: SQL text plus its bound parameters."""

    sql: str
    parameters: dict[str, Any] = Field(default_factory=dict)

    def placeholders(self) -> list[str]:
        """Return placeholder names in binding order."""
        return list(self.parameters)
