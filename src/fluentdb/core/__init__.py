"""Core components for FluentDB."""

from fluentdb.core.connection import DatabaseConnection, get_database_url
from fluentdb.core.executor import (
    PreparedStatement,
    SQLAlchemyStatement,
    StatementExecutor,
    infer_type,
)
from fluentdb.core.inflector import InflectEngine, WordInflector, default_inflector, snake_case
from fluentdb.core.types import (
    Aggregate,
    CompiledStatement,
    DatabaseConfig,
    Dialect,
    ParamType,
    Reserved,
)

__all__ = [
    "DatabaseConnection",
    "get_database_url",
    "PreparedStatement",
    "SQLAlchemyStatement",
    "StatementExecutor",
    "infer_type",
    "InflectEngine",
    "WordInflector",
    "default_inflector",
    "snake_case",
    "Aggregate",
    "CompiledStatement",
    "DatabaseConfig",
    "Dialect",
    "ParamType",
    "Reserved",
]
