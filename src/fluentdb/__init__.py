"""FluentDB - Fluent SQL query builder with a lightweight ORM.

Builders accumulate clause state through chained calls and compile to a
parameterized SQL string plus its bound parameters, quoting identifiers for
MySQL, PostgreSQL or SQLite. Execution goes through SQLAlchemy.

Example:
    from fluentdb import Database

    with Database("sqlite:///app.db") as db:
        adults = (
            db.table("users")
            .select("id", "name")
            .where("age", ">=", 18)
            .where(lambda q: q.where("role", "admin").or_where("role", "owner"))
            .order_desc("id")
            .limit(10)
            .get()
        )

    # Compile without a database
    sql = Query(dialect="pgsql").table("users").select().where_in("id", [1, 2, 3]).to_sql()
"""

from fluentdb.core.connection import DatabaseConnection
from fluentdb.core.types import (
    Aggregate,
    CompiledStatement,
    DatabaseConfig,
    Dialect,
    ParamType,
    Reserved,
)
from fluentdb.exceptions import (
    BadMethodCallError,
    ConnectionError,
    FluentDBError,
    InvalidArgumentError,
    ModelNotFoundError,
)
from fluentdb.orm import HasMany, HasOne, Model, ModelCollection, SoftDeletes, WithTimestamps
from fluentdb.query import (
    Database,
    Delete,
    Insert,
    Query,
    Raw,
    RawStatement,
    Select,
    Update,
)

__version__ = "0.1.0"

__all__ = [
    # Entry points
    "Database",
    "DatabaseConnection",
    "Query",
    # Builders
    "Select",
    "Insert",
    "Update",
    "Delete",
    "RawStatement",
    "Raw",
    # ORM
    "Model",
    "ModelCollection",
    "HasOne",
    "HasMany",
    "SoftDeletes",
    "WithTimestamps",
    # Types
    "Aggregate",
    "CompiledStatement",
    "DatabaseConfig",
    "Dialect",
    "ParamType",
    "Reserved",
    # Exceptions
    "FluentDBError",
    "ConnectionError",
    "InvalidArgumentError",
    "BadMethodCallError",
    "ModelNotFoundError",
]
