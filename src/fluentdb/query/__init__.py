"""Fluent SQL statement builders for FluentDB.

Builders accumulate clause state through chained calls and compile it into
parameterized SQL plus a placeholder -> value map:

    1. Grammar - dialect-aware identifier quoting and raw fragments
    2. Parameters - the placeholder store filled during compilation
    3. Conditions - the WHERE/HAVING condition compiler
    4. Clauses - where/having/join/order/group/aggregate chain methods
    5. Statements - Select, Insert, Update, Delete and raw SQL

Example:
    sql = (
        Query(dialect="pgsql")
        .table("users")
        .select("id", "name")
        .where("age", ">", 18)
        .where(lambda q: q.where("role", "admin").or_where("role", "owner"))
        .order_desc("id")
        .to_sql()
    )
"""

from fluentdb.query.clauses import HavingBuilder, WhereBuilder
from fluentdb.query.facade import Database, Query
from fluentdb.query.grammar import Raw, format_column, quote
from fluentdb.query.parameters import ParameterStore, interpolate
from fluentdb.query.statements import (
    Delete,
    Insert,
    RawStatement,
    Select,
    SelectScope,
    Statement,
    Update,
)

__all__ = [
    "Database",
    "Query",
    "Statement",
    "Select",
    "SelectScope",
    "Insert",
    "Update",
    "Delete",
    "RawStatement",
    "WhereBuilder",
    "HavingBuilder",
    "Raw",
    "quote",
    "format_column",
    "ParameterStore",
    "interpolate",
]
