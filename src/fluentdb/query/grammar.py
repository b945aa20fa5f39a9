"""Identifier quoting and raw SQL fragments.

Quoting is a pure function of the identifier and the dialect: MySQL and
SQLite wrap identifiers in backticks, everything else in ANSI double quotes.
"""

from __future__ import annotations

import re

from fluentdb.core.types import Dialect, Reserved

_WHITESPACE = re.compile(r"\s+")


class Raw:
    """A pre-formed SQL fragment that is never quoted or escaped.

    The caller is responsible for the safety of its contents.
    """

    __slots__ = ("sql",)

    def __init__(self, sql: str = "") -> None:
        self.sql = sql

    def __str__(self) -> str:
        return self.sql

    def __repr__(self) -> str:
        return f"Raw({self.sql!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Raw):
            return self.sql == other.sql
        return NotImplemented

    def __hash__(self) -> int:
        return hash(("raw", self.sql))


def quote(identifier: str | Raw | None, dialect: Dialect | str) -> str:
    """Quote a single identifier for the given dialect.

    None renders as an empty string and Raw fragments render verbatim.
    """
    if identifier is None:
        return ""
    if isinstance(identifier, Raw):
        return str(identifier)
    if Dialect.from_name(dialect).uses_backticks:
        return f"`{identifier}`"
    return f'"{identifier}"'


def format_column(column: str | Raw, dialect: Dialect | str) -> str:
    """Quote a possibly table-qualified column (``table.column``).

    Each segment is quoted on its own and ``*`` is left bare, so
    ``users.*`` renders as ``"users".*``.
    """
    if isinstance(column, Raw):
        return str(column)

    table, dot, name = column.partition(".")
    if not dot:
        return column if column == Reserved.ALL else quote(column, dialect)

    formatted = name if name == Reserved.ALL else quote(name, dialect)
    return f"{quote(table, dialect)}.{formatted}"


def normalize_whitespace(sql: str) -> str:
    """Collapse runs of whitespace to one space and trim."""
    return _WHITESPACE.sub(" ", sql).strip()


def concat(*parts: str | None) -> str:
    """Join non-empty SQL parts with single spaces."""
    return " ".join(part for part in parts if part)
