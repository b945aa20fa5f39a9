"""Shared test fixtures for FluentDB."""

from collections.abc import Generator
from typing import Any

import pytest

from fluentdb import Database
from fluentdb.core.types import ParamType

SCHEMA = [
    """
    CREATE TABLE profiles (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        bio TEXT
    )
    """,
    """
    CREATE TABLE users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        email TEXT,
        age INTEGER,
        role TEXT DEFAULT 'member',
        active BOOLEAN DEFAULT 1,
        deleted_at TEXT,
        created_at TEXT,
        updated_at TEXT,
        profile_id INTEGER REFERENCES profiles(id)
    )
    """,
    """
    CREATE TABLE posts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER REFERENCES users(id),
        title TEXT NOT NULL,
        views INTEGER DEFAULT 0,
        deleted_at TEXT
    )
    """,
]


class RecordingStatement:
    """PreparedStatement double that records bindings and returns canned rows."""

    def __init__(self, sql: str, rows: list[dict[str, Any]]) -> None:
        self.sql = sql
        self.bindings: dict[str, tuple[Any, ParamType]] = {}
        self.executed = False
        self._rows = rows
        self._cursor = 0
        self.rowcount = len(rows)
        self.last_insert_id: Any = 42

    def bind(self, placeholder: str, value: Any, type_: ParamType) -> None:
        self.bindings[placeholder] = (value, type_)

    def execute(self) -> bool:
        self.executed = True
        return True

    def fetch_all(self) -> list[dict[str, Any]]:
        rows = self._rows[self._cursor :]
        self._cursor = len(self._rows)
        return rows

    def fetch(self) -> dict[str, Any] | None:
        if self._cursor >= len(self._rows):
            return None
        row = self._rows[self._cursor]
        self._cursor += 1
        return row


class RecordingExecutor:
    """StatementExecutor double: no database, just a log of prepared statements."""

    def __init__(self, rows: list[dict[str, Any]] | None = None, dialect: str = "sqlite") -> None:
        self.rows = rows or []
        self.dialect = dialect
        self.statements: list[RecordingStatement] = []

    def prepare(self, sql: str) -> RecordingStatement:
        statement = RecordingStatement(sql, list(self.rows))
        self.statements.append(statement)
        return statement

    @property
    def last(self) -> RecordingStatement:
        return self.statements[-1]


@pytest.fixture
def executor() -> RecordingExecutor:
    """Executor double that records prepared SQL and bindings."""
    return RecordingExecutor()


@pytest.fixture
def memory_db() -> Generator[Database, None, None]:
    """Create a Database on SQLite in-memory with the test schema."""
    database = Database("sqlite:///:memory:")
    for ddl in SCHEMA:
        database.raw(ddl).execute()
    yield database
    database.close()


@pytest.fixture
def seeded_db(memory_db: Database) -> Database:
    """In-memory database with a few users and posts."""
    memory_db.table("users").insert(
        [
            {"name": "Ada", "email": "ada@example.com", "age": 36, "role": "admin"},
            {"name": "Grace", "email": "grace@example.com", "age": 45, "role": "owner"},
            {"name": "Linus", "email": "linus@example.com", "age": 17, "role": "member"},
        ]
    ).execute()
    memory_db.table("posts").insert(
        [
            {"user_id": 1, "title": "Engines", "views": 10},
            {"user_id": 1, "title": "Notes", "views": 30},
            {"user_id": 2, "title": "Compilers", "views": 50},
        ]
    ).execute()
    return memory_db
