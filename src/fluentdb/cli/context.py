"""CLI context management for database connections and shared state."""

from dataclasses import dataclass, field

from fluentdb.core.connection import get_database_url
from fluentdb.query.facade import Database

__all__ = ["CLIContext", "get_database_url"]


@dataclass
class CLIContext:
    """Shared context for CLI commands.

    Manages database connection lifecycle and output preferences.
    """

    database_url: str
    json_output: bool
    verbose: bool = False
    _db: Database | None = field(default=None, init=False, repr=False)

    def get_db(self) -> Database:
        """Get or create the database (lazy initialization)."""
        if self._db is None:
            self._db = Database(self.database_url, echo=self.verbose)
        return self._db

    def close(self) -> None:
        """Close database connection if open."""
        if self._db is not None:
            self._db.close()
            self._db = None
