"""Custom exceptions for FluentDB.

Build-time usage errors are raised locally and loudly, before any SQL reaches
the database. Driver errors raised while executing a statement are not
defined here: they propagate unmodified from SQLAlchemy.
"""

from __future__ import annotations

import difflib
from collections.abc import Iterable
from typing import Any


class FluentDBError(Exception):
    """Base exception for all FluentDB errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Return error as JSON-serializable dict."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class ConnectionError(FluentDBError):
    """Failed to connect to the database."""

    pass


class InvalidArgumentError(FluentDBError, ValueError):
    """A builder method received an argument it cannot compile."""

    pass


class BadMethodCallError(FluentDBError, AttributeError):
    """A chained call named a method that does not exist.

    The message is annotated with the closest known method name, when one is
    close enough to be a likely typo.
    """

    def __init__(
        self,
        method: str,
        owner: str,
        candidates: Iterable[str] | None = None,
        message: str | None = None,
    ) -> None:
        known = sorted(set(candidates or []))
        matches = difflib.get_close_matches(method, known, n=1, cutoff=0.6)
        suggestion = matches[0] if matches else None

        text = message or f"Call to undefined method `{method}` on `{owner}`."
        if suggestion:
            text = f"{text} Did you mean `{suggestion}`?"

        super().__init__(
            text,
            {"method": method, "owner": owner, "suggestion": suggestion},
        )
        self.method = method
        self.owner = owner
        self.suggestion = suggestion


class ModelNotFoundError(FluentDBError):
    """No record matched a model lookup."""

    def __init__(self, model_name: str, key: str, value: Any) -> None:
        message = f"No `{model_name}` found where {key} = {value!r}."
        super().__init__(message, {"model": model_name, "key": key, "value": value})
        self.model_name = model_name
        self.key = key
        self.value = value
