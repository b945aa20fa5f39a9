"""Word inflection used to derive table and key names."""

from __future__ import annotations

import re
from typing import Protocol, runtime_checkable

import inflect


@runtime_checkable
class WordInflector(Protocol):
    """Singularize/pluralize English words."""

    def singularize(self, word: str) -> str: ...

    def pluralize(self, word: str) -> str: ...


class InflectEngine:
    """WordInflector backed by the ``inflect`` library."""

    def __init__(self) -> None:
        self._engine = inflect.engine()

    def singularize(self, word: str) -> str:
        """Return the singular form, or the word itself if already singular."""
        if not word:
            return word
        singular = self._engine.singular_noun(word)
        return singular if singular else word

    def pluralize(self, word: str) -> str:
        """Return the plural form of a singular word."""
        if not word:
            return word
        if self._engine.singular_noun(word):
            # Already plural
            return word
        return self._engine.plural_noun(word)


_default: InflectEngine | None = None


def default_inflector() -> InflectEngine:
    """Return the shared InflectEngine instance."""
    global _default
    if _default is None:
        _default = InflectEngine()
    return _default


_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def snake_case(name: str) -> str:
    """Convert CamelCase or mixedCase to snake_case."""
    return _CAMEL_BOUNDARY.sub("_", name).replace("-", "_").lower()
