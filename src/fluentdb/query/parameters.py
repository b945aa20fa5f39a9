"""Bound parameter storage for compiled statements."""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from datetime import date, datetime, time
from typing import Any

_UNSAFE = re.compile(r"\W")
_PLACEHOLDER = re.compile(r"(?<![:\w]):(\w+)")


class ParameterStore:
    """Ordered mapping of placeholder name to bound value.

    Placeholder names are derived from ``<prefix>_<column>_<n>`` where ``n``
    is the size of the store when the name is generated. ``bind()`` generates
    and registers in one step, so every generated name is unique within the
    store.
    """

    def __init__(self, parameters: Mapping[str, Any] | None = None) -> None:
        self._parameters: dict[str, Any] = dict(parameters or {})

    def add(self, placeholder: str, value: Any) -> None:
        """Register a value under a placeholder (last write wins)."""
        self._parameters[placeholder] = value

    def merge(self, other: ParameterStore | Mapping[str, Any]) -> None:
        """Merge another store or mapping in; its keys win on collision."""
        items = other.all() if isinstance(other, ParameterStore) else other
        self._parameters.update(items)

    def all(self) -> dict[str, Any]:
        """Return an ordered copy of the parameters."""
        return dict(self._parameters)

    def reset(self) -> None:
        """Remove every parameter."""
        self._parameters.clear()

    def placeholder(self, prefix: str, column: str, suffix: str | int | None = None) -> str:
        """Derive a placeholder name without registering it.

        The suffix defaults to the current number of parameters. Dots,
        whitespace and any other non-word characters become underscores.
        """
        if suffix is None:
            suffix = len(self._parameters)
        parts = [prefix, str(column)]
        if suffix != "":
            parts.append(str(suffix))
        return ":" + _UNSAFE.sub("_", "_".join(parts))

    def bind(self, prefix: str, column: str, value: Any) -> str:
        """Generate a placeholder and register ``value`` under it."""
        name = self.placeholder(prefix, column)
        self.add(name, value)
        return name

    def __len__(self) -> int:
        return len(self._parameters)

    def __contains__(self, placeholder: object) -> bool:
        return placeholder in self._parameters

    def __iter__(self) -> Iterator[str]:
        return iter(self._parameters)

    def __repr__(self) -> str:
        return f"ParameterStore({self._parameters!r})"


def to_literal(value: Any) -> str:
    """Render a value as a SQL literal, for debug output only."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"X'{bytes(value).hex()}'"
    if isinstance(value, (datetime, date, time)):
        value = value.isoformat(sep=" ") if isinstance(value, datetime) else value.isoformat()
    escaped = str(value).replace("'", "''")
    return f"'{escaped}'"


def interpolate(sql: str, parameters: Mapping[str, Any]) -> str:
    """Substitute literal values for placeholders in ``sql``.

    Placeholders are matched whole, so ``:p_1`` never clobbers ``:p_10``.
    Keys may be given with or without the leading colon. Unknown
    placeholders are left untouched.
    """

    def replace(match: re.Match[str]) -> str:
        name = match.group(0)
        for key in (name, match.group(1)):
            if key in parameters:
                return to_literal(parameters[key])
        return name

    return _PLACEHOLDER.sub(replace, sql)
