"""Input parsing utilities for CLI commands."""

import json
import re
from typing import Any

_CONDITION = re.compile(r"^\s*([^=!<>\s]+)\s*(!=|<>|>=|<=|=|>|<)\s*(.*?)\s*$")


def parse_value(raw: str) -> Any:
    """Parse a CLI value as JSON, falling back to the raw string.

    Examples:
        "42" → 42, "true" → True, "null" → None, "Ada" → "Ada"
    """
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def parse_condition(spec: str) -> tuple[str, str, Any]:
    """Parse a condition string into ``(column, operator, value)``.

    Format: column<op>value, where op is one of = != <> >= <= > <

    Examples:
        "status=active" → ("status", "=", "active")
        "age>=18" → ("age", ">=", 18)

    Raises:
        ValueError: If the string has no column or operator
    """
    match = _CONDITION.match(spec)
    if match is None:
        raise ValueError(
            f"Invalid condition: '{spec}'. Expected format: column=value "
            "(operators: = != <> >= <= > <)"
        )
    column, operator, value = match.groups()
    return column, operator, parse_value(value)
