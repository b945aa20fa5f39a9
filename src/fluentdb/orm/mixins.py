"""Model behaviours: soft deletes and timestamps."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any, ClassVar


def now() -> str:
    """Current local time as ``YYYY-MM-DD HH:MM:SS``."""
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


class SoftDeletes:
    """Delete by stamping ``deleted_at`` instead of removing the row.

    Queries on a soft-deleting model only see rows whose ``deleted_at`` is
    NULL, unless ``with_trashed()`` or ``only_trashed()`` is called.
    """

    deleted_at_column: ClassVar[str] = "deleted_at"

    def trashed(self) -> bool:
        """Whether this model has been soft deleted."""
        return self.get(self.deleted_at_column) is not None  # type: ignore[attr-defined]

    def restore(self) -> bool:
        """Clear ``deleted_at``."""
        return self.update({self.deleted_at_column: None})  # type: ignore[attr-defined]


class WithTimestamps:
    """Maintain ``created_at`` on insert and ``updated_at`` on every write."""

    created_at_column: ClassVar[str] = "created_at"
    updated_at_column: ClassVar[str] = "updated_at"

    def _before_insert(self, data: Mapping[str, Any]) -> dict[str, Any]:
        stamped = dict(super()._before_insert(data))  # type: ignore[misc]
        timestamp = now()
        stamped.setdefault(self.created_at_column, timestamp)
        stamped.setdefault(self.updated_at_column, timestamp)
        return stamped

    def _before_update(self, data: Mapping[str, Any]) -> dict[str, Any]:
        stamped = dict(super()._before_update(data))  # type: ignore[misc]
        stamped[self.updated_at_column] = now()
        return stamped
