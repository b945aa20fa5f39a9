"""List of models returned by ORM queries."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fluentdb.orm.model import Model


class ModelCollection(list["Model"]):
    """A list of models with a few lookup helpers."""

    def first(self) -> Model | None:
        return self[0] if self else None

    def pluck(self, key: str) -> list[Any]:
        """Return the value of ``key`` from every model."""
        return [model.get(key) for model in self]

    def where(self, key: str, value: Any) -> ModelCollection:
        """Return the models whose ``key`` equals ``value``."""
        return ModelCollection(model for model in self if model.get(key) == value)

    def to_dicts(self) -> list[dict[str, Any]]:
        return [model.to_dict() for model in self]
