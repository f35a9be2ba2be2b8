"""
Item models for the garden inventory engine.

Item records carry a small set of fields the engine interprets (identity,
category, quantity, consumability, timestamps) and pass every other field
through untouched so that host-specific metadata such as ``plantType`` or
``growthTime`` round-trips through persistence.
"""

import time
from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ItemType(str, Enum):
    """Item categories understood by the engine."""

    SEED = "seed"
    PLANT = "plant"
    TOOL = "tool"
    FERTILIZER = "fertilizer"
    DECORATION = "decoration"
    RESOURCE = "resource"


# Types that may be used up even when the record does not set ``consumable``
CONSUMABLE_TYPES = frozenset({ItemType.SEED, ItemType.FERTILIZER})


def now_ms() -> int:
    """Current time as epoch milliseconds, the timestamp unit stored on records."""
    return int(time.time() * 1000)


class ItemRecord(BaseModel):
    """One stack of a given item kind held by the player."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(..., min_length=1, description="Unique key within the store")
    name: str = Field(..., min_length=1, description="Display label")
    type: ItemType = Field(..., description="Item category")
    quantity: int = Field(default=1, ge=1, description="Stack size; never zero while stored")
    consumable: bool = Field(default=False, description="Overrides type-based consumability")
    category: str | None = Field(default=None, description="Optional secondary category label")
    added_at: int | None = Field(default=None, alias="addedAt", description="Creation time (epoch ms)")
    last_modified: int | None = Field(default=None, alias="lastModified", description="Last mutation (epoch ms)")

    @field_validator("id", "name")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject identifiers and labels that are only whitespace."""
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    @property
    def is_consumable(self) -> bool:
        """Whether ``use`` may consume this item."""
        return self.consumable or self.type in CONSUMABLE_TYPES

    @classmethod
    def with_aliases(cls, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Copy of ``payload`` with snake_case field names rewritten to their camelCase aliases."""
        normalized = dict(payload)
        for name, field in cls.model_fields.items():
            if field.alias and field.alias != name and name in normalized:
                normalized[field.alias] = normalized.pop(name)
        return normalized

    def extra_field(self, name: str, default: Any = None) -> Any:
        """Read an opaque host-defined field (e.g. ``plantType``)."""
        return (self.model_extra or {}).get(name, default)

    def to_payload(self) -> dict[str, Any]:
        """Wire/persisted form using camelCase aliases."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RecipeMaterial(BaseModel):
    """A single material requirement of a recipe or tool upgrade."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1)
    quantity: int = Field(default=1, ge=1)
    name: str | None = None

    @property
    def label(self) -> str:
        return self.name or self.id


class Recipe(BaseModel):
    """Material-consumption and result-production template. Not persisted."""

    materials: list[RecipeMaterial] = Field(default_factory=list)
    result: dict[str, Any] = Field(..., description="Item template for the crafted result")


class Produce(BaseModel):
    """Harvested produce: an item template and how many units to add."""

    item: dict[str, Any]
    quantity: int = Field(default=1, ge=1)
