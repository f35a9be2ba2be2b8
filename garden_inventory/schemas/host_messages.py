"""
Pydantic schemas for inbound host command payloads.

The host sends camelCase field names (``itemId``, ``targetId``,
``upgradeMaterials``); snake_case spellings are accepted as well. Fields the
engine does not use are ignored. Quantities must be real integers: strings,
floats and booleans are rejected rather than coerced.
"""

from typing import Any

from pydantic import BaseModel, Field, StrictInt

from ..models.item import Produce, Recipe, RecipeMaterial


class HostPayload(BaseModel):
    """Base schema for all inbound command payloads."""

    model_config = {"extra": "ignore", "populate_by_name": True}


class AddItemRequest(HostPayload):
    item: dict[str, Any] = Field(..., description="Item payload with at least id, name and type")
    quantity: StrictInt = Field(default=1, description="Units to add")


class RemoveItemRequest(HostPayload):
    item_id: str = Field(..., alias="itemId", min_length=1)
    quantity: StrictInt | None = Field(default=None, description="Units to remove; omitted removes the stack")


class GetItemRequest(HostPayload):
    item_id: str = Field(..., alias="itemId", min_length=1)


class UpdateItemRequest(HostPayload):
    item_id: str = Field(..., alias="itemId", min_length=1)
    updates: dict[str, Any] = Field(..., description="Fields merged into the record")


class UseItemRequest(HostPayload):
    item_id: str = Field(..., alias="itemId", min_length=1)
    quantity: StrictInt = Field(default=1)


class TransferItemRequest(HostPayload):
    """One-sided debit; the target is only named in the outbound task."""

    item_id: str = Field(..., alias="itemId", min_length=1)
    quantity: StrictInt = Field(...)
    target_id: str | int = Field(..., alias="targetId", description="Receiving entity (plot, storage, trader)")


class CategoryRequest(HostPayload):
    category: str = Field(..., min_length=1, description="Matched against item type and category")


class SyncVariableRequest(HostPayload):
    name: str = Field(..., description="Host variable name")
    value: Any = Field(..., description="Latest scalar value")


class ImportRequest(HostPayload):
    """Import payload: the exported blob under ``data``, or its ``items`` inline."""

    data: Any = None
    items: Any = None

    def blob(self) -> Any:
        if self.data is not None:
            return self.data
        return {"items": self.items}


class PlantSeedRequest(HostPayload):
    seed_id: str = Field(..., alias="seedId", min_length=1)
    plot_id: str | int | None = Field(default=None, alias="plotId")


class HarvestRequest(HostPayload):
    plot_id: str | int | None = Field(default=None, alias="plotId")
    produce: Produce


class UpgradeToolRequest(HostPayload):
    tool_id: str = Field(..., alias="toolId", min_length=1)
    upgrade_materials: list[RecipeMaterial] = Field(default_factory=list, alias="upgradeMaterials")


class CraftRequest(HostPayload):
    recipe: Recipe
    quantity: StrictInt = Field(default=1)


__all__ = [
    "AddItemRequest",
    "CategoryRequest",
    "CraftRequest",
    "GetItemRequest",
    "HarvestRequest",
    "HostPayload",
    "ImportRequest",
    "PlantSeedRequest",
    "RemoveItemRequest",
    "SyncVariableRequest",
    "TransferItemRequest",
    "UpdateItemRequest",
    "UpgradeToolRequest",
    "UseItemRequest",
]
