"""
Inventory JSON schema validation utilities.

The persisted blob and host-supplied import payloads share one shape:
``{items: [...], metadata: {exportedAt, maxSlots, itemCount}}``. Structural
checks happen here; per-record checks are done by the item model on restore.
"""

from __future__ import annotations

from typing import Any

from jsonschema import Draft7Validator
from jsonschema import ValidationError as JSONSchemaValidationError

from ..models.item import ItemType


class InventorySchemaValidationError(Exception):
    """Raised when inventory payloads fail schema validation."""


INVENTORY_BLOB_SCHEMA: dict[str, Any] = {
    "$id": "https://schemas.garden-inventory.local/inventory-blob.json",
    "type": "object",
    "required": ["items"],
    "additionalProperties": True,
    "properties": {
        "items": {
            "type": "array",
            "items": {"$ref": "#/definitions/itemRecord"},
            "description": "Every stored item record, in insertion order.",
        },
        "metadata": {
            "type": "object",
            "additionalProperties": True,
            "properties": {
                "exportedAt": {"type": "integer", "minimum": 0},
                "maxSlots": {"type": "integer", "minimum": 1},
                "itemCount": {"type": "integer", "minimum": 0},
            },
        },
    },
    "definitions": {
        "itemRecord": {
            "type": "object",
            "required": ["id", "name", "type", "quantity"],
            "additionalProperties": True,
            "properties": {
                "id": {"type": "string", "minLength": 1},
                "name": {"type": "string", "minLength": 1},
                "type": {"type": "string", "enum": [item_type.value for item_type in ItemType]},
                "quantity": {
                    "type": "integer",
                    "minimum": 1,
                    "description": "Stored stacks are never empty.",
                },
                "consumable": {"type": "boolean"},
                "category": {"type": "string"},
                "addedAt": {"type": "integer"},
                "lastModified": {"type": "integer"},
            },
        },
    },
}


def _build_validator(schema: dict[str, Any]) -> Draft7Validator:
    """Internal helper to construct a Draft7 validator instance."""
    return Draft7Validator(schema)


def validate_inventory_blob(payload: Any) -> None:
    """
    Validate a complete inventory blob against the canonical schema.

    Raises:
        InventorySchemaValidationError: if validation fails.
    """
    validator = _build_validator(INVENTORY_BLOB_SCHEMA)
    try:
        validator.validate(payload)
    except JSONSchemaValidationError as exc:
        location = "/".join(str(part) for part in exc.absolute_path) or "<root>"
        raise InventorySchemaValidationError(f"Inventory payload validation failed at {location}: {exc.message}") from exc


__all__ = [
    "INVENTORY_BLOB_SCHEMA",
    "InventorySchemaValidationError",
    "validate_inventory_blob",
]
