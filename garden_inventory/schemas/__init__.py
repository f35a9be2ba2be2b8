"""
Schemas for the garden inventory engine.

- ``inventory_schema``: jsonschema for the persisted/exported inventory blob
- ``host_messages``: pydantic models for inbound host command payloads
"""

from .inventory_schema import INVENTORY_BLOB_SCHEMA, InventorySchemaValidationError, validate_inventory_blob

__all__ = ["INVENTORY_BLOB_SCHEMA", "InventorySchemaValidationError", "validate_inventory_blob"]
