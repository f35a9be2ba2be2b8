"""
Persistence Gateway.

Serializes the Item Store to a string blob in the storage backend and hydrates
it back. Persistence is best-effort: write and read failures are logged and
swallowed so that losing durability never blocks gameplay.
"""

from __future__ import annotations

import json
from typing import Any

from ..exceptions import InvalidImportDataError
from ..infrastructure.storage import StorageBackend
from ..logging.enhanced_logging_config import get_logger
from ..models.item import now_ms
from ..schemas.inventory_schema import InventorySchemaValidationError, validate_inventory_blob
from .item_store import ItemStore

logger = get_logger(__name__)


class PersistenceGateway:
    """Reads and writes the inventory blob under a single storage key."""

    def __init__(self, storage: StorageBackend, storage_key: str = "garden-inventory"):
        self.storage = storage
        self.storage_key = storage_key

    def export_data(self, store: ItemStore) -> dict[str, Any]:
        """Build the persisted blob for the current store contents."""
        return {
            "items": store.snapshot(),
            "metadata": {
                "exportedAt": now_ms(),
                "maxSlots": store.max_slots,
                "itemCount": len(store),
            },
        }

    def import_data(self, store: ItemStore, data: Any) -> int:
        """
        Replace the store contents with the items of an exported blob.

        Raises:
            InvalidImportDataError: If ``items`` is missing, not an array, or
                holds an invalid record.
        """
        if not isinstance(data, dict) or not isinstance(data.get("items"), list):
            raise InvalidImportDataError("Invalid import data: 'items' must be present and an array")
        try:
            validate_inventory_blob(data)
        except InventorySchemaValidationError as exc:
            raise InvalidImportDataError(str(exc)) from exc

        imported = store.restore(data["items"])
        logger.info("Inventory imported", item_count=imported)
        return imported

    def flush(self, store: ItemStore) -> bool:
        """
        Write the store to durable storage.

        Returns:
            True if the blob was written, False if the write failed.
        """
        try:
            blob = json.dumps(self.export_data(store))
            self.storage.set(self.storage_key, blob)
        except Exception as e:  # noqa: BLE001
            logger.error("Failed to save inventory", storage_key=self.storage_key, error=str(e), exc_info=True)
            return False

        logger.debug("Inventory saved", storage_key=self.storage_key, item_count=len(store))
        return True

    def hydrate(self, store: ItemStore) -> int:
        """
        Load prior state into the store.

        A missing blob means no prior state. An unreadable or invalid blob is
        logged and treated the same way.

        Returns:
            Number of items restored.
        """
        try:
            saved = self.storage.get(self.storage_key)
        except Exception as e:  # noqa: BLE001
            logger.error("Failed to read saved inventory", storage_key=self.storage_key, error=str(e))
            return 0

        if not saved:
            logger.debug("No saved inventory found", storage_key=self.storage_key)
            return 0

        try:
            data = json.loads(saved)
            restored = self.import_data(store, data)
        except (json.JSONDecodeError, InvalidImportDataError) as e:
            logger.warning(
                "Saved inventory is corrupt; starting empty", storage_key=self.storage_key, error=str(e)
            )
            return 0

        logger.info("Inventory loaded from storage", storage_key=self.storage_key, item_count=restored)
        return restored
