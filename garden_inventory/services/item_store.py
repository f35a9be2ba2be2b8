"""Item Store: the authoritative in-memory mapping of item id to item record."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from ..exceptions import (
    CapacityExceededError,
    ErrorContext,
    InsufficientQuantityError,
    InvalidArgumentError,
    InvalidImportDataError,
    InvalidItemError,
    ItemNotFoundError,
    NotConsumableError,
)
from ..logging.enhanced_logging_config import get_logger
from ..models.item import ItemRecord, now_ms

logger = get_logger(__name__)

DEFAULT_MAX_SLOTS = 50


@dataclass(frozen=True)
class AddResult:
    """Outcome of ``ItemStore.add``."""

    record: ItemRecord
    created: bool
    quantity_added: int


@dataclass(frozen=True)
class RemovalResult:
    """Outcome of ``ItemStore.remove``."""

    item_id: str
    removed_all: bool
    quantity_removed: int
    remaining: int


def require_positive_quantity(quantity: Any, argument: str = "quantity") -> int:
    """
    Validate that a quantity argument is a positive integer.

    Raises:
        InvalidArgumentError: For non-integers, booleans, zero and negatives.
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidArgumentError(
            f"{argument} must be a positive integer, got {quantity!r}",
            argument=argument,
            value=quantity,
        )
    return quantity


class ItemStore:
    """
    Authoritative collection of item records keyed by id.

    The store enforces three invariants:
        1. It never holds more than ``max_slots`` records.
        2. A stored record always has ``quantity >= 1``; anything that would
           drop it to zero removes the record instead.
        3. Ids are unique; re-adding an id merges quantity.

    Records handed out by the store are copies, so callers cannot bypass these
    checks by mutating what they receive.
    """

    def __init__(self, max_slots: int = DEFAULT_MAX_SLOTS):
        if isinstance(max_slots, bool) or not isinstance(max_slots, int) or max_slots < 1:
            raise InvalidArgumentError("max_slots must be a positive integer", argument="max_slots", value=max_slots)
        self._max_slots = max_slots
        self._records: dict[str, ItemRecord] = {}

    @property
    def max_slots(self) -> int:
        return self._max_slots

    @property
    def size(self) -> int:
        return len(self._records)

    @property
    def empty_slots(self) -> int:
        return self._max_slots - len(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._records

    def ids(self) -> list[str]:
        return list(self._records)

    def add(self, item: Mapping[str, Any] | ItemRecord, quantity: int = 1) -> AddResult:
        """
        Add units of an item, merging into an existing stack when the id is present.

        Args:
            item: Item payload carrying at least ``id``, ``name`` and ``type``.
            quantity: Number of units to add.

        Returns:
            AddResult describing the stored record and whether it was created.

        Raises:
            InvalidArgumentError: If quantity is not a positive integer.
            InvalidItemError: If the payload lacks a usable id, name or type.
            CapacityExceededError: If the id is new and every slot is taken.
        """
        quantity = require_positive_quantity(quantity)
        payload = item.to_payload() if isinstance(item, ItemRecord) else ItemRecord.with_aliases(item)
        timestamp = now_ms()
        record = self._build_record({**payload, "quantity": quantity, "addedAt": timestamp, "lastModified": timestamp})

        existing = self._records.get(record.id)
        if existing is not None:
            merged = existing.model_copy(
                update={"quantity": existing.quantity + quantity, "last_modified": timestamp}
            )
            self._records[existing.id] = merged
            logger.debug("Merged item stack", item_id=existing.id, added=quantity, total=merged.quantity)
            return AddResult(record=merged.model_copy(deep=True), created=False, quantity_added=quantity)

        if len(self._records) >= self._max_slots:
            logger.info("Inventory full", item_id=record.id, max_slots=self._max_slots)
            raise CapacityExceededError(
                f"Inventory cannot exceed {self._max_slots} slots; unable to add '{record.name}'.",
                context=ErrorContext(item_id=record.id),
                max_slots=self._max_slots,
            )

        self._records[record.id] = record
        logger.debug("Added item", item_id=record.id, quantity=quantity)
        return AddResult(record=record.model_copy(deep=True), created=True, quantity_added=quantity)

    def remove(self, item_id: str, quantity: int | None = None) -> RemovalResult:
        """
        Remove units of an item, or the whole stack.

        ``quantity=None`` or a quantity at or above the current stack removes the
        record entirely.

        Raises:
            ItemNotFoundError: If the id is absent.
            InvalidArgumentError: If quantity is given and is not a positive integer.
        """
        record = self._require(item_id)
        if quantity is not None:
            quantity = require_positive_quantity(quantity)

        if quantity is None or quantity >= record.quantity:
            del self._records[item_id]
            logger.debug("Removed item stack", item_id=item_id, quantity=record.quantity)
            return RemovalResult(item_id=item_id, removed_all=True, quantity_removed=record.quantity, remaining=0)

        remaining = record.quantity - quantity
        self._records[item_id] = record.model_copy(update={"quantity": remaining, "last_modified": now_ms()})
        logger.debug("Removed partial stack", item_id=item_id, quantity=quantity, remaining=remaining)
        return RemovalResult(item_id=item_id, removed_all=False, quantity_removed=quantity, remaining=remaining)

    def get(self, item_id: str) -> ItemRecord | None:
        record = self._records.get(item_id)
        return record.model_copy(deep=True) if record is not None else None

    def update(self, item_id: str, patch: Mapping[str, Any]) -> ItemRecord:
        """
        Merge arbitrary fields into a record, refreshing ``lastModified``.

        Raises:
            ItemNotFoundError: If the id is absent.
            InvalidArgumentError: If the patch changes the id or sets a quantity below 1.
            InvalidItemError: If the merged record is otherwise invalid.
        """
        record = self._require(item_id)

        if "id" in patch and patch["id"] != item_id:
            raise InvalidArgumentError(
                "Item id cannot be changed by an update", argument="id", value=patch["id"]
            )
        if "quantity" in patch:
            require_positive_quantity(patch["quantity"])

        updated = self._build_record(
            {**record.to_payload(), **ItemRecord.with_aliases(patch), "lastModified": now_ms()}
        )
        self._records[item_id] = updated
        logger.debug("Updated item", item_id=item_id, fields=sorted(patch))
        return updated.model_copy(deep=True)

    def use(self, item_id: str, quantity: int = 1) -> RemovalResult:
        """
        Consume units of a consumable item.

        Raises:
            ItemNotFoundError: If the id is absent.
            InvalidArgumentError: If quantity is not a positive integer.
            InsufficientQuantityError: If the stack is smaller than ``quantity``.
            NotConsumableError: Unless the item is flagged consumable or is a seed/fertilizer.
        """
        record = self._require(item_id)
        quantity = require_positive_quantity(quantity)

        if record.quantity < quantity:
            raise InsufficientQuantityError(
                f"Insufficient quantity of {record.name}",
                context=ErrorContext(item_id=item_id),
                item_id=item_id,
                requested=quantity,
                available=record.quantity,
            )
        if not record.is_consumable:
            raise NotConsumableError(
                f"Item {record.name} is not consumable", context=ErrorContext(item_id=item_id), item_id=item_id
            )

        return self.remove(item_id, quantity)

    def list_by_category(self, category: str) -> list[ItemRecord]:
        """Records whose ``type`` or ``category`` field matches."""
        return [
            record.model_copy(deep=True)
            for record in self._records.values()
            if record.type.value == category or record.category == category
        ]

    def list_items(self) -> list[ItemRecord]:
        return [record.model_copy(deep=True) for record in self._records.values()]

    def clear(self) -> int:
        count = len(self._records)
        self._records.clear()
        logger.debug("Cleared inventory", cleared=count)
        return count

    def summary(self) -> dict[str, Any]:
        """Full inventory view: items, count, capacity and free slots."""
        return {
            "items": self.snapshot(),
            "count": len(self._records),
            "maxSlots": self._max_slots,
            "emptySlots": self.empty_slots,
        }

    def snapshot(self) -> list[dict[str, Any]]:
        return [record.to_payload() for record in self._records.values()]

    def restore(self, items: Sequence[Mapping[str, Any]]) -> int:
        """
        Replace the entire store content with the given records.

        Every entry is validated before anything is replaced, so a rejected
        restore leaves the store unchanged.

        Raises:
            InvalidImportDataError: If any entry is not a valid record, or there
                are more distinct ids than slots.
        """
        restored: dict[str, ItemRecord] = {}
        for index, entry in enumerate(items):
            if not isinstance(entry, Mapping):
                raise InvalidImportDataError(f"Item entry {index} is not an object")
            try:
                record = ItemRecord.model_validate(ItemRecord.with_aliases(entry))
            except ValidationError as exc:
                raise InvalidImportDataError(
                    f"Item entry {index} is invalid: {exc.errors()[0]['msg']}", details={"index": index}
                ) from exc
            restored[record.id] = record

        if len(restored) > self._max_slots:
            raise InvalidImportDataError(
                f"Import holds {len(restored)} items but only {self._max_slots} slots are available",
                details={"item_count": len(restored), "max_slots": self._max_slots},
            )

        self._records = restored
        logger.debug("Restored inventory", item_count=len(restored))
        return len(restored)

    @contextmanager
    def transaction(self) -> Iterator[ItemStore]:
        """
        Run a multi-step mutation with all-or-nothing semantics.

        If the body raises, the records held before the transaction began are
        put back and the exception propagates.
        """
        saved = {item_id: record.model_copy(deep=True) for item_id, record in self._records.items()}
        try:
            yield self
        except Exception:
            self._records = saved
            logger.debug("Rolled back inventory transaction", item_count=len(saved))
            raise

    def _require(self, item_id: str) -> ItemRecord:
        record = self._records.get(item_id)
        if record is None:
            raise ItemNotFoundError(
                f"Item {item_id} not found in inventory", context=ErrorContext(item_id=item_id), item_id=item_id
            )
        return record

    @staticmethod
    def _build_record(payload: Mapping[str, Any]) -> ItemRecord:
        try:
            return ItemRecord.model_validate(dict(payload))
        except ValidationError as exc:
            error = exc.errors()[0]
            field = ".".join(str(part) for part in error["loc"]) or None
            raise InvalidItemError(
                f"Invalid item: must have id, name, and type ({field}: {error['msg']})",
                context=ErrorContext(item_id=payload.get("id") if isinstance(payload.get("id"), str) else None),
                field=field,
            ) from exc
