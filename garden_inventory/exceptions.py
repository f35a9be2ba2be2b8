"""
Exception hierarchy for the garden inventory engine.

The Item Store and Recipe Resolver raise these loudly to their direct caller.
The Command Dispatcher is the single boundary that catches them and turns them
into outbound failure notifications.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from .error_types import FailureKind
from .logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class ErrorContext:
    """
    Contextual information for error handling.

    Provides structured context for error reporting and debugging.
    """

    action: str | None = None
    item_id: str | None = None
    correlation_id: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert context to dictionary for logging."""
        return {
            "action": self.action,
            "item_id": self.item_id,
            "correlation_id": self.correlation_id,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }


class InventoryError(Exception):
    """
    Base exception for all inventory engine failures.

    Subclasses set ``kind`` to the failure category reported to the host.
    """

    kind: FailureKind = FailureKind.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        details: dict[str, Any] | None = None,
        user_friendly: str | None = None,
    ):
        """
        Initialize inventory error.

        Args:
            message: Technical error message
            context: Error context information
            details: Additional error details
            user_friendly: User-friendly error message
        """
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()
        self.details = details or {}
        self.user_friendly = user_friendly or message
        self.timestamp = datetime.now(UTC)

        logger.debug(
            "Inventory error raised",
            error_type=self.__class__.__name__,
            kind=self.kind.value,
            message=self.message,
            details=self.details,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for replies and logging."""
        return {
            "error_type": self.__class__.__name__,
            "kind": self.kind.value,
            "message": self.message,
            "user_friendly": self.user_friendly,
            "context": self.context.to_dict(),
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class InvalidItemError(InventoryError):
    """Item payload is missing id, name or type, or is otherwise malformed."""

    kind = FailureKind.INVALID_ITEM

    def __init__(self, message: str, context: ErrorContext | None = None, field: str | None = None, **kwargs):
        super().__init__(message, context, **kwargs)
        self.field = field
        if field:
            self.details["field"] = field


class CapacityExceededError(InventoryError):
    """A new item id was added while every slot is occupied."""

    kind = FailureKind.CAPACITY_EXCEEDED

    def __init__(self, message: str, context: ErrorContext | None = None, max_slots: int | None = None, **kwargs):
        super().__init__(message, context, **kwargs)
        self.max_slots = max_slots
        if max_slots is not None:
            self.details["max_slots"] = max_slots


class ItemNotFoundError(InventoryError):
    """The referenced item id is not in the store."""

    kind = FailureKind.NOT_FOUND

    def __init__(self, message: str, context: ErrorContext | None = None, item_id: str | None = None, **kwargs):
        super().__init__(message, context, **kwargs)
        self.item_id = item_id
        if item_id:
            self.details["item_id"] = item_id


class InsufficientQuantityError(InventoryError):
    """The stack holds fewer units than requested."""

    kind = FailureKind.INSUFFICIENT_QUANTITY

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        item_id: str | None = None,
        requested: int | None = None,
        available: int | None = None,
        **kwargs,
    ):
        super().__init__(message, context, **kwargs)
        self.item_id = item_id
        self.requested = requested
        self.available = available
        if item_id:
            self.details["item_id"] = item_id
        if requested is not None:
            self.details["requested"] = requested
        if available is not None:
            self.details["available"] = available


class NotConsumableError(InventoryError):
    """The item cannot be used up."""

    kind = FailureKind.NOT_CONSUMABLE

    def __init__(self, message: str, context: ErrorContext | None = None, item_id: str | None = None, **kwargs):
        super().__init__(message, context, **kwargs)
        self.item_id = item_id
        if item_id:
            self.details["item_id"] = item_id


class InsufficientMaterialError(InventoryError):
    """A craft or upgrade material is missing or short."""

    kind = FailureKind.INSUFFICIENT_MATERIAL

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        material_id: str | None = None,
        required: int | None = None,
        available: int | None = None,
        **kwargs,
    ):
        super().__init__(message, context, **kwargs)
        self.material_id = material_id
        self.required = required
        self.available = available
        if material_id:
            self.details["material_id"] = material_id
        if required is not None:
            self.details["required"] = required
        if available is not None:
            self.details["available"] = available


class InvalidSeedError(InventoryError):
    """The planted item is absent or is not a seed."""

    kind = FailureKind.INVALID_SEED

    def __init__(self, message: str, context: ErrorContext | None = None, seed_id: str | None = None, **kwargs):
        super().__init__(message, context, **kwargs)
        self.seed_id = seed_id
        if seed_id:
            self.details["seed_id"] = seed_id


class InvalidToolError(InventoryError):
    """The upgraded item is absent or is not a tool."""

    kind = FailureKind.INVALID_TOOL

    def __init__(self, message: str, context: ErrorContext | None = None, tool_id: str | None = None, **kwargs):
        super().__init__(message, context, **kwargs)
        self.tool_id = tool_id
        if tool_id:
            self.details["tool_id"] = tool_id


class InvalidImportDataError(InventoryError):
    """Persisted or imported inventory data is not usable."""

    kind = FailureKind.INVALID_IMPORT_DATA


class InvalidArgumentError(InventoryError):
    """An operation argument is out of range (e.g. a non-positive quantity)."""

    kind = FailureKind.INVALID_ARGUMENT

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        argument: str | None = None,
        value: Any | None = None,
        **kwargs,
    ):
        super().__init__(message, context, **kwargs)
        self.argument = argument
        self.value = value
        if argument:
            self.details["argument"] = argument
        if value is not None:
            self.details["value"] = str(value)


def create_error_context(**kwargs) -> ErrorContext:
    """
    Create an error context with the given parameters.

    Args:
        **kwargs: Context parameters

    Returns:
        ErrorContext object
    """
    return ErrorContext(**kwargs)
