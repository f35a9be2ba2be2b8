"""
Standardized failure kinds for the garden inventory engine.

Every rejection raised by the Item Store or the Recipe Resolver carries one of
these kinds; the Command Dispatcher echoes it back to the host in the failure
notification's task name.
"""

from enum import Enum


class FailureKind(Enum):
    """Failure categories reported to the host."""

    INVALID_ITEM = "invalid_item"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    NOT_FOUND = "not_found"
    INSUFFICIENT_QUANTITY = "insufficient_quantity"
    NOT_CONSUMABLE = "not_consumable"
    INSUFFICIENT_MATERIAL = "insufficient_material"
    INVALID_SEED = "invalid_seed"
    INVALID_TOOL = "invalid_tool"
    INVALID_IMPORT_DATA = "invalid_import_data"
    INVALID_ARGUMENT = "invalid_argument"

    # Reported by the dispatcher for exceptions outside the inventory hierarchy
    INTERNAL_ERROR = "internal_error"
