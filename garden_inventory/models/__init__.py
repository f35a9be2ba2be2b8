"""Data models for items, recipes and outbound events."""

from .item import CONSUMABLE_TYPES, ItemRecord, ItemType, Produce, Recipe, RecipeMaterial, now_ms
from .notifications import DataReply, OutboundEvent, TaskNotification, TaskTargetState

__all__ = [
    "CONSUMABLE_TYPES",
    "DataReply",
    "ItemRecord",
    "ItemType",
    "OutboundEvent",
    "Produce",
    "Recipe",
    "RecipeMaterial",
    "TaskNotification",
    "TaskTargetState",
    "now_ms",
]
