"""
Services package for the garden inventory engine.

This package contains the engine's core components: the item store, the
recipe resolver, persistence, host notifications and the host variable map.
"""

from .item_store import DEFAULT_MAX_SLOTS, AddResult, ItemStore, RemovalResult
from .notification_emitter import NotificationEmitter
from .persistence_gateway import PersistenceGateway
from .recipe_resolver import UPGRADE_EFFICIENCY_FACTOR, CraftResult, PlantingResult, RecipeResolver
from .variable_map import PortalsVariableMap

__all__ = [
    "DEFAULT_MAX_SLOTS",
    "UPGRADE_EFFICIENCY_FACTOR",
    "AddResult",
    "CraftResult",
    "ItemStore",
    "NotificationEmitter",
    "PersistenceGateway",
    "PlantingResult",
    "PortalsVariableMap",
    "RecipeResolver",
    "RemovalResult",
]
