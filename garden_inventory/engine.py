"""
Inventory engine composition root.

Wires the item store, recipe resolver, persistence gateway, variable map,
notification emitter and command dispatcher together and connects the
dispatcher to the host transport.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .commands.command_dispatcher import CommandDispatcher, build_action_table
from .commands.command_types import CommandContext, CommandHandler, DispatchResult
from .config.models import InventoryConfig, StorageConfig
from .infrastructure.host_transport import HostTransport, LocalHostTransport
from .infrastructure.storage import FileStorage, InMemoryStorage, StorageBackend
from .logging.enhanced_logging_config import get_logger, set_debug_tracing
from .services.item_store import ItemStore
from .services.notification_emitter import NotificationEmitter
from .services.persistence_gateway import PersistenceGateway
from .services.recipe_resolver import RecipeResolver
from .services.variable_map import PortalsVariableMap

logger = get_logger(__name__)


def build_storage(config: StorageConfig) -> StorageBackend:
    """Instantiate the storage backend selected by configuration."""
    if config.backend == "memory":
        return InMemoryStorage()
    return FileStorage(config.directory)


class InventoryEngine:
    """
    One player's garden inventory, reachable through a host transport.

    Example:
        engine = InventoryEngine(max_slots=10, storage=InMemoryStorage())
        engine.handle_message({"action": "add", "item": {...}, "quantity": 3})
    """

    def __init__(
        self,
        config: InventoryConfig | None = None,
        *,
        storage: StorageBackend | None = None,
        transport: HostTransport | None = None,
        action_table: Mapping[str, CommandHandler] | None = None,
        **overrides: Any,
    ):
        """
        Build the engine.

        Args:
            config: Inventory configuration (read from the environment when None)
            storage: Durable storage backend (in-memory when None)
            transport: Host transport (local in-process transport when None)
            action_table: Replacement action table
            **overrides: Individual InventoryConfig fields, e.g. ``max_slots=10``
        """
        base = config if config is not None else InventoryConfig()
        self.config = InventoryConfig.model_validate({**base.model_dump(), **overrides}) if overrides else base
        set_debug_tracing(self.config.debug)

        self.storage = storage if storage is not None else InMemoryStorage()
        self.transport = transport if transport is not None else LocalHostTransport()

        self.store = ItemStore(self.config.max_slots)
        self.resolver = RecipeResolver(self.store)
        self.gateway = PersistenceGateway(self.storage, self.config.storage_key)
        self.variables = PortalsVariableMap()
        self.emitter = NotificationEmitter(self.transport, self.config.task_prefix)
        self.dispatcher = CommandDispatcher(
            CommandContext(store=self.store, resolver=self.resolver, gateway=self.gateway, variables=self.variables),
            self.emitter,
            action_table=action_table if action_table is not None else build_action_table(),
            auto_save=self.config.auto_save,
        )

        if self.config.auto_save:
            self.gateway.hydrate(self.store)

        self.transport.on_message(self.dispatcher.handle_message)
        logger.info(
            "Inventory engine initialized",
            item_count=len(self.store),
            max_slots=self.config.max_slots,
            task_prefix=self.config.task_prefix,
            auto_save=self.config.auto_save,
        )

    def handle_message(self, message: Any) -> DispatchResult | None:
        """Handle one inbound host message directly, bypassing the transport."""
        return self.dispatcher.handle_message(message)

    def save(self) -> bool:
        """Flush the store to durable storage now."""
        return self.gateway.flush(self.store)
