"""
Shared types for command handlers.

Handlers receive a ``CommandContext`` and the merged payload of one host
message, perform the engine call, and describe what should be sent back in a
``CommandOutcome``. They never emit notifications or flush storage themselves:
the dispatcher does both, in that order, once the handler has returned.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from ..error_types import FailureKind
from ..models.notifications import DataReply, TaskNotification, TaskTargetState
from ..services.item_store import ItemStore
from ..services.persistence_gateway import PersistenceGateway
from ..services.recipe_resolver import RecipeResolver
from ..services.variable_map import PortalsVariableMap


@dataclass
class CommandContext:
    """Engine components a handler may act on."""

    store: ItemStore
    resolver: RecipeResolver
    gateway: PersistenceGateway
    variables: PortalsVariableMap


@dataclass(frozen=True)
class CommandOutcome:
    """
    What a handler asks the dispatcher to report.

    ``task_action`` names the outbound task (before prefixing); ``reply_type``
    names an optional data reply. ``mutated`` marks actions after which the
    store is flushed.
    """

    task_action: str | None = None
    state: TaskTargetState | None = None
    item_id: str | None = None
    reply_type: str | None = None
    reply_payload: dict[str, Any] | None = None
    mutated: bool = False
    result: Any = None

    @classmethod
    def task(
        cls,
        action: str,
        state: TaskTargetState,
        item_id: str | None = None,
        *,
        mutated: bool = True,
        result: Any = None,
    ) -> CommandOutcome:
        return cls(task_action=action, state=state, item_id=item_id, mutated=mutated, result=result)

    @classmethod
    def reply(cls, reply_type: str, payload: dict[str, Any], result: Any = None) -> CommandOutcome:
        return cls(reply_type=reply_type, reply_payload=payload, result=result if result is not None else payload)


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of one handled host message."""

    action: str
    ok: bool
    notification: TaskNotification | None = None
    reply: DataReply | None = None
    result: Any = None
    failure: FailureKind | None = None


# Type alias for command handler functions
CommandHandler = Callable[[CommandContext, Mapping[str, Any]], CommandOutcome]
