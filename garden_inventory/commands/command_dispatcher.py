"""
Command dispatcher for the garden inventory engine.

Routes inbound host messages through an action table to their handlers and is
the single boundary at which engine failures become host notifications. For
every message the order is fixed: mutation, then flush (when auto-save is on
and the store changed), then notification.
"""

from __future__ import annotations

import json
import threading
from collections import ChainMap, deque
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from ..error_types import FailureKind
from ..exceptions import CapacityExceededError, InventoryError
from ..logging.enhanced_logging_config import bind_command_context, clear_command_context, get_logger
from ..models.notifications import DataReply, TaskNotification, TaskTargetState
from ..services.notification_emitter import NotificationEmitter
from .command_types import CommandContext, CommandHandler, CommandOutcome, DispatchResult
from .garden_commands import GARDEN_ACTION_ALIASES, GARDEN_HANDLERS
from .inventory_commands import BASE_HANDLERS

logger = get_logger(__name__)

_ENVELOPE_KEYS = frozenset({"action", "payload", "correlationId", "correlation_id"})


def build_action_table(*layers: Mapping[str, CommandHandler]) -> ChainMap:
    """
    Build the action table, most specific layer first.

    With no arguments the garden table is layered over the base inventory table.
    """
    if not layers:
        layers = (GARDEN_HANDLERS, BASE_HANDLERS)
    return ChainMap(*(dict(layer) for layer in layers))


class CommandDispatcher:
    """
    Routes host messages to handlers and reports every outcome to the host.

    Messages are handled one at a time. A message delivered while another is
    being handled (from another thread, or re-entrantly from the transport
    during emission) waits until the current one has completed.
    """

    def __init__(
        self,
        context: CommandContext,
        emitter: NotificationEmitter,
        action_table: Mapping[str, CommandHandler] | None = None,
        aliases: Mapping[str, str] | None = None,
        auto_save: bool = True,
    ):
        """
        Initialize the dispatcher.

        Args:
            context: Engine components handed to every handler
            emitter: Outbound notification emitter
            action_table: Action name to handler mapping (garden over base when None)
            aliases: Alternative action names mapped to table entries
            auto_save: Flush the store after every mutating action
        """
        self.context = context
        self.emitter = emitter
        self.action_table = action_table if action_table is not None else build_action_table()
        self.aliases = dict(GARDEN_ACTION_ALIASES if aliases is None else aliases)
        self.auto_save = auto_save
        self._lock = threading.RLock()
        self._processing = False
        self._pending: deque[Any] = deque()

    def resolve_action(self, action: str) -> str | None:
        """Canonical table name for an inbound action, or None when unknown."""
        if action in self.action_table:
            return action
        if self.aliases.get(action) in self.action_table:
            return self.aliases[action]
        kebab = action.replace("_", "-")
        if kebab in self.action_table:
            return kebab
        return None

    def handle_message(self, message: Any) -> DispatchResult | None:
        """
        Handle one inbound host message.

        Args:
            message: A dict, or a JSON string decoding to one, carrying ``action``

        Returns:
            DispatchResult, or None when the message was dropped or queued behind
            the message currently being handled
        """
        with self._lock:
            if self._processing:
                self._pending.append(message)
                logger.debug("Queued re-entrant host message", pending=len(self._pending))
                return None

            self._processing = True
            try:
                result = self._process(message)
                while self._pending:
                    self._process(self._pending.popleft())
            finally:
                self._processing = False
            return result

    def _process(self, message: Any) -> DispatchResult | None:
        envelope = self._decode(message)
        if envelope is None:
            return None
        raw_action, payload, correlation_id = envelope

        action = self.resolve_action(raw_action)
        if action is None:
            logger.warning("Unknown action ignored", action=raw_action)
            return None

        bind_command_context(correlation_id=correlation_id, action=action)
        try:
            return self._run(action, self.action_table[action], payload)
        finally:
            clear_command_context()

    def _run(self, action: str, handler: CommandHandler, payload: dict[str, Any]) -> DispatchResult:
        logger.debug("Dispatching host command", payload_keys=sorted(payload))
        try:
            outcome = handler(self.context, payload)
        except CapacityExceededError as e:
            self.emitter.emit_task("full", TaskTargetState.SET_NOT_ACTIVE_TO_ACTIVE)
            return self._fail(action, e.kind, e.message)
        except InventoryError as e:
            return self._fail(action, e.kind, e.message)
        except ValidationError as e:
            return self._fail(action, FailureKind.INVALID_ARGUMENT, _summarize_validation_error(e))
        except Exception as e:  # noqa: BLE001
            logger.error("Unexpected error in command handler", error=str(e), exc_info=True)
            return self._fail(action, FailureKind.INTERNAL_ERROR, str(e))

        if outcome.mutated and self.auto_save:
            self.context.gateway.flush(self.context.store)

        notification, reply = self._emit(outcome)
        logger.info("Host command completed", mutated=outcome.mutated)
        return DispatchResult(action=action, ok=True, notification=notification, reply=reply, result=outcome.result)

    def _emit(self, outcome: CommandOutcome) -> tuple[TaskNotification | None, DataReply | None]:
        notification = None
        reply = None
        if outcome.task_action is not None and outcome.state is not None:
            notification = self.emitter.emit_task(outcome.task_action, outcome.state, outcome.item_id)
        if outcome.reply_type is not None:
            reply = self.emitter.emit_reply(outcome.reply_type, outcome.reply_payload or {})
        return notification, reply

    def _fail(self, action: str, kind: FailureKind, message: str) -> DispatchResult:
        logger.info("Host command rejected", failure=kind.value, reason=message)
        notification = self.emitter.emit_failure(action, kind)
        return DispatchResult(action=action, ok=False, notification=notification, failure=kind)

    @staticmethod
    def _decode(message: Any) -> tuple[str, dict[str, Any], str | None] | None:
        """Split a host message into action, merged payload and correlation id."""
        if isinstance(message, str | bytes):
            try:
                message = json.loads(message)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                logger.warning("Undecodable host message dropped", error=str(e))
                return None

        if not isinstance(message, Mapping):
            logger.warning("Host message dropped; not an object", message_type=type(message).__name__)
            return None

        action = message.get("action")
        if not isinstance(action, str) or not action.strip():
            logger.warning("Host message dropped; missing action")
            return None

        payload = {key: value for key, value in message.items() if key not in _ENVELOPE_KEYS}
        nested = message.get("payload")
        if isinstance(nested, Mapping):
            payload.update(nested)

        correlation_id = message.get("correlationId") or message.get("correlation_id")
        return action.strip(), payload, str(correlation_id) if correlation_id is not None else None


def _summarize_validation_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "<payload>"
    return f"{location}: {first['msg']}"
