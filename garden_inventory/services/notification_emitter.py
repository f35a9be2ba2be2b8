"""
Notification Emitter.

Formats engine outcomes into the host's task-update and data-reply shapes and
hands them to the host transport. Task names are always prefixed with the
configured task prefix, e.g. ``inventory_item_added_tomato_seed``.
"""

from typing import Any

from ..error_types import FailureKind
from ..infrastructure.host_transport import HostTransport
from ..logging.enhanced_logging_config import get_logger
from ..models.notifications import DataReply, OutboundEvent, TaskNotification, TaskTargetState

logger = get_logger(__name__)


class NotificationEmitter:
    """Sends task notifications and data replies to the host."""

    def __init__(self, transport: HostTransport, task_prefix: str = "inventory"):
        """
        Initialize the emitter.

        Args:
            transport: Host transport events are delivered through
            task_prefix: Prefix prepended to every task name
        """
        self.transport = transport
        self.task_prefix = task_prefix

    def task_name(self, action: str, item_id: str | None = None) -> str:
        """Build ``<prefix>_<action>[_<itemId>]``."""
        name = f"{self.task_prefix}_{action}"
        if item_id:
            name = f"{name}_{item_id}"
        return name

    def emit_task(self, action: str, state: TaskTargetState, item_id: str | None = None) -> TaskNotification:
        """
        Send a task update to the host.

        Returns:
            The notification that was sent
        """
        notification = TaskNotification(task_name=self.task_name(action, item_id), task_target_state=state)
        self._send(notification)
        return notification

    def emit_failure(self, action: str, kind: FailureKind) -> TaskNotification:
        """Send ``<prefix>_<action>_failed_<kind>`` with the SetActiveToNotActive token."""
        normalized = action.replace("-", "_")
        return self.emit_task(f"{normalized}_failed_{kind.value}", TaskTargetState.SET_ACTIVE_TO_NOT_ACTIVE)

    def emit_reply(self, reply_type: str, payload: dict[str, Any]) -> DataReply:
        """Send a typed data payload to the host."""
        reply = DataReply(reply_type=reply_type, payload=payload)
        self._send(reply)
        return reply

    def _send(self, event: OutboundEvent) -> None:
        try:
            self.transport.send_notification(event)
        except Exception as e:  # noqa: BLE001
            logger.error(
                "Failed to send host notification",
                event_type=type(event).__name__,
                wire=event.to_wire(),
                error=str(e),
                exc_info=True,
            )
            return
        logger.debug("Sent host notification", wire=event.to_wire())
