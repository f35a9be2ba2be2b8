"""
Host transports.

The engine talks to the host game engine through a small protocol: outbound
events are handed to ``send_notification`` and inbound messages arrive at the
handler registered with ``on_message``. Two transports are provided: a local
in-process transport and one that bridges to a MessageBroker subject pair.
"""

import asyncio
from collections.abc import Callable
from typing import Any, Protocol

from ..logging.enhanced_logging_config import get_logger
from ..models.notifications import OutboundEvent
from .message_broker import MessageBroker

logger = get_logger(__name__)

InboundHandler = Callable[[Any], Any]


class HostTransport(Protocol):
    """Protocol defining the host message channel."""

    def send_notification(self, event: OutboundEvent) -> None:
        """Deliver an outbound event to the host."""
        ...

    def on_message(self, handler: InboundHandler) -> None:
        """Register the handler invoked for every inbound host message."""
        ...


class LocalHostTransport:
    """
    In-process transport.

    Outbound events are recorded in ``sent`` (and passed to ``sink`` when one
    is given); inbound messages are fed with ``deliver``.
    """

    def __init__(self, sink: Callable[[dict[str, Any]], None] | None = None):
        self.sent: list[OutboundEvent] = []
        self._sink = sink
        self._handler: InboundHandler | None = None

    def send_notification(self, event: OutboundEvent) -> None:
        self.sent.append(event)
        wire = event.to_wire()
        logger.debug("Host notification", wire=wire)
        if self._sink is not None:
            self._sink(wire)

    def on_message(self, handler: InboundHandler) -> None:
        self._handler = handler

    def deliver(self, message: Any) -> Any:
        """Feed one inbound message to the registered handler and return its result."""
        if self._handler is None:
            logger.warning("Inbound message dropped; no handler registered")
            return None
        return self._handler(message)

    def wire_messages(self) -> list[dict[str, Any]]:
        """Every event sent so far, in wire form."""
        return [event.to_wire() for event in self.sent]


class NATSHostTransport:
    """
    Transport bridging the host to a MessageBroker.

    Inbound commands are consumed from ``inbound_subject`` and handed to the
    synchronous handler; outbound events are published to ``outbound_subject``
    without waiting for the broker.
    """

    def __init__(
        self,
        broker: MessageBroker,
        inbound_subject: str,
        outbound_subject: str,
        queue_group: str | None = None,
    ):
        self.broker = broker
        self.inbound_subject = inbound_subject
        self.outbound_subject = outbound_subject
        self.queue_group = queue_group
        self._handler: InboundHandler | None = None
        self._subscription_id: str | None = None
        self._pending: set[asyncio.Task] = set()

    def on_message(self, handler: InboundHandler) -> None:
        self._handler = handler

    async def start(self) -> None:
        """Subscribe to the inbound subject."""
        self._subscription_id = await self.broker.subscribe(
            self.inbound_subject, self._handle_inbound, queue_group=self.queue_group
        )
        logger.info(
            "Host transport started", inbound_subject=self.inbound_subject, outbound_subject=self.outbound_subject
        )

    async def stop(self) -> None:
        """Unsubscribe and wait for in-flight publishes."""
        if self._subscription_id is not None:
            await self.broker.unsubscribe(self._subscription_id)
            self._subscription_id = None
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
        logger.info("Host transport stopped")

    def send_notification(self, event: OutboundEvent) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error("Cannot publish notification; no running event loop", wire=event.to_wire())
            return

        task = loop.create_task(self._publish(event.to_wire()))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _publish(self, wire: dict[str, Any]) -> None:
        try:
            await self.broker.publish(self.outbound_subject, wire)
        except Exception as e:  # noqa: BLE001
            logger.error("Failed to publish host notification", subject=self.outbound_subject, wire=wire, error=str(e))

    def _handle_inbound(self, message: Any) -> None:
        if self._handler is None:
            logger.warning("Inbound message dropped; no handler registered", subject=self.inbound_subject)
            return
        self._handler(message)
