"""
Message broker seam between the host transport and a concrete broker.

Host commands arrive on one subject and outbound task notifications leave on
another; ``NATSHostTransport`` needs nothing more than the five operations
below, so any broker offering them can carry the host protocol.
"""

from collections.abc import Callable
from typing import Any, Protocol

# Receives one decoded JSON object; may return an awaitable
MessageHandler = Callable[[dict[str, Any]], Any]


class MessageBroker(Protocol):
    """Publish/subscribe operations used by the host transport."""

    async def connect(self) -> bool:
        """Open the broker connection; True once connected."""
        ...

    async def disconnect(self) -> None:
        """Drop every subscription and close the connection."""
        ...

    def is_connected(self) -> bool: ...

    async def publish(self, subject: str, message: dict[str, Any]) -> None:
        """
        Publish one JSON object.

        Raises:
            PublishError: If the broker is unreachable or rejects the message
        """
        ...

    async def subscribe(self, subject: str, handler: MessageHandler, queue_group: str | None = None) -> str:
        """
        Deliver every JSON object published on ``subject`` to ``handler``.

        Args:
            subject: Subject to listen on
            handler: Sync or async callable taking the decoded object
            queue_group: Share the subject with other engines in the same group

        Returns:
            Opaque subscription id for ``unsubscribe``

        Raises:
            SubscribeError: If the subscription cannot be created
        """
        ...

    async def unsubscribe(self, subscription_id: str) -> None:
        """Stop a subscription; unknown ids are ignored."""
        ...


class MessageBrokerError(Exception):
    """Base exception for broker failures, optionally naming the subject involved."""

    def __init__(self, message: str, subject: str | None = None):
        super().__init__(message)
        self.subject = subject


class ConnectionError(MessageBrokerError):  # pylint: disable=redefined-builtin
    """The broker could not be reached."""


class PublishError(MessageBrokerError):
    """An outbound notification could not be published."""


class SubscribeError(MessageBrokerError):
    """The host command subject could not be subscribed."""


class UnsubscribeError(MessageBrokerError):
    """A subscription could not be cancelled."""
