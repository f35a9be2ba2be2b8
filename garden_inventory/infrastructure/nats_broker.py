"""
NATS-backed MessageBroker.

Messages on the wire are UTF-8 JSON objects. Inbound payloads that do not
decode to an object are logged and dropped before they reach the handler.
"""

import itertools
import json
from typing import Any

import nats
from nats.aio.msg import Msg

from ..config.models import NATSConfig
from ..logging.enhanced_logging_config import get_logger
from .message_broker import (
    ConnectionError,  # pylint: disable=redefined-builtin
    MessageBrokerError,
    MessageHandler,
    PublishError,
    SubscribeError,
    UnsubscribeError,
)

logger = get_logger(__name__)


class NATSMessageBroker:
    """Carries host commands and notifications over a nats-py client."""

    def __init__(self, config: NATSConfig):
        self.config = config
        self._client: Any = None
        self._subscriptions: dict[str, Any] = {}
        self._ids = itertools.count(1)

    def _connect_options(self) -> dict[str, Any]:
        return {
            "servers": self.config.url,
            "max_reconnect_attempts": self.config.max_reconnect_attempts,
            "reconnect_time_wait": self.config.reconnect_time_wait,
            "connect_timeout": self.config.connect_timeout,
            "ping_interval": self.config.ping_interval,
            "max_outstanding_pings": self.config.max_outstanding_pings,
            "error_cb": self._on_error,
            "disconnected_cb": self._on_disconnected,
            "reconnected_cb": self._on_reconnected,
        }

    async def connect(self) -> bool:
        """
        Connect using the configured URL and reconnect policy.

        Raises:
            ConnectionError: If the server cannot be reached
        """
        if self.is_connected():
            logger.debug("NATS connection already open", url=self.config.url)
            return True

        try:
            self._client = await nats.connect(**self._connect_options())
        except Exception as e:
            logger.error("NATS connection failed", url=self.config.url, error=str(e), exc_info=True)
            raise ConnectionError(f"Failed to connect to NATS at {self.config.url}: {e}") from e

        logger.info("Connected to NATS", url=self.config.url)
        return True

    async def disconnect(self) -> None:
        if self._client is None:
            return

        for subscription_id in list(self._subscriptions):
            try:
                await self.unsubscribe(subscription_id)
            except UnsubscribeError as e:
                logger.warning("Dropping subscription during disconnect", subscription_id=subscription_id, error=str(e))
                self._subscriptions.pop(subscription_id, None)

        if not self._client.is_connected:
            return
        try:
            await self._client.close()
        except Exception as e:
            logger.error("NATS close failed", error=str(e))
            raise MessageBrokerError(f"Error disconnecting from NATS: {e}") from e
        logger.info("Disconnected from NATS")

    def is_connected(self) -> bool:
        return self._client is not None and self._client.is_connected

    async def publish(self, subject: str, message: dict[str, Any]) -> None:
        if not self.is_connected():
            raise PublishError("Not connected to NATS", subject=subject)

        data = json.dumps(message, separators=(",", ":")).encode("utf-8")
        try:
            await self._client.publish(subject, data)
        except Exception as e:
            logger.error("NATS publish failed", subject=subject, error=str(e))
            raise PublishError(f"Failed to publish to {subject}: {e}", subject=subject) from e
        logger.debug("Published to NATS", subject=subject, size=len(data))

    async def subscribe(self, subject: str, handler: MessageHandler, queue_group: str | None = None) -> str:
        if not self.is_connected():
            raise SubscribeError("Not connected to NATS", subject=subject)

        try:
            subscription = await self._client.subscribe(
                subject, queue=queue_group or "", cb=self._delivery_callback(handler)
            )
        except Exception as e:
            logger.error("NATS subscribe failed", subject=subject, error=str(e))
            raise SubscribeError(f"Failed to subscribe to {subject}: {e}", subject=subject) from e

        subscription_id = f"{subject}#{next(self._ids)}"
        self._subscriptions[subscription_id] = subscription
        logger.info("Subscribed to NATS subject", subject=subject, queue_group=queue_group)
        return subscription_id

    async def unsubscribe(self, subscription_id: str) -> None:
        subscription = self._subscriptions.get(subscription_id)
        if subscription is None:
            logger.warning("Unknown NATS subscription", subscription_id=subscription_id)
            return

        try:
            await subscription.unsubscribe()
        except Exception as e:
            raise UnsubscribeError(f"Failed to unsubscribe {subscription_id}: {e}") from e
        del self._subscriptions[subscription_id]
        logger.info("Unsubscribed from NATS", subscription_id=subscription_id)

    @staticmethod
    def _delivery_callback(handler: MessageHandler):
        """Wrap ``handler`` as a nats-py callback that decodes JSON and contains handler errors."""

        async def deliver(msg: Msg) -> None:
            try:
                decoded = json.loads(msg.data.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                logger.warning("Undecodable NATS message dropped", subject=msg.subject, error=str(e))
                return
            if not isinstance(decoded, dict):
                logger.warning("Non-object NATS message dropped", subject=msg.subject)
                return

            try:
                result = handler(decoded)
                if hasattr(result, "__await__"):
                    await result
            except Exception as e:  # noqa: BLE001
                logger.error("NATS message handler failed", subject=msg.subject, error=str(e), exc_info=True)

        return deliver

    async def _on_error(self, error: Exception) -> None:
        logger.error("NATS error", error=str(error))

    async def _on_disconnected(self) -> None:
        logger.warning("NATS connection lost", url=self.config.url)

    async def _on_reconnected(self) -> None:
        logger.info("NATS connection restored", url=self.config.url)
