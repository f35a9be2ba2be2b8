"""Infrastructure adapters: durable storage, host transports and the message broker."""

from .host_transport import HostTransport, LocalHostTransport, NATSHostTransport
from .message_broker import MessageBroker, MessageBrokerError
from .storage import FileStorage, InMemoryStorage, StorageBackend, StorageError

__all__ = [
    "FileStorage",
    "HostTransport",
    "InMemoryStorage",
    "LocalHostTransport",
    "MessageBroker",
    "MessageBrokerError",
    "NATSHostTransport",
    "StorageBackend",
    "StorageError",
]
