"""Provider interface.

This is the (small) contract that broker providers should follow. The core
only ever talks to a broker through these classes; wire protocol and
transport details stay inside the provider.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator, Optional

from ..enums import AckMode, DeliveryMode
from ..message import Destination, Message, Queue, Topic


# Provider agnostic exceptions

class ProviderError(Exception):
    """Base class for all provider-layer errors."""


class IllegalStateError(ProviderError):
    """The operation is not permitted in the current provider state."""


class InvalidDestinationError(ProviderError):
    """The destination does not exist or cannot be used this way."""


class InvalidClientIdError(ProviderError):
    """The client identifier was rejected."""


class Producer(ABC):
    """Anonymous producer; the destination is supplied with each send."""

    def __init__(
        self,
        delivery_mode: DeliveryMode = DeliveryMode.PERSISTENT,
        priority: int = 4,
        time_to_live: int = 0,
    ):
        self.delivery_mode = delivery_mode
        self.priority = priority
        self.time_to_live = time_to_live

    @abstractmethod
    def send(self, destination: Destination, message: Message) -> None:
        """Send *message*, stamping message id, delivery mode, priority,
        expiration and timestamp onto it."""

    @abstractmethod
    def close(self) -> None:
        """Release the producer."""


class Consumer(ABC):
    """Consumer bound to one destination at creation time."""

    destination: Optional[Destination] = None

    @abstractmethod
    def receive(self, timeout: int) -> Optional[Message]:
        """Wait up to *timeout* milliseconds; None if nothing arrived."""

    @abstractmethod
    def close(self) -> None:
        """Release the consumer. Non-durable subscriptions end here."""


class Browser(ABC):
    """Read-only cursor over the messages waiting on a queue."""

    @abstractmethod
    def __iter__(self) -> Iterator[Message]:
        """Iterate the waiting messages without consuming them."""

    def count(self) -> int:
        return sum(1 for _message in self)

    @abstractmethod
    def close(self) -> None:
        """Release the cursor."""


class Session(ABC):
    """Provider session: the factory for every other provider resource."""

    def __init__(self, transacted: bool, ack_mode: AckMode):
        self.transacted = transacted
        self.ack_mode = ack_mode

    @abstractmethod
    def create_queue(self, name: str) -> Queue:
        """Return a new handle for the named queue."""

    @abstractmethod
    def create_topic(self, name: str) -> Topic:
        """Return a new handle for the named topic."""

    @abstractmethod
    def create_producer(
        self,
        delivery_mode: DeliveryMode,
        priority: int,
        time_to_live: int,
    ) -> Producer:
        """Return a new anonymous producer with the given defaults."""

    @abstractmethod
    def create_consumer(self, destination: Destination) -> Consumer:
        """Return a consumer for a queue or a non-durable topic subscriber."""

    @abstractmethod
    def create_durable_subscriber(self, topic: Topic, name: str) -> Consumer:
        """Return a consumer for the durable subscription *name*."""

    @abstractmethod
    def create_browser(self, queue: Queue) -> Browser:
        """Return a browse-only cursor over *queue*."""

    @abstractmethod
    def unsubscribe(self, name: str) -> None:
        """Delete the durable subscription *name* on the broker."""

    @abstractmethod
    def commit(self) -> None:
        """Commit sends and receives made since the last commit/rollback."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard pending sends; make received messages available again."""

    @abstractmethod
    def close(self) -> None:
        """Release the session and anything it still holds."""


class Connection(ABC):
    """Provider connection."""

    @property
    @abstractmethod
    def client_id(self) -> Optional[str]:
        """The client identifier, if one has been set."""

    @client_id.setter
    @abstractmethod
    def client_id(self, client_id: str) -> None:
        """Set the client identifier. Providers may reject late changes."""

    @abstractmethod
    def start(self) -> None:
        """Begin delivering messages to consumers."""

    @abstractmethod
    def stop(self) -> None:
        """Pause delivery of messages to consumers."""

    @abstractmethod
    def create_session(self, transacted: bool, ack_mode: AckMode) -> Session:
        """Return a new session."""

    @abstractmethod
    def close(self) -> None:
        """Release the connection."""

    @property
    def is_open(self) -> bool:
        """Whether the connection is currently usable."""
        return False
