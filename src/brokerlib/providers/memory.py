"""In-process broker provider.

Brokers are named, and every connection opened against the same name in
one process shares the same queues, topics and durable subscriptions. The
URL form is ``memory://<name>``; a bare ``memory://`` selects the broker
named "default".
"""

from __future__ import annotations

import collections
import itertools
import threading
import time
from typing import Deque, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from ..enums import AckMode, DeliveryMode
from ..message import Destination, Message, Queue, Topic
from .base import (
    Browser as BaseBrowser,
    Connection as BaseConnection,
    Consumer as BaseConsumer,
    IllegalStateError,
    InvalidClientIdError,
    InvalidDestinationError,
    Producer as BaseProducer,
    ProviderError,
    Session as BaseSession,
)


def _now() -> int:
    return int(time.time() * 1000)


def _expired(message: Message, now: int) -> bool:
    return message.expiration != 0 and message.expiration <= now


class _Subscription:
    """Pending messages for one topic subscriber, durable or not."""

    def __init__(self, topic: str, name: Optional[str] = None, client_id: Optional[str] = None):
        self.topic = topic
        self.name = name
        self.client_id = client_id
        self.pending: Deque[Message] = collections.deque()
        self.active = False


class Broker:
    """Shared state for every connection opened against one broker name."""

    def __init__(self, name: str):
        self.name = name
        self.condition = threading.Condition()
        self.credentials: Optional[Dict[str, str]] = None

        self.queues: Dict[str, Deque[Message]] = {}
        self.subscriptions: List[_Subscription] = []
        self.durable: Dict[Tuple[str, str], _Subscription] = {}
        self.client_ids: set = set()

        self._ids = itertools.count(1)

    def next_id(self) -> str:
        return "ID:%s-%d" % (self.name, next(self._ids))

    def queue(self, name: str) -> Deque[Message]:
        try:
            return self.queues[name]
        except KeyError:
            pending: Deque[Message] = collections.deque()
            self.queues[name] = pending
            return pending

    def authenticate(self, username: Optional[str], password: Optional[str]) -> None:
        if self.credentials is None:
            return
        if self.credentials.get(username) != password:
            raise ProviderError("authentication failed for user %r" % (username,))

    def publish(self, destination: Destination, message: Message) -> None:
        """Caller must hold the condition."""

        if isinstance(destination, Queue):
            self.queue(destination.name).append(message)
        elif isinstance(destination, Topic):
            targets = [s for s in self.subscriptions if s.topic == destination.name]
            targets.extend(s for s in self.durable.values() if s.topic == destination.name)
            for subscription in targets:
                subscription.pending.append(message.copy())
        else:
            raise InvalidDestinationError("cannot publish to %r" % (destination,))

        self.condition.notify_all()

    def depth(self, name: str) -> int:
        with self.condition:
            now = _now()
            return sum(1 for m in self.queue(name) if not _expired(m, now))


_brokers: Dict[str, Broker] = {}
_brokers_lock = threading.Lock()


def broker(name: str = "default") -> Broker:
    with _brokers_lock:
        b = _brokers.get(name)
        if b is None:
            b = Broker(name)
            _brokers[name] = b
        return b


def reset(name: Optional[str] = None) -> None:
    """Forget one named broker, or all of them."""

    with _brokers_lock:
        if name is None:
            _brokers.clear()
        else:
            _brokers.pop(name, None)


def _broker_name(url: Optional[str]) -> str:
    if not url:
        return "default"

    parsed = urlparse(url)
    if parsed.scheme not in ("", "memory"):
        raise ProviderError("not a memory broker URL: %r" % (url,))

    name = parsed.netloc or parsed.path.strip("/")
    return name or "default"


class Producer(BaseProducer):

    def __init__(self, session: "Session", delivery_mode: DeliveryMode, priority: int, time_to_live: int):
        BaseProducer.__init__(self, delivery_mode, priority, time_to_live)
        self.session = session
        self.closed = False

    def send(self, destination: Destination, message: Message) -> None:
        if self.closed:
            raise IllegalStateError("producer is closed")
        self.session._check_open()

        broker = self.session.broker

        with broker.condition:
            now = _now()
            message.message_id = broker.next_id()
            message.delivery_mode = self.delivery_mode
            message.priority = self.priority
            message.timestamp = now
            message.destination = destination
            if self.time_to_live:
                message.expiration = now + self.time_to_live
            else:
                message.expiration = 0

            stored = message.copy()
            stored.redelivered = False

            if self.session.transacted:
                self.session._outbox.append((destination, stored))
            else:
                broker.publish(destination, stored)

    def close(self) -> None:
        self.closed = True


class Consumer(BaseConsumer):

    def __init__(self, session: "Session", destination: Destination, pending: Deque[Message], subscription: Optional[_Subscription] = None):
        self.session = session
        self.destination = destination
        self.pending = pending
        self.subscription = subscription
        self.closed = False

    def _available(self) -> bool:
        if self.closed or not self.session.connection.started:
            return False

        now = _now()
        while self.pending:
            if _expired(self.pending[0], now):
                self.pending.popleft()
            else:
                return True
        return False

    def receive(self, timeout: int) -> Optional[Message]:
        if self.closed:
            raise IllegalStateError("consumer is closed")
        self.session._check_open()

        broker = self.session.broker

        with broker.condition:
            if timeout > 0:
                broker.condition.wait_for(self._available, timeout / 1000.0)
            elif not self._available():
                return None

            if not self._available():
                return None

            stored = self.pending.popleft()
            return self.session._deliver(stored, self.pending)

    def close(self) -> None:
        if self.closed:
            return

        broker = self.session.broker

        with broker.condition:
            self.closed = True
            subscription = self.subscription
            if subscription is not None:
                subscription.active = False
                if subscription.name is None:
                    try:
                        broker.subscriptions.remove(subscription)
                    except ValueError:
                        pass

        try:
            self.session._consumers.remove(self)
        except ValueError:
            pass


class Browser(BaseBrowser):

    def __init__(self, session: "Session", queue: Queue):
        self.session = session
        self.queue = queue
        self.closed = False

    def __iter__(self):
        if self.closed:
            raise IllegalStateError("browser is closed")

        broker = self.session.broker
        with broker.condition:
            now = _now()
            snapshot = [m.copy() for m in broker.queue(self.queue.name) if not _expired(m, now)]

        return iter(snapshot)

    def close(self) -> None:
        self.closed = True


class Session(BaseSession):

    def __init__(self, connection: "Connection", transacted: bool, ack_mode: AckMode):
        BaseSession.__init__(self, transacted, ack_mode)
        self.connection = connection
        self.broker = connection.broker
        self.closed = False

        self.commits = 0
        self.rollbacks = 0
        self.acknowledgements = 0

        self._consumers: List[Consumer] = []
        self._outbox: List[Tuple[Destination, Message]] = []
        self._unsettled: List[Tuple[Message, Deque[Message]]] = []

    def _check_open(self) -> None:
        if self.closed:
            raise IllegalStateError("session is closed")

    def _deliver(self, stored: Message, source: Deque[Message]) -> Message:
        """Hand out a received message. Caller must hold the condition."""

        message = stored.copy()
        message._acknowledger = self._acknowledge

        if self.transacted or self.ack_mode == AckMode.CLIENT_ACKNOWLEDGE:
            self._unsettled.append((stored, source))

        return message

    def _acknowledge(self, _message: Message) -> None:
        if self.transacted or self.ack_mode != AckMode.CLIENT_ACKNOWLEDGE:
            return
        self._check_open()

        with self.broker.condition:
            # Acknowledging one message acknowledges every message consumed
            # so far in this session.
            self._unsettled = []
            self.acknowledgements += 1

    def _requeue(self) -> None:
        """Caller must hold the condition."""

        for stored, source in reversed(self._unsettled):
            stored.redelivered = True
            source.appendleft(stored)
        self._unsettled = []
        self.broker.condition.notify_all()

    def create_queue(self, name: str) -> Queue:
        self._check_open()
        if not name:
            raise InvalidDestinationError("queue name must not be empty")
        return Queue(name)

    def create_topic(self, name: str) -> Topic:
        self._check_open()
        if not name:
            raise InvalidDestinationError("topic name must not be empty")
        return Topic(name)

    def create_producer(self, delivery_mode: DeliveryMode, priority: int, time_to_live: int) -> Producer:
        self._check_open()
        return Producer(self, delivery_mode, priority, time_to_live)

    def create_consumer(self, destination: Destination) -> Consumer:
        self._check_open()

        with self.broker.condition:
            if isinstance(destination, Queue):
                consumer = Consumer(self, destination, self.broker.queue(destination.name))
            elif isinstance(destination, Topic):
                subscription = _Subscription(destination.name)
                subscription.active = True
                self.broker.subscriptions.append(subscription)
                consumer = Consumer(self, destination, subscription.pending, subscription)
            else:
                raise InvalidDestinationError("cannot consume from %r" % (destination,))

        self._consumers.append(consumer)
        return consumer

    def create_durable_subscriber(self, topic: Topic, name: str) -> Consumer:
        self._check_open()

        client_id = self.connection.client_id
        if client_id is None:
            raise IllegalStateError("durable subscription %r requires a client id" % (name,))

        key = (client_id, name)

        with self.broker.condition:
            subscription = self.broker.durable.get(key)

            if subscription is not None and subscription.active:
                raise IllegalStateError("durable subscription %r is already active" % (name,))

            if subscription is None or subscription.topic != topic.name:
                subscription = _Subscription(topic.name, name, client_id)
                self.broker.durable[key] = subscription

            subscription.active = True
            consumer = Consumer(self, topic, subscription.pending, subscription)

        self._consumers.append(consumer)
        return consumer

    def create_browser(self, queue: Queue) -> Browser:
        self._check_open()
        return Browser(self, queue)

    def unsubscribe(self, name: str) -> None:
        self._check_open()

        key = (self.connection.client_id, name)

        with self.broker.condition:
            try:
                subscription = self.broker.durable[key]
            except KeyError:
                raise InvalidDestinationError("no durable subscription named %r" % (name,))

            if subscription.active:
                raise IllegalStateError("durable subscription %r is still active" % (name,))

            del self.broker.durable[key]

    def commit(self) -> None:
        self._check_open()
        if not self.transacted:
            raise IllegalStateError("commit requires a transacted session")

        with self.broker.condition:
            for destination, stored in self._outbox:
                self.broker.publish(destination, stored)
            self._outbox = []
            self._unsettled = []
            self.commits += 1

    def rollback(self) -> None:
        self._check_open()
        if not self.transacted:
            raise IllegalStateError("rollback requires a transacted session")

        with self.broker.condition:
            self._outbox = []
            self._requeue()
            self.rollbacks += 1

    def close(self) -> None:
        if self.closed:
            return

        for consumer in list(self._consumers):
            consumer.close()
        self._consumers = []

        with self.broker.condition:
            self._outbox = []
            self._requeue()
            self.closed = True


class Connection(BaseConnection):

    def __init__(self, url: Optional[str] = None, username: Optional[str] = None, password: Optional[str] = None):
        self.broker = broker(_broker_name(url))
        self.broker.authenticate(username, password)

        self.started = False
        self.closed = False
        self._client_id: Optional[str] = None
        self._used = False
        self._sessions: List[Session] = []

    @property
    def client_id(self) -> Optional[str]:
        return self._client_id

    @client_id.setter
    def client_id(self, client_id: str) -> None:
        self._check_open()

        if self._used or self._client_id is not None:
            raise IllegalStateError("client id must be set before the connection is used")

        with self.broker.condition:
            if client_id in self.broker.client_ids:
                raise InvalidClientIdError("client id %r is already in use" % (client_id,))
            self.broker.client_ids.add(client_id)

        self._client_id = client_id

    def _check_open(self) -> None:
        if self.closed:
            raise IllegalStateError("connection is closed")

    def start(self) -> None:
        self._check_open()
        self._used = True

        with self.broker.condition:
            self.started = True
            self.broker.condition.notify_all()

    def stop(self) -> None:
        self._check_open()
        self.started = False

    def create_session(self, transacted: bool, ack_mode: AckMode) -> Session:
        self._check_open()
        self._used = True

        session = Session(self, transacted, ack_mode)
        self._sessions.append(session)
        return session

    def close(self) -> None:
        if self.closed:
            return

        self.started = False
        for session in self._sessions:
            session.close()
        self._sessions = []

        with self.broker.condition:
            self.broker.client_ids.discard(self._client_id)

        self.closed = True

    @property
    def is_open(self) -> bool:
        return not self.closed
