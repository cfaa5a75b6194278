"""RabbitMQ provider.

Maps the provider interface onto AMQP 0-9-1 through pika's blocking API.
Queues are durable queues addressed through the default exchange; topics
are routing keys on a topic exchange, and every topic subscriber reads
from its own queue bound to that exchange. A durable subscription is a
durable queue named after the client id and the subscription name.
"""

from __future__ import annotations

import time
import uuid
from typing import List, Optional

import pika

from .. import config
from ..enums import AckMode, DeliveryMode, DestinationKind
from ..message import BytesMessage, Destination, Message, Queue, TextMessage, Topic
from ..message import destination as make_destination
from .base import (
    Browser as BaseBrowser,
    Connection as BaseConnection,
    Consumer as BaseConsumer,
    IllegalStateError,
    InvalidDestinationError,
    Producer as BaseProducer,
    Session as BaseSession,
)


_KIND_HEADER = "x-brokerlib-kind"
_EXPIRATION_HEADER = "x-brokerlib-expiration"
_TIMESTAMP_HEADER = "x-brokerlib-timestamp"

# Seconds between basic_get polls while a receive is waiting.
_POLL_INTERVAL = 0.01


def _broker_params(url: Optional[str], username: Optional[str], password: Optional[str]) -> pika.ConnectionParameters:
    if url:
        params = pika.URLParameters(url)
    else:
        params = pika.ConnectionParameters(
            host=config.AMQP_HOST,
            port=config.AMQP_PORT,
            virtual_host=config.AMQP_VHOST,
            heartbeat=600,
            blocked_connection_timeout=300,
        )

    if username is not None:
        params.credentials = pika.PlainCredentials(username, password or "")

    return params


def _now() -> int:
    return int(time.time() * 1000)


def _durable_queue_name(client_id: str, name: str) -> str:
    return "%s.%s" % (client_id, name)


def _encode_destination(destination: Optional[Destination]) -> Optional[str]:
    if destination is None:
        return None
    return repr(destination)


def _decode_destination(value: Optional[str]) -> Optional[Destination]:
    if not value:
        return None

    kind, separator, name = value.partition("://")
    if separator and kind in (DestinationKind.QUEUE.value, DestinationKind.TOPIC.value):
        return make_destination(DestinationKind(kind), name)

    # A bare reply_to from a foreign publisher is, by AMQP convention, a
    # queue name.
    return Queue(value)


class Producer(BaseProducer):

    def __init__(self, session: "Session", delivery_mode: DeliveryMode, priority: int, time_to_live: int):
        BaseProducer.__init__(self, delivery_mode, priority, time_to_live)
        self.session = session
        self.closed = False

    def send(self, destination: Destination, message: Message) -> None:
        if self.closed:
            raise IllegalStateError("producer is closed")

        now = _now()
        message.message_id = "ID:" + uuid.uuid4().hex
        message.delivery_mode = self.delivery_mode
        message.priority = self.priority
        message.timestamp = now
        message.destination = destination
        if self.time_to_live:
            message.expiration = now + self.time_to_live
        else:
            message.expiration = 0

        headers = dict(message.properties)
        headers[_KIND_HEADER] = message.kind
        headers[_EXPIRATION_HEADER] = message.expiration
        headers[_TIMESTAMP_HEADER] = now

        if isinstance(message, TextMessage):
            body = (message.text or "").encode("utf-8")
            content_type = "text/plain"
            content_encoding = "utf-8"
        elif isinstance(message, BytesMessage):
            body = message.data
            content_type = "application/octet-stream"
            content_encoding = None
        else:
            raise TypeError("cannot send %r" % (message,))

        if self.delivery_mode == DeliveryMode.PERSISTENT:
            amqp_delivery_mode = pika.DeliveryMode.Persistent
        else:
            amqp_delivery_mode = pika.DeliveryMode.Transient

        properties = pika.BasicProperties(
            content_type=content_type,
            content_encoding=content_encoding,
            delivery_mode=amqp_delivery_mode,
            priority=self.priority,
            expiration=str(self.time_to_live) if self.time_to_live else None,
            message_id=message.message_id,
            correlation_id=message.correlation_id,
            reply_to=_encode_destination(message.reply_to),
            type=message.type,
            timestamp=now // 1000,
            headers=headers,
        )

        if isinstance(destination, Queue):
            exchange = ""
        elif isinstance(destination, Topic):
            exchange = self.session.topic_exchange
        else:
            raise InvalidDestinationError("cannot send to %r" % (destination,))

        self.session.channel.basic_publish(
            exchange=exchange,
            routing_key=destination.name,
            body=body,
            properties=properties,
        )

    def close(self) -> None:
        self.closed = True


class Consumer(BaseConsumer):

    def __init__(self, session: "Session", destination: Destination, queue_name: str, delete_on_close: bool = False):
        self.session = session
        self.destination = destination
        self.queue_name = queue_name
        self.delete_on_close = delete_on_close
        self.closed = False

    def receive(self, timeout: int) -> Optional[Message]:
        if self.closed:
            raise IllegalStateError("consumer is closed")

        channel = self.session.channel
        connection = self.session.connection
        deadline = time.monotonic() + max(timeout, 0) / 1000.0

        while True:
            if connection.started:
                method, properties, body = channel.basic_get(queue=self.queue_name, auto_ack=False)
                if method is not None:
                    return self.session._deliver(method, properties, body, self.destination)

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return None

            connection.sleep(min(_POLL_INTERVAL, remaining))

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True

        channel = self.session.channel
        if self.delete_on_close and channel.is_open:
            channel.queue_delete(queue=self.queue_name)

        try:
            self.session._consumers.remove(self)
        except ValueError:
            pass


class Browser(BaseBrowser):
    """AMQP 0-9-1 has no non-destructive browse; only the count is offered."""

    def __init__(self, session: "Session", queue: Queue):
        self.session = session
        self.queue = queue

    def __iter__(self):
        raise NotImplementedError("AMQP queues cannot be browsed, only counted")

    def count(self) -> int:
        result = self.session.channel.queue_declare(queue=self.queue.name, passive=True)
        return result.method.message_count

    def close(self) -> None:
        pass


class Session(BaseSession):

    def __init__(self, connection: "Connection", transacted: bool, ack_mode: AckMode):
        BaseSession.__init__(self, transacted, ack_mode)
        self.connection = connection
        self.topic_exchange = config.AMQP_TOPIC_EXCHANGE
        self.channel = connection._connection.channel()

        if transacted:
            self.channel.tx_select()

        if self.topic_exchange != "amq.topic":
            self.channel.exchange_declare(
                exchange=self.topic_exchange, exchange_type="topic", durable=True
            )

        self._consumers: List[Consumer] = []
        self._delivered_tag = 0
        self._acked_tag = 0

    def _deliver(self, method, properties, body: bytes, destination: Destination) -> Message:
        headers = dict(properties.headers or {})
        kind = headers.pop(_KIND_HEADER, None)

        if isinstance(kind, bytes):
            kind = kind.decode()

        if kind is None:
            if (properties.content_type or "").startswith("text/"):
                kind = "text"
            else:
                kind = "bytes"

        if kind == "text":
            message = TextMessage(body.decode(properties.content_encoding or "utf-8"))
        else:
            message = BytesMessage(body)

        message.message_id = properties.message_id
        message.correlation_id = properties.correlation_id
        message.type = properties.type
        message.reply_to = _decode_destination(properties.reply_to)
        if properties.delivery_mode == pika.DeliveryMode.Persistent.value:
            message.delivery_mode = DeliveryMode.PERSISTENT
        else:
            message.delivery_mode = DeliveryMode.NON_PERSISTENT
        if properties.priority is None:
            message.priority = config.DEFAULT_PRIORITY
        else:
            message.priority = properties.priority
        message.expiration = int(headers.pop(_EXPIRATION_HEADER, 0) or 0)
        message.timestamp = headers.pop(_TIMESTAMP_HEADER, None)
        message.redelivered = bool(method.redelivered)
        message.destination = destination
        message.properties = headers

        tag = method.delivery_tag
        self._delivered_tag = tag

        if self.transacted or self.ack_mode != AckMode.CLIENT_ACKNOWLEDGE:
            # In a transacted channel the ack only takes effect on commit.
            self.channel.basic_ack(delivery_tag=tag)
            self._acked_tag = tag
        else:
            message._acknowledger = self._acknowledge

        return message

    def _acknowledge(self, _message: Message) -> None:
        if self._delivered_tag > self._acked_tag:
            self.channel.basic_ack(delivery_tag=self._delivered_tag, multiple=True)
            self._acked_tag = self._delivered_tag

    def create_queue(self, name: str) -> Queue:
        if not name:
            raise InvalidDestinationError("queue name must not be empty")
        self.channel.queue_declare(queue=name, durable=True)
        return Queue(name)

    def create_topic(self, name: str) -> Topic:
        if not name:
            raise InvalidDestinationError("topic name must not be empty")
        return Topic(name)

    def create_producer(self, delivery_mode: DeliveryMode, priority: int, time_to_live: int) -> Producer:
        return Producer(self, delivery_mode, priority, time_to_live)

    def create_consumer(self, destination: Destination) -> Consumer:
        if isinstance(destination, Queue):
            consumer = Consumer(self, destination, destination.name)
        elif isinstance(destination, Topic):
            result = self.channel.queue_declare(queue="", exclusive=True, auto_delete=True)
            queue_name = result.method.queue
            self.channel.queue_bind(
                exchange=self.topic_exchange,
                queue=queue_name,
                routing_key=destination.name,
            )
            consumer = Consumer(self, destination, queue_name, delete_on_close=True)
        else:
            raise InvalidDestinationError("cannot consume from %r" % (destination,))

        self._consumers.append(consumer)
        return consumer

    def create_durable_subscriber(self, topic: Topic, name: str) -> Consumer:
        client_id = self.connection.client_id
        if client_id is None:
            raise IllegalStateError("durable subscription %r requires a client id" % (name,))

        queue_name = _durable_queue_name(client_id, name)
        self.channel.queue_declare(queue=queue_name, durable=True)
        self.channel.queue_bind(
            exchange=self.topic_exchange,
            queue=queue_name,
            routing_key=topic.name,
        )

        consumer = Consumer(self, topic, queue_name)
        self._consumers.append(consumer)
        return consumer

    def create_browser(self, queue: Queue) -> Browser:
        return Browser(self, queue)

    def unsubscribe(self, name: str) -> None:
        client_id = self.connection.client_id
        if client_id is None:
            raise IllegalStateError("durable subscription %r requires a client id" % (name,))
        self.channel.queue_delete(queue=_durable_queue_name(client_id, name))

    def commit(self) -> None:
        if not self.transacted:
            raise IllegalStateError("commit requires a transacted session")
        self.channel.tx_commit()

    def rollback(self) -> None:
        if not self.transacted:
            raise IllegalStateError("rollback requires a transacted session")

        # Rolling back the acks leaves the received messages unacknowledged
        # on this channel; recover hands them back to the queue.
        self.channel.tx_rollback()
        self.channel.basic_recover(requeue=True)
        self._acked_tag = self._delivered_tag

    def close(self) -> None:
        for consumer in list(self._consumers):
            consumer.close()
        self._consumers = []

        # Closing the channel requeues anything still unacknowledged.
        if self.channel.is_open:
            self.channel.close()


class Connection(BaseConnection):

    def __init__(self, url: Optional[str] = None, username: Optional[str] = None, password: Optional[str] = None):
        self._connection = pika.BlockingConnection(_broker_params(url, username, password))
        self.started = False
        self._client_id: Optional[str] = None
        self._used = False
        self._sessions: List[Session] = []

    @property
    def client_id(self) -> Optional[str]:
        return self._client_id

    @client_id.setter
    def client_id(self, client_id: str) -> None:
        if self._used or self._client_id is not None:
            raise IllegalStateError("client id must be set before the connection is used")
        self._client_id = client_id

    def start(self) -> None:
        self._used = True
        self.started = True

    def stop(self) -> None:
        self.started = False

    def sleep(self, seconds: float) -> None:
        """Wait while still servicing heartbeats on the connection."""
        self._connection.sleep(seconds)

    def create_session(self, transacted: bool, ack_mode: AckMode) -> Session:
        self._used = True
        session = Session(self, transacted, ack_mode)
        self._sessions.append(session)
        return session

    def close(self) -> None:
        for session in self._sessions:
            session.close()
        self._sessions = []

        self.started = False
        if self._connection.is_open:
            self._connection.close()

    @property
    def is_open(self) -> bool:
        return self._connection.is_open
