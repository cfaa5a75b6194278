import pytest

from brokerlib import providers
from brokerlib.enums import AckMode, DeliveryMode
from brokerlib.message import Queue, TextMessage, Topic
from brokerlib.providers import memory
from brokerlib.providers.base import (
    IllegalStateError,
    InvalidDestinationError,
    ProviderError,
)


def open_session(url, transacted=False, ack_mode=AckMode.AUTO_ACKNOWLEDGE, client_id=None):

    connection = memory.Connection(url)
    if client_id is not None:
        connection.client_id = client_id

    session = connection.create_session(transacted, ack_mode)
    connection.start()
    return connection, session


def send(session, destination, text):

    producer = session.create_producer(DeliveryMode.PERSISTENT, 4, 0)
    producer.send(destination, TextMessage(text))
    producer.close()


def test_provider_selection():

    assert providers.get(url='memory://anything') is memory
    assert providers.get('memory') is memory

    with pytest.raises(ValueError):
        providers.get('carrier-pigeon')


def test_broker_names(broker_url):

    first, first_session = open_session(broker_url)
    second, second_session = open_session(broker_url)
    other, other_session = open_session('memory://elsewhere')

    try:
        assert first.broker is second.broker
        assert first.broker is not other.broker

        send(first_session, Queue('Q'), 'shared')
        assert first.broker.depth('Q') == 1
        assert other.broker.depth('Q') == 0

        received = second_session.create_consumer(Queue('Q')).receive(100)
        assert received.text == 'shared'
    finally:
        first.close()
        second.close()
        other.close()
        memory.reset('elsewhere')


def test_default_broker_name():

    assert memory._broker_name(None) == 'default'
    assert memory._broker_name('memory://') == 'default'
    assert memory._broker_name('memory://named') == 'named'

    with pytest.raises(ProviderError):
        memory._broker_name('amqp://localhost')


def test_stopped_connection_delivers_nothing(broker_url):

    connection, session = open_session(broker_url)

    try:
        consumer = session.create_consumer(Queue('Q'))
        send(session, Queue('Q'), 'held')

        connection.stop()
        assert consumer.receive(10) is None
        assert consumer.receive(0) is None

        connection.start()
        assert consumer.receive(0).text == 'held'
    finally:
        connection.close()


def test_credentials(broker_url):

    broker = memory.broker(broker_url[len('memory://'):])
    broker.credentials = {'robot': 'secret'}

    with pytest.raises(ProviderError):
        memory.Connection(broker_url, 'robot', 'wrong')

    connection = memory.Connection(broker_url, 'robot', 'secret')
    connection.close()


def test_topic_without_subscribers(broker_url):

    connection, session = open_session(broker_url)

    try:
        send(session, Topic('T'), 'lost')

        consumer = session.create_consumer(Topic('T'))
        assert consumer.receive(10) is None

        send(session, Topic('T'), 'heard')
        assert consumer.receive(10).text == 'heard'
    finally:
        connection.close()


def test_topic_fan_out(broker_url):

    connection, session = open_session(broker_url)

    try:
        first = session.create_consumer(Topic('T'))
        second = session.create_consumer(Topic('T'))

        send(session, Topic('T'), 'both')

        assert first.receive(10).text == 'both'
        assert second.receive(10).text == 'both'
    finally:
        connection.close()


def test_durable_requires_client_id(broker_url):

    connection, session = open_session(broker_url)

    try:
        with pytest.raises(IllegalStateError):
            session.create_durable_subscriber(Topic('T'), 'sub')
    finally:
        connection.close()


def test_durable_unsubscribe(broker_url):

    connection, session = open_session(broker_url, client_id='durable')

    try:
        with pytest.raises(InvalidDestinationError):
            session.unsubscribe('unknown')

        consumer = session.create_durable_subscriber(Topic('T'), 'sub')

        with pytest.raises(IllegalStateError):
            session.create_durable_subscriber(Topic('T'), 'sub')

        with pytest.raises(IllegalStateError):
            session.unsubscribe('sub')

        consumer.close()
        session.unsubscribe('sub')

        with pytest.raises(InvalidDestinationError):
            session.unsubscribe('sub')
    finally:
        connection.close()


def test_durable_topic_change(broker_url):

    connection, session = open_session(broker_url, client_id='durable')

    try:
        consumer = session.create_durable_subscriber(Topic('T'), 'sub')
        consumer.close()

        send(session, Topic('T'), 'old topic')

        # Resubscribing under the same name to another topic starts over.

        consumer = session.create_durable_subscriber(Topic('U'), 'sub')
        assert consumer.receive(10) is None
    finally:
        connection.close()


def test_commit_requires_transaction(broker_url):

    connection, session = open_session(broker_url)

    try:
        with pytest.raises(IllegalStateError):
            session.commit()

        with pytest.raises(IllegalStateError):
            session.rollback()
    finally:
        connection.close()


def test_close_requeues_unsettled(broker_url):

    connection, session = open_session(broker_url, ack_mode=AckMode.CLIENT_ACKNOWLEDGE)

    try:
        send(session, Queue('Q'), 'one')
        send(session, Queue('Q'), 'two')

        consumer = session.create_consumer(Queue('Q'))
        assert consumer.receive(10).text == 'one'
        assert consumer.receive(10).text == 'two'

        session.close()

        assert connection.broker.depth('Q') == 2

        session = connection.create_session(False, AckMode.AUTO_ACKNOWLEDGE)
        consumer = session.create_consumer(Queue('Q'))

        # Order is kept on redelivery.

        received = consumer.receive(10)
        assert received.text == 'one'
        assert received.redelivered is True
        assert consumer.receive(10).text == 'two'
    finally:
        connection.close()


def test_closed_objects(broker_url):

    connection, session = open_session(broker_url)

    consumer = session.create_consumer(Queue('Q'))
    producer = session.create_producer(DeliveryMode.PERSISTENT, 4, 0)

    consumer.close()
    producer.close()

    with pytest.raises(IllegalStateError):
        consumer.receive(0)

    with pytest.raises(IllegalStateError):
        producer.send(Queue('Q'), TextMessage('late'))

    connection.close()

    assert connection.is_open is False

    with pytest.raises(IllegalStateError):
        connection.start()

    # Closing twice is harmless.
    connection.close()


def test_closed_consumers_leave_session(broker_url):

    connection, session = open_session(broker_url)

    try:
        kept = session.create_consumer(Queue('Q'))
        transient = session.create_consumer(Topic('T'))

        transient.close()
        transient.close()

        assert session._consumers == [kept]

        session.close()

        assert kept.closed
        assert session._consumers == []
    finally:
        connection.close()


def test_empty_destination_names(broker_url):

    connection, session = open_session(broker_url)

    try:
        with pytest.raises(InvalidDestinationError):
            session.create_queue('')

        with pytest.raises(InvalidDestinationError):
            session.create_topic('')
    finally:
        connection.close()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
