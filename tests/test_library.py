import pytest

import brokerlib
from brokerlib.errors import (
    ConnectionAlreadyExists,
    ConsumerNotBound,
    NoCurrentMessage,
    NoMessageAvailable,
    NotConnected,
    SessionNotInitialized,
)


def test_hello_world(library):

    library.create_text_message('Hello world!')
    library.send_to_queue('Q')
    library.receive_from_queue('Q', 10000)

    assert library.get_text() == 'Hello world!'


def test_topic_subscription(library):

    library.subscribe('T')
    library.create_text_message('Ping')
    library.send_to_topic('T')
    library.receive_from_topic(10000)

    assert library.get_text() == 'Ping'

    library.unsubscribe()

    with pytest.raises(ConsumerNotBound):
        library.receive(10)


def test_transacted_drain(broker_url):

    library = brokerlib.Library(url=broker_url, transacted=True, connect=True)

    try:
        for body in ('one', 'two', 'three'):
            library.create_text_message(body)
            library.send_to_queue('Q')

        library.commit()
        assert library.queue_depth('Q') == 3

        provider = library.connection.session.provider
        before = provider.commits

        assert library.clear_queue('Q') == 3
        assert provider.commits - before == 3
        assert library.queue_depth('Q') == 0
    finally:
        library.close()


def test_single_connection(library, broker_url):

    with pytest.raises(ConnectionAlreadyExists):
        library.connect(broker_url)

    library.close()
    assert library.connection is None

    library.connect_and_start()
    library.create_text_message('again')
    library.send_to_queue('Q')
    assert library.queue_depth('Q') == 1


def test_not_connected(broker_url):

    library = brokerlib.Library(url=broker_url)

    with pytest.raises(NotConnected):
        library.create_text_message('nowhere')

    with pytest.raises(NotConnected):
        library.start()

    with pytest.raises(NotConnected):
        library.close()


def test_session_closed(library):

    library.close_session()

    with pytest.raises(SessionNotInitialized):
        library.create_text_message('nowhere')

    library.initialize_session()
    library.create_text_message('somewhere')
    assert library.get_text() == 'somewhere'


def test_unknown_setting():

    with pytest.raises(KeyError):
        brokerlib.Library(colour='blue')


def test_settings_applied(broker_url):

    library = brokerlib.Library(url=broker_url, client_id='robot', type='CLIENT_ACKNOWLEDGE', start=False, connect=True)

    try:
        assert library.get_client_id() == 'robot'
        assert library.connection.started is False

        session = library.connection.session
        assert session.type == 'CLIENT_ACKNOWLEDGE'
        assert session.transacted is False
    finally:
        library.close()


def test_durable_subscription(broker_url):

    library = brokerlib.Library(url=broker_url, client_id='durable', connect=True)

    try:
        library.subscribe_durable('T', 'sub')
        library.unsubscribe()

        # The subscription keeps collecting while nobody listens.

        library.create_text_message('while away')
        library.send_to_topic('T')

        library.subscribe_durable('T', 'sub')
        library.receive(10000)
        assert library.get_text() == 'while away'

        library.unsubscribe_durable('sub')

        library.create_text_message('dropped')
        library.send_to_topic('T')

        library.initialize_durable_subscriber('T', 'sub')

        with pytest.raises(NoMessageAvailable):
            library.receive(10)
    finally:
        library.close()


def test_headers(library):

    library.create_text_message('request')
    library.set_type('greeting')
    library.set_correlation_id('1234')
    library.set_string_property('color', 'blue')
    library.set_reply_to_topic('answers')

    library.initialize_producer('NON_PERSISTENT', 6, 0)
    library.send_to_queue('Q')

    message_id = library.get_message_id()
    assert message_id is not None

    library.receive_once_from_queue('Q', 10000)

    assert library.get_message_id() == message_id
    assert library.get_type() == 'greeting'
    assert library.get_correlation_id() == '1234'
    assert library.get_string_property('color') == 'blue'
    assert library.get_string_property('size') is None
    assert library.get_reply_to_topic() == 'answers'
    assert library.get_reply_to_queue() is None
    assert library.get_delivery_mode() == 'NON_PERSISTENT'
    assert library.get_priority() == 6
    assert library.get_expiration() == 0
    assert library.get_redelivered() is False


def test_producer_settings(library):

    library.set_producer_delivery_mode('NON_PERSISTENT')
    library.set_producer_priority(8)
    library.set_producer_time_to_live(5000)

    assert library.get_producer_delivery_mode() == 'NON_PERSISTENT'
    assert library.get_producer_priority() == 8
    assert library.get_producer_time_to_live() == 5000


def test_bytes_message(library, tmp_path):

    target = tmp_path / 'received.txt'

    assert library.create_bytes_message('Grüße') == 7
    library.send_to_queue('Q')
    library.receive_from_queue('Q', 10000)

    assert library.get_bytes_as_string() == 'Grüße'
    assert library.write_bytes_to_file(str(target)) == 7
    assert target.read_text(encoding='utf-8') == 'Grüße'

    with pytest.raises(brokerlib.WrongMessageKind):
        library.get_text()


def test_bytes_message_from_file(library, tmp_path):

    source = tmp_path / 'source.bin'
    source.write_bytes(b'payload')

    assert library.create_bytes_message_from_file(str(source)) == 7
    library.send_to_queue('Q')
    library.receive_once_from_queue('Q', 10000)

    assert library.get_bytes_as_string('ascii') == 'payload'


def test_clear_topic(library):

    library.initialize_topic_consumer('T')

    for body in ('one', 'two'):
        library.create_text_message(body)
        library.send_to_topic('T')

    assert library.clear_topic() == 2
    assert library.clear() == 0


def test_rollback_and_acknowledge(broker_url):

    library = brokerlib.Library(url=broker_url, type='CLIENT_ACKNOWLEDGE', connect=True)

    try:
        library.create_text_message('one')
        library.send_to_queue('Q')
        library.receive_once_from_queue('Q', 10000)
        library.acknowledge()

        library.initialize_session(True)
        library.create_text_message('two')
        library.send_to_queue('Q')
        library.rollback()
        assert library.queue_depth('Q') == 0
    finally:
        library.close()


def test_receive_discards_current_message(library):

    library.create_text_message('current')

    with pytest.raises(NoMessageAvailable):
        library.receive_from_queue('Q', 10)

    with pytest.raises(NoCurrentMessage):
        library.get_text()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
