""" The :class:`Library` is the imperative surface intended for a keyword
    dispatcher: every broker operation is a single method call that returns
    a value or raises. One instance holds at most one live connection.
"""

import logging

from . import config
from .connection import Connection
from .errors import ConnectionAlreadyExists, NotConnected


logger = logging.getLogger(__name__)


class Library:
    """ A :class:`Library` instance owns at most one
        :class:`brokerlib.connection.Connection`. Keyword arguments are
        :class:`brokerlib.config.Settings`; with ``connect=True`` the
        instance connects, initializes the default session, and starts
        delivery immediately.

        Typical use::

            library = brokerlib.Library(url='memory://example')
            library.connect_and_start()
            library.create_text_message('Hello world!')
            library.send_to_queue('Q')
            library.receive_from_queue('Q', 10000)
            assert library.get_text() == 'Hello world!'
            library.close()
    """

    def __init__(self, **settings):

        self.settings = config.Settings(**settings)
        self.connection = None

        if self.settings.connect:
            self.connect_and_start()


    def __repr__(self):
        return 'Library(%r, %r)' % (self.settings, self.connection)


    def _connection(self, operation):

        connection = self.connection

        if connection is None:
            raise NotConnected(operation + ': not connected')

        return connection


    def _session(self, operation):
        return self._connection(operation).require_session(operation)


    ### Connection.

    def connect(self, url=None, username=None, password=None, provider=None):
        """ Open the connection. Arguments left as None fall back to the
            instance settings. Raises :class:`ConnectionAlreadyExists` if
            a connection is already live.
        """

        if self.connection is not None:
            raise ConnectionAlreadyExists('connect: a connection already exists, close it first')

        settings = self.settings

        if url is None:
            url = settings.url
        if username is None:
            username = settings.username
        if password is None:
            password = settings.password
        if provider is None:
            provider = settings.provider

        self.connection = Connection(provider, url, username, password)
        logger.info('connected to %s', url or provider or config.PROVIDER)


    def connect_and_start(self, url=None, username=None, password=None, provider=None):
        """ Connect, apply the configured client id, initialize the default
            session, and start delivery if the settings allow it.
        """

        self.connect(url, username, password, provider)

        settings = self.settings

        if settings.client_id is not None:
            self.set_client_id(settings.client_id)

        self.initialize_session(settings.transacted, settings.type)

        if settings.start:
            self.start()


    def set_client_id(self, client_id):
        self._connection('set client id').client_id = client_id


    def get_client_id(self):
        return self._connection('get client id').client_id


    def start(self):
        self._connection('start').start()


    def stop(self):
        self._connection('stop').stop()


    def close(self):
        """ Close the connection and its session. Afterwards :func:`connect`
            may be called again.
        """

        connection = self._connection('close')
        self.connection = None
        connection.close()
        logger.info('connection closed')


    ### Session.

    def initialize_session(self, transacted=False, type=None):
        """ Replace the session. *type* is the acknowledgment mode, either
            its symbolic name or its numeric value.
        """

        session = self._connection('initialize session').initialize_session(transacted, type)
        logger.info('session initialized: %r', session)


    def close_session(self):
        self._connection('close session').close_session()


    def commit(self):
        self._session('commit').commit()


    def rollback(self):
        self._session('rollback').rollback()


    def acknowledge(self):
        self._session('acknowledge').acknowledge()


    ### Message creation and body access.

    def create_text_message(self, body):
        self._session('create text message').create_text_message(body)


    def create_bytes_message(self, text, charset='UTF-8'):
        count = self._session('create bytes message').create_bytes_message(text, charset)
        logger.info('%d bytes written to message', count)
        return count


    def create_bytes_message_from_file(self, file):
        return self._session('create bytes message from file').create_bytes_message_from_file(file)


    def get_text(self):
        return self._session('get text').slot.get_text()


    def get_bytes_as_string(self, charset='UTF-8'):
        return self._session('get bytes as string').slot.get_bytes_as_string(charset)


    def write_bytes_to_file(self, file, append=False):
        return self._session('write bytes to file').slot.write_bytes_to(file, append)


    ### Message headers and properties.

    def set_type(self, type):
        self._session('set type').slot.set_type(type)


    def get_type(self):
        return self._session('get type').slot.get_type()


    def set_correlation_id(self, correlation_id):
        self._session('set correlation id').slot.set_correlation_id(correlation_id)


    def get_correlation_id(self):
        return self._session('get correlation id').slot.get_correlation_id()


    def set_reply_to_queue(self, queue):
        self._session('set reply to queue').set_reply_to_queue(queue)


    def get_reply_to_queue(self):
        return self._session('get reply to queue').get_reply_to_queue()


    def set_reply_to_topic(self, topic):
        self._session('set reply to topic').set_reply_to_topic(topic)


    def get_reply_to_topic(self):
        return self._session('get reply to topic').get_reply_to_topic()


    def set_string_property(self, name, value):
        self._session('set string property').slot.set_string_property(name, value)
        logger.info('%s=%s', name, value)


    def get_string_property(self, name):
        value = self._session('get string property').slot.get_string_property(name)
        logger.info('%s=%s', name, value)
        return value


    def get_message_id(self):
        message_id = self._session('get message id').slot.get_message_id()
        logger.info('MessageId=%s', message_id)
        return message_id


    def get_delivery_mode(self):
        return self._session('get delivery mode').slot.get_delivery_mode()


    def get_priority(self):
        return self._session('get priority').slot.get_priority()


    def get_expiration(self):
        return self._session('get expiration').slot.get_expiration()


    def get_redelivered(self):
        return self._session('get redelivered').slot.get_redelivered()


    ### Producer.

    def initialize_producer(self, delivery_mode=None, priority=None, time_to_live=None):
        """ Replace the producer. Arguments left out keep their current
            values; they do not reset to the defaults.
        """

        self._session('initialize producer').initialize_producer(delivery_mode, priority, time_to_live)


    def set_producer_delivery_mode(self, delivery_mode):
        self._session('set producer delivery mode').producer.set_delivery_mode(delivery_mode)


    def get_producer_delivery_mode(self):
        return self._session('get producer delivery mode').producer.delivery_mode


    def set_producer_priority(self, priority):
        self._session('set producer priority').producer.set_priority(priority)


    def get_producer_priority(self):
        return self._session('get producer priority').producer.priority


    def set_producer_time_to_live(self, time_to_live):
        self._session('set producer time to live').producer.set_time_to_live(time_to_live)


    def get_producer_time_to_live(self):
        return self._session('get producer time to live').producer.time_to_live


    def send_to_queue(self, queue):
        message_id = self._session('send to queue').send_to_queue(queue)
        logger.info('sent %s to queue %s', message_id, queue)


    def send_to_topic(self, topic):
        message_id = self._session('send to topic').send_to_topic(topic)
        logger.info('sent %s to topic %s', message_id, topic)


    ### Consumers and receiving.

    def initialize_queue_consumer(self, queue):
        self._session('initialize queue consumer').initialize_queue_consumer(queue)


    def initialize_topic_consumer(self, topic):
        self._session('initialize topic consumer').initialize_topic_consumer(topic)


    def initialize_durable_subscriber(self, topic, name):
        self._session('initialize durable subscriber').initialize_durable_subscriber(topic, name)


    def subscribe(self, topic):
        self._session('subscribe').initialize_topic_consumer(topic)


    def subscribe_durable(self, topic, name):
        self._session('subscribe durable').initialize_durable_subscriber(topic, name)


    def unsubscribe(self):
        self._session('unsubscribe').unsubscribe()


    def unsubscribe_durable(self, name):
        self._session('unsubscribe durable').unsubscribe_durable(name)


    def receive(self, timeout=None):
        """ Receive through the consumer set up by one of the initialize or
            subscribe methods. *timeout* is in milliseconds.
        """

        self._session('receive').receive(_milliseconds(timeout))


    def receive_from_topic(self, timeout=None):
        self._session('receive from topic').receive(_milliseconds(timeout))


    def receive_once_from_queue(self, queue, timeout=None):
        """ Receive from *queue* through a transient consumer, leaving any
            existing consumer untouched. *timeout* is in milliseconds.
        """

        self._session('receive once from queue').receive_once_from_queue(queue, _milliseconds(timeout))


    def receive_from_queue(self, queue, timeout=None):
        self._session('receive from queue').receive_once_from_queue(queue, _milliseconds(timeout))


    ### Browsing and draining.

    def queue_depth(self, queue):
        depth = self._session('queue depth').queue_depth(queue)
        logger.info('%s depth is %d', queue, depth)
        return depth


    def clear(self):
        """ Consume every available message from the current consumer's
            destination. Returns the number of messages consumed.
        """

        count = self._session('clear').clear()
        logger.info('%d messages consumed', count)
        return count


    def clear_queue(self, queue):
        count = self._session('clear queue').clear_queue(queue)
        logger.info('%s cleared, %d messages consumed', queue, count)
        return count


    def clear_topic(self):
        count = self._session('clear topic').clear()
        logger.info('topic cleared, %d messages consumed', count)
        return count


# end of class Library


def _milliseconds(timeout):

    if timeout is None:
        return None

    return int(timeout)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
