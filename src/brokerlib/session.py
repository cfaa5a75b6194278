""" The :class:`Session` ties together the pieces that operate against a
    single provider session: the destination cache, the current message
    slot, the shared producer, and the consumer binding. It also owns the
    acknowledgment policy applied to consumed messages.

    A session is not safe for concurrent use. Operations are expected to
    arrive from one caller, one at a time, and are executed in call order.
"""

import logging

from .consumer import Consumers
from .destinations import Cache
from .enums import AckMode, DestinationKind, decode_ack_mode, encode_ack_mode
from .errors import InvalidSessionMode
from .message import Slot
from .producer import Producer


logger = logging.getLogger(__name__)

untruths = set((None, False, 0, '0', 'false', 'f', 'no', 'n', 'off', 'disable', ''))


def truth(value):
    """ Interpret *value* as a boolean, accepting the string forms that
        arrive from keyword-driven test data.
    """

    if isinstance(value, str):
        value = value.strip().lower()

    return value not in untruths


def session_mode(transacted, ack_mode=None):
    """ Resolve the (transacted, ack_mode) pair for a new session. A
        transacted session always uses SESSION_TRANSACTED; asking for a
        transacted session with any other explicit acknowledgment mode is
        an error. Requesting SESSION_TRANSACTED implies a transacted session.
    """

    transacted = truth(transacted)

    if ack_mode is None:
        if transacted:
            ack_mode = AckMode.SESSION_TRANSACTED
        else:
            ack_mode = AckMode.AUTO_ACKNOWLEDGE
    else:
        ack_mode = decode_ack_mode(ack_mode)

    if ack_mode == AckMode.SESSION_TRANSACTED:
        transacted = True
    elif transacted:
        error = 'a transacted session cannot use %s' % (ack_mode.name)
        raise InvalidSessionMode(error)

    return transacted, ack_mode



class Session:
    """ One broker session and everything it owns. Construction creates the
        provider session and the default producer; :func:`initialize` tears
        everything down and builds it afresh; :func:`close` releases it all.

        :ivar slot: the :class:`brokerlib.message.Slot` holding the current
            message.
        :ivar destinations: the :class:`brokerlib.destinations.Cache` of
            queue and topic handles.
    """

    def __init__(self, connection, transacted=False, ack_mode=None):

        self.connection = connection
        self.provider = None
        self.transacted = False
        self.ack_mode = None

        self.slot = Slot()
        self.destinations = None
        self.producer = None
        self.consumers = None

        self.initialize(transacted, ack_mode)


    def __repr__(self):
        return 'Session(transacted=%r, ack_mode=%s)' % (self.transacted, self.ack_mode.name)


    def initialize(self, transacted=False, ack_mode=None):
        """ Close any existing producer, consumer, and provider session,
            then construct a fresh provider session with a default producer.
        """

        transacted, ack_mode = session_mode(transacted, ack_mode)

        self.close()

        provider = self.connection.create_session(transacted, ack_mode)

        self.provider = provider
        self.transacted = transacted
        self.ack_mode = ack_mode
        self.destinations = Cache(provider)
        self.producer = Producer(provider)
        self.consumers = Consumers(provider, self.settle)

        self.producer.initialize()

        logger.debug('session initialized: transacted=%r, %s', transacted, ack_mode.name)


    def close(self):
        """ Close the consumer, the producer, and the provider session, in
            that order, then forget the cached destinations and the current
            message. Any piece already gone is skipped, so calling this more
            than once is harmless.
        """

        consumers = self.consumers
        if consumers is not None:
            self.consumers = None
            consumers.close()

        producer = self.producer
        if producer is not None:
            self.producer = None
            producer.close()

        provider = self.provider
        if provider is not None:
            self.provider = None
            provider.close()
            logger.debug('session closed')

        destinations = self.destinations
        if destinations is not None:
            self.destinations = None
            destinations.clear()

        self.slot.clear()


    @property
    def closed(self):
        return self.provider is None


    ### Settlement.

    def settle(self, message):
        """ Apply the acknowledgment policy to a consumed *message*: commit
            a transacted session, acknowledge in CLIENT_ACKNOWLEDGE mode,
            and do nothing otherwise since the provider already settled it
            on delivery.
        """

        if self.transacted:
            self.commit()
        elif self.ack_mode == AckMode.CLIENT_ACKNOWLEDGE:
            message.acknowledge()


    def commit(self):
        self.provider.commit()


    def rollback(self):
        self.provider.rollback()


    def acknowledge(self):
        self.slot.acknowledge()


    @property
    def type(self):
        """ The acknowledgment mode as its symbolic name.
        """

        return encode_ack_mode(self.ack_mode)


    ### Messages.

    def create_text_message(self, body):
        self.slot.create_text(body)


    def create_bytes_message(self, data, charset=None):
        return self.slot.create_bytes(data, charset)


    def create_bytes_message_from_file(self, filename):
        return self.slot.create_bytes_from_file(filename)


    def set_reply_to_queue(self, name):
        self.slot.current('set reply to queue')
        self.slot.set_reply_to(self.destinations.queue(name))


    def get_reply_to_queue(self):
        return self.slot.get_reply_to(DestinationKind.QUEUE)


    def set_reply_to_topic(self, name):
        self.slot.current('set reply to topic')
        self.slot.set_reply_to(self.destinations.topic(name))


    def get_reply_to_topic(self):
        return self.slot.get_reply_to(DestinationKind.TOPIC)


    ### Producer.

    def initialize_producer(self, delivery_mode=None, priority=None, time_to_live=None):
        """ Replace the provider producer. Arguments left as None keep the
            values already in effect rather than reverting to the defaults
            in :mod:`brokerlib.config`; a fresh session is the way back to
            those.
        """

        self.producer.reinitialize(delivery_mode, priority, time_to_live)


    def send_to_queue(self, name):
        message = self.slot.current('send to queue ' + repr(name))
        self.producer.send(self.destinations.queue(name), message)
        return message.message_id


    def send_to_topic(self, name):
        message = self.slot.current('send to topic ' + repr(name))
        self.producer.send(self.destinations.topic(name), message)
        return message.message_id


    ### Consumers.

    def initialize_queue_consumer(self, name):
        self.consumers.bind(self.destinations.queue(name))


    def initialize_topic_consumer(self, name):
        self.consumers.bind(self.destinations.topic(name))


    def initialize_durable_subscriber(self, topic, name):
        self.consumers.bind(self.destinations.topic(topic), name)


    def unsubscribe(self):
        self.consumers.unbind()


    def unsubscribe_durable(self, name):
        self.consumers.unsubscribe(name)


    def receive(self, timeout=None):
        """ Receive through the bound consumer into the message slot. The
            previous message is discarded even if nothing arrives.
        """

        self.slot.clear()
        message = self.consumers.receive(timeout)
        self.slot.set(message)
        return message


    def receive_once_from_queue(self, name, timeout=None):
        """ Receive one message from the queue *name* through a transient
            consumer, settle it, and place it in the message slot.
        """

        self.slot.clear()
        message = self.consumers.receive_once(self.destinations.queue(name), timeout)
        self.slot.set(message)
        return message


    def queue_depth(self, name):
        """ Count the messages waiting on the queue *name* without consuming
            them. The broker may add or remove messages at any moment, so
            the result is only a snapshot.
        """

        browser = self.provider.create_browser(self.destinations.queue(name))

        try:
            depth = browser.count()
        finally:
            browser.close()

        return depth


    def clear(self, timeout=None):
        """ Drain the bound consumer. Returns the number of messages consumed.
        """

        return self.consumers.drain(timeout)


    def clear_queue(self, name, timeout=None):
        """ Drain the queue *name* through a transient consumer. Returns the
            number of messages consumed.
        """

        return self.consumers.drain_destination(self.destinations.queue(name), timeout)


# end of class Session


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
