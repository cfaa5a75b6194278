""" Consumer management for a session: the single long-lived binding,
    transient single-use consumers, and the drain algorithm.
"""

import logging

from . import config
from .errors import ConsumerNotBound, NoMessageAvailable


logger = logging.getLogger(__name__)


class Binding:
    """ The long-lived consumer of a session, together with what it is bound
        to. *durable_name* is None for anything but a durable subscription.
    """

    def __init__(self, consumer, destination, durable_name=None):
        self.consumer = consumer
        self.destination = destination
        self.durable_name = durable_name


    def __repr__(self):
        if self.durable_name is None:
            return 'Binding(%r)' % (self.destination,)
        return 'Binding(%r, durable=%r)' % (self.destination, self.durable_name)


class Consumers:
    """ The :class:`Consumers` instance of a session is either unbound or
        bound to exactly one destination. Binding again closes the prior
        consumer before the new one is created.

        *settle* is invoked with every message consumed by
        :func:`receive_once` and by the drain methods; it is where the
        session applies its acknowledgment policy.
    """

    def __init__(self, session, settle):

        self.session = session
        self.settle = settle
        self.binding = None


    @property
    def bound(self):
        return self.binding is not None


    def bind(self, destination, durable_name=None):
        """ Bind to *destination*: a queue receiver, a topic subscriber, or,
            if a *durable_name* is given, a durable topic subscriber.
        """

        self.unbind()

        if durable_name is None:
            consumer = self.session.create_consumer(destination)
        else:
            consumer = self.session.create_durable_subscriber(destination, durable_name)

        self.binding = Binding(consumer, destination, durable_name)
        logger.debug('consumer bound: %r', self.binding)


    def unbind(self):
        """ Close the local consumer, if any. A durable subscription keeps
            its server-side state.
        """

        binding = self.binding

        if binding is None:
            return

        self.binding = None
        binding.consumer.close()
        logger.debug('consumer unbound: %r', binding)


    def unsubscribe(self, name):
        """ Close the local consumer and delete the durable subscription
            *name* on the broker.
        """

        self.unbind()
        self.session.unsubscribe(name)
        logger.debug('durable subscription %r deleted', name)


    def receive(self, timeout=None):
        """ Wait up to *timeout* milliseconds for a message on the bound
            consumer. Raises :class:`ConsumerNotBound` if nothing is bound,
            :class:`NoMessageAvailable` if the wait elapses.
        """

        if timeout is None:
            timeout = config.RECEIVE_TIMEOUT

        binding = self.binding

        if binding is None:
            raise ConsumerNotBound('receive: no consumer is bound, subscribe or initialize a consumer first')

        message = binding.consumer.receive(timeout)

        if message is None:
            raise NoMessageAvailable('receive from %r: no message available after %d ms' % (binding.destination, timeout))

        return message


    def receive_once(self, destination, timeout=None):
        """ Receive one message through a transient consumer on
            *destination*, leaving the long-lived binding untouched. The
            message is settled before it is returned; the transient consumer
            is always closed.
        """

        if timeout is None:
            timeout = config.RECEIVE_TIMEOUT

        consumer = self.session.create_consumer(destination)

        try:
            message = consumer.receive(timeout)
            if message is not None:
                self.settle(message)
        finally:
            consumer.close()

        if message is None:
            raise NoMessageAvailable('receive once from %r: no message available after %d ms' % (destination, timeout))

        return message


    def _drain(self, consumer, timeout):

        count = 0

        # No upper bound; a destination refilled faster than it drains
        # keeps this loop running.

        while True:
            message = consumer.receive(timeout)
            if message is None:
                break

            count += 1
            self.settle(message)

        return count


    def drain(self, timeout=None):
        """ Consume and settle every message available to the bound
            consumer, returning the count.
        """

        if timeout is None:
            timeout = config.DRAIN_TIMEOUT

        binding = self.binding

        if binding is None:
            raise ConsumerNotBound('clear: no consumer is bound, subscribe or initialize a consumer first')

        return self._drain(binding.consumer, timeout)


    def drain_destination(self, destination, timeout=None):
        """ Consume and settle every message available on *destination*
            through a transient consumer, returning the count.
        """

        if timeout is None:
            timeout = config.DRAIN_TIMEOUT

        consumer = self.session.create_consumer(destination)

        try:
            count = self._drain(consumer, timeout)
        finally:
            consumer.close()

        return count


    def close(self):
        self.unbind()


# end of class Consumers


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
