""" The :class:`Producer` manages the single outbound channel of a session.
"""

import logging

from . import config
from .enums import decode_delivery_mode, encode_delivery_mode


logger = logging.getLogger(__name__)


def _check_priority(priority):

    priority = int(priority)

    if priority < 0 or priority > 9:
        raise ValueError('priority must be between 0 and 9: ' + repr(priority))

    return priority


def _check_time_to_live(time_to_live):

    time_to_live = int(time_to_live)

    if time_to_live < 0:
        raise ValueError('time to live must not be negative: ' + repr(time_to_live))

    return time_to_live


class Producer:
    """ A single anonymous producer shared by every send in a session; the
        destination is supplied with each :func:`send`, never bound at
        creation time. The provider producer is created lazily, on the
        first send or on an explicit :func:`initialize`, and lives until
        the session closes or the producer is reinitialized.
    """

    def __init__(self, session):

        self.session = session
        self.provider = None

        self._delivery_mode = decode_delivery_mode('PERSISTENT')
        self._priority = config.DEFAULT_PRIORITY
        self._time_to_live = config.DEFAULT_TIME_TO_LIVE


    def initialize(self):
        """ Create the provider producer with the current defaults if it
            does not already exist. Returns the provider producer.
        """

        if self.provider is None:
            self.provider = self.session.create_producer(self._delivery_mode, self._priority, self._time_to_live)
            logger.debug('producer created: %s, priority %d, time to live %d', self._delivery_mode.name, self._priority, self._time_to_live)

        return self.provider


    def reinitialize(self, delivery_mode=None, priority=None, time_to_live=None):
        """ Close the current provider producer and create a new one. Any
            argument left as None keeps its present value.
        """

        if delivery_mode is not None:
            delivery_mode = decode_delivery_mode(delivery_mode)
        if priority is not None:
            priority = _check_priority(priority)
        if time_to_live is not None:
            time_to_live = _check_time_to_live(time_to_live)

        self.close()

        if delivery_mode is not None:
            self._delivery_mode = delivery_mode
        if priority is not None:
            self._priority = priority
        if time_to_live is not None:
            self._time_to_live = time_to_live

        return self.initialize()


    def send(self, destination, message):
        provider = self.initialize()
        provider.send(destination, message)
        logger.debug('sent %s to %r', message.message_id, destination)


    def close(self):
        provider = self.provider

        if provider is not None:
            self.provider = None
            provider.close()


    @property
    def delivery_mode(self):
        """ The delivery mode of subsequent sends, as its symbolic name.
        """

        return encode_delivery_mode(self._delivery_mode)


    def set_delivery_mode(self, delivery_mode):
        delivery_mode = decode_delivery_mode(delivery_mode)
        self._delivery_mode = delivery_mode

        if self.provider is not None:
            self.provider.delivery_mode = delivery_mode


    @property
    def priority(self):
        return self._priority


    def set_priority(self, priority):
        priority = _check_priority(priority)
        self._priority = priority

        if self.provider is not None:
            self.provider.priority = priority


    @property
    def time_to_live(self):
        return self._time_to_live


    def set_time_to_live(self, time_to_live):
        time_to_live = _check_time_to_live(time_to_live)
        self._time_to_live = time_to_live

        if self.provider is not None:
            self.provider.time_to_live = time_to_live


# end of class Producer


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
