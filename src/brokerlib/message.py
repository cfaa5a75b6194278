""" Messages, destination handles, and the single-message :class:`Slot`
    held by every session.
"""

import copy
import logging

from . import bytestream
from .enums import DeliveryMode, DestinationKind, encode_delivery_mode
from .errors import NoCurrentMessage, WrongMessageKind


logger = logging.getLogger(__name__)


class Destination:
    """ A handle for a named queue or topic. Handles are created by a
        provider session and cached by :class:`brokerlib.destinations.Cache`;
        identity, not equality, is what the cache guarantees.
    """

    kind = None

    def __init__(self, name):
        self.name = name


    def __eq__(self, other):
        try:
            return self.kind == other.kind and self.name == other.name
        except AttributeError:
            return NotImplemented


    def __hash__(self):
        return hash((self.kind, self.name))


    def __repr__(self):
        return '%s://%s' % (self.kind.value, self.name)


class Queue(Destination):
    kind = DestinationKind.QUEUE


class Topic(Destination):
    kind = DestinationKind.TOPIC


def destination(kind, name):
    """ Return a new, uncached :class:`Destination` of the requested *kind*.
    """

    if kind == DestinationKind.QUEUE:
        return Queue(name)
    if kind == DestinationKind.TOPIC:
        return Topic(name)

    raise ValueError('unknown destination kind: ' + repr(kind))



class Message:
    """ Base class for the message kinds. The header attributes mirror the
        metadata a broker assigns or carries with every message; the ones
        stamped at send time (*message_id*, *delivery_mode*, *priority*,
        *expiration*, *timestamp*) are None or zero until the message is
        sent or received.

        :ivar properties: arbitrary string properties.
        :ivar redelivered: True if the broker delivered this message before.
    """

    kind = None

    def __init__(self):

        self.type = None
        self.correlation_id = None
        self.reply_to = None
        self.message_id = None
        self.delivery_mode = DeliveryMode.PERSISTENT
        self.priority = None
        self.expiration = 0
        self.timestamp = None
        self.redelivered = False
        self.destination = None
        self.properties = dict()

        # Set by a provider on a received message; acknowledging an
        # outbound message is a no-op.
        self._acknowledger = None


    def __repr__(self):
        return '%s(id=%r, type=%r, correlation_id=%r)' % (self.__class__.__name__, self.message_id, self.type, self.correlation_id)


    def acknowledge(self):
        """ Acknowledge this message. Meaningful only for a message received
            in a CLIENT_ACKNOWLEDGE session.
        """

        if self._acknowledger is not None:
            self._acknowledger(self)


    def copy(self):
        """ Return an independent copy suitable for handing to a broker or to
            a second consumer. The acknowledgment hook is not carried over.
        """

        duplicate = copy.copy(self)
        duplicate.properties = dict(self.properties)
        duplicate._acknowledger = None
        return duplicate


# end of class Message



class TextMessage(Message):
    kind = 'text'

    def __init__(self, text=None):
        Message.__init__(self)
        self.text = text


class BytesMessage(Message):
    kind = 'bytes'

    def __init__(self, data=b''):
        Message.__init__(self)
        self.data = bytes(data)


    @property
    def body_length(self):
        return len(self.data)



class Slot:
    """ Holds at most one current message: either one freshly created for
        sending, or one freshly received. Every accessor fails with
        :class:`NoCurrentMessage` when the slot is empty, and the body
        accessors fail with :class:`WrongMessageKind` when the held message
        is not of the expected kind.
    """

    def __init__(self):
        self.message = None


    def set(self, message):
        self.message = message


    def clear(self):
        self.message = None


    def current(self, operation):
        """ Return the held message, raising :class:`NoCurrentMessage` with
            the *operation* name included if the slot is empty.
        """

        message = self.message

        if message is None:
            raise NoCurrentMessage(operation + ': no current message')

        return message


    def _expect(self, operation, expected):

        message = self.current(operation)

        if isinstance(message, expected):
            return message

        error = '%s: current message is %s, not %s' % (operation, message.kind, expected.kind)
        raise WrongMessageKind(error)


    ### Creation.

    def create_text(self, body):
        self.message = TextMessage(body)
        return self.message


    def create_bytes(self, data, charset=None):
        """ Replace the current message with a new bytes message. If *data*
            is a string it is encoded with *charset* (UTF-8 by default).
            Returns the number of bytes written to the message body.
        """

        self.message = None

        if isinstance(data, str):
            if charset is None:
                charset = 'utf-8'
            data = data.encode(charset)

        message = BytesMessage(data)
        self.message = message

        logger.debug('%d bytes written to message', message.body_length)
        return message.body_length


    def create_bytes_from_file(self, filename):
        """ Replace the current message with a new bytes message whose body
            is the full contents of *filename*. Returns the number of bytes
            read.
        """

        self.message = None
        data = bytestream.read_file(filename)
        self.message = BytesMessage(data)

        logger.info('%d bytes read from %s', len(data), filename)
        return len(data)


    ### Body access.

    def get_text(self):
        return self._expect('get text', TextMessage).text


    def get_bytes(self):
        return self._expect('get bytes', BytesMessage).data


    def get_bytes_as_string(self, charset='utf-8'):
        message = self._expect('get bytes as string', BytesMessage)
        return message.data.decode(charset)


    def write_bytes_to(self, filename, append=False):
        """ Write the body of the current bytes message to *filename*,
            returning the number of bytes written.
        """

        message = self._expect('write bytes', BytesMessage)
        count = bytestream.write_file(filename, message.data, append)

        logger.info('%d bytes written into %s', count, filename)
        return count


    ### Headers and properties.

    def set_type(self, type):
        self.current('set type').type = type


    def get_type(self):
        return self.current('get type').type


    def set_correlation_id(self, correlation_id):
        self.current('set correlation id').correlation_id = correlation_id


    def get_correlation_id(self):
        return self.current('get correlation id').correlation_id


    def set_reply_to(self, destination):
        self.current('set reply to').reply_to = destination


    def get_reply_to(self, kind):
        """ Return the name of the reply-to destination if it is of the
            requested *kind*; otherwise return None. A mismatch is expected
            and is not an error.
        """

        reply_to = self.current('get reply to ' + kind.value).reply_to

        if reply_to is None:
            return None

        if reply_to.kind != kind:
            logger.info('reply-to %r is not a %s, returning None', reply_to, kind.value)
            return None

        return reply_to.name


    def set_string_property(self, name, value):
        self.current('set string property ' + repr(name)).properties[name] = value


    def get_string_property(self, name):
        properties = self.current('get string property ' + repr(name)).properties

        try:
            value = properties[name]
        except KeyError:
            return None

        if value is None:
            return None

        return str(value)


    def get_delivery_mode(self):
        return encode_delivery_mode(self.current('get delivery mode').delivery_mode)


    def get_priority(self):
        return self.current('get priority').priority


    def get_expiration(self):
        return self.current('get expiration').expiration


    def get_redelivered(self):
        return self.current('get redelivered').redelivered


    def get_message_id(self):
        return self.current('get message id').message_id


    def acknowledge(self):
        self.current('acknowledge').acknowledge()


# end of class Slot


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
