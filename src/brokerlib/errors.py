""" Exceptions raised by :mod:`brokerlib`. Faults raised by a provider
    (broker unreachable, invalid destination, and so on) are not translated
    into these classes; they propagate exactly as the provider raised them.
"""


class BrokerLibError(Exception):
    """Base class for all brokerlib errors."""


class ConnectionAlreadyExists(BrokerLibError):
    """connect() was called while a connection is still live."""


class NotConnected(BrokerLibError):
    """An operation requires a connection, but there is none."""


class SessionNotInitialized(BrokerLibError):
    """An operation requires a session, but none has been initialized."""


class NoCurrentMessage(BrokerLibError):
    """A message accessor was invoked with an empty message slot."""


class WrongMessageKind(BrokerLibError):
    """The current message is not of the kind the accessor expects."""


class NoMessageAvailable(BrokerLibError, TimeoutError):
    """A receive timed out without a message. Callers may retry."""


class InvalidEnumeration(BrokerLibError, ValueError):
    """ An acknowledgment mode or delivery mode could not be decoded. The
        offending *value* and the *field* being decoded are retained as
        attributes.
    """

    def __init__(self, field, value):
        self.field = field
        self.value = value
        BrokerLibError.__init__(self, 'invalid %s: %r' % (field, value))


class InvalidSessionMode(BrokerLibError, ValueError):
    """A transacted session was requested with a non-transacted ack mode."""


class ConsumerNotBound(BrokerLibError):
    """A receive via the long-lived consumer was attempted before binding."""


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
