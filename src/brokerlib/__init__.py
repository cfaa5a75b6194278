""" Python implementation of brokerlib. This is a test-automation adapter
    exposing message broker operations (connect, send, receive, acknowledge,
    browse, drain) as simple imperative calls.
"""

__version__ = '1.0.0'

# Utility components.

from . import config
from . import errors
from . import enums
from . import bytestream

# Submodules used by multiple other components.

from . import message
from . import providers
from . import destinations
from . import producer
from . import consumer
from . import session
from . import connection

# Primary public-facing interfaces.

from .connection import Connection
from .session import Session
from .library import Library
from .errors import (
    BrokerLibError,
    ConnectionAlreadyExists,
    ConsumerNotBound,
    InvalidEnumeration,
    InvalidSessionMode,
    NoCurrentMessage,
    NoMessageAvailable,
    NotConnected,
    SessionNotInitialized,
    WrongMessageKind,
)

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
