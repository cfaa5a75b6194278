""" The :class:`Connection` owns one provider connection and the single
    :class:`brokerlib.session.Session` created on it.
"""

import enum
import logging

from . import providers
from .errors import NotConnected, SessionNotInitialized
from .session import Session


logger = logging.getLogger(__name__)


class State(enum.Enum):
    STOPPED = 'stopped'
    STARTED = 'started'


class Connection:
    """ A broker connection. Message delivery is :func:`start`-ed and
        :func:`stop`-ed explicitly; both are idempotent. The session is
        (re)built by :func:`initialize_session`, with delivery paused while
        the old session is torn down and the new one constructed, and
        resumed afterwards if the connection had been started.

        :ivar provider: the provider connection.
        :ivar state: a :class:`State` value.
    """

    def __init__(self, provider=None, url=None, username=None, password=None):

        self.provider = providers.connect(provider, url, username, password)
        self.state = State.STOPPED
        self.session = None

        logger.debug('connection opened: %s', url)


    def __repr__(self):
        if self.provider is None:
            return 'Connection(closed)'
        return 'Connection(%s, client_id=%r)' % (self.state.value, self.provider.client_id)


    def _provider(self, operation):

        provider = self.provider

        if provider is None:
            raise NotConnected(operation + ': connection is closed')

        return provider


    @property
    def started(self):
        return self.state == State.STARTED


    @property
    def client_id(self):
        return self._provider('get client id').client_id


    @client_id.setter
    def client_id(self, client_id):

        # The ordering constraint (before start or any session use) is the
        # provider's to enforce.

        self._provider('set client id').client_id = client_id


    def start(self):

        provider = self._provider('start')

        if self.state == State.STARTED:
            return

        provider.start()
        self.state = State.STARTED
        logger.debug('connection started')


    def stop(self):

        provider = self._provider('stop')

        if self.state == State.STOPPED:
            return

        provider.stop()
        self.state = State.STOPPED
        logger.debug('connection stopped')


    def initialize_session(self, transacted=False, ack_mode=None):
        """ Replace the current session, if any, with a new one. Returns the
            new :class:`brokerlib.session.Session`.
        """

        provider = self._provider('initialize session')

        was_started = self.started
        self.stop()

        try:
            session = self.session
            if session is None:
                session = Session(provider, transacted, ack_mode)
                self.session = session
            else:
                session.initialize(transacted, ack_mode)
        finally:
            if was_started:
                self.start()

        return session


    def close_session(self):
        """ Close the current session without creating a replacement.
        """

        self._provider('close session')

        session = self.session

        if session is None:
            return

        was_started = self.started
        self.stop()

        try:
            self.session = None
            session.close()
        finally:
            if was_started:
                self.start()


    def require_session(self, operation):

        session = self.session

        if session is None or session.closed:
            raise SessionNotInitialized(operation + ': no session, initialize a session first')

        return session


    def close(self):
        """ Stop delivery, close the session, and release the provider
            connection. Calling this again is a no-op.
        """

        provider = self.provider

        if provider is None:
            return

        self.stop()

        session = self.session
        if session is not None:
            self.session = None
            session.close()

        self.provider = None
        provider.close()
        logger.debug('connection closed')


# end of class Connection


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
