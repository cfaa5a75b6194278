""" Configuration defaults for brokerlib. Everything here can be overridden
    via environment variables at import time; the :class:`Settings` class
    collects the per-instance options accepted by :class:`brokerlib.Library`.
"""

import os


PROVIDER = os.environ.get('BROKERLIB_PROVIDER', 'amqp')

AMQP_HOST = os.environ.get('BROKERLIB_AMQP_HOST', 'localhost')
AMQP_PORT = int(os.environ.get('BROKERLIB_AMQP_PORT', '5672'))
AMQP_VHOST = os.environ.get('BROKERLIB_AMQP_VHOST', '/')
AMQP_TOPIC_EXCHANGE = os.environ.get('BROKERLIB_AMQP_TOPIC_EXCHANGE', 'amq.topic')

# Timeouts are in milliseconds, matching the units used by every receive
# operation in the public interface.

RECEIVE_TIMEOUT = int(os.environ.get('BROKERLIB_RECEIVE_TIMEOUT', '100'))
DRAIN_TIMEOUT = int(os.environ.get('BROKERLIB_DRAIN_TIMEOUT', '100'))

DEFAULT_PRIORITY = 4
DEFAULT_TIME_TO_LIVE = 0

BUFFER_SIZE = 8192


class Settings:
    """ Options for a :class:`brokerlib.Library` instance. The keyword
        arguments accepted here are the only valid settings; anything
        else raises a KeyError so that a misspelled option does not
        silently fall back to a default.

        :ivar connect: connect and start immediately upon construction.
        :ivar provider: provider name; None selects by URL or environment.
        :ivar url: broker URL handed to the provider.
        :ivar client_id: client identifier applied before the first start.
        :ivar start: whether :func:`Library.connect_and_start` starts the
            connection.
        :ivar transacted: whether the default session is transacted.
        :ivar type: acknowledgment mode of the default session; None picks
            SESSION_TRANSACTED or AUTO_ACKNOWLEDGE from *transacted*.
    """

    defaults = dict(
        connect=False,
        provider=None,
        url=None,
        username=None,
        password=None,
        client_id=None,
        start=True,
        transacted=False,
        type=None,
    )

    def __init__(self, **kwargs):

        for key,value in self.defaults.items():
            setattr(self, key, value)

        self.update(**kwargs)


    def __repr__(self):
        shown = dict()
        for key in self.defaults.keys():
            value = getattr(self, key)
            if key == 'password' and value is not None:
                value = '***'
            shown[key] = value

        return 'Settings(' + repr(shown) + ')'


    def update(self, **kwargs):
        """ Replace the named settings. Unknown names raise a KeyError.
        """

        for key,value in kwargs.items():
            if key in self.defaults:
                pass
            else:
                raise KeyError('unknown setting: ' + repr(key))

            setattr(self, key, value)


# end of class Settings


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
