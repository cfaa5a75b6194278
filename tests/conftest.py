import itertools
import os
import pytest

import brokerlib
from brokerlib.providers import memory


_names = itertools.count()


@pytest.fixture
def broker_url():

    # Every test gets a broker of its own, so leftovers from one test can
    # never show up as messages in another.

    name = 'unittest%d' % (next(_names))

    yield 'memory://' + name

    memory.reset(name)


@pytest.fixture
def library(broker_url):

    library = brokerlib.Library(url=broker_url, connect=True)

    yield library

    if library.connection is not None:
        library.close()


@pytest.fixture
def connection(broker_url):

    connection = brokerlib.Connection(url=broker_url)

    yield connection

    connection.close()


@pytest.fixture
def session(connection):

    session = connection.initialize_session()
    connection.start()

    yield session


@pytest.fixture
def send_texts():

    def send(session, queue, *bodies):
        for body in bodies:
            session.create_text_message(body)
            session.send_to_queue(queue)

    return send


@pytest.fixture
def amqp_url():

    url = os.environ.get('BROKERLIB_AMQP_TEST')

    if not url:
        pytest.skip('BROKERLIB_AMQP_TEST is not set')

    return url

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
