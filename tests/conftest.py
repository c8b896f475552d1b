import itertools
import pytest
import zsock

import fakeengine


_endpoints = itertools.count()


@pytest.fixture
def context():

    context = zsock.Context()

    yield context

    context.close()


@pytest.fixture
def endpoint():
    return 'inproc://zsock-unittest-%d' % (next(_endpoints))


@pytest.fixture
def pair(context, endpoint):
    """ Two connected PAIR sockets. The inproc transport requires the bind
        to happen before the connect.
    """

    server = context.socket(zsock.PAIR)
    server.bind(endpoint)

    client = context.socket(zsock.PAIR)
    client.connect(endpoint)

    return server, client


@pytest.fixture
def engine():
    return fakeengine.FakeBinding()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
