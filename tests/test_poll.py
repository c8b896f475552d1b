import time
import zsock

from zsock.poll import milliseconds


def test_milliseconds():

    assert milliseconds(None) == -1
    assert milliseconds(-1) == -1
    assert milliseconds(-0.5) == -1
    assert milliseconds(0) == 0
    assert milliseconds(1) == 1000
    assert milliseconds(0.0001) == 1
    assert milliseconds(0.25) == 250


def test_readiness(context):
    """ One socket with a frame waiting, one without: exactly one entry is
        reported, with the right flags, and the idle entry is left clear.
    """

    ready_server = context.socket(zsock.PAIR)
    ready_server.bind('inproc://zsock-poll-ready')
    ready_client = context.socket(zsock.PAIR)
    ready_client.connect('inproc://zsock-poll-ready')

    idle_server = context.socket(zsock.PAIR)
    idle_server.bind('inproc://zsock-poll-idle')
    idle_client = context.socket(zsock.PAIR)
    idle_client.connect('inproc://zsock-poll-idle')

    ready_client.send(b'waiting')

    # Give the frame time to arrive before the non-blocking check.
    first = zsock.PollItem(ready_server, zsock.POLLIN)
    assert zsock.poll.poll((first,), timeout=5) == 1

    ready = zsock.PollItem(ready_server, zsock.POLLIN)
    idle = zsock.PollItem(idle_server, zsock.POLLIN)

    start = time.time()
    count = zsock.poll.poll((ready, idle), timeout=0)
    stop = time.time()

    assert stop - start < 0.1
    assert count == 1

    assert ready.ready == True
    assert ready.readable == True
    assert ready.revents & zsock.POLLIN
    assert not ready.revents & zsock.POLLERR

    assert idle.ready == False
    assert idle.revents == zsock.PollEvents.NONE

    assert ready_server.recv() == b'waiting'


def test_timeout(pair):

    server, client = pair
    item = zsock.PollItem(server, zsock.POLLIN)

    start = time.time()
    count = zsock.poll.poll((item,), timeout=0.05)
    stop = time.time()

    assert count == 0
    assert stop - start >= 0.04
    assert stop - start < 1


def test_writable(pair):

    server, client = pair
    item = zsock.PollItem(client, zsock.POLLOUT)

    assert zsock.poll.poll((item,), timeout=1) == 1
    assert item.writable == True
    assert item.readable == False


def test_closed_entry(pair):

    server, client = pair

    closed = zsock.PollItem(server, zsock.POLLIN)
    server.close()

    idle = zsock.PollItem(client, zsock.POLLIN)

    start = time.time()
    count = zsock.poll.poll((closed, idle), timeout=None)
    stop = time.time()

    # A closed entry counts as ready, so the call does not wait.
    assert stop - start < 0.5
    assert count == 1

    assert closed.revents == zsock.POLLERR
    assert isinstance(closed.error, zsock.Closed)

    assert idle.revents == zsock.PollEvents.NONE
    assert idle.error is None


def test_poller(pair):

    server, client = pair
    poller = zsock.Poller()

    poller.register(server, zsock.POLLIN)
    poller.register(client, zsock.POLLIN)

    assert server in poller
    assert len(poller) == 2

    assert poller.poll(0) == []

    client.send(b'ping')

    ready = poller.poll(5)
    assert len(ready) == 1
    assert ready[0].socket is server
    assert ready[0].readable == True

    server.recv()

    # Registering again replaces the events; no events removes the socket.
    poller.register(server, zsock.POLLIN | zsock.POLLOUT)
    assert len(poller) == 2

    poller.register(server, 0)
    assert server not in poller
    assert len(poller) == 1

    poller.unregister(client)
    assert len(poller) == 0

    try:
        poller.unregister(client)
    except KeyError:
        pass
    else:
        raise AssertionError('unregistering twice should raise KeyError')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
