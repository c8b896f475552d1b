import gc
import importlib
import pytest
import zsock

from zsock import sockopt


def test_close_closes_sockets():

    context = zsock.Context()
    first = context.socket(zsock.PAIR)
    second = context.socket(zsock.PUB)

    assert len(context.sockets()) == 2

    context.close()

    assert context.closed == True
    assert first.closed == True
    assert second.closed == True

    with pytest.raises(zsock.Closed):
        first.recv(zsock.DONTWAIT)

    with pytest.raises(zsock.Closed):
        context.socket(zsock.PAIR)

    # Closing twice is harmless, for the context and its sockets.
    context.close()
    first.close()


def test_close_while_engaged():
    """ An engaged socket anywhere in the context stops the close before
        any socket is touched.
    """

    context = zsock.Context()
    first = context.socket(zsock.PAIR)
    second = context.socket(zsock.PAIR)
    iterator = second.recv_iter()

    with pytest.raises(zsock.ExclusivityViolation):
        context.close()

    assert context.closed == False
    assert first.closed == False
    assert second.closed == False

    # The failed close gave every guard back.
    first.set_option(sockopt.LINGER, 0)
    with pytest.raises(zsock.WouldBlock):
        first.recv(zsock.DONTWAIT)

    iterator.close()
    context.close()

    assert context.closed == True
    assert first.closed == True
    assert second.closed == True


def test_sockets_tracking(context):

    kept = context.socket(zsock.PAIR)
    dropped = context.socket(zsock.PAIR)

    dropped.close()
    assert context.sockets() == [kept]

    del dropped
    collected = context.socket(zsock.PAIR)
    del collected
    gc.collect()

    assert context.sockets() == [kept]


def test_independent(endpoint):

    first = zsock.Context()
    second = zsock.Context(io_threads=2)

    assert second.io_threads == 2

    server = second.socket(zsock.PAIR)
    server.bind(endpoint)
    client = second.socket(zsock.PAIR)
    client.connect(endpoint)

    first.close()

    client.send(b'still here')
    assert server.recv() == b'still here'

    second.close()


def test_context_manager():

    with zsock.Context() as context:
        socket = context.socket(zsock.REQ)

    assert context.closed == True
    assert socket.closed == True


def test_instance():

    shared = zsock.instance()
    assert zsock.instance() is shared

    shared.close()

    replacement = zsock.instance()
    assert replacement is not shared
    assert replacement.closed == False


def test_linger_default(context, monkeypatch):

    monkeypatch.setattr(zsock.config, 'linger', 250)
    socket = context.socket(zsock.PUSH)
    assert socket.get_option(sockopt.LINGER) == 250


def test_environment(monkeypatch):

    monkeypatch.setenv('ZSOCK_IO_THREADS', '2')
    monkeypatch.setenv('ZSOCK_LINGER', ' 100 ')

    try:
        importlib.reload(zsock.config)
        assert zsock.config.io_threads == 2
        assert zsock.config.linger == 100

        monkeypatch.setenv('ZSOCK_LINGER', '')
        importlib.reload(zsock.config)
        assert zsock.config.linger == 0

        monkeypatch.setenv('ZSOCK_LINGER', 'soon')
        with pytest.raises(ValueError):
            importlib.reload(zsock.config)

        monkeypatch.setenv('ZSOCK_LINGER', '0')
        monkeypatch.setenv('ZSOCK_IO_THREADS', '-1')
        with pytest.raises(ValueError):
            importlib.reload(zsock.config)
    finally:
        monkeypatch.undo()
        importlib.reload(zsock.config)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
