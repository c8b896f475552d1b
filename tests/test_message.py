import gc
import pytest
import zsock


class Releases:
    """ Counts how many times each engine frame is given back.
    """

    def __init__(self):
        self.calls = list()

    def __call__(self, frame):
        self.calls.append(frame)



def test_owned():

    data = b'owned bytes'
    message = zsock.Message(data)

    assert message.owned == True
    assert message.bytes is data
    assert len(message) == len(data)
    assert bytes(message) == data
    assert message == data
    assert message == zsock.Message(data)
    assert message != b'other'

    empty = zsock.Message()
    assert len(empty) == 0
    assert empty.bytes == b''


def test_owned_buffer_is_not_copied():

    data = bytearray(b'abc')
    message = zsock.Message(data)

    data[0] = ord('x')
    assert message.buffer.tobytes() == b'xbc'
    assert message.buffer.readonly == True


def test_rejected_data():

    with pytest.raises(TypeError):
        zsock.Message('text')

    with pytest.raises(TypeError):
        zsock.Message(42)

    with pytest.raises(TypeError):
        hash(zsock.Message(b'x'))


def test_text():

    message = zsock.Message.from_text('caf\xe9')
    assert message.bytes == b'caf\xc3\xa9'
    assert message.text == 'caf\xe9'
    assert message.as_str() == 'caf\xe9'

    message = zsock.Message(b'caf\xe9')

    with pytest.raises(zsock.EncodingError) as caught:
        message.text

    assert caught.value.raw == b'caf\xe9'
    assert isinstance(caught.value, ValueError)


def test_engine_frame_close():

    releases = Releases()
    frame = bytearray(b'engine')

    message = zsock.Message.from_frame(frame, releases, more=True)

    assert message.owned == False
    assert message.more == True
    assert message.bytes == b'engine'
    assert releases.calls == []

    message.close()
    assert len(releases.calls) == 1
    assert releases.calls[0] is frame

    message.close()
    assert len(releases.calls) == 1

    with pytest.raises(zsock.Closed):
        message.bytes

    with pytest.raises(zsock.Closed):
        message.owned


def test_engine_frame_context_manager():

    releases = Releases()

    with zsock.Message.from_frame(bytearray(b'x'), releases) as message:
        assert message == b'x'

    assert len(releases.calls) == 1
    assert message.closed == True


def test_engine_frame_collected():

    releases = Releases()

    message = zsock.Message.from_frame(bytearray(b'x'), releases)
    del message
    gc.collect()

    assert len(releases.calls) == 1

    message = zsock.Message.from_frame(bytearray(b'x'), releases)
    message.close()
    del message
    gc.collect()

    assert len(releases.calls) == 2


def test_consume():

    releases = Releases()
    frame = bytearray(b'forward')

    message = zsock.Message.from_frame(frame, releases)
    assert message.consume() is frame
    assert message.closed == True

    # Consumed, but the storage is still the caller's to release.
    assert releases.calls == []

    with pytest.raises(zsock.Closed) as caught:
        message.consume()

    assert 'consumed' in str(caught.value)

    message.close()
    assert len(releases.calls) == 1


def test_release_failure():

    def release(frame):
        release.calls += 1
        raise RuntimeError('engine refused')

    release.calls = 0

    message = zsock.Message.from_frame(bytearray(b'x'), release)

    with pytest.raises(RuntimeError):
        message.close()

    message.close()
    assert release.calls == 1


def test_received_frames_release_once(pair):

    server, client = pair

    client.send(b'one')
    client.send(b'two')

    zero_copy = server.recv(copy=False)
    copied = server.recv(copy=True)

    assert zero_copy.owned == False
    assert copied.owned == True

    zero_copy.close()
    zero_copy.close()
    copied.close()

    with pytest.raises(zsock.Closed):
        zero_copy.text


def test_engine_release(pair, monkeypatch):
    """ Every received frame goes back through the binding exactly once,
        whether it was copied out or kept zero-copy.
    """

    server, client = pair
    binding = server.context.binding

    handed_back = list()

    def release(frame):
        handed_back.append(frame)

    monkeypatch.setattr(binding, 'release', release)

    client.send(b'copied')
    client.send(b'kept')

    copied = server.recv(copy=True)
    assert len(handed_back) == 1
    assert copied == b'copied'

    kept = server.recv(copy=False)
    assert len(handed_back) == 1

    kept.close()
    assert len(handed_back) == 2
    assert kept._frame is None
    assert kept._finalizer is None

    kept.close()
    copied.close()
    assert len(handed_back) == 2


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
