""" A class representation of a single transport frame, with unambiguous
    ownership of the bytes behind it.
"""

from . import weakref
from .errors import Closed, EncodingError


class Message:
    """ The :class:`Message` holds the bytes of exactly one frame. The bytes
        live in one of two places:

        * an owned buffer: *data* supplied by the caller, a :class:`bytes`,
          :class:`bytearray` or :class:`memoryview`. The :class:`Message`
          keeps a reference to it rather than copying it.

        * an engine buffer: storage the transport engine handed over on a
          zero-copy receive, see :meth:`from_frame`. It is returned to the
          engine exactly once, through the engine's own release function,
          when :meth:`close` is called, when a ``with`` block exits, or when
          the :class:`Message` is garbage collected.

        A :class:`Message` handed to :meth:`zsock.Socket.send` is consumed:
        whether or not the send succeeds, the :class:`Message` is closed
        afterwards and any further use raises :class:`zsock.errors.Closed`.

        :ivar more: True if this frame was received with more frames of
                    the same multi-part message following it.
    """

    __hash__ = None

    def __init__(self, data=b''):

        if isinstance(data, str):
            raise TypeError('Message data must be bytes, use Message.from_text() for str')

        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError('Message data must be bytes-like, not ' + type(data).__name__)

        self.more = False

        self._data = data
        self._frame = None
        self._bytes = None
        self._finalizer = None
        self._closed = None


    @classmethod
    def from_text(cls, text):
        """ Return a new :class:`Message` holding *text* encoded as UTF-8.
        """

        return cls(text.encode('utf-8'))


    @classmethod
    def from_frame(cls, frame, release, more=False):
        """ Return a new :class:`Message` that takes ownership of *frame*, a
            buffer belonging to the transport engine. *release* is the
            engine's function for giving the buffer back; it will be called
            with *frame* as its only argument, exactly once.
        """

        message = cls.__new__(cls)
        message.more = more
        message._data = None
        message._frame = frame
        message._bytes = None
        message._closed = None
        message._finalizer = weakref.release_once(message, release, frame)

        return message


    def __repr__(self):

        if self._closed is not None:
            return '<Message %s>' % (self._closed)

        if self.owned:
            kind = 'owned'
        else:
            kind = 'engine'

        return '<Message %s %d bytes>' % (kind, len(self))


    def __len__(self):
        return self.buffer.nbytes


    def __bytes__(self):
        return self.bytes


    def __eq__(self, other):

        if isinstance(other, Message):
            other = other.bytes
        elif isinstance(other, (bytes, bytearray, memoryview)):
            pass
        else:
            return NotImplemented

        return self.bytes == other


    def __enter__(self):
        return self


    def __exit__(self, *exc):
        self.close()


    def _check(self):
        if self._closed is not None:
            raise Closed('message has been ' + self._closed)


    @property
    def closed(self):
        """ True once the message has been closed or consumed by a send.
        """

        return self._closed is not None


    @property
    def owned(self):
        """ True if the bytes are held in a caller-supplied buffer, False if
            they belong to the transport engine.
        """

        self._check()
        return self._frame is None


    @property
    def buffer(self):
        """ A read-only :class:`memoryview` of the frame contents. It is only
            valid until the message is closed.
        """

        self._check()

        if self._frame is None:
            return memoryview(self._data).toreadonly()
        return memoryview(self._frame).toreadonly()


    @property
    def bytes(self):
        """ The frame contents as :class:`bytes`. For an owned
            :class:`bytes` buffer this is the buffer itself; anything else is
            copied once, the first time it is requested.
        """

        self._check()

        if isinstance(self._data, bytes):
            return self._data

        if self._bytes is None:
            self._bytes = self.buffer.tobytes()

        return self._bytes


    @property
    def text(self):
        """ The frame contents decoded as UTF-8. Raises
            :class:`zsock.errors.EncodingError`, carrying the raw bytes, if
            the contents are not valid UTF-8.
        """

        raw = self.bytes

        try:
            return raw.decode('utf-8')
        except UnicodeDecodeError as exc:
            raise EncodingError(raw, reason=exc.reason) from exc


    as_str = text.fget


    def close(self):
        """ Release the storage behind this message. Calling :meth:`close`
            more than once is harmless.
        """

        if self._closed is None:
            self._closed = 'closed'

        self._release()


    def consume(self):
        """ Mark this message as handed to the transport engine and return
            the object to pass to it. The message cannot be read afterwards;
            the caller must still :meth:`close` it once the engine call
            returns, which is when engine storage is actually released.
        """

        self._check()
        self._closed = 'consumed by send'

        if self._frame is None:
            return self._data
        return self._frame


    def _release(self):

        self._data = None
        self._bytes = None

        finalizer = self._finalizer
        if finalizer is None:
            return

        self._finalizer = None
        self._frame = None
        finalizer()


# end of class Message


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
