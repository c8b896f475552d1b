""" The :class:`Socket` owns one transport engine endpoint and is the only
    way to perform I/O on it.

    The engine does not tolerate concurrent calls on one socket handle. Each
    :class:`Socket` therefore carries two in-flight guards, one for sending
    and one for receiving. A send or receive call claims its guard for the
    duration of the call; a :class:`FrameIterator` returned by
    :meth:`Socket.recv_iter` claims both guards for as long as it is alive.
    Claiming a guard never waits: if it is already claimed, the call fails
    immediately with :class:`zsock.errors.ExclusivityViolation`, so frames
    from two callers can never interleave.
"""

from __future__ import annotations

import contextlib
import logging
import threading
from typing import Iterable, List, Optional, TypeVar, Union

from . import config
from . import sockopt
from . import weakref
from .constants import Flags, SocketType
from .errors import AddressError, Closed, ExclusivityViolation
from .message import Message

logger = logging.getLogger(__name__)

G = TypeVar('G')
S = TypeVar('S')

Sendable = Union[Message, bytes, bytearray, memoryview, str]


class _Guard:
    """ Marks one direction of a socket as having an operation in flight.
    """

    def __init__(self, side):
        self.side = side
        self._lock = threading.Lock()


    def claim(self, socket):
        if not self._lock.acquire(blocking=False):
            raise ExclusivityViolation('%s already in progress on %r' % (self.side, socket))


    def release(self):
        self._lock.release()


    @property
    def claimed(self):
        return self._lock.locked()



def _release_guards(*guards):
    for guard in guards:
        guard.release()


def check_endpoint(endpoint):
    """ Reject anything that does not at least look like
        ``transport://address``. Beyond that shape the endpoint is passed to
        the engine untouched.
    """

    if not isinstance(endpoint, str) or '\0' in endpoint:
        raise AddressError(endpoint)

    transport, separator, address = endpoint.partition('://')
    if separator == '' or transport == '' or address == '':
        raise AddressError(endpoint)

    return endpoint


def _as_message(data):

    if isinstance(data, Message):
        return data
    if isinstance(data, str):
        return Message.from_text(data)
    return Message(data)



class Socket:
    """ An endpoint bound to one messaging pattern, *socket_type*, for its
        whole life. Sockets are normally created with
        :meth:`zsock.Context.socket`; the *context* is kept alive for as long
        as the :class:`Socket` is.

        A :class:`Socket` cannot be copied or pickled. Ownership of the
        underlying handle can be moved to a new :class:`Socket` with
        :meth:`detach`. Once closed, every operation raises
        :class:`zsock.errors.Closed`.

        :ivar context: The :class:`zsock.Context` that created the socket.
        :ivar type: The :class:`zsock.SocketType` of the socket.
    """

    def __init__(self, context, socket_type):

        socket_type = SocketType(socket_type)
        handle = context._new_handle(socket_type)
        self._setup(context, socket_type, handle)

        if config.linger >= 0:
            self.set_option(sockopt.LINGER, config.linger)

        logger.debug("created %s socket", socket_type.name)


    def _setup(self, context, socket_type, handle):

        self.context = context
        self.type = socket_type

        self._binding = context.binding
        self._handle = handle
        self._send_guard = _Guard('send')
        self._recv_guard = _Guard('receive')
        self._send_open = False

        context._track(self)


    def __repr__(self):

        if self._handle is None:
            state = ' closed'
        else:
            state = ''

        return '<zsock.Socket %s%s at 0x%x>' % (self.type.name, state, id(self))


    def __copy__(self):
        raise TypeError('a Socket cannot be copied, use detach() to move it')


    def __deepcopy__(self, memo):
        raise TypeError('a Socket cannot be copied, use detach() to move it')


    def __reduce__(self):
        raise TypeError('a Socket cannot be pickled')


    def __enter__(self):
        return self


    def __exit__(self, *exc):
        self.close()


    def _live(self):
        """ Return the engine handle, or raise :class:`Closed`.
        """

        handle = self._handle

        if handle is None or self._binding.closed(handle):
            raise Closed('socket has been closed')

        return handle


    @contextlib.contextmanager
    def _engaged(self, *guards):

        claimed = list()

        try:
            for guard in guards:
                guard.claim(self)
                claimed.append(guard)
            yield
        finally:
            _release_guards(*claimed)


    @property
    def closed(self):
        """ True once the socket, or its context, has been closed.
        """

        handle = self._handle
        return handle is None or self._binding.closed(handle)


    @property
    def send_open(self):
        """ True while a multi-part message is being sent: the last frame was
            sent with the 'more' flag and the final frame has not followed.
        """

        return self._send_open


    @property
    def more(self):
        """ True if the last frame received has more frames following it.
        """

        return self.get_option(sockopt.RCVMORE)


    # --- options ---

    def get_option(self, option: Union[sockopt.Gettable[G], str]) -> G:
        """ Return the value of *option*, a descriptor from
            :mod:`zsock.sockopt` or its name.
        """

        option = sockopt.lookup(option)

        if not isinstance(option, sockopt.Gettable):
            raise TypeError('%s is a write-only option' % (option.name))

        return option.get(self._binding, self._live())


    def set_option(self, option: Union[sockopt.Settable[S], str], value: S) -> None:
        """ Set *option*, a descriptor from :mod:`zsock.sockopt` or its name,
            to *value*.
        """

        option = sockopt.lookup(option)

        if not isinstance(option, sockopt.Settable):
            raise TypeError('%s is a read-only option' % (option.name))

        option.set(self._binding, self._live(), value)
        logger.debug("%r: set %s", self, option.name)


    # --- endpoints ---

    def bind(self, endpoint: str) -> str:
        """ Bind to *endpoint* and return the endpoint the engine actually
            bound, which differs from *endpoint* when a wildcard port is used.
        """

        check_endpoint(endpoint)
        self._binding.bind(self._live(), endpoint)
        bound = self.get_option(sockopt.LAST_ENDPOINT)
        logger.debug("%r: bound %s", self, bound)
        return bound


    def connect(self, endpoint: str) -> None:
        check_endpoint(endpoint)
        self._binding.connect(self._live(), endpoint)
        logger.debug("%r: connected to %s", self, endpoint)


    def unbind(self, endpoint: str) -> None:
        check_endpoint(endpoint)
        self._binding.unbind(self._live(), endpoint)


    def disconnect(self, endpoint: str) -> None:
        check_endpoint(endpoint)
        self._binding.disconnect(self._live(), endpoint)


    # --- sending ---

    def send(self, data: Sendable, flags: int = 0, more: bool = False) -> None:
        """ Send one frame. *data* is a :class:`Message`, a bytes-like object,
            or a str to be encoded as UTF-8. A :class:`Message` is consumed by
            the call whether or not it succeeds.

            The call blocks until the engine accepts the frame, unless
            *flags* includes :data:`zsock.DONTWAIT`, in which case
            :class:`zsock.errors.WouldBlock` is raised instead of waiting.
            With *more* set, or :data:`zsock.SNDMORE` in *flags*, the frame
            is not the last of its message; the message is only complete once
            a frame is sent without it.
        """

        message = _as_message(data)
        flags = int(flags)

        if more:
            flags |= Flags.SNDMORE

        try:
            with self._engaged(self._send_guard):
                self._send_frame(self._live(), message, flags)
        finally:
            message.close()


    def send_string(self, text: str, flags: int = 0, more: bool = False) -> None:
        self.send(Message.from_text(text), flags, more)


    def send_multipart(self, frames: Iterable[Sendable], flags: int = 0) -> None:
        """ Send every item of *frames* as one multi-part message. No other
            send can start until the final frame is out.
        """

        messages = [_as_message(frame) for frame in frames]
        if len(messages) == 0:
            raise ValueError('a multi-part message needs at least one frame')

        flags = int(flags) & ~int(Flags.SNDMORE)
        last = len(messages) - 1

        try:
            with self._engaged(self._send_guard):
                handle = self._live()
                for index, message in enumerate(messages):
                    if index == last:
                        self._send_frame(handle, message, flags)
                    else:
                        self._send_frame(handle, message, flags | Flags.SNDMORE)
        finally:
            for message in messages:
                message.close()


    def _send_frame(self, handle, message, flags):

        payload = message.consume()

        try:
            self._binding.send(handle, payload, flags)
        finally:
            message.close()

        self._send_open = bool(flags & Flags.SNDMORE)


    # --- receiving ---

    def recv(self, flags: int = 0, copy: bool = True) -> Message:
        """ Receive one frame as a :class:`Message`. The call blocks until a
            frame arrives, unless *flags* includes :data:`zsock.DONTWAIT`,
            in which case :class:`zsock.errors.WouldBlock` is raised when
            nothing is waiting.

            With *copy* False the :class:`Message` keeps the engine's buffer
            instead of copying it; close it promptly to return the buffer.
        """

        with self._engaged(self._recv_guard):
            return self._recv_frame(self._live(), int(flags), copy)


    def recv_string(self, flags: int = 0) -> str:
        """ Receive one frame and decode it as UTF-8.
        """

        with self.recv(flags) as message:
            return message.text


    def recv_multipart(self, flags: int = 0, copy: bool = True) -> List[Message]:
        """ Receive every frame of the next multi-part message.
        """

        frames = list()

        with self._engaged(self._recv_guard):
            handle = self._live()
            while True:
                message = self._recv_frame(handle, int(flags), copy)
                frames.append(message)
                if not message.more:
                    break

        return frames


    def recv_iter(self, flags: int = 0, copy: bool = True) -> 'FrameIterator':
        """ Return a :class:`FrameIterator` over the frames of the next
            multi-part message. The iterator has this socket to itself until
            it is exhausted or closed.
        """

        return FrameIterator(self, int(flags), copy)


    def _recv_frame(self, handle, flags, copy):

        frame, more = self._binding.recv(handle, flags)
        message = Message.from_frame(frame, self._binding.release, more)

        if copy:
            with message:
                owned = Message(message.bytes)
            owned.more = more
            return owned

        return message


    # --- ownership ---

    def detach(self) -> 'Socket':
        """ Move ownership of the engine handle to a new :class:`Socket`,
            which is returned. This socket is closed afterwards.
        """

        with self._engaged(self._send_guard, self._recv_guard):
            handle = self._live()
            moved = Socket.__new__(Socket)
            moved._setup(self.context, self.type, handle)
            moved._send_open = self._send_open
            self._handle = None

        self.context._untrack(self)
        return moved


    def close(self, linger: Optional[int] = None) -> None:
        """ Release the engine handle. *linger*, in milliseconds, overrides
            the LINGER option for this close. Closing twice is harmless;
            closing while an operation or iteration is in flight raises
            :class:`zsock.errors.ExclusivityViolation`.
        """

        if self._handle is None:
            return

        with self._engaged(self._send_guard, self._recv_guard):
            self._close_engaged(linger)


    def _close_engaged(self, linger):
        """ Close with both guards already claimed by the caller.
        """

        handle = self._handle
        if handle is None:
            return

        self._handle = None

        try:
            if not self._binding.closed(handle):
                self._binding.socket_close(handle, linger)
        finally:
            self.context._untrack(self)

        logger.debug("closed %s socket", self.type.name)


# end of class Socket



class FrameIterator:
    """ Iterates over the frames of one multi-part message received on a
        :class:`Socket`, yielding a :class:`Message` per frame. The sequence
        ends after the frame whose 'more' flag is clear, and cannot be
        restarted.

        From creation until it ends, the iterator holds both in-flight guards
        of its socket: any send, receive, or second iteration attempted on
        the socket meanwhile raises
        :class:`zsock.errors.ExclusivityViolation`. The guards are given back
        when the last frame has been yielded, when an exception is raised
        from the engine, when :meth:`close` is called, when a ``with`` block
        exits, or when the iterator is garbage collected. Closing early
        leaves any remaining frames of the message queued on the socket.
    """

    def __init__(self, socket, flags=0, copy=True):

        self.socket = socket
        self.flags = flags
        self.copy = copy
        self.done = False

        socket._recv_guard.claim(socket)
        try:
            socket._send_guard.claim(socket)
        except ExclusivityViolation:
            socket._recv_guard.release()
            raise

        self._release = weakref.release_once(self, _release_guards,
                            socket._recv_guard, socket._send_guard)


    def __iter__(self):
        return self


    def __next__(self) -> Message:

        if self.done:
            raise StopIteration

        try:
            message = self.socket._recv_frame(self.socket._live(), self.flags, self.copy)
        except BaseException:
            self.close()
            raise

        if not message.more:
            self.close()

        return message


    def __enter__(self):
        return self


    def __exit__(self, *exc):
        self.close()


    def close(self):
        """ End the iteration and give the socket back.
        """

        self.done = True
        self._release()


# end of class FrameIterator


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
