"""Raw transport binding.

This is the (small) foreign-call surface that every other zsock module
goes through to reach the transport engine: create and release contexts and
sockets, read and write socket options by numeric identifier, connect, bind,
send and receive single frames, and poll. It is the only place that talks to
the engine directly, and the only place engine errors are translated into
:mod:`zsock.errors`.
"""

from __future__ import annotations

import contextlib
import ctypes
import errno
import glob
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Iterator, List, NamedTuple, Optional, Sequence, Tuple, Union

import zmq

from .errors import AddressError, Closed, TransportError, WouldBlock


logger = logging.getLogger(__name__)

Raw = Union[int, bytes]

# Engine error numbers that mean the endpoint string itself was refused.
ADDRESS_CODES = frozenset((
    errno.EINVAL,
    zmq.EPROTONOSUPPORT,
    zmq.ENOCOMPATPROTO,
))

# Engine error numbers that mean the handle is no longer usable.
CLOSED_CODES = frozenset((
    zmq.ENOTSOCK,
    zmq.ETERM,
))


class _Library(NamedTuple):
    """Entry points of the libzmq that pyzmq loaded, reached through ctypes."""

    getsockopt: Any
    setsockopt: Any
    errno: Any


class Binding(ABC):
    """Minimal contract for the transport engine's handle-based interface."""

    @abstractmethod
    def context_new(self, io_threads: int):
        """Create an engine context handle."""

    @abstractmethod
    def context_term(self, context) -> None:
        """Terminate an engine context handle."""

    @abstractmethod
    def socket_new(self, context, socket_type: int):
        """Create an engine socket handle of the given type."""

    @abstractmethod
    def socket_close(self, handle, linger: Optional[int] = None) -> None:
        """Release an engine socket handle."""

    @abstractmethod
    def closed(self, handle) -> bool:
        """Whether the engine socket handle has been released."""

    @abstractmethod
    def getsockopt(self, handle, identifier: int, name: Optional[str] = None,
                   length: Optional[int] = None) -> Raw:
        """Read the raw value of a socket option; *name* labels errors.

        With *length*, the engine is asked for a byte value through a buffer
        of exactly that many bytes; some options only answer a buffer of
        their own size.
        """

    @abstractmethod
    def setsockopt(self, handle, identifier: int, raw: Raw, name: Optional[str] = None) -> None:
        """Write the raw value of a socket option; *name* labels errors."""

    @abstractmethod
    def setsockopt_null(self, handle, identifier: int, name: Optional[str] = None) -> None:
        """Write a NULL, zero-length value to a socket option."""

    @abstractmethod
    def connect(self, handle, endpoint: str) -> None:
        """Connect the socket to an endpoint."""

    @abstractmethod
    def bind(self, handle, endpoint: str) -> None:
        """Bind the socket to an endpoint."""

    @abstractmethod
    def disconnect(self, handle, endpoint: str) -> None:
        """Disconnect the socket from an endpoint."""

    @abstractmethod
    def unbind(self, handle, endpoint: str) -> None:
        """Unbind the socket from an endpoint."""

    @abstractmethod
    def send(self, handle, data, flags: int) -> None:
        """Send a single frame."""

    @abstractmethod
    def recv(self, handle, flags: int) -> Tuple[object, bool]:
        """Receive a single frame; return the engine frame and its more flag."""

    @abstractmethod
    def release(self, frame) -> None:
        """Give the storage of a received frame back to the engine. The
        caller holds no other reference to *frame* once this returns.
        """

    @abstractmethod
    def poll(self, items: Sequence[Tuple[object, int]], timeout: int) -> List[Tuple[object, int]]:
        """Wait for readiness; *timeout* is in milliseconds, -1 for forever."""

    def null_writes_supported(self) -> bool:
        """Whether :meth:`setsockopt_null` can reach the engine."""
        return True

    def sized_reads_supported(self) -> bool:
        """Whether :meth:`getsockopt` honors *length*."""
        return True


@contextlib.contextmanager
def engine_errors(option: Optional[str] = None, direction: Optional[str] = None,
                  endpoint: Optional[str] = None) -> Iterator[None]:
    """Translate :class:`zmq.ZMQError` raised inside the block."""

    try:
        yield
    except zmq.ZMQError as exc:
        raise translate(exc.errno, option, direction, endpoint) from exc


def translate(code: int, option: Optional[str] = None, direction: Optional[str] = None,
              endpoint: Optional[str] = None) -> Exception:
    """Return the zsock exception matching the engine error *code*."""

    if code == errno.EAGAIN:
        return WouldBlock(option=option, direction=direction)
    if code in CLOSED_CODES:
        return Closed(zmq.strerror(code))
    if endpoint is not None and code in ADDRESS_CODES:
        return AddressError(endpoint, code)
    return TransportError(code, option=option, direction=direction)


class ZmqBinding(Binding):
    """Transport binding over pyzmq's low-level socket interface."""

    def __init__(self):
        self._library = None
        self._library_resolved = False

    # --- contexts and sockets ---

    def context_new(self, io_threads: int) -> zmq.Context:
        with engine_errors():
            context = zmq.Context(io_threads=io_threads)
        logger.debug("created engine context with %d I/O threads", io_threads)
        return context

    def context_term(self, context: zmq.Context) -> None:
        with engine_errors():
            context.term()
        logger.debug("terminated engine context")

    def socket_new(self, context: zmq.Context, socket_type: int) -> zmq.Socket:
        if context.closed:
            raise Closed('context has been terminated')
        with engine_errors():
            return context.socket(socket_type)

    def socket_close(self, handle: zmq.Socket, linger: Optional[int] = None) -> None:
        with engine_errors():
            handle.close(linger=linger)

    def closed(self, handle: zmq.Socket) -> bool:
        return handle.closed

    # --- options ---

    def getsockopt(self, handle: zmq.Socket, identifier: int, name: Optional[str] = None,
                   length: Optional[int] = None) -> Raw:
        if length is None:
            with engine_errors(name, "get"):
                return handle.get(identifier)

        # pyzmq's Socket.get() always offers a 255 byte buffer, which the
        # CURVE key options refuse.

        library = self._live_library(handle, name, "get")
        buffer = ctypes.create_string_buffer(length)
        size = ctypes.c_size_t(length)

        rc = library.getsockopt(handle.underlying, identifier, buffer, ctypes.byref(size))
        if rc != 0:
            raise translate(library.errno(), name, "get")

        return buffer.raw[:size.value]

    def setsockopt(self, handle: zmq.Socket, identifier: int, raw: Raw, name: Optional[str] = None) -> None:
        with engine_errors(name, "set"):
            handle.set(identifier, raw)

    def setsockopt_null(self, handle: zmq.Socket, identifier: int, name: Optional[str] = None) -> None:
        # pyzmq's Socket.set() always passes a buffer, never NULL.

        library = self._live_library(handle, name, "set")

        rc = library.setsockopt(handle.underlying, identifier, None, 0)
        if rc != 0:
            raise translate(library.errno(), name, "set")

    def null_writes_supported(self) -> bool:
        return self._resolve_library() is not None

    def sized_reads_supported(self) -> bool:
        return self._resolve_library() is not None

    def _live_library(self, handle: zmq.Socket, name: Optional[str], direction: str) -> _Library:

        if handle.closed:
            raise translate(zmq.ENOTSOCK)

        library = self._resolve_library()
        if library is None:
            raise translate(errno.ENOTSUP, name, direction)

        return library

    def _resolve_library(self) -> Optional[_Library]:
        """Locate zmq_getsockopt and zmq_setsockopt in the same libzmq that
        pyzmq loaded, so the handle stays inside the library copy that
        created it.
        """

        if self._library_resolved:
            return self._library

        self._library_resolved = True

        for path in _library_candidates():
            try:
                library = ctypes.CDLL(path)
                getter = library.zmq_getsockopt
                setter = library.zmq_setsockopt
                engine_errno = library.zmq_errno
            except (OSError, AttributeError):
                continue

            getter.argtypes = (ctypes.c_void_p, ctypes.c_int, ctypes.c_void_p,
                               ctypes.POINTER(ctypes.c_size_t))
            getter.restype = ctypes.c_int
            setter.argtypes = (ctypes.c_void_p, ctypes.c_int, ctypes.c_void_p, ctypes.c_size_t)
            setter.restype = ctypes.c_int
            engine_errno.argtypes = ()
            engine_errno.restype = ctypes.c_int

            logger.debug("sized option reads and NULL option writes go through %s", path)
            self._library = _Library(getter, setter, engine_errno)
            break
        else:
            logger.warning("zmq_getsockopt not reachable, sized option reads and NULL option writes are unavailable")

        return self._library

    # --- endpoints ---

    def connect(self, handle: zmq.Socket, endpoint: str) -> None:
        with engine_errors(endpoint=endpoint):
            handle.connect(endpoint)

    def bind(self, handle: zmq.Socket, endpoint: str) -> None:
        with engine_errors(endpoint=endpoint):
            handle.bind(endpoint)

    def disconnect(self, handle: zmq.Socket, endpoint: str) -> None:
        with engine_errors(endpoint=endpoint):
            handle.disconnect(endpoint)

    def unbind(self, handle: zmq.Socket, endpoint: str) -> None:
        with engine_errors(endpoint=endpoint):
            handle.unbind(endpoint)

    # --- frames ---

    def send(self, handle: zmq.Socket, data, flags: int) -> None:
        with engine_errors():
            handle.send(data, flags=flags, copy=False)

    def recv(self, handle: zmq.Socket, flags: int) -> Tuple[zmq.Frame, bool]:
        with engine_errors():
            frame = handle.recv(flags=flags, copy=False)
        return frame, bool(frame.more)

    def release(self, frame: zmq.Frame) -> None:
        """pyzmq has no explicit close for a Frame: zmq_msg_close runs when
        the Frame's last reference goes away. This binding keeps none, so
        handing *frame* back is all there is to do; the engine storage is
        freed as the caller lets go of it.
        """

        logger.debug("handing back engine frame of %d bytes", len(frame))

    def poll(self, items: Sequence[Tuple[zmq.Socket, int]], timeout: int) -> List[Tuple[zmq.Socket, int]]:
        with engine_errors():
            return zmq.zmq_poll(list(items), timeout)


def _library_candidates() -> List[str]:

    candidates = list()

    try:
        from zmq.backend.cython import _zmq
    except ImportError:
        pass
    else:
        candidates.append(_zmq.__file__)

    # Linux and macOS wheels ship libzmq next to the zmq package.
    site = os.path.dirname(os.path.dirname(zmq.__file__))
    for directory in ('pyzmq.libs', os.path.join('zmq', '.dylibs')):
        pattern = os.path.join(site, directory, 'libzmq*')
        candidates.extend(sorted(glob.glob(pattern)))

    return candidates


default = ZmqBinding()
