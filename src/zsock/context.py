""" The :class:`Context` owns the transport engine's per-process resources
    (its I/O threads) and creates every :class:`zsock.Socket`.
"""

import atexit
import logging
import threading

from . import binding as _binding
from . import config
from . import weakref
from .errors import Closed, Error
from .socket import Socket, _release_guards

logger = logging.getLogger(__name__)


class Context:
    """ A handle on the transport engine's background resources. Sockets
        keep a strong reference to the :class:`Context` that created them,
        so a :class:`Context` cannot be collected while any of its sockets
        is alive.

        :meth:`close` closes every socket the :class:`Context` created before
        releasing the engine context; those sockets raise
        :class:`zsock.errors.Closed` from then on. If one of them is in the
        middle of an operation, :class:`zsock.errors.ExclusivityViolation`
        is raised and the :class:`Context` stays open.

        Independent contexts can be created and closed freely. Most programs
        only need one; :func:`instance` returns a shared one.

        A :class:`Context` may be shared between threads for the purpose of
        creating sockets.
    """

    def __init__(self, io_threads=None, binding=None):

        if io_threads is None:
            io_threads = config.io_threads
        if binding is None:
            binding = _binding.default

        self.binding = binding
        self.io_threads = io_threads

        self._handle = binding.context_new(io_threads)
        self._sockets = dict()
        self._lock = threading.Lock()


    def __repr__(self):

        if self._handle is None:
            state = 'closed'
        else:
            state = '%d sockets' % (len(self.sockets()))

        return '<zsock.Context %s at 0x%x>' % (state, id(self))


    def __enter__(self):
        return self


    def __exit__(self, *exc):
        self.close()


    @property
    def closed(self):
        return self._handle is None


    def socket(self, socket_type):
        """ Create and return a new :class:`zsock.Socket` of the given
            :class:`zsock.SocketType`.
        """

        return Socket(self, socket_type)


    def sockets(self):
        """ Return a list of the open sockets created by this context.
        """

        with self._lock:
            references = list(self._sockets.values())

        sockets = list()
        for reference in references:
            socket = reference()
            if socket is not None and not socket.closed:
                sockets.append(socket)

        return sockets


    def _new_handle(self, socket_type):

        with self._lock:
            if self._handle is None:
                raise Closed('context has been closed')
            return self.binding.socket_new(self._handle, int(socket_type))


    def _track(self, socket):

        with self._lock:
            for key, reference in list(self._sockets.items()):
                if reference() is None:
                    del self._sockets[key]

            self._sockets[id(socket)] = weakref.ref(socket)


    def _untrack(self, socket):

        with self._lock:
            reference = self._sockets.get(id(socket))
            if reference is not None and reference() is socket:
                del self._sockets[id(socket)]


    def close(self, linger=None):
        """ Close every socket created by this context, then release the
            engine context. *linger* is passed on to each socket's
            :meth:`zsock.Socket.close`. Closing twice is harmless.

            If any socket is engaged in an operation, nothing is closed and
            :class:`zsock.errors.ExclusivityViolation` is raised.
        """

        if self._handle is None:
            return

        sockets = self.sockets()
        claimed = list()

        try:
            for socket in sockets:
                for guard in (socket._send_guard, socket._recv_guard):
                    guard.claim(socket)
                    claimed.append(guard)

            for socket in sockets:
                socket._close_engaged(linger)
        finally:
            _release_guards(*claimed)

        with self._lock:
            handle = self._handle
            self._handle = None

        if handle is not None:
            self.binding.context_term(handle)
            logger.debug("closed context")


    term = close


# end of class Context


_instance = None
_instance_lock = threading.Lock()


def instance():
    """ Return the shared :class:`Context`, creating it on first use, or
        again if it has since been closed. It is closed automatically when
        the interpreter exits.
    """

    global _instance

    with _instance_lock:
        if _instance is None or _instance.closed:
            _instance = Context()
        return _instance


def _cleanup():

    if _instance is None:
        return

    try:
        _instance.close()
    except Error:
        logger.warning('shared context not closed at exit', exc_info=True)


atexit.register(_cleanup)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
