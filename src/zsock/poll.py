""" Wait for readiness across many sockets at once. Nothing here performs
    I/O on the sockets themselves; once :func:`poll` reports a socket as
    ready, the caller does the send or receive.

    Timeouts are given in seconds. A timeout of zero checks readiness and
    returns immediately; None, or any negative value, waits indefinitely.
"""

import math

from . import binding as _binding
from .constants import PollEvents
from .errors import Closed


class PollItem:
    """ One entry of a poll set: the *socket* to watch and the *events* of
        interest. After :func:`poll` returns, :attr:`revents` holds the
        events that are ready; if the socket had already been closed,
        :attr:`revents` is POLLERR and :attr:`error` holds the
        :class:`zsock.errors.Closed` exception for that entry.
    """

    def __init__(self, socket, events=PollEvents.POLLIN):

        self.socket = socket
        self.events = PollEvents(events)
        self.revents = PollEvents.NONE
        self.error = None


    def __repr__(self):
        return 'PollItem(%r, %r, revents=%r)' % (self.socket, self.events, self.revents)


    @property
    def ready(self):
        return self.revents != PollEvents.NONE


    @property
    def readable(self):
        return bool(self.revents & PollEvents.POLLIN)


    @property
    def writable(self):
        return bool(self.revents & PollEvents.POLLOUT)



def milliseconds(timeout):
    """ Convert a timeout in seconds to the engine's milliseconds, with -1
        meaning forever. Positive timeouts are rounded up, so that a short
        wait never turns into a non-blocking check.
    """

    if timeout is None or timeout < 0:
        return -1

    return int(math.ceil(timeout * 1000))


def poll(items, timeout=None):
    """ Wait until at least one of *items*, a sequence of :class:`PollItem`,
        is ready or *timeout* seconds pass. Returns the number of ready
        entries; each entry's :attr:`PollItem.revents` is updated in place.

        An entry whose socket is already closed is reported as ready with
        POLLERR, and does not prevent the other entries from being polled.
    """

    items = list(items)
    timeout = milliseconds(timeout)

    live = list()
    ready = 0

    for item in items:
        item.revents = PollEvents.NONE
        item.error = None

        try:
            handle = item.socket._live()
        except Closed as exc:
            item.error = exc
            item.revents = PollEvents.POLLERR
            ready += 1
        else:
            live.append((handle, item))

    if ready > 0:
        # Something is already ready; only check the rest.
        timeout = 0

    if live:
        binding = live[0][1].socket._binding
    elif ready > 0:
        return ready
    else:
        binding = _binding.default

    requests = [(handle, int(item.events)) for handle, item in live]
    results = binding.poll(requests, timeout)

    # The engine reports ready entries in registration order; match them up
    # by handle, so a socket listed twice is handled correctly.

    for handle, revents in results:
        for index, (candidate, item) in enumerate(live):
            if candidate is handle:
                item.revents = PollEvents(int(revents))
                del live[index]
                break

        if revents:
            ready += 1

    return ready



class Poller:
    """ A reusable poll set. Register each socket with the events of
        interest, then call :meth:`poll` repeatedly.
    """

    def __init__(self):
        self.items = list()


    def __contains__(self, socket):
        return self._find(socket) is not None


    def __len__(self):
        return len(self.items)


    def _find(self, socket):

        for item in self.items:
            if item.socket is socket:
                return item

        return None


    def register(self, socket, events=PollEvents.POLLIN | PollEvents.POLLOUT):
        """ Watch *socket* for *events*. Registering a socket again replaces
            its events; registering with no events removes it.
        """

        if not events:
            self.unregister(socket)
            return

        item = self._find(socket)
        if item is None:
            self.items.append(PollItem(socket, events))
        else:
            item.events = PollEvents(events)


    modify = register


    def unregister(self, socket):

        item = self._find(socket)
        if item is None:
            raise KeyError('socket is not registered: %r' % (socket,))

        self.items.remove(item)


    def poll(self, timeout=None):
        """ Wait as :func:`poll` does and return the list of ready
            :class:`PollItem` entries.
        """

        poll(self.items, timeout)
        return [item for item in self.items if item.ready]


# end of class Poller


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
