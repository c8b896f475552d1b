""" Enumerations shared across zsock. The numeric values are taken from the
    transport engine's published constants, so they track whatever version
    of the engine is installed.
"""

from enum import IntEnum, IntFlag

import zmq

__all__ = (
    'SocketType', 'PollEvents', 'Flags',
    'PAIR', 'PUB', 'SUB', 'REQ', 'REP', 'DEALER', 'ROUTER',
    'PULL', 'PUSH', 'XPUB', 'XSUB', 'STREAM',
    'POLLIN', 'POLLOUT', 'POLLERR', 'DONTWAIT', 'SNDMORE',
)


class SocketType(IntEnum):
    """ The messaging pattern a :class:`zsock.Socket` is bound to. The type
        is fixed when the socket is created.
    """

    PAIR = int(zmq.PAIR)
    PUB = int(zmq.PUB)
    SUB = int(zmq.SUB)
    REQ = int(zmq.REQ)
    REP = int(zmq.REP)
    DEALER = int(zmq.DEALER)
    ROUTER = int(zmq.ROUTER)
    PULL = int(zmq.PULL)
    PUSH = int(zmq.PUSH)
    XPUB = int(zmq.XPUB)
    XSUB = int(zmq.XSUB)
    STREAM = int(zmq.STREAM)


class PollEvents(IntFlag):
    """ Readiness bits reported by :func:`zsock.poll.poll` and by the
        EVENTS socket option.
    """

    NONE = 0
    POLLIN = int(zmq.POLLIN)
    POLLOUT = int(zmq.POLLOUT)
    POLLERR = int(zmq.POLLERR)


class Flags(IntFlag):
    """ Flags accepted by the send and receive calls.
    """

    NONE = 0
    DONTWAIT = int(zmq.DONTWAIT)
    SNDMORE = int(zmq.SNDMORE)


# Short aliases, following the engine's own naming.

PAIR = SocketType.PAIR
PUB = SocketType.PUB
SUB = SocketType.SUB
REQ = SocketType.REQ
REP = SocketType.REP
DEALER = SocketType.DEALER
ROUTER = SocketType.ROUTER
PULL = SocketType.PULL
PUSH = SocketType.PUSH
XPUB = SocketType.XPUB
XSUB = SocketType.XSUB
STREAM = SocketType.STREAM

POLLIN = PollEvents.POLLIN
POLLOUT = PollEvents.POLLOUT
POLLERR = PollEvents.POLLERR

DONTWAIT = Flags.DONTWAIT
SNDMORE = Flags.SNDMORE


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
