""" Typed sockets, typed socket options, message buffers, and multiplexed
    polling on top of the ZeroMQ transport engine. Wire I/O, connection
    handshakes and the request/reply, publish/subscribe and routing patterns
    are left to the engine; this package makes using it safe: every option
    has one statically typed get/set contract, a socket's send and receive
    paths can never be entered twice at once, and every received buffer has
    exactly one owner.
"""

# Utility components.

from . import config
from . import errors
from . import weakref

# The engine boundary, and what is built on it.

from . import binding
from . import sockopt

from .constants import *
from .errors import (
    Error,
    TransportError,
    WouldBlock,
    AddressError,
    Closed,
    EncodingError,
    ExclusivityViolation,
    OptionValueError,
)

# Primary public-facing interfaces.

from .message import Message
from .socket import Socket, FrameIterator
from .context import Context, instance
from . import poll
from .poll import PollItem, Poller


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
