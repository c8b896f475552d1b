""" Typed socket options.

    Every configurable socket attribute is described once, in the table at
    the bottom of this module, by an option descriptor: the option's name,
    the engine's numeric identifier for it, the semantic *kind* of its value,
    and whether it can be read, written, or both. One generic routine per
    direction does the marshalling for every option, driven by the kind::

        socket.set_option(sockopt.LINGER, 0)
        socket.get_option(sockopt.IDENTITY)         # -> bytes
        socket.set_option(sockopt.SOCKS_PROXY, None) # clears the proxy

    Read-only options are :class:`GetOption` instances and have no ``set``
    method; write-only options are :class:`SetOption` instances and have no
    ``get`` method. The :class:`Gettable` and :class:`Settable` protocols let
    a static type checker reject a write to a read-only option, and the
    value type is carried through the generic parameters, so
    ``socket.get_option(sockopt.IPV6)`` is known to be a bool.

    Conventions for each kind of value:

    Integers
        Signed 32 and 64 bit, and unsigned 64 bit. Values are range checked
        before anything is written; a value that does not fit raises
        :class:`zsock.errors.OptionValueError`. Unsigned 64 bit values are
        handed to the engine as their two's complement signed image and
        masked back on the way out, so the full unsigned range round-trips.

    Booleans
        Written as 0 or 1. On read, only a raw value of exactly 1 is True;
        any other raw value is False. There is no error branch besides the
        transport's own.

    Byte strings
        Most options have their own maximum length; subscription prefixes
        have none. Writing more than the maximum is refused locally with
        :class:`OptionValueError`; reads return exactly as many bytes as the
        engine reported. The CURVE keys are read through a buffer of exactly
        the key size, the only size the engine answers for them.

    Text
        Encoded as UTF-8. The engine reports text options with their NUL
        terminator included in the length; the reported length is taken as
        authoritative and a single trailing NUL is removed only if it is
        actually present. Invalid UTF-8 raises
        :class:`zsock.errors.EncodingError`, which carries the raw bytes.

    Nullable text
        As text, and additionally accepts None on write, which is sent to
        the engine as a NULL, zero-length value rather than as an empty
        string. Reading a cleared option returns ''.

    Every failure names the option and the direction ('get' or 'set') that
    failed. Transport failures stay transport failures: decoding only
    happens after the engine has successfully returned a value.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Generic, Optional, Protocol, TypeVar, Union, runtime_checkable

import zmq

from .constants import PollEvents
from .errors import EncodingError, OptionValueError


G = TypeVar('G')
S = TypeVar('S')
G_co = TypeVar('G_co', covariant=True)
S_contra = TypeVar('S_contra', contravariant=True)

# Marker returned by Kind.encode() when the engine should receive NULL.
NULL = object()

registry: Dict[str, 'Option'] = dict()


class Kind(ABC, Generic[G, S]):
    """ The semantic type of an option's value. :meth:`encode` turns a
        caller's value of type *S* into the raw representation handed to the
        engine, :meth:`decode` turns the engine's raw value into type *G*.
    """

    name = 'value'

    # Buffer size to read the raw value through, None for the engine's own.
    length = None

    @abstractmethod
    def encode(self, option: str, value: S):
        pass


    @abstractmethod
    def decode(self, option: str, raw) -> G:
        pass


    def __repr__(self):
        return self.name



class Integer(Kind[int, int]):

    def __init__(self, bits: int, signed: bool):

        self.bits = bits
        self.signed = signed

        if signed:
            self.minimum = -(1 << (bits - 1))
            self.maximum = (1 << (bits - 1)) - 1
            self.name = 'int%d' % (bits)
        else:
            self.minimum = 0
            self.maximum = (1 << bits) - 1
            self.name = 'uint%d' % (bits)


    def encode(self, option, value):

        if isinstance(value, bool) or not isinstance(value, int):
            raise OptionValueError(option, 'set', 'expected an integer, got %r' % (value,))

        if value < self.minimum or value > self.maximum:
            message = '%d is outside the %s range %d..%d'
            message = message % (value, self.name, self.minimum, self.maximum)
            raise OptionValueError(option, 'set', message)

        # The engine stores every integer option in a signed C type.

        if not self.signed and value > (self.maximum >> 1):
            value -= 1 << self.bits

        return value


    def decode(self, option, raw):

        raw = int(raw)

        if self.signed:
            return raw

        return raw & self.maximum



class Boolean(Kind[bool, bool]):

    name = 'bool'

    def encode(self, option, value):

        if not isinstance(value, bool):
            raise OptionValueError(option, 'set', 'expected a bool, got %r' % (value,))

        if value:
            return 1
        return 0


    def decode(self, option, raw):
        return raw == 1



class Bytes(Kind[bytes, bytes]):
    """ A byte string of at most *max_length* bytes, or of any length if
        *max_length* is None. A *sized* option is read through a buffer of
        exactly *max_length* bytes, the only size the engine answers for it.
    """

    def __init__(self, max_length: Optional[int] = None, sized: bool = False):

        self.max_length = max_length

        if max_length is None:
            self.name = 'bytes'
        else:
            self.name = 'bytes[%d]' % (max_length)

        if sized:
            self.length = max_length


    def encode(self, option, value):

        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise OptionValueError(option, 'set', 'expected bytes, got %r' % (value,))

        value = bytes(value)
        if self.max_length is not None and len(value) > self.max_length:
            message = '%d bytes exceeds the maximum of %d' % (len(value), self.max_length)
            raise OptionValueError(option, 'set', message)

        return value


    def decode(self, option, raw):

        raw = bytes(raw)
        if self.max_length is not None and len(raw) > self.max_length:
            message = 'engine returned %d bytes, more than the maximum of %d'
            message = message % (len(raw), self.max_length)
            raise OptionValueError(option, 'get', message)

        return raw



class Text(Kind[str, S]):

    nullable = False

    def __init__(self, max_length: int):
        self.max_length = max_length
        self.name = 'str[%d]' % (max_length)


    def encode(self, option, value):

        if value is None and self.nullable:
            return NULL

        if not isinstance(value, str):
            raise OptionValueError(option, 'set', 'expected a str, got %r' % (value,))

        try:
            encoded = value.encode('utf-8')
        except UnicodeEncodeError as exc:
            raise OptionValueError(option, 'set', str(exc)) from exc

        if b'\0' in encoded:
            raise OptionValueError(option, 'set', 'text cannot contain NUL')

        if len(encoded) > self.max_length:
            message = '%d bytes exceeds the maximum of %d' % (len(encoded), self.max_length)
            raise OptionValueError(option, 'set', message)

        return encoded


    def decode(self, option, raw):

        raw = bytes(raw)
        if raw.endswith(b'\0'):
            raw = raw[:-1]

        try:
            return raw.decode('utf-8')
        except UnicodeDecodeError as exc:
            raise EncodingError(raw, option, exc.reason) from exc



class NullableText(Text[Optional[str]]):

    nullable = True

    def __init__(self, max_length: int):
        Text.__init__(self, max_length)
        self.name = 'str[%d]?' % (max_length)



class ReadOnly(Kind[G, None]):
    """ A value only the engine produces.
    """

    def encode(self, option, value):
        raise OptionValueError(option, 'set', '%s values are read-only' % (self.name))



class Events(ReadOnly[PollEvents]):

    name = 'events'
    mask = PollEvents.POLLIN | PollEvents.POLLOUT | PollEvents.POLLERR

    def decode(self, option, raw):
        return PollEvents(int(raw) & self.mask)



class FileDescriptor(ReadOnly[int]):

    name = 'fd'

    def decode(self, option, raw):
        return int(raw)



INT32 = Integer(32, signed=True)
INT64 = Integer(64, signed=True)
UINT64 = Integer(64, signed=False)
BOOL = Boolean()
EVENT_BITS = Events()
DESCRIPTOR = FileDescriptor()


@runtime_checkable
class Gettable(Protocol[G_co]):
    """ Anything :meth:`zsock.Socket.get_option` accepts.
    """

    name: str

    def get(self, binding, handle) -> G_co: ...



@runtime_checkable
class Settable(Protocol[S_contra]):
    """ Anything :meth:`zsock.Socket.set_option` accepts.
    """

    name: str

    def set(self, binding, handle, value: S_contra) -> None: ...



class Option:
    """ Base class for option descriptors. A descriptor is immutable once
        created; *identifier* is the engine's numeric option number.
    """

    readable = False
    writable = False

    def __init__(self, name: str, identifier: int, kind: Kind):

        self.name = name
        self.identifier = int(identifier)
        self.kind = kind


    def __repr__(self):

        access = ''
        if self.readable:
            access += 'r'
        if self.writable:
            access += 'w'

        return '<option %s %s %s>' % (self.name, self.kind, access)


    @property
    def max_length(self) -> Optional[int]:
        """ Maximum byte length for variable-size options, otherwise None.
        """

        return getattr(self.kind, 'max_length', None)



class GetOption(Option, Generic[G]):
    """ A readable option.
    """

    readable = True

    def get(self, binding, handle) -> G:
        """ Read this option from the engine *handle* through *binding*.
        """

        raw = binding.getsockopt(handle, self.identifier, self.name, self.kind.length)
        return self.kind.decode(self.name, raw)



class SetOption(Option, Generic[S]):
    """ A writable option.
    """

    writable = True

    def set(self, binding, handle, value: S) -> None:
        """ Write *value* to this option of the engine *handle* through
            *binding*. A None value for a nullable option is written as NULL.
        """

        raw = self.kind.encode(self.name, value)

        if raw is NULL:
            binding.setsockopt_null(handle, self.identifier, self.name)
        else:
            binding.setsockopt(handle, self.identifier, raw, self.name)



class GetSetOption(GetOption[G], SetOption[S]):
    """ An option that is both readable and writable.
    """

    readable = True
    writable = True



def _register(option):

    if option.name in registry:
        raise ValueError('option already registered: ' + option.name)

    registry[option.name] = option
    return option


def _identifier(name, identifier):

    if identifier is None:
        identifier = getattr(zmq, name)

    return identifier


def getset(name: str, kind: Kind[G, S], identifier: Optional[int] = None) -> GetSetOption[G, S]:
    identifier = _identifier(name, identifier)
    return _register(GetSetOption(name, identifier, kind))


def get_only(name: str, kind: Kind[G, S], identifier: Optional[int] = None) -> GetOption[G]:
    identifier = _identifier(name, identifier)
    return _register(GetOption(name, identifier, kind))


def set_only(name: str, kind: Kind[G, S], identifier: Optional[int] = None) -> SetOption[S]:
    identifier = _identifier(name, identifier)
    return _register(SetOption(name, identifier, kind))


def lookup(name: Union[str, Option]) -> Option:
    """ Return the registered descriptor for *name*, which is matched
        without regard to case. Descriptors are returned unchanged.
    """

    if isinstance(name, Option):
        return name

    try:
        return registry[name.upper()]
    except KeyError:
        raise KeyError('unknown socket option: ' + str(name))
    except AttributeError:
        raise TypeError('expected an option name or descriptor, got %r' % (name,))



# The table. Identifiers default to the engine constant of the same name.

MAXMSGSIZE = getset('MAXMSGSIZE', INT64)
SNDHWM = getset('SNDHWM', INT32)
RCVHWM = getset('RCVHWM', INT32)
AFFINITY = getset('AFFINITY', UINT64)
RATE = getset('RATE', INT32)
RECOVERY_IVL = getset('RECOVERY_IVL', INT32)
SNDBUF = getset('SNDBUF', INT32)
RCVBUF = getset('RCVBUF', INT32)
TOS = getset('TOS', INT32)
LINGER = getset('LINGER', INT32)
RECONNECT_IVL = getset('RECONNECT_IVL', INT32)
RECONNECT_IVL_MAX = getset('RECONNECT_IVL_MAX', INT32)
BACKLOG = getset('BACKLOG', INT32)
MULTICAST_HOPS = getset('MULTICAST_HOPS', INT32)
RCVTIMEO = getset('RCVTIMEO', INT32)
SNDTIMEO = getset('SNDTIMEO', INT32)
HANDSHAKE_IVL = getset('HANDSHAKE_IVL', INT32)
TCP_KEEPALIVE = getset('TCP_KEEPALIVE', INT32)
TCP_KEEPALIVE_CNT = getset('TCP_KEEPALIVE_CNT', INT32)
TCP_KEEPALIVE_IDLE = getset('TCP_KEEPALIVE_IDLE', INT32)
TCP_KEEPALIVE_INTVL = getset('TCP_KEEPALIVE_INTVL', INT32)
HEARTBEAT_IVL = getset('HEARTBEAT_IVL', INT32)
HEARTBEAT_TTL = getset('HEARTBEAT_TTL', INT32)
HEARTBEAT_TIMEOUT = getset('HEARTBEAT_TIMEOUT', INT32)
CONNECT_TIMEOUT = getset('CONNECT_TIMEOUT', INT32)

IPV6 = getset('IPV6', BOOL)
IMMEDIATE = getset('IMMEDIATE', BOOL)
PLAIN_SERVER = getset('PLAIN_SERVER', BOOL)
CONFLATE = getset('CONFLATE', BOOL)
CURVE_SERVER = getset('CURVE_SERVER', BOOL)

# The engine accepts these but refuses to report them back.
ROUTER_MANDATORY = set_only('ROUTER_MANDATORY', BOOL)
PROBE_ROUTER = set_only('PROBE_ROUTER', BOOL)
XPUB_VERBOSE = set_only('XPUB_VERBOSE', BOOL)

IDENTITY = getset('IDENTITY', Bytes(255))
# The engine only reports CURVE keys into a buffer of exactly the key size.
CURVE_PUBLICKEY = getset('CURVE_PUBLICKEY', Bytes(32, sized=True))
CURVE_SECRETKEY = getset('CURVE_SECRETKEY', Bytes(32, sized=True))
CURVE_SERVERKEY = getset('CURVE_SERVERKEY', Bytes(32, sized=True))

# Topic prefixes have no length limit.
SUBSCRIBE = set_only('SUBSCRIBE', Bytes())
UNSUBSCRIBE = set_only('UNSUBSCRIBE', Bytes())

# The longest allowable domain name is 253 bytes, 255 leaves room for the
# terminator.
SOCKS_PROXY = getset('SOCKS_PROXY', NullableText(255))
ZAP_DOMAIN = getset('ZAP_DOMAIN', Text(255))
PLAIN_USERNAME = getset('PLAIN_USERNAME', NullableText(255))
PLAIN_PASSWORD = getset('PLAIN_PASSWORD', NullableText(255))

LAST_ENDPOINT = get_only('LAST_ENDPOINT', Text(255))
TYPE = get_only('TYPE', INT32)
RCVMORE = get_only('RCVMORE', BOOL)
FD = get_only('FD', DESCRIPTOR)
EVENTS = get_only('EVENTS', EVENT_BITS)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
