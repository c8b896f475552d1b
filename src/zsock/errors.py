""" Exceptions raised by zsock. Every failure reported by the transport
    engine keeps the engine's raw error number; nothing is retried here and
    nothing is quietly converted into a default value.
"""

import errno

import zmq


class Error(Exception):
    """ Base class for all zsock errors.
    """


class TransportError(Error):
    """ The transport engine reported a failure. The engine's raw error
        number is preserved as *code*; when the failure happened while
        reading or writing a socket option, *option* names the option and
        *direction* is either 'get' or 'set'.
    """

    def __init__(self, code, message=None, option=None, direction=None):

        self.code = code
        self.option = option
        self.direction = direction

        if message is None:
            message = describe(code)

        if option is not None:
            message = '%s %s: %s' % (direction, option, message)

        Error.__init__(self, message)
        self.strerror = message



class WouldBlock(TransportError):
    """ A non-blocking operation had nothing to do. Always recoverable by
        trying again later.
    """

    def __init__(self, code=errno.EAGAIN, message=None, option=None, direction=None):
        TransportError.__init__(self, code, message, option, direction)



class AddressError(TransportError):
    """ An endpoint string was rejected, either locally because it does not
        have the ``transport://address`` shape, or by the engine. Local
        rejections carry a *code* of None.
    """

    def __init__(self, endpoint, code=None, message=None):

        self.endpoint = endpoint

        if message is None:
            if code is None:
                message = 'malformed endpoint: %r' % (endpoint,)
            else:
                message = '%s: %r' % (describe(code), endpoint)

        TransportError.__init__(self, code, message)



class Closed(Error):
    """ The socket, context, or message has already been released.
    """



class EncodingError(Error, ValueError):
    """ Bytes that were expected to be UTF-8 text were not. The original
        bytes are kept as *raw*; *option* names the socket option involved,
        if any.
    """

    def __init__(self, raw, option=None, reason=None):

        self.raw = bytes(raw)
        self.option = option

        message = 'invalid UTF-8'
        if option is not None:
            message = 'get %s: %s' % (option, message)
        if reason is not None:
            message = '%s (%s)' % (message, reason)

        Error.__init__(self, message)



class ExclusivityViolation(Error):
    """ A second send, receive, or frame iteration was attempted on a socket
        that is already engaged in one.
    """



class OptionValueError(Error, ValueError):
    """ A value cannot be represented by the option it was given to, or the
        option does not support the requested direction.
    """

    def __init__(self, option, direction, message):

        self.option = option
        self.direction = direction
        Error.__init__(self, '%s %s: %s' % (direction, option, message))



def describe(code):
    """ Return a human-readable description of the engine error *code*.
    """

    if code is None:
        return 'unknown error'

    return zmq.strerror(code)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
