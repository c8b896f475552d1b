""" Process-wide defaults for zsock. Each value is read once from the
    environment when this module is imported; assigning to the module
    attribute afterwards changes the default for any context or socket
    created from then on.

    ``ZSOCK_IO_THREADS``
        Number of engine I/O threads for each new :class:`zsock.Context`.
        Defaults to 1.

    ``ZSOCK_LINGER``
        LINGER, in milliseconds, applied to every new :class:`zsock.Socket`.
        Defaults to 0, so that closing a socket never waits on undelivered
        messages. Set to -1 to keep the engine's own default.
"""

import os


def _integer(variable, default):

    try:
        value = os.environ[variable]
    except KeyError:
        return default

    value = value.strip()
    if value == '':
        return default

    try:
        return int(value)
    except ValueError:
        raise ValueError('%s must be an integer, not %r' % (variable, value))


io_threads = _integer('ZSOCK_IO_THREADS', 1)
linger = _integer('ZSOCK_LINGER', 0)

if io_threads < 0:
    raise ValueError('ZSOCK_IO_THREADS cannot be negative: %d' % (io_threads))


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
