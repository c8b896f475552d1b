import logging
import weakref

logger = logging.getLogger(__name__)


def ref(thing, callback=None):
    """ Return a weak reference to the supplied argument, regardless of
        whether it is a simple object or a bound method.
    """

    try:
        thing.__func__
        thing.__self__
    except AttributeError:
        return weakref.ref(thing, callback)
    else:
        return weakref.WeakMethod(thing, callback)


def release_once(owner, release, *args):
    """ Arrange for *release* to be called with *args* exactly once: either
        when the returned finalizer is called explicitly, or when *owner* is
        garbage collected, whichever comes first. The arguments must not
        refer back to *owner*, or it will never be collected.

        An exception raised by *release* propagates to an explicit caller.
        During garbage collection there is no caller to propagate to, so the
        failure is logged instead.
    """

    finalizer = weakref.finalize(owner, _release, release, args)
    finalizer.atexit = False
    return finalizer


def _release(release, args):

    try:
        release(*args)
    except Exception:
        logger.warning('release of %r failed', release, exc_info=True)
        raise


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
