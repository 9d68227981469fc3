import logging
import selectors
from typing import Callable, Iterable, Set

from .errors import MultiplexError

logger = logging.getLogger(__name__)


class EventMultiplexer:
    """Blocks until one of the watched handles is readable.

    Handles are anything with a fileno(): the listening socket counts as
    readable when a connection is pending, a client when it has data or
    has been closed by the peer. A fresh selector is filled from the watch
    set on every call, so descriptors above FD_SETSIZE are fine wherever
    the platform selector (epoll, kqueue, poll) supports them.
    """

    def __init__(self, selector_factory: Callable = selectors.DefaultSelector):
        self._selector_factory = selector_factory

    def wait(self, watch_set: Iterable) -> Set:
        try:
            with self._selector_factory() as selector:
                for handle in watch_set:
                    selector.register(handle, selectors.EVENT_READ)
                # No timeout, the relay only wakes up for I/O
                events = selector.select()
        except (OSError, ValueError, KeyError) as e:
            errno = getattr(e, "errno", None)
            logger.error("select(): %s", e)
            raise MultiplexError(f"select failed: {e}", errno=errno) from e
        return {key.fileobj for key, _ in events}
