import logging
from functools import reduce
from typing import Any, Callable, Sequence

logger = logging.getLogger(__name__)

Dispatcher = Callable[[Any], Any]
Middleware = Callable[[Any], Callable[[Dispatcher], Dispatcher]]


def compose_middleware(store, middlewares: Sequence[Middleware]) -> Callable[[Dispatcher], Dispatcher]:
    """Build a wrapper that threads dispatch through ``middlewares``.

    The first middleware in the sequence runs outermost. Each one has the
    shape ``middleware(store)(next_dispatch)(action) -> result``.
    """
    chain = [middleware(store) for middleware in middlewares]

    def wrap(dispatch: Dispatcher) -> Dispatcher:
        return reduce(lambda next_dispatch, link: link(next_dispatch), reversed(chain), dispatch)

    return wrap


def logging_middleware(store):
    def wrap(next_dispatch: Dispatcher) -> Dispatcher:
        def dispatch(action):
            logger.debug("Dispatching %r", action)
            result = next_dispatch(action)
            logger.debug("Dispatched %r -> %r", action, result)
            return result
        return dispatch
    return wrap
