import inspect

from saga_store.actions import Pattern
from saga_store.runtime import bind, bind_async


def saga(store, pattern: Pattern = None):
    """Decorator that binds a handler to ``store`` as a saga.

    Coroutine functions are bound with ``bind_async``, plain functions with
    ``bind``. The subscription is kept on the function as ``subscription``.
    """

    def decorator(func):
        if inspect.iscoroutinefunction(func):
            func.subscription = bind_async(store, func, pattern)
        else:
            func.subscription = bind(store, func, pattern)
        return func

    return decorator
