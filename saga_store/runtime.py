import logging
from typing import Any, Awaitable, Callable, Optional

from reactivex.abc import DisposableBase

from saga_store.actions import Pattern, matches
from saga_store.store import AwaitableStore, ObservableActionStore
from saga_store.tracker import ScopedOperation

logger = logging.getLogger(__name__)

Saga = Callable[[Any, ObservableActionStore], None]
AsyncSaga = Callable[[Any, ObservableActionStore], Awaitable[None]]


def bind(store: ObservableActionStore, handler: Saga, pattern: Pattern = None) -> DisposableBase:
    """Run ``handler(action, store)`` synchronously for every matching action.

    The handler runs on the dispatch call stack, so its exceptions propagate
    out of ``store.dispatch``.
    """

    def on_action(action):
        if matches(pattern, action):
            handler(action, store)

    return store.actions.subscribe(on_action)


def bind_async(store: ObservableActionStore, handler: AsyncSaga, pattern: Pattern = None) -> DisposableBase:
    """Start ``handler(action, store)`` as a new task for every matching action.

    Invocations are not serialized: a new action starts a new invocation even
    while earlier ones are still running. On an AwaitableStore each invocation
    holds an operation on the tracker, acquired during the dispatch itself and
    released when the handler finishes, successfully or not.
    """

    def on_action(action):
        if not matches(pattern, action):
            return
        operation = store.async_operation() if isinstance(store, AwaitableStore) else None
        try:
            store.start_saga(_run_saga, store, handler, action, operation)
        except BaseException:
            if operation is not None:
                operation.release()
            raise

    return store.actions.subscribe(on_action)


async def _run_saga(store: ObservableActionStore, handler: AsyncSaga, action: Any,
                    operation: Optional[ScopedOperation]):
    try:
        await handler(action, store)
    except Exception as e:
        logger.exception("Saga %r failed on %r", handler, action)
        await store._handle_error(e)
    finally:
        if operation is not None:
            operation.release()
