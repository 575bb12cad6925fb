import logging
from contextlib import AsyncExitStack
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from anyio import create_task_group
from anyio.abc import TaskGroup
from reactivex.abc import DisposableBase
from reactivex.subject import BehaviorSubject

from saga_store.broadcast import ActionBroadcast
from saga_store.errors import SagaStoreError, StoreNotRunningError
from saga_store.middleware import Middleware, compose_middleware
from saga_store.tracker import OperationTracker, ScopedOperation

logger = logging.getLogger(__name__)

Reducer = Callable[[Any, Any], Any]
ErrorHandler = Callable[[Exception], Awaitable[None]]


class Store:
    """Synchronous reducer store with a middleware chain."""

    def __init__(self, reducer: Reducer, initial_state: Any = None, middlewares: Sequence[Middleware] = ()):
        self.reducer = reducer
        self.state = initial_state
        self._states = BehaviorSubject(initial_state)
        self._dispatch = compose_middleware(self, middlewares)(self._reduce)

    def get_state(self) -> Any:
        return self.state

    def dispatch(self, action: Any) -> Any:
        return self._dispatch(action)

    def _reduce(self, action: Any) -> Any:
        self.state = self.reducer(self.state, action)
        self._states.on_next(self.state)
        return action

    def subscribe(self, listener: Callable[[Any], None]) -> DisposableBase:
        """Call ``listener`` with the current state now and after every reduction."""
        return self._states.subscribe(listener)


class ObservableActionStore(Store):
    """Store that broadcasts every dispatched action on ``actions``.

    Async sagas run in a task group owned by the store; open it with
    ``async with store:``. Leaving the block waits for running sagas and then
    detaches all action observers.
    """

    def __init__(self, reducer: Reducer, initial_state: Any = None, middlewares: Sequence[Middleware] = ()):
        super().__init__(reducer, initial_state, middlewares)
        self.actions = ActionBroadcast()
        self.error_handlers: List[ErrorHandler] = []
        self._exit_stack: Optional[AsyncExitStack] = None
        self._task_group: Optional[TaskGroup] = None

    def dispatch(self, action: Any) -> Any:
        result = super().dispatch(action)
        self.actions.emit(action)
        return result

    @property
    def running(self) -> bool:
        return self._task_group is not None

    async def __aenter__(self):
        if self._exit_stack is not None:
            raise SagaStoreError("Store is already running")
        async with AsyncExitStack() as stack:
            self._task_group = await stack.enter_async_context(create_task_group())
            self._exit_stack = stack.pop_all()
        return self

    async def __aexit__(self, *exc_info):
        if self._exit_stack is None:
            raise SagaStoreError("Store is not running")
        stack, self._exit_stack = self._exit_stack, None
        try:
            return await stack.__aexit__(*exc_info)
        finally:
            self._task_group = None
            self.actions.close()

    def start_saga(self, func: Callable[..., Awaitable[Any]], *args):
        """Schedule ``func(*args)`` in the store's task group without waiting for it."""
        if self._task_group is None:
            raise StoreNotRunningError("Store task group is not open; use 'async with store:'")
        self._task_group.start_soon(func, *args)

    def add_error_handler(self, handler: ErrorHandler):
        """Add a handler awaited with every exception raised by an async saga."""
        self.error_handlers.append(handler)

    async def _handle_error(self, error: Exception):
        for handler in self.error_handlers:
            try:
                await handler(error)
            except Exception:
                logger.exception("Saga error handler %r failed", handler)


class AwaitableStore(ObservableActionStore):
    """Store whose dispatches can be awaited until triggered async sagas finish."""

    def __init__(self, reducer: Reducer, initial_state: Any = None, middlewares: Sequence[Middleware] = ()):
        super().__init__(reducer, initial_state, middlewares)
        self.tracker = OperationTracker()

    def async_operation(self) -> ScopedOperation:
        return self.tracker.enter()

    async def dispatch_async(self, action: Any) -> Any:
        """Dispatch ``action`` and wait until no async saga is in flight."""
        result = self.dispatch(action)
        await self.tracker.first_zero()
        return result
