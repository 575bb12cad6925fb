import logging
import threading

import anyio
import reactivex
from reactivex import Observable
from reactivex import operators as ops
from reactivex.subject import BehaviorSubject

logger = logging.getLogger(__name__)


class ScopedOperation:
    """One open acquisition against an OperationTracker.

    Call ``release()`` exactly once, or use the handle as a context manager.
    Releasing twice drifts the count; it is not guarded.
    """

    def __init__(self, tracker: "OperationTracker"):
        self._tracker = tracker

    def release(self):
        self._tracker._adjust(-1)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.release()


class OperationTracker:
    """Counts in-flight async operations and publishes the count as a latest-value stream."""

    def __init__(self):
        self._count = 0
        self._lock = threading.RLock()
        self._subject = BehaviorSubject(0)
        self._stream = reactivex.create(self._subscribe)

    @property
    def count(self) -> int:
        return self._count

    @property
    def stream(self) -> Observable:
        """Read-only view: subscribers get the current count, then every change.

        An observer that raises is logged and never disturbs the counter.
        """
        return self._stream

    def _subscribe(self, observer, scheduler=None):
        def on_next(value: int):
            try:
                observer.on_next(value)
            except Exception:
                logger.exception("Operation count observer failed on %d", value)

        return self._subject.subscribe(on_next, observer.on_error, observer.on_completed, scheduler=scheduler)

    def enter(self) -> ScopedOperation:
        self._adjust(1)
        return ScopedOperation(self)

    def _adjust(self, delta: int):
        with self._lock:
            self._count += delta
            logger.debug("In-flight operations: %d", self._count)
            self._subject.on_next(self._count)

    async def first_zero(self):
        """Wait until the count is observed at 0.

        Returns straight away, without a checkpoint, if the count is already 0.
        """
        if self._count == 0:
            return
        reached = anyio.Event()
        subscription = self._stream.pipe(
            ops.filter(lambda count: count == 0),
            ops.take(1),
        ).subscribe(lambda _: reached.set())
        try:
            await reached.wait()
        finally:
            subscription.dispose()
