import logging
from typing import Any, Callable, List

from reactivex import Observable
from reactivex import operators as ops
from reactivex.abc import DisposableBase
from reactivex.subject import Subject

logger = logging.getLogger(__name__)


class ActionBroadcast:
    """Hot stream of dispatched actions.

    Observers attached with ``subscribe`` only see actions emitted after they
    attach, in attach order. If some of them raise, the rest still receive
    the action and the first failure is re-raised from ``emit``.
    """

    def __init__(self):
        self._subject: Subject = Subject()
        self._failures: List[Exception] = []

    def subscribe(self, on_next: Callable[[Any], None]) -> DisposableBase:
        def guarded(action):
            try:
                on_next(action)
            except Exception as e:
                self._failures.append(e)

        return self._subject.subscribe(guarded)

    def pipe(self, *operators) -> Observable:
        """Read-only reactivex view of the actions, with ``operators`` applied."""
        return self._subject.pipe(ops.as_observable(), *operators)

    def emit(self, action: Any):
        # a sync saga may dispatch again; keep the outer emission's failures apart
        outer, self._failures = self._failures, []
        try:
            self._subject.on_next(action)
        finally:
            failures, self._failures = self._failures, outer
        if failures:
            for failure in failures[1:]:
                logger.error("Saga also failed on %r", action, exc_info=failure)
            raise failures[0]

    @property
    def observer_count(self) -> int:
        return len(self._subject.observers)

    def close(self):
        """Detach every observer. The broadcast stays usable for new ones."""
        subject, self._subject = self._subject, Subject()
        subject.on_completed()
