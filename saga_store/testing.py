from typing import Any, List

from saga_store.actions import Pattern
from saga_store.runtime import bind


class ActionRecorder:
    """Sync saga that records the actions it sees, together with the state at that point."""

    def __init__(self, store, pattern: Pattern = None):
        self.actions: List[Any] = []
        self.states: List[Any] = []
        self.subscription = bind(store, self._record, pattern)

    def _record(self, action, store):
        self.actions.append(action)
        self.states.append(store.get_state())


class CountRecorder:
    """Records every value published by an OperationTracker."""

    def __init__(self, tracker):
        self.values: List[int] = []
        self.subscription = tracker.stream.subscribe(self.values.append)
