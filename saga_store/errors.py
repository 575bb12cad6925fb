class SagaStoreError(Exception):
    """Base class for saga store errors."""


class StoreNotRunningError(SagaStoreError):
    """An async saga was triggered on a store whose task group is not open."""
