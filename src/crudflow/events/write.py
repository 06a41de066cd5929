"""
Write Events - Lifecycle Notifications for Mutations

"Before" events fire strictly before the persistence call and "after" events
strictly after it. No event fires once a step has failed.
"""

from typing import Any, Generic, TypeVar

E = TypeVar("E")
I = TypeVar("I")


class WriteEvents(Generic[E, I]):
    """
    Observer notified by create, update and delete.

    All methods are no-ops by default.
    """

    def on_before_create(self, input: I, entity: E) -> Any:
        """Called after the input was mapped into the blank entity, before it is persisted."""
        pass

    def on_after_create(self, input: I, entity: E) -> Any:
        pass

    def on_before_update(self, input: I, entity: E) -> Any:
        pass

    def on_after_update(self, input: I, entity: E) -> Any:
        pass

    def on_before_delete(self, entity: E) -> Any:
        pass

    def on_after_delete(self, entity: E) -> Any:
        pass

    def each_entity(self, entity: E) -> Any:
        """Called once per written entity, after the matching "after" event."""
        pass


DEFAULT_WRITE_EVENTS: WriteEvents[Any, Any] = WriteEvents()

__all__ = ["WriteEvents", "DEFAULT_WRITE_EVENTS"]
