"""
CRUD Events - Combined Read and Write Channels

🔔 Composed Event Capability:
Full CRUD providers need both event channels. ``CrudEvents`` holds one read
channel and one write channel side by side instead of inheriting from both,
so a read-only handler, a write-only handler, or one object implementing
both can be plugged in without diamond-shaped overrides.

Usage:
    class AuditEvents(WriteEvents):
        def on_after_create(self, input, entity):
            audit_log.append(("created", entity.id))

    provider = MemoryCrudProvider(User, events=CrudEvents(write=AuditEvents()))
"""

from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar, Union

from .read import ReadEvents, DEFAULT_READ_EVENTS
from .write import WriteEvents, DEFAULT_WRITE_EVENTS

E = TypeVar("E")
ID = TypeVar("ID")
I = TypeVar("I")


@dataclass(frozen=True)
class CrudEvents(Generic[E, ID, I]):
    """Read channel plus write channel; missing channels are no-ops"""
    read: ReadEvents = field(default=DEFAULT_READ_EVENTS)
    write: WriteEvents = field(default=DEFAULT_WRITE_EVENTS)

    def __post_init__(self):
        if self.read is None:
            object.__setattr__(self, "read", DEFAULT_READ_EVENTS)
        if self.write is None:
            object.__setattr__(self, "write", DEFAULT_WRITE_EVENTS)

    @classmethod
    def default(cls) -> "CrudEvents[Any, Any, Any]":
        return DEFAULT_CRUD_EVENTS

    @classmethod
    def of(cls, handler: Any) -> "CrudEvents[Any, Any, Any]":
        """Use one handler object for both channels (it implements both method sets)."""
        return cls(read=handler, write=handler)

    @classmethod
    def coerce(cls, events: Union[None, "CrudEvents", ReadEvents, WriteEvents]) -> "CrudEvents":
        """
        Normalize the ``events`` argument accepted by providers.

        Args:
            events: ``None``, a ``CrudEvents``, a ``ReadEvents`` or a ``WriteEvents``
                (an object that is both is used for both channels)

        Returns:
            A ``CrudEvents`` instance
        """
        if events is None:
            return DEFAULT_CRUD_EVENTS
        if isinstance(events, CrudEvents):
            return events
        is_read = isinstance(events, ReadEvents)
        is_write = isinstance(events, WriteEvents)
        if is_read and is_write:
            return cls.of(events)
        if is_read:
            return cls(read=events)
        if is_write:
            return cls(write=events)
        raise TypeError(f"Unsupported events object: {type(events).__name__}")


DEFAULT_CRUD_EVENTS: CrudEvents[Any, Any, Any] = CrudEvents()

__all__ = ["CrudEvents", "DEFAULT_CRUD_EVENTS"]
