"""
Events - Lifecycle Observers

Independent read and write channels with no-op defaults, composed into
``CrudEvents`` for full CRUD providers.
"""

from .read import ReadEvents, DEFAULT_READ_EVENTS
from .write import WriteEvents, DEFAULT_WRITE_EVENTS
from .crud import CrudEvents, DEFAULT_CRUD_EVENTS

__all__ = [
    "ReadEvents", "WriteEvents", "CrudEvents",
    "DEFAULT_READ_EVENTS", "DEFAULT_WRITE_EVENTS", "DEFAULT_CRUD_EVENTS"
]
