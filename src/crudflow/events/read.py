"""
Read Events - Lifecycle Notifications for Read Operations

Every method is a no-op by default; subclasses override only what they need.
Methods may be declared ``async def`` when the handler is used with the
async providers.
"""

from typing import Any, Generic, Iterable, TypeVar

from ..core.paging import Page

E = TypeVar("E")
ID = TypeVar("ID")


class ReadEvents(Generic[E, ID]):
    """
    Observer notified by page, find, find_many, count and exists.

    ``each_entity`` is called once for every entity a read operation
    produced, after the operation-specific event.
    """

    def on_find(self, entity: E) -> Any:
        """Called after a single entity was found."""
        pass

    def on_find_many(self, entities: Iterable[E], ids: Iterable[ID]) -> Any:
        """Called after a bulk lookup with the entities found and the ids requested."""
        pass

    def on_count(self, count: int) -> Any:
        pass

    def on_exists(self, exists: bool, id: ID) -> Any:
        pass

    def on_page(self, page: Page[E]) -> Any:
        """Called with the page of entities, before content is mapped."""
        pass

    def each_entity(self, entity: E) -> Any:
        pass


DEFAULT_READ_EVENTS: ReadEvents[Any, Any] = ReadEvents()

__all__ = ["ReadEvents", "DEFAULT_READ_EVENTS"]
