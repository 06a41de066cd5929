"""
Provider Contracts - Inbound CRUD Interfaces

📋 What Callers Depend On:
Abstract interfaces for the operations a provider exposes. Application code
should type against these rather than against a concrete adapter, the same
way repositories are consumed through ``EntityRepository``.

The blocking contracts return values directly; the ``Async*`` contracts
declare coroutine methods with the same signatures.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Iterable, List, Optional, TypeVar

from .core.paging import Page, Pagination, Sort

ID = TypeVar("ID")
I = TypeVar("I")
O = TypeVar("O")


class ReadProvider(ABC, Generic[ID, O]):
    """Read operations returning output models"""

    @abstractmethod
    def page(self, search: Optional[str] = None, query: Any = None,
             pagination: Optional[Pagination] = None, sort: Optional[Sort] = None) -> Page[O]:
        """
        Retrieve a page of outputs.

        Args:
            search: Free-text search; blank means "no search"
            query: Structured query understood by the adapter
            pagination: Page request, ``None`` for every match
            sort: Sort request, ``None`` for adapter order

        Returns:
            Page of outputs with the request metadata
        """
        pass

    @abstractmethod
    def find(self, id: ID) -> O:
        """
        Retrieve one output by identifier.

        Raises:
            NotFoundEntityError: If no entity has this identifier
        """
        pass

    @abstractmethod
    def find_many(self, ids: Iterable[ID]) -> List[O]:
        """Retrieve outputs for every identifier that exists."""
        pass

    @abstractmethod
    def count(self, search: Optional[str] = None, query: Any = None) -> int:
        pass

    @abstractmethod
    def exists(self, id: ID) -> bool:
        pass


class WriteProvider(ABC, Generic[ID, I, O]):
    """Mutating operations"""

    @abstractmethod
    def create(self, input: I) -> O:
        pass

    @abstractmethod
    def update(self, id: ID, input: I) -> O:
        """
        Apply ``input`` to an existing entity.

        Raises:
            NotFoundEntityError: If no entity has this identifier
        """
        pass

    @abstractmethod
    def delete(self, id: ID) -> None:
        """
        Remove an existing entity.

        Raises:
            NotFoundEntityError: If no entity has this identifier
        """
        pass


class CrudProvider(ReadProvider[ID, O], WriteProvider[ID, I, O]):
    """Full CRUD surface"""
    pass


class AsyncReadProvider(ABC, Generic[ID, O]):
    """Coroutine flavour of ``ReadProvider``"""

    @abstractmethod
    async def page(self, search: Optional[str] = None, query: Any = None,
                   pagination: Optional[Pagination] = None, sort: Optional[Sort] = None) -> Page[O]:
        pass

    @abstractmethod
    async def find(self, id: ID) -> O:
        pass

    @abstractmethod
    async def find_many(self, ids: Iterable[ID]) -> List[O]:
        pass

    @abstractmethod
    async def count(self, search: Optional[str] = None, query: Any = None) -> int:
        pass

    @abstractmethod
    async def exists(self, id: ID) -> bool:
        pass


class AsyncWriteProvider(ABC, Generic[ID, I, O]):
    """Coroutine flavour of ``WriteProvider``"""

    @abstractmethod
    async def create(self, input: I) -> O:
        pass

    @abstractmethod
    async def update(self, id: ID, input: I) -> O:
        pass

    @abstractmethod
    async def delete(self, id: ID) -> None:
        pass


class AsyncCrudProvider(AsyncReadProvider[ID, O], AsyncWriteProvider[ID, I, O]):
    pass


# Export main components
__all__ = [
    "ReadProvider", "WriteProvider", "CrudProvider",
    "AsyncReadProvider", "AsyncWriteProvider", "AsyncCrudProvider"
]
