"""
Async Providers

Same step sequences as the blocking providers, run by the suspending
interpreter. Hooks, adapter methods, mapper methods and event handlers may be
plain functions or coroutine functions; a coroutine result is awaited before
the next step starts.

Public operations are ``async def``, so nothing happens until the returned
coroutine is awaited. A task cancelled before it starts runs no step; a task
cancelled mid-way keeps whatever already committed.
"""

from typing import Any, Awaitable, Callable, Iterable, List, Optional, TypeVar

from ..contracts import AsyncCrudProvider, AsyncReadProvider
from ..core.exceptions import NotFoundEntityError
from ..core.paging import Page, Pagination, Sort
from ..core.pipeline import Steps, run_suspending
from .lifecycle import ReadLifecycle, WriteLifecycle

E = TypeVar("E")
ID = TypeVar("ID")
I = TypeVar("I")
O = TypeVar("O")
T = TypeVar("T")


class AsyncEntityReadProvider(ReadLifecycle[E, ID, I, O], AsyncReadProvider[ID, O]):
    """Async read-only provider; ``internal_*`` hooks are usually ``async def``."""

    async def with_transaction(self, work: Callable[[], Awaitable[T]]) -> T:
        """Transaction boundary; the default awaits ``work`` without one."""
        return await work()

    async def page(self, search: Optional[str] = None, query: Any = None,
                   pagination: Optional[Pagination] = None, sort: Optional[Sort] = None) -> Page[O]:
        self._logger.debug(f"page(search={search!r}, query={query!r}, pagination={pagination}, sort={sort})")
        return await self._run(self._page_steps(search, query, pagination, sort))

    async def find(self, id: ID) -> O:
        self._logger.debug(f"find({id!r})")
        return await self._run(self._find_steps(id))

    async def find_many(self, ids: Iterable[ID]) -> List[O]:
        ids = list(ids)
        self._logger.debug(f"find_many({ids!r})")
        return await self._run(self._find_many_steps(ids))

    async def count(self, search: Optional[str] = None, query: Any = None) -> int:
        self._logger.debug(f"count(search={search!r}, query={query!r})")
        return await self._run(self._count_steps(search, query))

    async def exists(self, id: ID) -> bool:
        self._logger.debug(f"exists({id!r})")
        return await self._run(self._exists_steps(id))

    async def _run(self, steps: Steps) -> Any:
        try:
            return await run_suspending(steps, self.with_transaction)
        except NotFoundEntityError as e:
            self._logger.debug(f"Not found: {e}")
            raise


class AsyncEntityCrudProvider(AsyncEntityReadProvider[E, ID, I, O], WriteLifecycle[E, ID, I, O],
                              AsyncCrudProvider[ID, I, O]):
    """Async full CRUD provider."""

    async def create(self, input: I) -> O:
        self._logger.debug("create()")
        return await self._run(self._create_steps(input))

    async def update(self, id: ID, input: I) -> O:
        self._logger.debug(f"update({id!r})")
        return await self._run(self._update_steps(id, input))

    async def delete(self, id: ID) -> None:
        self._logger.debug(f"delete({id!r})")
        await self._run(self._delete_steps(id))


__all__ = ["AsyncEntityReadProvider", "AsyncEntityCrudProvider"]
