"""
Blocking Providers

Run the lifecycle step sequences on the calling thread. Every hook, adapter
method, mapper method and event handler must return plain values; an
awaitable result is reported as a ``TypeError``.

Usage:
    class UserProvider(EntityCrudProvider[User, str, UserInput, UserOutput]):
        def internal_find(self, id):
            ...

    provider = UserProvider(User, mapper=PydanticMapper(UserOutput, UserInput))
    provider.create(UserInput(name="alice"))
"""

from typing import Any, Callable, Iterable, List, Optional, TypeVar

from ..contracts import CrudProvider, ReadProvider
from ..core.exceptions import NotFoundEntityError
from ..core.paging import Page, Pagination, Sort
from ..core.pipeline import Steps, run_blocking
from .lifecycle import ReadLifecycle, WriteLifecycle

E = TypeVar("E")
ID = TypeVar("ID")
I = TypeVar("I")
O = TypeVar("O")
T = TypeVar("T")


class EntityReadProvider(ReadLifecycle[E, ID, I, O], ReadProvider[ID, O]):
    """Read-only provider; subclasses implement the ``internal_*`` read hooks."""

    def with_transaction(self, work: Callable[[], T]) -> T:
        """Transaction boundary; the default runs ``work`` without one."""
        return work()

    def page(self, search: Optional[str] = None, query: Any = None,
             pagination: Optional[Pagination] = None, sort: Optional[Sort] = None) -> Page[O]:
        self._logger.debug(f"page(search={search!r}, query={query!r}, pagination={pagination}, sort={sort})")
        return self._run(self._page_steps(search, query, pagination, sort))

    def find(self, id: ID) -> O:
        self._logger.debug(f"find({id!r})")
        return self._run(self._find_steps(id))

    def find_many(self, ids: Iterable[ID]) -> List[O]:
        ids = list(ids)
        self._logger.debug(f"find_many({ids!r})")
        return self._run(self._find_many_steps(ids))

    def count(self, search: Optional[str] = None, query: Any = None) -> int:
        self._logger.debug(f"count(search={search!r}, query={query!r})")
        return self._run(self._count_steps(search, query))

    def exists(self, id: ID) -> bool:
        self._logger.debug(f"exists({id!r})")
        return self._run(self._exists_steps(id))

    def _run(self, steps: Steps) -> Any:
        try:
            return run_blocking(steps, self.with_transaction)
        except NotFoundEntityError as e:
            self._logger.debug(f"Not found: {e}")
            raise


class EntityCrudProvider(EntityReadProvider[E, ID, I, O], WriteLifecycle[E, ID, I, O],
                         CrudProvider[ID, I, O]):
    """Full CRUD provider; subclasses implement every ``internal_*`` hook."""

    def create(self, input: I) -> O:
        self._logger.debug("create()")
        return self._run(self._create_steps(input))

    def update(self, id: ID, input: I) -> O:
        self._logger.debug(f"update({id!r})")
        return self._run(self._update_steps(id, input))

    def delete(self, id: ID) -> None:
        self._logger.debug(f"delete({id!r})")
        self._run(self._delete_steps(id))


__all__ = ["EntityReadProvider", "EntityCrudProvider"]
