"""
Lifecycle Orchestration - Shared Hooks and Step Sequences

🔄 PRE_HOOK → EXECUTE → EVENT_NOTIFY → POST_HOOK → RETURN:
Each public operation is described here exactly once, as a generator of
pipeline effects. The blocking and async providers only differ in which
interpreter runs the generator and in how ``with_transaction`` is declared.

Invariants carried by the step order:
- ``pre_process`` always runs first; ``post_process`` only runs when every
  previous step succeeded
- write operations run entirely inside ``with_transaction``; ``post_process``
  runs after the transaction completed
- "before" events precede the adapter mutation, "after" events follow it and
  precede ``each_entity``
- Not-Found raised by ``internal_find`` ends the operation before any event
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, Iterable, List, Optional, Type, TypeVar

from ..core.operation import CrudOperation
from ..core.exceptions import EntityInstantiationError
from ..core.paging import Page, Pagination, Sort
from ..core.pipeline import Step, Steps, Transactional
from ..core.resolver import resolve_count, resolve_page
from ..events import CrudEvents

E = TypeVar("E")
ID = TypeVar("ID")
I = TypeVar("I")
O = TypeVar("O")


class ProviderSupport(ABC, Generic[E, ID, I, O]):
    """
    State and overridable hooks shared by every provider.

    Args:
        entity_class: Persisted entity type
        events: ``CrudEvents``, ``ReadEvents``, ``WriteEvents`` or ``None``
        mapper: ``Mapper`` used by ``map_input``/``map_output``
        entity_factory: Zero-argument callable returning a blank entity
    """

    def __init__(self, entity_class: Type[E], events: Any = None, mapper: Any = None,
                 entity_factory: Optional[Callable[[], E]] = None):
        self.entity_class = entity_class
        self.events = CrudEvents.coerce(events)
        self.mapper = mapper
        self.entity_factory = entity_factory
        self._logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    # Extension hooks

    def pre_process(self, operation: CrudOperation) -> Any:
        """Runs before every operation, even one that later fails."""
        pass

    def post_process(self, operation: CrudOperation) -> Any:
        """Runs after an operation succeeded; skipped when any step failed."""
        pass

    def new_entity(self) -> E:
        """Blank entity for ``create``: the factory, else the no-argument constructor."""
        if self.entity_factory is not None:
            return self.entity_factory()
        try:
            return self.entity_class()
        except (TypeError, ValueError) as e:
            raise EntityInstantiationError(self.entity_class) from e

    def map_input(self, input: I, entity: E, is_new: bool) -> Any:
        if self.mapper is None:
            raise NotImplementedError(
                f"{self.__class__.__name__} needs a mapper or a map_input override"
            )
        return self.mapper.map_input(input, entity, is_new)

    def map_output(self, entity: E) -> O:
        if self.mapper is None:
            raise NotImplementedError(
                f"{self.__class__.__name__} needs a mapper or a map_output override"
            )
        return self.mapper.map_output(entity)


class ReadLifecycle(ProviderSupport[E, ID, I, O]):
    """Read hooks an adapter must implement, plus the read step sequences."""

    @abstractmethod
    def internal_find(self, id: ID) -> E:
        """Load one entity; raise ``NotFoundEntityError`` when absent."""
        pass

    @abstractmethod
    def internal_find_many(self, ids: List[ID]) -> List[E]:
        """Load every entity whose id is in ``ids``; missing ids are skipped."""
        pass

    @abstractmethod
    def internal_page(self, pagination: Pagination, sort: Sort) -> Page[E]:
        pass

    @abstractmethod
    def internal_search(self, search: str, pagination: Pagination, sort: Sort) -> Page[E]:
        pass

    @abstractmethod
    def internal_search_query(self, search: Optional[str], pagination: Pagination,
                              sort: Sort, query: Any) -> Page[E]:
        pass

    @abstractmethod
    def internal_count(self) -> int:
        pass

    @abstractmethod
    def internal_count_search(self, search: str) -> int:
        pass

    @abstractmethod
    def internal_count_search_query(self, search: Optional[str], query: Any) -> int:
        pass

    @abstractmethod
    def internal_exists(self, id: ID) -> bool:
        pass

    # Step sequences

    def _page_steps(self, search: Optional[str], query: Any,
                    pagination: Optional[Pagination], sort: Optional[Sort]) -> Steps:
        read = self.events.read
        yield Step("pre_process", self.pre_process, (CrudOperation.PAGE,))
        page = yield Step("resolve_page", resolve_page, (self, search, query, pagination, sort))
        yield Step("on_page", read.on_page, (page,))
        for entity in page.content:
            yield Step("each_entity", read.each_entity, (entity,))
        yield Step("post_process", self.post_process, (CrudOperation.PAGE,))

        content = []
        for entity in page.content:
            content.append((yield Step("map_output", self.map_output, (entity,))))
        return page.with_content(content)

    def _find_steps(self, id: ID) -> Steps:
        read = self.events.read
        yield Step("pre_process", self.pre_process, (CrudOperation.FIND,))
        entity = yield Step("internal_find", self.internal_find, (id,))
        yield Step("on_find", read.on_find, (entity,))
        yield Step("each_entity", read.each_entity, (entity,))
        yield Step("post_process", self.post_process, (CrudOperation.FIND,))
        return (yield Step("map_output", self.map_output, (entity,)))

    def _find_many_steps(self, ids: Iterable[ID]) -> Steps:
        read = self.events.read
        ids = list(ids)
        yield Step("pre_process", self.pre_process, (CrudOperation.FIND,))
        entities = yield Step("internal_find_many", self.internal_find_many, (ids,))
        entities = list(entities)
        yield Step("on_find_many", read.on_find_many, (entities, ids))
        for entity in entities:
            yield Step("each_entity", read.each_entity, (entity,))
        yield Step("post_process", self.post_process, (CrudOperation.FIND,))

        outputs = []
        for entity in entities:
            outputs.append((yield Step("map_output", self.map_output, (entity,))))
        return outputs

    def _count_steps(self, search: Optional[str], query: Any) -> Steps:
        yield Step("pre_process", self.pre_process, (CrudOperation.COUNT,))
        count = yield Step("resolve_count", resolve_count, (self, search, query))
        yield Step("on_count", self.events.read.on_count, (count,))
        yield Step("post_process", self.post_process, (CrudOperation.COUNT,))
        return count

    def _exists_steps(self, id: ID) -> Steps:
        yield Step("pre_process", self.pre_process, (CrudOperation.EXISTS,))
        exists = yield Step("internal_exists", self.internal_exists, (id,))
        yield Step("on_exists", self.events.read.on_exists, (exists, id))
        yield Step("post_process", self.post_process, (CrudOperation.EXISTS,))
        return exists


class WriteLifecycle(ReadLifecycle[E, ID, I, O]):
    """Write hooks an adapter must implement, plus the write step sequences."""

    @abstractmethod
    def internal_create(self, entity: E) -> E:
        """Persist a new entity and return the stored instance."""
        pass

    @abstractmethod
    def internal_update(self, entity: E) -> E:
        """Persist changes of an existing entity and return the stored instance."""
        pass

    @abstractmethod
    def internal_delete(self, entity: E) -> Any:
        pass

    def _create_steps(self, input: I) -> Steps:
        yield Step("pre_process", self.pre_process, (CrudOperation.CREATE,))
        output = yield Transactional(self._create_transaction(input), "create")
        yield Step("post_process", self.post_process, (CrudOperation.CREATE,))
        return output

    def _create_transaction(self, input: I) -> Steps:
        write = self.events.write
        entity = yield Step("new_entity", self.new_entity)
        yield Step("map_input", self.map_input, (input, entity, True))
        yield Step("on_before_create", write.on_before_create, (input, entity))
        created = yield Step("internal_create", self.internal_create, (entity,))
        yield Step("on_after_create", write.on_after_create, (input, created))
        yield Step("each_entity", write.each_entity, (created,))
        return (yield Step("map_output", self.map_output, (created,)))

    def _update_steps(self, id: ID, input: I) -> Steps:
        yield Step("pre_process", self.pre_process, (CrudOperation.UPDATE,))
        output = yield Transactional(self._update_transaction(id, input), "update")
        yield Step("post_process", self.post_process, (CrudOperation.UPDATE,))
        return output

    def _update_transaction(self, id: ID, input: I) -> Steps:
        write = self.events.write
        entity = yield Step("internal_find", self.internal_find, (id,))
        yield Step("map_input", self.map_input, (input, entity, False))
        yield Step("on_before_update", write.on_before_update, (input, entity))
        updated = yield Step("internal_update", self.internal_update, (entity,))
        yield Step("on_after_update", write.on_after_update, (input, updated))
        yield Step("each_entity", write.each_entity, (updated,))
        return (yield Step("map_output", self.map_output, (updated,)))

    def _delete_steps(self, id: ID) -> Steps:
        yield Step("pre_process", self.pre_process, (CrudOperation.DELETE,))
        yield Transactional(self._delete_transaction(id), "delete")
        yield Step("post_process", self.post_process, (CrudOperation.DELETE,))
        return None

    def _delete_transaction(self, id: ID) -> Steps:
        write = self.events.write
        entity = yield Step("internal_find", self.internal_find, (id,))
        yield Step("on_before_delete", write.on_before_delete, (entity,))
        yield Step("internal_delete", self.internal_delete, (entity,))
        yield Step("on_after_delete", write.on_after_delete, (entity,))
        yield Step("each_entity", write.each_entity, (entity,))


__all__ = ["ProviderSupport", "ReadLifecycle", "WriteLifecycle"]
