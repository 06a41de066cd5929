"""
Memory Adapter - In-Process Persistence for Providers

🧠 Dictionary-Backed Storage:
``MemoryStore`` keeps copies of entities keyed by identifier, in insertion
order, behind a ``threading.RLock``. Entities handed out are copies as well,
so in-place changes made by mappers only reach the store through
``internal_update``. Transactions keep an undo log of the keys they wrote
and roll back only those keys.

Features:
- Free-text search: case-insensitive substring over ``search_fields`` or,
  when none are configured, over every string attribute
- Structured queries through ``crudflow.persistence.query``
- Stable multi-key sorting with ``None`` values last
- Identifier generation (``uuid4``) for entities created without one
"""

import copy
import dataclasses
import logging
import threading
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Type, TypeVar

from ..core.exceptions import DuplicateEntityError, NotFoundEntityError
from ..core.text import is_empty
from ..core.paging import Page, Pagination, Sort, SortDirection, UNPAGINATED, UNSORTED
from ..providers import AsyncEntityCrudProvider, EntityCrudProvider
from .identity import get_id_field_name
from .query import Query, coerce_filters, entity_matches

logger = logging.getLogger(__name__)

E = TypeVar("E")
T = TypeVar("T")

_MISSING = object()


def _new_id() -> str:
    return str(uuid.uuid4())


class MemoryStore:
    """
    Thread-safe in-memory storage for one entity type.

    Args:
        entity_class: Stored entity type
        id_field: Identifier attribute; discovered with ``get_id_field_name`` when omitted
        search_fields: Attributes matched by free-text search
        id_generator: Produces identifiers for entities created without one
    """

    def __init__(self, entity_class: Type[E], id_field: Optional[str] = None,
                 search_fields: Optional[Sequence[str]] = None,
                 id_generator: Callable[[], Any] = _new_id):
        self.entity_class = entity_class
        self.id_field = id_field or get_id_field_name(entity_class)
        self.search_fields = tuple(search_fields) if search_fields else None
        self.id_generator = id_generator

        self._records: Dict[Any, E] = {}
        self._lock = threading.RLock()
        self._undo_log: ContextVar[Optional[Dict[Any, Tuple[Any, Any]]]] = ContextVar(
            f"crudflow_memory_undo_{entity_class.__name__}_{id(self)}", default=None
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def id_of(self, entity: E) -> Any:
        return getattr(entity, self.id_field, None)

    # Storage operations

    def get(self, entity_id: Any) -> E:
        """Copy of the stored entity; raises ``NotFoundEntityError`` when absent."""
        with self._lock:
            entity = self._records.get(entity_id)
        if entity is None:
            raise NotFoundEntityError(self.entity_class, entity_id)
        return copy.deepcopy(entity)

    def get_many(self, entity_ids: Iterable[Any]) -> List[E]:
        """Copies of the stored entities in request order; unknown ids are skipped."""
        with self._lock:
            found = [self._records[i] for i in dict.fromkeys(entity_ids) if i in self._records]
        return [copy.deepcopy(entity) for entity in found]

    def contains(self, entity_id: Any) -> bool:
        with self._lock:
            return entity_id in self._records

    def insert(self, entity: E) -> E:
        with self._lock:
            entity_id = self.id_of(entity)
            if is_empty(entity_id):
                entity_id = self.id_generator()
                setattr(entity, self.id_field, entity_id)
            elif entity_id in self._records:
                raise DuplicateEntityError(self.entity_class, entity_id)
            stored = copy.deepcopy(entity)
            self._record_write(entity_id, stored)
            self._records[entity_id] = stored
        logger.debug(f"Inserted {self.entity_class.__name__} {entity_id!r}")
        return entity

    def replace(self, entity: E) -> E:
        with self._lock:
            entity_id = self.id_of(entity)
            if entity_id not in self._records:
                raise NotFoundEntityError(self.entity_class, entity_id)
            stored = copy.deepcopy(entity)
            self._record_write(entity_id, stored)
            self._records[entity_id] = stored
        logger.debug(f"Replaced {self.entity_class.__name__} {entity_id!r}")
        return entity

    def remove(self, entity_id: Any) -> None:
        with self._lock:
            if entity_id not in self._records:
                raise NotFoundEntityError(self.entity_class, entity_id)
            self._record_write(entity_id, _MISSING)
            del self._records[entity_id]
        logger.debug(f"Removed {self.entity_class.__name__} {entity_id!r}")

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    # Transactions

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """
        Undo the writes made in this context when the block raises.

        Each write records the key's previous record in an undo log held in a
        ``ContextVar``, so rollback only touches keys this transaction wrote
        and leaves records committed meanwhile by other threads or tasks
        alone. A nested block joins the enclosing transaction.
        """
        if self._undo_log.get() is not None:
            yield
            return

        undo: Dict[Any, Tuple[Any, Any]] = {}
        token = self._undo_log.set(undo)
        try:
            yield
        except BaseException:
            self._rollback(undo)
            raise
        finally:
            self._undo_log.reset(token)

    def _record_write(self, entity_id: Any, written: Any) -> None:
        # caller holds self._lock
        undo = self._undo_log.get()
        if undo is None:
            return
        previous = undo[entity_id][0] if entity_id in undo else self._records.get(entity_id, _MISSING)
        undo[entity_id] = (previous, written)

    def _rollback(self, undo: Dict[Any, Tuple[Any, Any]]) -> None:
        with self._lock:
            for entity_id, (previous, written) in undo.items():
                if self._records.get(entity_id, _MISSING) is not written:
                    # overwritten by another transaction since
                    continue
                if previous is _MISSING:
                    self._records.pop(entity_id, None)
                else:
                    self._records[entity_id] = previous
        logger.debug(f"Rolled back {len(undo)} {self.entity_class.__name__} write(s)")

    # Queries

    def select(self, search: Optional[str] = None, query: Optional[Query] = None,
               pagination: Pagination = UNPAGINATED, sort: Sort = UNSORTED) -> Page[E]:
        matches = self._matching(search, query)
        matches = self._apply_sorting(matches, sort)
        total = len(matches)
        content = self._apply_pagination(matches, pagination)
        return Page.of([copy.deepcopy(e) for e in content], pagination, sort, total)

    def count(self, search: Optional[str] = None, query: Optional[Query] = None) -> int:
        return len(self._matching(search, query))

    def _matching(self, search: Optional[str], query: Optional[Query]) -> List[E]:
        filters = coerce_filters(query)
        with self._lock:
            entities = list(self._records.values())
        if search:
            entities = [e for e in entities if self._matches_search(e, search)]
        if filters:
            entities = [e for e in entities if entity_matches(e, filters)]
        return entities

    def _matches_search(self, entity: E, search: str) -> bool:
        needle = search.lower()
        for name in self.search_fields or _attribute_names(entity):
            value = getattr(entity, name, None)
            if isinstance(value, str) and needle in value.lower():
                return True
        return False

    @staticmethod
    def _apply_sorting(entities: List[E], sort: Sort) -> List[E]:
        """Stable multi-key sort; ``None`` values go last in either direction."""
        result = list(entities)
        for order in reversed(list(sort)):
            present = [e for e in result if getattr(e, order.property, None) is not None]
            missing = [e for e in result if getattr(e, order.property, None) is None]
            present.sort(
                key=lambda e: getattr(e, order.property),
                reverse=order.direction == SortDirection.DESC,
            )
            result = present + missing
        return result

    @staticmethod
    def _apply_pagination(entities: List[E], pagination: Pagination) -> List[E]:
        if not pagination.is_paginated:
            return entities
        start = pagination.offset
        return entities[start:start + pagination.limit]


def _attribute_names(entity: Any) -> Iterable[str]:
    fields = getattr(type(entity), "model_fields", None)
    if isinstance(fields, dict):
        return fields.keys()
    if dataclasses.is_dataclass(entity):
        return [f.name for f in dataclasses.fields(entity)]
    return [name for name in vars(entity) if not name.startswith("_")]


class MemoryCrudProvider(EntityCrudProvider):
    """
    Blocking CRUD provider over a ``MemoryStore``.

    ``with_transaction`` runs the work in a store transaction, so a failure
    undoes only the writes made by this call.
    """

    def __init__(self, entity_class: Type[E], events: Any = None, mapper: Any = None,
                 entity_factory: Optional[Callable[[], E]] = None,
                 store: Optional[MemoryStore] = None,
                 search_fields: Optional[Sequence[str]] = None):
        super().__init__(entity_class, events=events, mapper=mapper, entity_factory=entity_factory)
        self.store = store if store is not None else MemoryStore(entity_class, search_fields=search_fields)

    def with_transaction(self, work: Callable[[], T]) -> T:
        with self.store.transaction():
            return work()

    def internal_find(self, id: Any) -> Any:
        return self.store.get(id)

    def internal_find_many(self, ids: List[Any]) -> List[Any]:
        return self.store.get_many(ids)

    def internal_page(self, pagination: Pagination, sort: Sort) -> Page[Any]:
        return self.store.select(pagination=pagination, sort=sort)

    def internal_search(self, search: str, pagination: Pagination, sort: Sort) -> Page[Any]:
        return self.store.select(search=search, pagination=pagination, sort=sort)

    def internal_search_query(self, search: Optional[str], pagination: Pagination,
                              sort: Sort, query: Any) -> Page[Any]:
        return self.store.select(search, query, pagination, sort)

    def internal_count(self) -> int:
        return len(self.store)

    def internal_count_search(self, search: str) -> int:
        return self.store.count(search=search)

    def internal_count_search_query(self, search: Optional[str], query: Any) -> int:
        return self.store.count(search, query)

    def internal_exists(self, id: Any) -> bool:
        return self.store.contains(id)

    def internal_create(self, entity: Any) -> Any:
        return self.store.insert(entity)

    def internal_update(self, entity: Any) -> Any:
        return self.store.replace(entity)

    def internal_delete(self, entity: Any) -> None:
        self.store.remove(self.store.id_of(entity))


class AsyncMemoryCrudProvider(AsyncEntityCrudProvider):
    """Async CRUD provider over a ``MemoryStore``; hooks complete without suspending."""

    def __init__(self, entity_class: Type[E], events: Any = None, mapper: Any = None,
                 entity_factory: Optional[Callable[[], E]] = None,
                 store: Optional[MemoryStore] = None,
                 search_fields: Optional[Sequence[str]] = None):
        super().__init__(entity_class, events=events, mapper=mapper, entity_factory=entity_factory)
        self.store = store if store is not None else MemoryStore(entity_class, search_fields=search_fields)

    async def with_transaction(self, work):
        with self.store.transaction():
            return await work()

    async def internal_find(self, id: Any) -> Any:
        return self.store.get(id)

    async def internal_find_many(self, ids: List[Any]) -> List[Any]:
        return self.store.get_many(ids)

    async def internal_page(self, pagination: Pagination, sort: Sort) -> Page[Any]:
        return self.store.select(pagination=pagination, sort=sort)

    async def internal_search(self, search: str, pagination: Pagination, sort: Sort) -> Page[Any]:
        return self.store.select(search=search, pagination=pagination, sort=sort)

    async def internal_search_query(self, search: Optional[str], pagination: Pagination,
                                    sort: Sort, query: Any) -> Page[Any]:
        return self.store.select(search, query, pagination, sort)

    async def internal_count(self) -> int:
        return len(self.store)

    async def internal_count_search(self, search: str) -> int:
        return self.store.count(search=search)

    async def internal_count_search_query(self, search: Optional[str], query: Any) -> int:
        return self.store.count(search, query)

    async def internal_exists(self, id: Any) -> bool:
        return self.store.contains(id)

    async def internal_create(self, entity: Any) -> Any:
        return self.store.insert(entity)

    async def internal_update(self, entity: Any) -> Any:
        return self.store.replace(entity)

    async def internal_delete(self, entity: Any) -> None:
        self.store.remove(self.store.id_of(entity))


__all__ = ["MemoryStore", "MemoryCrudProvider", "AsyncMemoryCrudProvider"]
