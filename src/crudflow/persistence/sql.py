"""
SQL Adapter - SQLAlchemy / SQLModel Persistence for Providers

🗃️ SQL Database Providers:
Implements the provider persistence hooks with SQLAlchemy 2.x sessions. Any
mapped class works, SQLModel ``table=True`` models included.

Key Features:
- One session per transaction, bound to a per-provider ``ContextVar`` so
  concurrent threads and tasks never share a session
- ``session.begin()`` as the transaction boundary: commit on success,
  rollback and re-raise on error
- Translation of free-text search, structured queries and sort requests
  into SQL clauses
- ``SELECT count(*)`` for counts, an ``IN`` lookup for bulk finds
"""

import logging
from contextlib import asynccontextmanager, contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import String, TypeDecorator, and_, asc, create_engine, desc, false, func, or_, select
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session, sessionmaker

from ..config import SQLConnectionConfig
from ..core.exceptions import NotFoundEntityError
from ..core.paging import Page, Pagination, Sort, SortDirection
from ..providers import AsyncEntityCrudProvider, EntityCrudProvider
from .identity import get_id_field_name
from .query import Query, QueryFilter, QueryOperator, coerce_filters, coerce_value

logger = logging.getLogger(__name__)

E = TypeVar("E")
T = TypeVar("T")


# Session factories

def create_session_factory(config: SQLConnectionConfig) -> sessionmaker:
    """Blocking session factory; sessions keep attributes loaded after commit."""
    engine = create_engine(config.database_url, **config.engine_options())
    return sessionmaker(bind=engine, class_=Session, expire_on_commit=False)


def create_async_session_factory(config: SQLConnectionConfig) -> async_sessionmaker:
    """Async session factory (``sqlite+aiosqlite``, ``postgresql+asyncpg``, ...)."""
    engine = create_async_engine(config.database_url, **config.engine_options())
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


# Clause builders

def _column(entity_class: Type, name: str):
    mapper = sa_inspect(entity_class)
    return mapper.columns.get(name)


def _column_type(column):
    # SQLModel wraps strings in AutoString, a TypeDecorator over String
    column_type = column.type
    if isinstance(column_type, TypeDecorator):
        column_type = column_type.impl_instance
    return column_type


def _python_type(column) -> Optional[type]:
    try:
        return _column_type(column).python_type
    except NotImplementedError:
        return None


def build_where_clause(entity_class: Type, filters: Sequence[QueryFilter]):
    """Build SQLAlchemy where clause from query filters; unknown fields are skipped."""
    if not filters:
        return None

    conditions = []

    for filter_condition in filters:
        column = _column(entity_class, filter_condition.field)
        if column is None:
            logger.warning(f"Ignoring filter on unknown field {entity_class.__name__}.{filter_condition.field}")
            continue
        field_attr = getattr(entity_class, filter_condition.field)
        python_type = _python_type(column)
        op = filter_condition.operator
        value = filter_condition.value

        if op == QueryOperator.EQUALS:
            conditions.append(field_attr == coerce_value(value, python_type))
        elif op == QueryOperator.NOT_EQUALS:
            conditions.append(field_attr != coerce_value(value, python_type))
        elif op == QueryOperator.GREATER_THAN:
            conditions.append(field_attr > coerce_value(value, python_type))
        elif op == QueryOperator.GREATER_THAN_OR_EQUAL:
            conditions.append(field_attr >= coerce_value(value, python_type))
        elif op == QueryOperator.LESS_THAN:
            conditions.append(field_attr < coerce_value(value, python_type))
        elif op == QueryOperator.LESS_THAN_OR_EQUAL:
            conditions.append(field_attr <= coerce_value(value, python_type))
        elif op == QueryOperator.IN:
            conditions.append(field_attr.in_([coerce_value(v, python_type) for v in value]))
        elif op == QueryOperator.NOT_IN:
            conditions.append(~field_attr.in_([coerce_value(v, python_type) for v in value]))
        elif op == QueryOperator.CONTAINS:
            conditions.append(field_attr.icontains(str(value), autoescape=True))
        elif op == QueryOperator.STARTS_WITH:
            conditions.append(field_attr.istartswith(str(value), autoescape=True))
        elif op == QueryOperator.ENDS_WITH:
            conditions.append(field_attr.iendswith(str(value), autoescape=True))
        elif op == QueryOperator.IS_NULL:
            conditions.append(field_attr.is_(None))
        elif op == QueryOperator.IS_NOT_NULL:
            conditions.append(field_attr.is_not(None))

    return and_(*conditions) if len(conditions) > 1 else conditions[0] if conditions else None


def build_search_clause(entity_class: Type, search: Optional[str],
                        search_fields: Optional[Sequence[str]] = None):
    """
    Case-insensitive substring match of ``search`` over ``search_fields``
    (default: every string column). Matches nothing when no column qualifies.
    """
    if not search:
        return None

    mapper = sa_inspect(entity_class)
    if search_fields:
        names = list(search_fields)
    else:
        names = [key for key, column in mapper.columns.items() if isinstance(_column_type(column), String)]

    conditions = [
        getattr(entity_class, name).icontains(search, autoescape=True)
        for name in names
        if mapper.columns.get(name) is not None
    ]
    if not conditions:
        return false()
    return or_(*conditions)


def build_order_clause(entity_class: Type, sort: Optional[Sort]) -> List[Any]:
    """Build SQLAlchemy order clause; ``NULL`` sorts last in either direction."""
    if not sort:
        return []

    order_clauses = []

    for order in sort:
        if _column(entity_class, order.property) is None:
            logger.warning(f"Ignoring sort on unknown field {entity_class.__name__}.{order.property}")
            continue
        field_attr = getattr(entity_class, order.property)
        if order.direction == SortDirection.DESC:
            order_clauses.append(desc(field_attr).nulls_last())
        else:
            order_clauses.append(asc(field_attr).nulls_last())

    return order_clauses


class SQLStatements:
    """Statement construction shared by the blocking and async SQL providers."""

    entity_class: Type
    search_fields: Optional[Sequence[str]]

    def _id_attribute(self):
        return getattr(self.entity_class, get_id_field_name(self.entity_class))

    def _criteria(self, search: Optional[str], query: Optional[Query]) -> List[Any]:
        criteria = []
        search_clause = build_search_clause(self.entity_class, search, self.search_fields)
        if search_clause is not None:
            criteria.append(search_clause)
        where_clause = build_where_clause(self.entity_class, coerce_filters(query))
        if where_clause is not None:
            criteria.append(where_clause)
        return criteria

    def _select_statement(self, criteria: List[Any], pagination: Pagination, sort: Sort):
        stmt = select(self.entity_class).where(*criteria)

        order_clauses = build_order_clause(self.entity_class, sort)
        if order_clauses:
            stmt = stmt.order_by(*order_clauses)

        if pagination.is_paginated:
            stmt = stmt.offset(pagination.offset).limit(pagination.limit)
        return stmt

    def _count_statement(self, criteria: List[Any]):
        return select(func.count()).select_from(self.entity_class).where(*criteria)

    def _exists_statement(self, id: Any):
        return select(func.count()).select_from(self.entity_class).where(self._id_attribute() == id)

    def _find_many_statement(self, ids: List[Any]):
        return select(self.entity_class).where(self._id_attribute().in_(ids))

    def _in_request_order(self, entities: Sequence[Any], ids: List[Any]) -> List[Any]:
        id_field = get_id_field_name(self.entity_class)
        by_id: Dict[Any, Any] = {getattr(e, id_field): e for e in entities}
        return [by_id[i] for i in dict.fromkeys(ids) if i in by_id]


class SQLCrudProvider(SQLStatements, EntityCrudProvider):
    """
    Blocking CRUD provider over a SQLAlchemy ``sessionmaker``.

    Operations outside a transaction (reads) open a short-lived session of
    their own; write operations share the session of their transaction.
    """

    def __init__(self, session_factory: Callable[[], Session], entity_class: Type[E],
                 events: Any = None, mapper: Any = None,
                 entity_factory: Optional[Callable[[], E]] = None,
                 search_fields: Optional[Sequence[str]] = None):
        super().__init__(entity_class, events=events, mapper=mapper, entity_factory=entity_factory)
        self.session_factory = session_factory
        self.search_fields = tuple(search_fields) if search_fields else None
        self._current_session: ContextVar[Optional[Session]] = ContextVar(
            f"crudflow_session_{entity_class.__name__}_{id(self)}", default=None
        )

    @property
    def current_session(self) -> Optional[Session]:
        """Session of the transaction running in this context, if any."""
        return self._current_session.get()

    def with_transaction(self, work: Callable[[], T]) -> T:
        if self._current_session.get() is not None:
            return work()

        with self.session_factory() as session:
            with session.begin():
                token = self._current_session.set(session)
                try:
                    return work()
                finally:
                    self._current_session.reset(token)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self._current_session.get()
        try:
            if session is not None:
                yield session
            else:
                with self.session_factory() as session, session.begin():
                    yield session
        except SQLAlchemyError as e:
            self._logger.error(f"SQL error for {self.entity_class.__name__}: {e}")
            raise

    def _page(self, search: Optional[str], query: Optional[Query],
              pagination: Pagination, sort: Sort) -> Page[Any]:
        criteria = self._criteria(search, query)
        with self._session() as session:
            content = session.scalars(self._select_statement(criteria, pagination, sort)).all()
            total = session.scalar(self._count_statement(criteria))
        return Page.of(content, pagination, sort, total)

    def _count(self, search: Optional[str], query: Optional[Query]) -> int:
        with self._session() as session:
            return session.scalar(self._count_statement(self._criteria(search, query)))

    def internal_find(self, id: Any) -> Any:
        with self._session() as session:
            entity = session.get(self.entity_class, id)
        if entity is None:
            raise NotFoundEntityError(self.entity_class, id)
        return entity

    def internal_find_many(self, ids: List[Any]) -> List[Any]:
        if not ids:
            return []
        with self._session() as session:
            entities = session.scalars(self._find_many_statement(ids)).all()
        return self._in_request_order(entities, ids)

    def internal_page(self, pagination: Pagination, sort: Sort) -> Page[Any]:
        return self._page(None, None, pagination, sort)

    def internal_search(self, search: str, pagination: Pagination, sort: Sort) -> Page[Any]:
        return self._page(search, None, pagination, sort)

    def internal_search_query(self, search: Optional[str], pagination: Pagination,
                              sort: Sort, query: Any) -> Page[Any]:
        return self._page(search, query, pagination, sort)

    def internal_count(self) -> int:
        return self._count(None, None)

    def internal_count_search(self, search: str) -> int:
        return self._count(search, None)

    def internal_count_search_query(self, search: Optional[str], query: Any) -> int:
        return self._count(search, query)

    def internal_exists(self, id: Any) -> bool:
        with self._session() as session:
            return session.scalar(self._exists_statement(id)) > 0

    def internal_create(self, entity: Any) -> Any:
        with self._session() as session:
            session.add(entity)
            session.flush()
        return entity

    def internal_update(self, entity: Any) -> Any:
        with self._session() as session:
            merged = session.merge(entity)
            session.flush()
        return merged

    def internal_delete(self, entity: Any) -> None:
        with self._session() as session:
            if entity not in session:
                entity = session.merge(entity)
            session.delete(entity)
            session.flush()


class AsyncSQLCrudProvider(SQLStatements, AsyncEntityCrudProvider):
    """Async CRUD provider over a SQLAlchemy ``async_sessionmaker``."""

    def __init__(self, session_factory: Callable[[], AsyncSession], entity_class: Type[E],
                 events: Any = None, mapper: Any = None,
                 entity_factory: Optional[Callable[[], E]] = None,
                 search_fields: Optional[Sequence[str]] = None):
        super().__init__(entity_class, events=events, mapper=mapper, entity_factory=entity_factory)
        self.session_factory = session_factory
        self.search_fields = tuple(search_fields) if search_fields else None
        self._current_session: ContextVar[Optional[AsyncSession]] = ContextVar(
            f"crudflow_async_session_{entity_class.__name__}_{id(self)}", default=None
        )

    @property
    def current_session(self) -> Optional[AsyncSession]:
        return self._current_session.get()

    async def with_transaction(self, work):
        if self._current_session.get() is not None:
            return await work()

        async with self.session_factory() as session:
            async with session.begin():
                token = self._current_session.set(session)
                try:
                    return await work()
                finally:
                    self._current_session.reset(token)

    @asynccontextmanager
    async def _session(self):
        session = self._current_session.get()
        try:
            if session is not None:
                yield session
            else:
                async with self.session_factory() as session, session.begin():
                    yield session
        except SQLAlchemyError as e:
            self._logger.error(f"SQL error for {self.entity_class.__name__}: {e}")
            raise

    async def _page(self, search: Optional[str], query: Optional[Query],
                    pagination: Pagination, sort: Sort) -> Page[Any]:
        criteria = self._criteria(search, query)
        async with self._session() as session:
            content = (await session.scalars(self._select_statement(criteria, pagination, sort))).all()
            total = await session.scalar(self._count_statement(criteria))
        return Page.of(content, pagination, sort, total)

    async def _count(self, search: Optional[str], query: Optional[Query]) -> int:
        async with self._session() as session:
            return await session.scalar(self._count_statement(self._criteria(search, query)))

    async def internal_find(self, id: Any) -> Any:
        async with self._session() as session:
            entity = await session.get(self.entity_class, id)
        if entity is None:
            raise NotFoundEntityError(self.entity_class, id)
        return entity

    async def internal_find_many(self, ids: List[Any]) -> List[Any]:
        if not ids:
            return []
        async with self._session() as session:
            entities = (await session.scalars(self._find_many_statement(ids))).all()
        return self._in_request_order(entities, ids)

    async def internal_page(self, pagination: Pagination, sort: Sort) -> Page[Any]:
        return await self._page(None, None, pagination, sort)

    async def internal_search(self, search: str, pagination: Pagination, sort: Sort) -> Page[Any]:
        return await self._page(search, None, pagination, sort)

    async def internal_search_query(self, search: Optional[str], pagination: Pagination,
                                    sort: Sort, query: Any) -> Page[Any]:
        return await self._page(search, query, pagination, sort)

    async def internal_count(self) -> int:
        return await self._count(None, None)

    async def internal_count_search(self, search: str) -> int:
        return await self._count(search, None)

    async def internal_count_search_query(self, search: Optional[str], query: Any) -> int:
        return await self._count(search, query)

    async def internal_exists(self, id: Any) -> bool:
        async with self._session() as session:
            return (await session.scalar(self._exists_statement(id))) > 0

    async def internal_create(self, entity: Any) -> Any:
        async with self._session() as session:
            session.add(entity)
            await session.flush()
        return entity

    async def internal_update(self, entity: Any) -> Any:
        async with self._session() as session:
            merged = await session.merge(entity)
            await session.flush()
        return merged

    async def internal_delete(self, entity: Any) -> None:
        async with self._session() as session:
            if entity not in session:
                entity = await session.merge(entity)
            await session.delete(entity)
            await session.flush()


__all__ = [
    "SQLCrudProvider", "AsyncSQLCrudProvider", "SQLStatements",
    "build_where_clause", "build_search_clause", "build_order_clause",
    "create_session_factory", "create_async_session_factory",
]
