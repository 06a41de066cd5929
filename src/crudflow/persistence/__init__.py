"""
Persistence - Reference Adapters

💾 Storage Backends for Providers:
- ``memory``: thread-safe in-process store with undo-log transactions
- ``sql``: SQLAlchemy / SQLModel sessions, blocking and async
- ``query``: structured query filters shared by both adapters
- ``identity``: identifier-field discovery for ad hoc lookups
"""

from .identity import get_id_field_name, clear_id_field_cache
from .query import QueryOperator, QueryFilter, parse_query, coerce_filters, entity_matches
from .memory import MemoryStore, MemoryCrudProvider, AsyncMemoryCrudProvider
from .sql import (
    SQLCrudProvider, AsyncSQLCrudProvider,
    build_where_clause, build_search_clause, build_order_clause,
    create_session_factory, create_async_session_factory
)

__all__ = [
    "get_id_field_name", "clear_id_field_cache",
    "QueryOperator", "QueryFilter", "parse_query", "coerce_filters", "entity_matches",
    "MemoryStore", "MemoryCrudProvider", "AsyncMemoryCrudProvider",
    "SQLCrudProvider", "AsyncSQLCrudProvider",
    "build_where_clause", "build_search_clause", "build_order_clause",
    "create_session_factory", "create_async_session_factory",
]
