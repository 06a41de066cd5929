"""
crudflow - Lifecycle-Orchestrated CRUD Providers

🚀 Hooks, Events and Transactions Around Every Operation:
Providers run each CRUD operation through a fixed lifecycle (pre-process,
persistence call, events, post-process) and map entities to caller-facing
outputs. Persistence is delegated to adapters: an in-memory store and
SQLAlchemy / SQLModel sessions ship with the package.

Quick start:
    from crudflow import MemoryCrudProvider, PydanticMapper

    users = MemoryCrudProvider(User, mapper=PydanticMapper(UserOut, UserIn))
    created = users.create(UserIn(name="alice"))
    users.find(created.id)
"""

from .core import (
    CrudOperation,
    Page, Pagination, Sort, Order, SortDirection, UNPAGINATED, UNSORTED,
    CrudError, NotFoundEntityError, ConfigurationError,
    EntityInstantiationError, IdentifierFieldError, DuplicateEntityError, QuerySyntaxError,
    RetrievalStrategy, resolve_strategy,
)
from .events import ReadEvents, WriteEvents, CrudEvents
from .contracts import (
    ReadProvider, WriteProvider, CrudProvider,
    AsyncReadProvider, AsyncWriteProvider, AsyncCrudProvider
)
from .providers import (
    EntityReadProvider, EntityCrudProvider,
    AsyncEntityReadProvider, AsyncEntityCrudProvider
)
from .persistence import (
    QueryOperator, QueryFilter, parse_query, get_id_field_name,
    MemoryStore, MemoryCrudProvider, AsyncMemoryCrudProvider,
    SQLCrudProvider, AsyncSQLCrudProvider,
    create_session_factory, create_async_session_factory
)
from .mapping import Mapper, PydanticMapper
from .config import (
    Environment, LoggingConfig, SQLConnectionConfig, CrudflowConfig, configure_logging
)

__version__ = "0.1.0"

__all__ = [
    # Core
    "CrudOperation",
    "Page", "Pagination", "Sort", "Order", "SortDirection", "UNPAGINATED", "UNSORTED",
    "CrudError", "NotFoundEntityError", "ConfigurationError",
    "EntityInstantiationError", "IdentifierFieldError", "DuplicateEntityError", "QuerySyntaxError",
    "RetrievalStrategy", "resolve_strategy",
    # Events
    "ReadEvents", "WriteEvents", "CrudEvents",
    # Contracts and providers
    "ReadProvider", "WriteProvider", "CrudProvider",
    "AsyncReadProvider", "AsyncWriteProvider", "AsyncCrudProvider",
    "EntityReadProvider", "EntityCrudProvider",
    "AsyncEntityReadProvider", "AsyncEntityCrudProvider",
    # Persistence
    "QueryOperator", "QueryFilter", "parse_query", "get_id_field_name",
    "MemoryStore", "MemoryCrudProvider", "AsyncMemoryCrudProvider",
    "SQLCrudProvider", "AsyncSQLCrudProvider",
    "create_session_factory", "create_async_session_factory",
    # Mapping and configuration
    "Mapper", "PydanticMapper",
    "Environment", "LoggingConfig", "SQLConnectionConfig", "CrudflowConfig", "configure_logging",
]
