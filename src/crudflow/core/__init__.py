"""
Core - Orchestration Building Blocks

Storage-agnostic pieces of the CRUD lifecycle: operation markers, the paging
model, the error taxonomy, search normalization, the retrieval strategy
resolver and the step pipeline interpreters.
"""

from .operation import CrudOperation
from .paging import Page, Pagination, Sort, Order, SortDirection, UNPAGINATED, UNSORTED
from .exceptions import (
    CrudError, NotFoundEntityError, ConfigurationError,
    EntityInstantiationError, IdentifierFieldError, DuplicateEntityError, QuerySyntaxError
)
from .text import normalize_search
from .resolver import RetrievalStrategy, resolve_strategy, resolve_page, resolve_count
from .pipeline import Step, Transactional, run_blocking, run_suspending

__all__ = [
    "CrudOperation",
    "Page", "Pagination", "Sort", "Order", "SortDirection", "UNPAGINATED", "UNSORTED",
    "CrudError", "NotFoundEntityError", "ConfigurationError",
    "EntityInstantiationError", "IdentifierFieldError", "DuplicateEntityError", "QuerySyntaxError",
    "normalize_search",
    "RetrievalStrategy", "resolve_strategy", "resolve_page", "resolve_count",
    "Step", "Transactional", "run_blocking", "run_suspending",
]
