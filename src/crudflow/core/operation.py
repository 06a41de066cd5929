"""
CRUD Operation Markers

Tags passed to the pre/post processing hooks so cross-cutting logic
(auditing, permission checks) can tell which operation is running without
knowing which method triggered it.
"""

from enum import Enum


class CrudOperation(str, Enum):
    """Operation being executed by a provider."""

    PAGE = "page"
    FIND = "find"
    COUNT = "count"
    EXISTS = "exists"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


__all__ = ["CrudOperation"]
