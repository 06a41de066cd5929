"""
CRUD Errors

🚨 Error Taxonomy:
Not-Found is the only error the lifecycle raises on its own. Everything an
adapter, mapper or event handler raises is propagated unchanged; the
configuration errors below signal an entity type that cannot be used with the
default strategies.
"""

from typing import Any, Type


class CrudError(Exception):
    """Base exception for crudflow errors"""
    pass


class NotFoundEntityError(CrudError):
    """
    Raised when no entity with the requested identifier exists.

    Carries only the entity type and the identifier so no stale or partially
    loaded entity is kept alive by the error. Supports structural pattern
    matching::

        match error:
            case NotFoundEntityError(entity_class, entity_id):
                ...
    """

    __match_args__ = ("entity_class", "entity_id")

    def __init__(self, entity_class: Type[Any], entity_id: Any):
        self.entity_class = entity_class
        self.entity_id = entity_id
        super().__init__(f"{_type_name(entity_class)} with id {entity_id!r} not found")

    def __reduce__(self):
        return (self.__class__, (self.entity_class, self.entity_id))


class ConfigurationError(CrudError):
    """Raised when an entity type or provider is wired incorrectly"""
    pass


class EntityInstantiationError(ConfigurationError):
    """Raised when the default entity factory cannot build a blank entity"""

    def __init__(self, entity_class: Type[Any]):
        self.entity_class = entity_class
        super().__init__(
            f"Failed to instantiate entity {_type_name(entity_class)}: "
            "provide an entity_factory or a no-argument constructor"
        )


class IdentifierFieldError(ConfigurationError):
    """Raised when an entity type does not declare exactly one identifier field"""

    def __init__(self, entity_class: Type[Any], found: int):
        self.entity_class = entity_class
        self.found = found
        super().__init__(
            f"Expected exactly one identifier field on {_type_name(entity_class)}, found {found}"
        )


class DuplicateEntityError(CrudError):
    """Raised when creating an entity whose identifier is already stored"""

    __match_args__ = ("entity_class", "entity_id")

    def __init__(self, entity_class: Type[Any], entity_id: Any):
        self.entity_class = entity_class
        self.entity_id = entity_id
        super().__init__(f"{_type_name(entity_class)} with id {entity_id!r} already exists")


class QuerySyntaxError(CrudError, ValueError):
    """Raised when a structured query string cannot be parsed"""

    def __init__(self, message: str, query: str, position: int = 0):
        self.query = query
        self.position = position
        super().__init__(f"{message} at position {position} in {query!r}")


def _type_name(entity_class: Any) -> str:
    return getattr(entity_class, "__qualname__", None) or repr(entity_class)


# Export main components
__all__ = [
    "CrudError", "NotFoundEntityError", "ConfigurationError",
    "EntityInstantiationError", "IdentifierFieldError", "DuplicateEntityError", "QuerySyntaxError"
]
