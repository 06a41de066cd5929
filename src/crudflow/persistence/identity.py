"""
Identifier Field Discovery

Adapters building ad hoc lookups (existence checks, bulk finds) need the name
of the entity's identifier field. Discovery runs once per entity type and the
answer is cached for the lifetime of the process.

Supported declarations:
- SQLAlchemy mapped classes, SQLModel tables included (mapper primary key)
- pydantic / SQLModel fields declared with ``primary_key=True``
- dataclass fields with ``metadata={"primary_key": True}``
"""

import dataclasses
import threading
from typing import Any, Dict, List, Type

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Mapper

from ..core.exceptions import IdentifierFieldError

_ID_FIELD_CACHE: Dict[type, str] = {}
_ID_FIELD_LOCK = threading.Lock()


def get_id_field_name(entity_class: Type[Any]) -> str:
    """
    Return the name of the single identifier field of ``entity_class``.

    Raises:
        IdentifierFieldError: when the class declares zero or several identifier fields
    """
    name = _ID_FIELD_CACHE.get(entity_class)
    if name is not None:
        return name

    with _ID_FIELD_LOCK:
        name = _ID_FIELD_CACHE.get(entity_class)
        if name is None:
            name = _discover_id_field(entity_class)
            _ID_FIELD_CACHE[entity_class] = name
        return name


def clear_id_field_cache() -> None:
    with _ID_FIELD_LOCK:
        _ID_FIELD_CACHE.clear()


def _discover_id_field(entity_class: Type[Any]) -> str:
    candidates = (
        _mapped_primary_keys(entity_class)
        or _pydantic_primary_keys(entity_class)
        or _dataclass_primary_keys(entity_class)
    )
    if len(candidates) != 1:
        raise IdentifierFieldError(entity_class, len(candidates))
    return candidates[0]


def _mapped_primary_keys(entity_class: Type[Any]) -> List[str]:
    mapper = sa_inspect(entity_class, raiseerr=False)
    if not isinstance(mapper, Mapper):
        return []
    return [mapper.get_property_by_column(column).key for column in mapper.primary_key]


def _pydantic_primary_keys(entity_class: Type[Any]) -> List[str]:
    fields = getattr(entity_class, "model_fields", None)
    if not isinstance(fields, dict):
        return []

    names = []
    for name, info in fields.items():
        # SQLModel's FieldInfo exposes primary_key; plain pydantic keeps it in json_schema_extra
        if getattr(info, "primary_key", None) is True:
            names.append(name)
            continue
        extra = getattr(info, "json_schema_extra", None)
        if isinstance(extra, dict) and extra.get("primary_key") is True:
            names.append(name)
    return names


def _dataclass_primary_keys(entity_class: Type[Any]) -> List[str]:
    if not dataclasses.is_dataclass(entity_class):
        return []
    return [f.name for f in dataclasses.fields(entity_class) if f.metadata.get("primary_key")]


__all__ = ["get_id_field_name", "clear_id_field_cache"]
