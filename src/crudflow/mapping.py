"""
Mapping Layer - Input/Entity/Output Conversion

🔁 Wire Models In, Wire Models Out:
Inputs are never persisted directly and entities are never returned directly.
A ``Mapper`` copies input data into an entity and derives the output model
from an entity. ``PydanticMapper`` covers the common case where inputs and
outputs are pydantic models.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Collection, Generic, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel

from .core.exceptions import IdentifierFieldError
from .persistence.identity import get_id_field_name

logger = logging.getLogger(__name__)

E = TypeVar("E")
I = TypeVar("I")
O = TypeVar("O")


class Mapper(ABC, Generic[E, I, O]):
    """
    Converts between the wire-level models and the entity.

    Either method may be a coroutine function when the mapper is used with
    an async provider.
    """

    @abstractmethod
    def map_input(self, input: I, entity: E, is_new: bool) -> Any:
        """
        Copy the input's data into ``entity`` in place.

        Args:
            input: Caller-supplied data
            entity: Blank entity (create) or loaded entity (update)
            is_new: ``True`` on create, ``False`` on update
        """
        pass

    @abstractmethod
    def map_output(self, entity: E) -> O:
        """Derive the caller-facing representation of ``entity``."""
        pass


class PydanticMapper(Mapper[Any, Any, O]):
    """
    Mapper for pydantic inputs and outputs.

    - Mapping inputs (``dict``) are validated with ``input_model`` first
    - On update only explicitly set fields are copied and the identifier field
      is never overwritten; on create a ``None`` identifier is skipped so an id
      set by the entity factory survives
    - Outputs are built with ``output_model.model_validate(entity, from_attributes=True)``
    """

    def __init__(self, output_model: Type[O], input_model: Optional[Type[BaseModel]] = None,
                 exclude: Collection[str] = ()):
        self.output_model = output_model
        self.input_model = input_model
        self.exclude = frozenset(exclude)

    def map_input(self, input: Any, entity: Any, is_new: bool) -> None:
        data = self._input_data(input, is_new)
        id_field = self._id_field(type(entity))

        for name, value in data.items():
            if name in self.exclude:
                continue
            # create may only fill the id in; update never touches it
            if name == id_field and (not is_new or value is None):
                continue
            setattr(entity, name, value)

    def map_output(self, entity: Any) -> O:
        return self.output_model.model_validate(entity, from_attributes=True)

    def _input_data(self, input: Any, is_new: bool) -> Mapping[str, Any]:
        if isinstance(input, Mapping):
            if self.input_model is None:
                return dict(input)
            input = self.input_model.model_validate(input)
        if isinstance(input, BaseModel):
            return input.model_dump(exclude_unset=not is_new)
        raise TypeError(f"Unsupported input type for PydanticMapper: {type(input).__name__}")

    @staticmethod
    def _id_field(entity_class: type) -> Optional[str]:
        try:
            return get_id_field_name(entity_class)
        except IdentifierFieldError:
            logger.debug(f"No identifier field on {entity_class.__name__}; update copies every field")
            return None


__all__ = ["Mapper", "PydanticMapper"]
