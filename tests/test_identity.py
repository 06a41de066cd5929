"""Identifier-field discovery tests."""

import threading
from dataclasses import dataclass, field
from typing import Optional

import pytest
from pydantic import BaseModel, Field

from crudflow import IdentifierFieldError
from crudflow.persistence import identity
from crudflow.persistence.identity import clear_id_field_cache, get_id_field_name

from .support import Person, User


@dataclass
class Invoice:
    number: str = field(default="", metadata={"primary_key": True})
    total: float = 0.0


class NoKey(BaseModel):
    name: str = ""


class TwoKeys(BaseModel):
    a: Optional[int] = Field(default=None, json_schema_extra={"primary_key": True})
    b: Optional[int] = Field(default=None, json_schema_extra={"primary_key": True})


class TestIdentifierDiscovery:

    def test_sqlmodel_table_uses_mapper_primary_key(self):
        assert get_id_field_name(Person) == "id"

    def test_pydantic_field_marker(self):
        assert get_id_field_name(User) == "id"

    def test_dataclass_metadata(self):
        assert get_id_field_name(Invoice) == "number"

    @pytest.mark.parametrize("entity_class, found", [(NoKey, 0), (TwoKeys, 2), (object, 0)])
    def test_exactly_one_field_required(self, entity_class, found):
        with pytest.raises(IdentifierFieldError) as exc_info:
            get_id_field_name(entity_class)

        assert exc_info.value.found == found
        assert exc_info.value.entity_class is entity_class

    def test_result_is_cached_per_type(self, monkeypatch):
        calls = []
        original = identity._discover_id_field

        def counting(entity_class):
            calls.append(entity_class)
            return original(entity_class)

        monkeypatch.setattr(identity, "_discover_id_field", counting)

        threads = [threading.Thread(target=get_id_field_name, args=(Invoice,)) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        get_id_field_name(Invoice)

        assert calls == [Invoice]

        clear_id_field_cache()
        get_id_field_name(Invoice)
        assert calls == [Invoice, Invoice]
