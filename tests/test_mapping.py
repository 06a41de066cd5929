"""PydanticMapper tests."""

from typing import Optional

import pytest
from pydantic import BaseModel, ValidationError

from crudflow import PydanticMapper

from .support import User, UserIn, UserOut, UserPatch


class Note:
    """Plain entity without an identifier declaration"""

    def __init__(self):
        self.id = None
        self.text = ""


class NoteIn(BaseModel):
    id: str = ""
    text: str


class NoteOut(BaseModel):
    id: str
    text: str


class TestPydanticMapper:

    def test_create_copies_every_field(self):
        mapper = PydanticMapper(UserOut, UserIn)
        entity = User()

        mapper.map_input(UserIn(name="alice", age=30), entity, True)

        assert entity.name == "alice"
        assert entity.age == 30
        assert entity.email is None

    def test_mapping_input_is_validated(self):
        mapper = PydanticMapper(UserOut, UserIn)
        entity = User()

        mapper.map_input({"name": "bob", "age": "41"}, entity, True)
        assert entity.age == 41

        with pytest.raises(ValidationError):
            mapper.map_input({"age": 3}, User(), True)

    def test_update_copies_only_set_fields_and_keeps_id(self):
        mapper = PydanticMapper(UserOut, UserIn)
        entity = User(id="u1", name="alice", email="a@example.com")

        class Hostile(UserPatch):
            id: str = ""

        mapper.map_input(Hostile(id="other", age=5), entity, False)

        assert entity.id == "u1"
        assert entity.age == 5
        assert entity.name == "alice"
        assert entity.email == "a@example.com"

    def test_create_keeps_factory_id_when_input_id_is_unset(self):
        class UserWithId(UserIn):
            id: Optional[str] = None

        mapper = PydanticMapper(UserOut, UserWithId)
        entity = User(id="from-factory")

        mapper.map_input(UserWithId(name="alice"), entity, True)
        assert entity.id == "from-factory"
        assert entity.name == "alice"

        mapper.map_input(UserWithId(id="chosen", name="bob"), entity, True)
        assert entity.id == "chosen"

    def test_exclude(self):
        mapper = PydanticMapper(UserOut, UserIn, exclude=["email"])
        entity = User()

        mapper.map_input(UserIn(name="alice", email="x@example.com"), entity, True)

        assert entity.email is None

    def test_update_without_identifier_declaration_copies_every_set_field(self):
        mapper = PydanticMapper(NoteOut, NoteIn)
        note = Note()
        note.id = "n1"

        mapper.map_input(NoteIn(id="n2", text="hello"), note, False)

        assert note.id == "n2"
        assert note.text == "hello"

    def test_output_from_attributes(self):
        mapper = PydanticMapper(UserOut)

        output = mapper.map_output(User(id="u1", name="alice"))

        assert output == UserOut(id="u1", name="alice")

    def test_unsupported_input(self):
        with pytest.raises(TypeError):
            PydanticMapper(UserOut).map_input(["name"], User(), True)
