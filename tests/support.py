"""
Shared test models and recording doubles.

``RecordingProvider`` / ``AsyncRecordingProvider`` keep entities in a plain
dict and append every hook, adapter call and event to one ``log`` list so
tests can assert on the exact lifecycle order.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from sqlmodel import Field as SQLField, SQLModel

from crudflow import (
    AsyncEntityCrudProvider, EntityCrudProvider, NotFoundEntityError, Page,
    PydanticMapper, ReadEvents, WriteEvents,
)


class User(BaseModel):
    id: Optional[str] = Field(default=None, json_schema_extra={"primary_key": True})
    name: str = ""
    email: Optional[str] = None
    age: Optional[int] = None


class UserIn(BaseModel):
    name: str
    email: Optional[str] = None
    age: Optional[int] = None


class UserPatch(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    age: Optional[int] = None


class UserOut(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    age: Optional[int] = None


class Person(SQLModel, table=True):
    __tablename__ = "people"

    id: Optional[int] = SQLField(default=None, primary_key=True)
    name: str = ""
    email: Optional[str] = None
    age: Optional[int] = None


class PersonIn(BaseModel):
    name: str
    email: Optional[str] = None
    age: Optional[int] = None


class PersonOut(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    age: Optional[int] = None


def user_mapper() -> PydanticMapper:
    return PydanticMapper(UserOut, UserIn)


class RecordingEvents(ReadEvents, WriteEvents):
    """Handler implementing both channels; ``each_entity`` is shared by both."""

    def __init__(self, log: List[Any]):
        self.log = log

    def on_find(self, entity):
        self.log.append(("on_find", entity.id))

    def on_find_many(self, entities, ids):
        self.log.append(("on_find_many", [e.id for e in entities], list(ids)))

    def on_count(self, count):
        self.log.append(("on_count", count))

    def on_exists(self, exists, id):
        self.log.append(("on_exists", exists, id))

    def on_page(self, page):
        self.log.append(("on_page", page.total_elements))

    def each_entity(self, entity):
        self.log.append(("each_entity", entity.id))

    def on_before_create(self, input, entity):
        self.log.append(("on_before_create", entity.name))

    def on_after_create(self, input, entity):
        self.log.append(("on_after_create", entity.id))

    def on_before_update(self, input, entity):
        self.log.append(("on_before_update", entity.id))

    def on_after_update(self, input, entity):
        self.log.append(("on_after_update", entity.id))

    def on_before_delete(self, entity):
        self.log.append(("on_before_delete", entity.id))

    def on_after_delete(self, entity):
        self.log.append(("on_after_delete", entity.id))


class RecordingProvider(EntityCrudProvider):
    """Dict-backed provider logging hooks, transactions and adapter calls."""

    def __init__(self, log: List[Any], **kwargs):
        kwargs.setdefault("mapper", user_mapper())
        super().__init__(User, **kwargs)
        self.log = log
        self.rows: Dict[str, User] = {}
        self.next_id = 1
        self.fail_on: Optional[str] = None

    def seed(self, *names: str) -> List[User]:
        users = []
        for name in names:
            user = User(id=f"u{self.next_id}", name=name)
            self.next_id += 1
            self.rows[user.id] = user
            users.append(user)
        return users

    def _call(self, name: str, *args):
        self.log.append((name,) + args)
        if self.fail_on == name:
            raise RuntimeError(f"{name} failed")

    def pre_process(self, operation):
        self.log.append(("pre_process", operation.value))

    def post_process(self, operation):
        self.log.append(("post_process", operation.value))

    def with_transaction(self, work):
        self.log.append(("begin",))
        try:
            result = work()
        except Exception:
            self.log.append(("rollback",))
            raise
        self.log.append(("commit",))
        return result

    def internal_find(self, id):
        self._call("internal_find", id)
        if id not in self.rows:
            raise NotFoundEntityError(User, id)
        return self.rows[id].model_copy()

    def internal_find_many(self, ids):
        self._call("internal_find_many", list(ids))
        return [self.rows[i].model_copy() for i in ids if i in self.rows]

    def internal_page(self, pagination, sort):
        self._call("internal_page")
        return Page.of(list(self.rows.values()), pagination, sort)

    def internal_search(self, search, pagination, sort):
        self._call("internal_search", search)
        return Page.of([u for u in self.rows.values() if search in u.name], pagination, sort)

    def internal_search_query(self, search, pagination, sort, query):
        self._call("internal_search_query", search, query)
        return Page.of([], pagination, sort)

    def internal_count(self):
        self._call("internal_count")
        return len(self.rows)

    def internal_count_search(self, search):
        self._call("internal_count_search", search)
        return sum(1 for u in self.rows.values() if search in u.name)

    def internal_count_search_query(self, search, query):
        self._call("internal_count_search_query", search, query)
        return 0

    def internal_exists(self, id):
        self._call("internal_exists", id)
        return id in self.rows

    def internal_create(self, entity):
        self._call("internal_create", entity.name)
        entity.id = f"u{self.next_id}"
        self.next_id += 1
        self.rows[entity.id] = entity
        return entity

    def internal_update(self, entity):
        self._call("internal_update", entity.id)
        self.rows[entity.id] = entity
        return entity

    def internal_delete(self, entity):
        self._call("internal_delete", entity.id)
        del self.rows[entity.id]


class AsyncRecordingProvider(AsyncEntityCrudProvider):
    """Coroutine flavour of ``RecordingProvider``; every hook is ``async def``."""

    def __init__(self, log: List[Any], **kwargs):
        kwargs.setdefault("mapper", user_mapper())
        super().__init__(User, **kwargs)
        self.log = log
        self.rows: Dict[str, User] = {}
        self.next_id = 1
        self.fail_on: Optional[str] = None

    def seed(self, *names: str) -> List[User]:
        users = []
        for name in names:
            user = User(id=f"u{self.next_id}", name=name)
            self.next_id += 1
            self.rows[user.id] = user
            users.append(user)
        return users

    def _call(self, name: str, *args):
        self.log.append((name,) + args)
        if self.fail_on == name:
            raise RuntimeError(f"{name} failed")

    async def pre_process(self, operation):
        self.log.append(("pre_process", operation.value))

    async def post_process(self, operation):
        self.log.append(("post_process", operation.value))

    async def with_transaction(self, work):
        self.log.append(("begin",))
        try:
            result = await work()
        except Exception:
            self.log.append(("rollback",))
            raise
        self.log.append(("commit",))
        return result

    async def internal_find(self, id):
        self._call("internal_find", id)
        if id not in self.rows:
            raise NotFoundEntityError(User, id)
        return self.rows[id].model_copy()

    async def internal_find_many(self, ids):
        self._call("internal_find_many", list(ids))
        return [self.rows[i].model_copy() for i in ids if i in self.rows]

    async def internal_page(self, pagination, sort):
        self._call("internal_page")
        return Page.of(list(self.rows.values()), pagination, sort)

    async def internal_search(self, search, pagination, sort):
        self._call("internal_search", search)
        return Page.of([u for u in self.rows.values() if search in u.name], pagination, sort)

    async def internal_search_query(self, search, pagination, sort, query):
        self._call("internal_search_query", search, query)
        return Page.of([], pagination, sort)

    async def internal_count(self):
        self._call("internal_count")
        return len(self.rows)

    async def internal_count_search(self, search):
        self._call("internal_count_search", search)
        return sum(1 for u in self.rows.values() if search in u.name)

    async def internal_count_search_query(self, search, query):
        self._call("internal_count_search_query", search, query)
        return 0

    async def internal_exists(self, id):
        self._call("internal_exists", id)
        return id in self.rows

    async def internal_create(self, entity):
        self._call("internal_create", entity.name)
        entity.id = f"u{self.next_id}"
        self.next_id += 1
        self.rows[entity.id] = entity
        return entity

    async def internal_update(self, entity):
        self._call("internal_update", entity.id)
        self.rows[entity.id] = entity
        return entity

    async def internal_delete(self, entity):
        self._call("internal_delete", entity.id)
        del self.rows[entity.id]
