"""Event channel composition tests."""

import pytest

from crudflow import CrudEvents, ReadEvents, WriteEvents
from crudflow.events import DEFAULT_CRUD_EVENTS, DEFAULT_READ_EVENTS, DEFAULT_WRITE_EVENTS


class Both(ReadEvents, WriteEvents):
    pass


class TestCrudEvents:

    def test_defaults_are_no_ops(self):
        events = CrudEvents.default()

        assert events is DEFAULT_CRUD_EVENTS
        assert events.read.on_find(object()) is None
        assert events.read.on_exists(True, 1) is None
        assert events.write.on_before_delete(object()) is None
        assert events.write.each_entity(object()) is None

    def test_missing_channels_use_shared_defaults(self):
        events = CrudEvents(read=None, write=None)

        assert events.read is DEFAULT_READ_EVENTS
        assert events.write is DEFAULT_WRITE_EVENTS

    def test_of_uses_one_handler_for_both_channels(self):
        handler = Both()
        events = CrudEvents.of(handler)

        assert events.read is handler
        assert events.write is handler

    @pytest.mark.parametrize("value, read_is_handler, write_is_handler", [
        (ReadEvents(), True, False),
        (WriteEvents(), False, True),
        (Both(), True, True),
    ])
    def test_coerce_single_handlers(self, value, read_is_handler, write_is_handler):
        events = CrudEvents.coerce(value)

        assert (events.read is value) == read_is_handler
        assert (events.write is value) == write_is_handler

    def test_coerce_passes_through(self):
        events = CrudEvents(write=WriteEvents())

        assert CrudEvents.coerce(events) is events
        assert CrudEvents.coerce(None) is DEFAULT_CRUD_EVENTS

    def test_coerce_rejects_unknown_objects(self):
        with pytest.raises(TypeError):
            CrudEvents.coerce(object())
