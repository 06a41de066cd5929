"""Shared fixtures for the crudflow test suite."""

import pytest

from crudflow.persistence import clear_id_field_cache

from .support import AsyncRecordingProvider, RecordingEvents, RecordingProvider


@pytest.fixture(autouse=True)
def fresh_id_cache():
    """Identifier discovery is process-wide; start every test with an empty cache"""
    clear_id_field_cache()
    yield
    clear_id_field_cache()


@pytest.fixture
def log():
    return []


@pytest.fixture
def events(log):
    return RecordingEvents(log)


@pytest.fixture
def provider(log, events):
    return RecordingProvider(log, events=events)


@pytest.fixture
def async_provider(log, events):
    return AsyncRecordingProvider(log, events=events)
