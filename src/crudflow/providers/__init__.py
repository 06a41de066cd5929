"""
Providers - Lifecycle Orchestration for Entity CRUD

Base classes that run hooks, persistence calls, events and mapping in a
fixed order. Adapters subclass them and implement the ``internal_*`` hooks.
"""

from .lifecycle import ProviderSupport, ReadLifecycle, WriteLifecycle
from .blocking import EntityReadProvider, EntityCrudProvider
from .suspending import AsyncEntityReadProvider, AsyncEntityCrudProvider

__all__ = [
    "ProviderSupport", "ReadLifecycle", "WriteLifecycle",
    "EntityReadProvider", "EntityCrudProvider",
    "AsyncEntityReadProvider", "AsyncEntityCrudProvider",
]
