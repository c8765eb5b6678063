"""Store interfaces and in-memory implementations."""
from core.stores.interfaces import JobCriteria, PreferencesStore, ProfileStore
from core.stores.memory import (
    InMemoryPreferencesStore,
    InMemoryProfileStore,
    load_fixture,
)

__all__ = [
    'JobCriteria',
    'PreferencesStore',
    'ProfileStore',
    'InMemoryPreferencesStore',
    'InMemoryProfileStore',
    'load_fixture',
]
