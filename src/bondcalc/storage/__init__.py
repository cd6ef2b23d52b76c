"""Key-value storage for persisted records.

Provides the KeyValueStore interface with in-memory and SQLite backends.
"""

from bondcalc.settings import Settings
from bondcalc.storage.errors import StorageBackendError
from bondcalc.storage.kv_store import InMemoryKeyValueStore, KeyValueStore
from bondcalc.storage.sqlite_store import SqliteKeyValueStore


def create_store(settings: Settings) -> KeyValueStore:
    """Build the store selected by settings."""
    if settings.uses_memory_store:
        return InMemoryKeyValueStore()
    return SqliteKeyValueStore(settings.store_path)


__all__ = [
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "SqliteKeyValueStore",
    "StorageBackendError",
    "create_store",
]
