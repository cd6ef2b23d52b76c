"""Key-value store interface and in-memory backend.

Records are opaque text values under string keys; callers own serialization.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod


class KeyValueStore(ABC):
    """Abstract base class for key-value storage backends.

    Implementations:
    - InMemoryKeyValueStore: process-local dict (tests, ephemeral runs)
    - SqliteKeyValueStore: single-file SQLite database
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend identifier (e.g., "memory", "sqlite")."""
        ...

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent.

        Raises:
            StorageBackendError: If the backend cannot complete the read.
        """
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value, replacing any existing one.

        Raises:
            StorageBackendError: If the backend cannot complete the write.
        """
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove a key. Returns True if a value was removed.

        Raises:
            StorageBackendError: If the backend cannot complete the deletion.
        """
        ...


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store; contents are lost when the process exits."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    @property
    def backend_name(self) -> str:
        return "memory"

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None
