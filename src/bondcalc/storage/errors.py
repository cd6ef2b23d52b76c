"""Key-value store error types.

Store failures are fail-closed: an operation that cannot complete raises.
"""

from __future__ import annotations


class StorageBackendError(Exception):
    """Raised when the storage backend cannot complete an operation.

    Attributes:
        message: Human-readable error message.
        key: Record key associated with the operation (if applicable).
    """

    def __init__(self, message: str, *, key: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.key = key

    def __str__(self) -> str:
        if self.key:
            return f"{self.message} key={self.key}"
        return self.message
