"""Device-local key-value storage protocol.

Implementations:
- JSON files in a directory (default)
- Redis
- In-process dictionary (tests, ephemeral runs)
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """Synchronous storage for JSON-compatible documents.

    All methods raise ``StorageError`` when the underlying medium fails.
    """

    def get(self, key: str) -> Any | None:
        """Load a document.

        Args:
            key: Document key

        Returns:
            The stored value, or None if the key does not exist
        """
        ...

    def set(self, key: str, value: Any) -> None:
        """Store a document, replacing any previous value.

        Args:
            key: Document key
            value: JSON-compatible value
        """
        ...

    def delete(self, key: str) -> None:
        """Remove a document. Missing keys are ignored."""
        ...
