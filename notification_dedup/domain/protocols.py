"""Protocol definitions for dependency inversion.

These abstract interfaces define contracts that adapters must implement.
"""

from typing import Protocol


class ConfigStorageProtocol(Protocol):
    """Key/value storage holding serialized configuration documents."""

    def get_item(self, key: str) -> str | None:
        """Return the stored text for ``key`` or None when absent.

        Raises:
            StorageError: On read failures
        """
        ...

    def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value.

        Raises:
            StorageError: On write failures
        """
        ...

    def remove_item(self, key: str) -> None:
        """Delete ``key`` if present."""
        ...


class SimilarityScorer(Protocol):
    """Callable scoring two strings into [0, 1]."""

    def __call__(self, a: str, b: str) -> float: ...
