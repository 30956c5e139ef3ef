"""Custom exception hierarchy for the notification deduplication engine.

Following error taxonomy: configuration and storage. Similarity scoring
itself never raises on degenerate input.
"""


class NotificationDedupError(Exception):
    """Base exception for all application errors."""

    pass


class ConfigurationError(NotificationDedupError):
    """Configuration could not be parsed into a valid structure."""

    pass


class StorageError(NotificationDedupError):
    """Configuration storage read/write failures."""

    def __init__(self, key: str, reason: str) -> None:
        """Initialize with the storage key and failure reason."""
        self.key = key
        self.reason = reason
        super().__init__(f"Storage operation failed for key '{key}': {reason}")
