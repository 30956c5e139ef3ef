"""Key/value storage backends for persisted configuration documents."""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path
from typing import Final

from notification_dedup.config.logging_config import get_logger
from notification_dedup.domain.exceptions import StorageError

__all__ = ["InMemoryConfigStorage", "JsonFileConfigStorage"]

logger = get_logger(__name__)

_VALID_KEY: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonFileConfigStorage:
    """Stores each key as ``<directory>/<key>.json``."""

    def __init__(self, directory: str | Path) -> None:
        """Initialize storage.

        Args:
            directory: Folder holding the documents (created on first write)
        """
        self._directory = Path(directory)

    def _path_for(self, key: str) -> Path:
        if not _VALID_KEY.match(key):
            raise StorageError(key, "invalid storage key")
        return self._directory / f"{key}.json"

    def get_item(self, key: str) -> str | None:
        """Read the document stored under ``key``."""
        path = self._path_for(key)
        if not path.exists():
            return None

        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(key, str(e)) from e

    def set_item(self, key: str, value: str) -> None:
        """Write ``value`` atomically (temp file + rename)."""
        path = self._path_for(key)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._directory, prefix=f".{key}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(key, str(e)) from e

        logger.debug("config_document_written", key=key, path=str(path))

    def remove_item(self, key: str) -> None:
        """Delete the document stored under ``key`` if present."""
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(key, str(e)) from e


class InMemoryConfigStorage:
    """Process-local storage, used in tests and when persistence is off."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)
