"""
Durable storage abstraction for persisted inventory blobs.

The engine treats storage as a black box offering get/set/clear of a string
blob under a key. Two implementations are provided: an in-memory store for
tests and hostless runs, and a file store writing one JSON file per key.
"""

import os
import re
import tempfile
from pathlib import Path
from typing import Protocol

from ..logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class StorageBackend(Protocol):
    """Protocol defining the durable storage interface."""

    def get(self, key: str) -> str | None:
        """Return the blob stored under ``key``, or None when absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous blob."""
        ...

    def clear(self, key: str) -> None:
        """Remove the blob stored under ``key`` if present."""
        ...


class StorageError(Exception):
    """Base exception for storage backend failures."""


class InMemoryStorage:
    """Dictionary-backed storage; contents live as long as the instance."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._blobs: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._blobs.get(key)

    def set(self, key: str, value: str) -> None:
        self._blobs[key] = value

    def clear(self, key: str) -> None:
        self._blobs.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._blobs)


class FileStorage:
    """
    File-backed storage writing ``<directory>/<key>.json``.

    Writes go to a temporary file in the same directory and are moved into
    place with ``os.replace`` so a crash mid-write never leaves a torn blob.
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        if not key:
            raise StorageError("Storage key cannot be empty")
        return self.directory / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{path.stem}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e
        logger.debug("Wrote storage blob", path=str(path), size=len(value))

    def clear(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove {path}: {e}") from e
