"""Key-value durable storage interfaces and JSON file implementation.

The client keeps two named values: the conversation blob and the API key.
Storage only deals in JSON-compatible values; shaping them is the caller's
job.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
import threading
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    import os

log = logging.getLogger(__name__)

CONVERSATIONS_KEY = "saved_chats"
CREDENTIAL_KEY = "openrouter_api_key"


class KeyValueStorage(Protocol):
    """Protocol for reading and writing named JSON values."""

    def read(self, key: str) -> Any:
        """Return the value stored under *key*, or None when absent."""
        ...

    def write(self, key: str, value: Any) -> None:
        """Store *value* under *key*, replacing any previous value."""
        ...

    def delete(self, key: str) -> None:
        """Remove *key* if present."""
        ...


class JSONFileStorage:
    """Key-value store backed by a single JSON object file.

    Uses copy-on-write: write to a temp file and rename for atomicity.
    A missing or unparsable file reads as an empty mapping.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        """Initialize the storage pointing at a JSON file path."""
        self._path = Path(path)
        # Writers may run in worker threads; serialize read-modify-write.
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def read(self, key: str) -> Any:
        """Return the value under *key* or None."""
        with self._lock:
            return self._read_all().get(key)

    def write(self, key: str, value: Any) -> None:
        """Persist *value* under *key*."""
        with self._lock:
            data = self._read_all()
            data[key] = value
            self._write_all(data)

    def delete(self, key: str) -> None:
        """Remove *key* when present."""
        with self._lock:
            data = self._read_all()
            if key in data:
                del data[key]
                self._write_all(data)

    def _read_all(self) -> dict[str, Any]:
        """Read and deserialize the entire JSON file into a mapping."""
        if not self._path.exists():
            return {}
        try:
            result = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            log.warning("Ignoring unreadable storage file %s: %s", self._path, e)
            return {}
        if not isinstance(result, dict):
            log.warning("Ignoring storage file %s: not a JSON object", self._path)
            return {}
        return result

    def _write_all(self, data: dict[str, Any]) -> None:
        """Persist data atomically via temp file rename."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp.replace(self._path)
        log.debug("Wrote storage file %s (%d keys)", self._path, len(data))


class MemoryStorage:
    """In-process storage for tests and mock runs.

    Values are deep-copied on the way in and out so callers cannot mutate
    what is "on disk".
    """

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}
        self.writes = 0

    def read(self, key: str) -> Any:
        return copy.deepcopy(self._data.get(key))

    def write(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)
        self.writes += 1

    def delete(self, key: str) -> None:
        self._data.pop(key, None)
