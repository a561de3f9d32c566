"""Process-wide API credential holder.

The key is read at the moment each request is built, so replacing it never
affects an exchange that is already in flight.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from chatcamp._observable import Observable
from chatcamp.storage import CREDENTIAL_KEY

if TYPE_CHECKING:
    from chatcamp.storage import KeyValueStorage

log = logging.getLogger(__name__)


class CredentialStore:
    """Holds the current API key and persists it under its own storage key."""

    def __init__(
        self, storage: KeyValueStorage | None = None, *, default: str | None = None
    ) -> None:
        """Initialize with optional storage and a fallback key.

        Args:
            storage: Where the key is persisted. ``None`` keeps it in memory.
            default: Used when storage holds no key (typically from Config).
        """
        self._storage = storage
        self._default = _normalize(default)
        self._configured = Observable(self._default is not None)
        self._value: str | None = self._default

    def restore(self) -> None:
        """Load the persisted key, falling back to the default."""
        stored = None
        if self._storage is not None:
            raw = self._storage.read(CREDENTIAL_KEY)
            stored = _normalize(raw) if isinstance(raw, str) else None
        self._apply(stored or self._default)

    def get(self) -> str | None:
        """Return the current key, or None when none is configured."""
        return self._value

    @property
    def is_configured(self) -> bool:
        return self._value is not None

    def observe_configured(self) -> Observable[bool]:
        return self._configured

    async def set(self, value: str | None) -> None:
        """Replace the key; blank clears it. Persisted before returning."""
        key = _normalize(value)
        self._apply(key)
        if self._storage is None:
            return
        if key is None:
            await asyncio.to_thread(self._storage.delete, CREDENTIAL_KEY)
        else:
            await asyncio.to_thread(self._storage.write, CREDENTIAL_KEY, key)
        log.info("API key %s", "updated" if key else "cleared")

    def _apply(self, key: str | None) -> None:
        self._value = key
        self._configured.set(key is not None)

    def __repr__(self) -> str:
        return f"CredentialStore(key={'[REDACTED]' if self._value else None})"


def _normalize(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None
