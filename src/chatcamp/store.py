"""Conversation store: the single source of truth for all conversations.

The store keeps the conversation set in memory, hydrates it lazily from
``KeyValueStorage`` on first access, and writes the whole set back after
every mutation (create, append, delete). The persisted form is one JSON
array under ``saved_chats``; see ``chatcamp.types`` for the shape.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
import logging
from typing import TYPE_CHECKING

from chatcamp._observable import Observable
from chatcamp.errors import ConversationNotFoundError
from chatcamp.storage import CONVERSATIONS_KEY
from chatcamp.types import (
    Conversation,
    ConversationSummary,
    Turn,
    decode_conversations,
    encode_conversations,
)

if TYPE_CHECKING:
    from chatcamp.storage import KeyValueStorage

log = logging.getLogger(__name__)


class ConversationStore:
    """Durable, append-only conversation store with live views."""

    def __init__(self, storage: KeyValueStorage) -> None:
        """Initialize the store over a key-value storage backend."""
        self._storage = storage
        self._conversations: dict[str, Conversation] = {}
        self._loaded = False
        self._append_locks: dict[str, asyncio.Lock] = {}
        self._flush_lock = asyncio.Lock()
        self._turn_feeds: dict[str, Observable[tuple[Turn, ...]]] = {}
        self._summaries: Observable[tuple[ConversationSummary, ...]] = Observable(())

    # --- Hydration and persistence ---

    def restore(self) -> None:
        """Hydrate from storage, replacing the in-memory set.

        Safe to call repeatedly. Missing or malformed data yields an empty
        set rather than an error.
        """
        try:
            raw = self._storage.read(CONVERSATIONS_KEY)
        except Exception as e:
            log.warning("Could not read stored conversations: %s", e)
            raw = None
        conversations = decode_conversations(raw)
        self._conversations = {c.id: c for c in conversations}
        self._loaded = True
        for conversation_id in list(self._turn_feeds):
            conversation = self._conversations.get(conversation_id)
            self._turn_feeds[conversation_id].set(
                conversation.turns if conversation else ()
            )
        self._publish_summaries()
        log.debug("Restored %d conversations", len(self._conversations))

    async def flush(self) -> None:
        """Overwrite the durable blob with the current conversation set."""
        self._ensure_loaded()
        async with self._flush_lock:
            # Snapshot under the lock so a later writer never loses to an
            # earlier, staler one.
            snapshot = encode_conversations(list(self._conversations.values()))
            await asyncio.to_thread(self._storage.write, CONVERSATIONS_KEY, snapshot)

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.restore()

    # --- Queries ---

    def list_conversations(self) -> list[ConversationSummary]:
        """Return summaries in creation order; empty when nothing is stored."""
        self._ensure_loaded()
        return [c.summary() for c in self._conversations.values()]

    def get(self, conversation_id: str) -> Conversation:
        """Return the current snapshot of a conversation.

        Raises:
            ConversationNotFoundError: If the id is unknown.
        """
        self._ensure_loaded()
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        return conversation

    def turns(self, conversation_id: str) -> tuple[Turn, ...]:
        """Return the ordered turns of a conversation."""
        return self.get(conversation_id).turns

    def __contains__(self, conversation_id: object) -> bool:
        self._ensure_loaded()
        return conversation_id in self._conversations

    # --- Live views ---

    def observe(self, conversation_id: str) -> Observable[tuple[Turn, ...]]:
        """Return a live view of a conversation's ordered turns.

        Raises:
            ConversationNotFoundError: If the id is unknown.
        """
        turns = self.turns(conversation_id)
        feed = self._turn_feeds.get(conversation_id)
        if feed is None:
            feed = Observable(turns)
            self._turn_feeds[conversation_id] = feed
        return feed

    def observe_conversations(self) -> Observable[tuple[ConversationSummary, ...]]:
        """Return a live view of the conversation list."""
        self._ensure_loaded()
        return self._summaries

    def _publish_turns(self, conversation_id: str) -> None:
        feed = self._turn_feeds.get(conversation_id)
        if feed is not None:
            feed.set(self._conversations[conversation_id].turns)

    def _publish_summaries(self) -> None:
        self._summaries.set(tuple(c.summary() for c in self._conversations.values()))

    # --- Mutations ---

    async def create_conversation(self, title: str) -> Conversation:
        """Create an empty conversation and persist it immediately."""
        self._ensure_loaded()
        conversation = Conversation(title=title)
        self._conversations[conversation.id] = conversation
        self._publish_summaries()
        try:
            await self.flush()
        except Exception:
            if self._conversations.pop(conversation.id, None) is not None:
                self._publish_summaries()
            raise
        log.info("Created conversation %s (%r)", conversation.id, title)
        return conversation

    async def append_turn(self, conversation_id: str, turn: Turn) -> Conversation:
        """Append *turn* and persist the full set before returning.

        Appends to the same conversation are serialized by a
        per-conversation lock; different conversations do not contend.
        If the storage write fails, the turn is taken back out of memory
        and the storage error propagates.

        Raises:
            ConversationNotFoundError: If the id is unknown.
            ValueError: If the turn id is already used in the conversation.
        """
        self.get(conversation_id)
        lock = self._append_locks.setdefault(conversation_id, asyncio.Lock())
        async with lock:
            # Re-check: the conversation may have been deleted while waiting.
            current = self.get(conversation_id)
            updated = current.with_turn(turn)
            self._conversations[conversation_id] = updated
            self._publish_turns(conversation_id)
            self._publish_summaries()
            log.debug(
                "Appended %s turn %s to %s (%d turns)",
                turn.origin.value,
                turn.id,
                conversation_id,
                len(updated.turns),
            )
            try:
                await self.flush()
            except Exception:
                # Memory must not run ahead of storage.
                if self._conversations.get(conversation_id) is updated:
                    self._conversations[conversation_id] = current
                    self._publish_turns(conversation_id)
                    self._publish_summaries()
                log.warning(
                    "Write failed; dropped turn %s from %s", turn.id, conversation_id
                )
                raise
        return updated

    async def delete_conversations(self, ids: Iterable[str]) -> None:
        """Remove the given conversations; unknown ids are ignored."""
        self._ensure_loaded()
        removed = [cid for cid in set(ids) if self._conversations.pop(cid, None)]
        for cid in removed:
            self._append_locks.pop(cid, None)
            feed = self._turn_feeds.pop(cid, None)
            if feed is not None:
                feed.set(())
        if removed:
            log.info("Deleted %d conversation(s)", len(removed))
        self._publish_summaries()
        await self.flush()
