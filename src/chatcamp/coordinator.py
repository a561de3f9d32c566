"""Exchange coordinator: one request/response cycle per user submission.

Each submission appends exactly two turns to its conversation: the user
turn before the network call, and either the assistant reply or an
``Error: ...`` turn after it. API failures never escape ``submit``;
the transcript is the only place they surface.
"""

from __future__ import annotations

import asyncio
from enum import Enum
import logging
from typing import TYPE_CHECKING

from chatcamp._http import DEFAULT_MODEL, NO_RESPONSE_TEXT
from chatcamp._observable import Observable
from chatcamp.config import DEFAULT_SYSTEM_INSTRUCTION
from chatcamp.errors import APIError, BusyError
from chatcamp.providers.models import ChatMessage, CompletionRequest
from chatcamp.types import Turn

if TYPE_CHECKING:
    from collections.abc import Sequence

    from chatcamp.credentials import CredentialStore
    from chatcamp.providers.base import Provider
    from chatcamp.store import ConversationStore
    from chatcamp.types import ConversationSummary

log = logging.getLogger(__name__)


class ExchangeState(Enum):
    """Per-conversation exchange state."""

    IDLE = "idle"
    SENDING = "sending"


def build_messages(
    system_instruction: str,
    prior_turns: Sequence[Turn],
    user_text: str,
) -> tuple[ChatMessage, ...]:
    """Compose the outbound message list.

    The system instruction comes first, then every prior turn in order,
    then the new user text. History is not trimmed.
    """
    messages = [ChatMessage(role="system", content=system_instruction)]
    messages.extend(ChatMessage(role=t.origin.role, content=t.text) for t in prior_turns)
    messages.append(ChatMessage(role="user", content=user_text))
    return tuple(messages)


def error_text(exc: APIError) -> str:
    """Render a provider failure as transcript text."""
    text = f"Error: {exc}"
    if exc.hint:
        text = f"{text.rstrip('.')}. {exc.hint}"
    return text


class ExchangeCoordinator:
    """Runs exchanges against a provider and records them in the store."""

    def __init__(
        self,
        store: ConversationStore,
        credentials: CredentialStore,
        provider: Provider,
        *,
        model: str = DEFAULT_MODEL,
        system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION,
    ) -> None:
        """Initialize with explicit collaborators; nothing is global."""
        self._store = store
        self._credentials = credentials
        self._provider = provider
        self.model = model
        self.system_instruction = system_instruction
        self._states: dict[str, ExchangeState] = {}
        self._busy: dict[str, Observable[bool]] = {}
        store.observe_conversations().subscribe(self._drop_stale_busy)

    # --- State ---

    def _drop_stale_busy(self, summaries: tuple[ConversationSummary, ...]) -> None:
        live = {s.id for s in summaries}
        for conversation_id in [cid for cid in self._busy if cid not in live]:
            del self._busy[conversation_id]

    def state(self, conversation_id: str) -> ExchangeState:
        return self._states.get(conversation_id, ExchangeState.IDLE)

    def is_busy(self, conversation_id: str) -> bool:
        return self.state(conversation_id) is ExchangeState.SENDING

    def observe_busy(self, conversation_id: str) -> Observable[bool]:
        """Return a live busy flag for disabling input while sending.

        Raises:
            ConversationNotFoundError: If the id is unknown.
        """
        self._store.get(conversation_id)
        feed = self._busy.get(conversation_id)
        if feed is None:
            feed = Observable(self.is_busy(conversation_id))
            self._busy[conversation_id] = feed
        return feed

    def _set_state(self, conversation_id: str, state: ExchangeState) -> None:
        if state is ExchangeState.IDLE:
            self._states.pop(conversation_id, None)
        else:
            self._states[conversation_id] = state
        feed = self._busy.get(conversation_id)
        if feed is not None:
            feed.set(state is ExchangeState.SENDING)

    # --- Protocol ---

    async def submit(self, conversation_id: str, user_text: str) -> None:
        """Send *user_text* and record the outcome in the conversation.

        Blank text is ignored.

        Raises:
            BusyError: An exchange for this conversation is still in flight.
            ConversationNotFoundError: The conversation id is unknown.
        """
        if not user_text.strip():
            log.debug("Ignoring blank submission for %s", conversation_id)
            return
        if self.is_busy(conversation_id):
            raise BusyError(conversation_id)

        # Claimed synchronously, before the first await, so a second submit
        # for the same conversation observes SENDING.
        self._set_state(conversation_id, ExchangeState.SENDING)
        try:
            prior = self._store.turns(conversation_id)
            await self._store.append_turn(conversation_id, Turn.user(user_text))
            request = CompletionRequest(
                model=self.model,
                messages=build_messages(self.system_instruction, prior, user_text),
                api_key=self._credentials.get(),
            )
            reply = await self._exchange(conversation_id, request)
            await self._store.append_turn(conversation_id, reply)
        finally:
            self._set_state(conversation_id, ExchangeState.IDLE)

    async def _exchange(self, conversation_id: str, request: CompletionRequest) -> Turn:
        """Perform the single provider call and map the outcome to a turn."""
        try:
            response = await self._provider.complete(request)
        except asyncio.CancelledError:
            raise
        except APIError as e:
            log.warning(
                "Exchange failed for %s: %s: %s",
                conversation_id,
                type(e).__name__,
                e,
            )
            return Turn.assistant(error_text(e))

        if response.text is None:
            log.warning("Provider returned no choices for %s", conversation_id)
            return Turn.assistant(NO_RESPONSE_TEXT)
        log.info(
            "Exchange completed for %s (%d history messages)",
            conversation_id,
            len(request.messages) - 2,
        )
        return Turn.assistant(response.text)
