"""Presentation-facing facade over the store, credential and coordinator.

A front end only needs this object: it renders ``observe(...)`` values,
disables input while ``observe_busy(...)`` is true, and forwards user text
to ``submit``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
import logging
from typing import TYPE_CHECKING, Self

from chatcamp.coordinator import ExchangeCoordinator
from chatcamp.credentials import CredentialStore
from chatcamp.storage import JSONFileStorage
from chatcamp.store import ConversationStore

if TYPE_CHECKING:
    from types import TracebackType

    from chatcamp._observable import Observable
    from chatcamp.config import Config
    from chatcamp.providers.base import Provider
    from chatcamp.storage import KeyValueStorage
    from chatcamp.types import Conversation, ConversationSummary, Turn

log = logging.getLogger(__name__)


class ChatClient:
    """Single entry point for a chat front end."""

    def __init__(
        self,
        store: ConversationStore,
        credentials: CredentialStore,
        coordinator: ExchangeCoordinator,
        provider: Provider,
    ) -> None:
        """Assemble a client from explicit parts (see ``open`` for the usual path)."""
        self.store = store
        self.credentials = credentials
        self.coordinator = coordinator
        self._provider = provider

    @classmethod
    def open(
        cls,
        config: Config,
        *,
        storage: KeyValueStorage | None = None,
        provider: Provider | None = None,
    ) -> ChatClient:
        """Build a client from configuration and hydrate persisted state.

        Args:
            config: Resolved configuration.
            storage: Override the JSON file at ``config.storage_path``.
            provider: Override the provider chosen from ``config``.
        """
        storage = storage or JSONFileStorage(config.storage_path)
        provider = provider or _make_provider(config)
        store = ConversationStore(storage)
        credentials = CredentialStore(storage, default=config.api_key)
        store.restore()
        credentials.restore()
        coordinator = ExchangeCoordinator(
            store,
            credentials,
            provider,
            model=str(config.model),
            system_instruction=config.system_instruction,
        )
        log.info("Chat client ready: %s", config)
        return cls(store, credentials, coordinator, provider)

    # --- Presentation contract ---

    def observe(self, conversation_id: str) -> Observable[tuple[Turn, ...]]:
        return self.store.observe(conversation_id)

    def observe_busy(self, conversation_id: str) -> Observable[bool]:
        return self.coordinator.observe_busy(conversation_id)

    def observe_conversations(self) -> Observable[tuple[ConversationSummary, ...]]:
        return self.store.observe_conversations()

    async def submit(self, conversation_id: str, text: str) -> None:
        await self.coordinator.submit(conversation_id, text)

    def list_conversations(self) -> list[ConversationSummary]:
        return self.store.list_conversations()

    async def create_conversation(self, title: str) -> Conversation:
        return await self.store.create_conversation(title)

    async def delete_conversations(self, ids: Iterable[str]) -> None:
        await self.store.delete_conversations(ids)

    async def set_credential(self, value: str | None) -> None:
        await self.credentials.set(value)

    @property
    def credential_configured(self) -> bool:
        return self.credentials.is_configured

    # --- Lifecycle ---

    async def aclose(self) -> None:
        """Close the provider; cleanup failures are logged, not raised."""
        try:
            await self._provider.aclose()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            # Cleanup should never mask the primary failure.
            log.warning("Provider cleanup failed: %s", exc)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


def _make_provider(config: Config) -> Provider:
    """Get the provider selected by configuration."""
    if config.use_mock:
        from chatcamp.providers.mock import MockProvider

        return MockProvider()

    from chatcamp.providers.openrouter import OpenRouterProvider

    return OpenRouterProvider(str(config.base_url), timeout_s=config.timeout_s)
