"""chatcamp: the core of the coding-camp demo chat client.

Public API:
    - ChatClient: Facade a front end talks to
    - ConversationStore: Durable multi-conversation history
    - ExchangeCoordinator: One request/response cycle per submission
    - Config: Configuration dataclass
"""

from __future__ import annotations

import logging

from chatcamp.client import ChatClient
from chatcamp.config import Config
from chatcamp.coordinator import ExchangeCoordinator, ExchangeState
from chatcamp.credentials import CredentialStore
from chatcamp.errors import (
    APIError,
    BusyError,
    ChatcampError,
    ConfigurationError,
    ConversationNotFoundError,
    MalformedResponseError,
    MissingCredentialError,
    TransportError,
    UpstreamError,
)
from chatcamp.storage import JSONFileStorage, MemoryStorage
from chatcamp.store import ConversationStore
from chatcamp.types import Conversation, ConversationSummary, Origin, Turn

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("chatcamp")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("chatcamp").addHandler(logging.NullHandler())

__all__ = [
    "APIError",
    "BusyError",
    "ChatClient",
    "ChatcampError",
    "Config",
    "ConfigurationError",
    "Conversation",
    "ConversationNotFoundError",
    "ConversationStore",
    "ConversationSummary",
    "CredentialStore",
    "ExchangeCoordinator",
    "ExchangeState",
    "JSONFileStorage",
    "MalformedResponseError",
    "MemoryStorage",
    "MissingCredentialError",
    "Origin",
    "TransportError",
    "Turn",
    "UpstreamError",
]
