"""Exception hierarchy for chatcamp."""

from __future__ import annotations


class ChatcampError(Exception):
    """Base exception for all chatcamp errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(ChatcampError):
    """Configuration validation or resolution failed."""


class ConversationNotFoundError(ChatcampError):
    """A store operation referenced an unknown conversation id.

    Indicates a caller bug, so it is raised rather than turned into a turn.
    """

    def __init__(self, conversation_id: str) -> None:
        super().__init__(
            f"Conversation not found: {conversation_id!r}",
            hint="List conversations or create one before submitting.",
        )
        self.conversation_id = conversation_id


class BusyError(ChatcampError):
    """An exchange is already in flight for this conversation."""

    def __init__(self, conversation_id: str) -> None:
        super().__init__(
            f"Conversation {conversation_id!r} is waiting for a reply",
            hint="Wait for the current exchange to finish before sending again.",
        )
        self.conversation_id = conversation_id


class APIError(ChatcampError):
    """The completion call failed.

    Subclasses name the failure mode. The coordinator converts every
    ``APIError`` into an error turn instead of raising it.
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        status_code: int | None = None,
        provider: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.status_code = status_code
        self.provider = provider


class MissingCredentialError(APIError):
    """No API key is configured; no request was sent."""


class TransportError(APIError):
    """The request never produced an HTTP response (network, TLS, timeout)."""


class UpstreamError(APIError):
    """The provider answered with a non-success HTTP status."""


class MalformedResponseError(APIError):
    """The response body did not decode to the expected completion shape."""
