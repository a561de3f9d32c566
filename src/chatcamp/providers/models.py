"""Domain models for the provider transport layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    """One role/content pair of the outbound message list."""

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class CompletionRequest:
    """A single chat-completion call.

    ``api_key`` is captured when the request is built; changing the
    credential afterwards does not affect this request.
    """

    model: str
    messages: tuple[ChatMessage, ...]
    api_key: str | None = None

    def payload(self) -> dict[str, object]:
        """Return the JSON request body."""
        return {
            "model": self.model,
            "messages": [m.to_dict() for m in self.messages],
        }


@dataclass
class CompletionResponse:
    """Normalized provider reply.

    ``text`` is None when the provider returned no choices or an empty
    first choice.
    """

    text: str | None = None
    model: str | None = None
    usage: dict[str, int] = field(default_factory=dict)
