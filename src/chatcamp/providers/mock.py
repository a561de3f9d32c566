"""Mock provider for demos and tests without API calls."""

from __future__ import annotations

from chatcamp.errors import MissingCredentialError
from chatcamp.providers.models import CompletionRequest, CompletionResponse


class MockProvider:
    """Deterministic echo provider.

    Replies with the last user message. Set ``require_credential`` to mimic
    the real provider's missing-key behavior.
    """

    def __init__(self, *, require_credential: bool = False) -> None:
        self.require_credential = require_credential
        self.requests: list[CompletionRequest] = []

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        """Return a deterministic mock reply."""
        if self.require_credential and not request.api_key:
            raise MissingCredentialError("No API key configured", provider="mock")
        self.requests.append(request)
        last_user = next(
            (m.content for m in reversed(request.messages) if m.role == "user"), ""
        )
        return CompletionResponse(
            text=f"echo: {last_user[:200]}",
            model=request.model,
            usage={"prompt_tokens": len(request.messages), "completion_tokens": 1},
        )

    async def aclose(self) -> None:
        return None
