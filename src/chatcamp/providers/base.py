"""Provider protocol: minimal interface for completion providers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from chatcamp.providers.models import CompletionRequest, CompletionResponse


@runtime_checkable
class Provider(Protocol):
    """Minimal provider protocol: one completion call per request."""

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        """Send *request* and return the normalized reply.

        Raises:
            chatcamp.errors.APIError: Any provider-side failure, as one of
                its subclasses.
        """
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...
