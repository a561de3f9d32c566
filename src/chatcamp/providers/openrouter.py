"""OpenRouter chat-completions provider."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from chatcamp._http import COMPLETIONS_PATH, DEFAULT_BASE_URL, DEFAULT_TIMEOUT_S
from chatcamp.errors import MalformedResponseError, MissingCredentialError
from chatcamp.providers._errors import (
    upstream_error,
    upstream_error_from_payload,
    wrap_transport_error,
)
from chatcamp.providers.models import CompletionRequest, CompletionResponse

log = logging.getLogger(__name__)

PROVIDER_NAME = "openrouter"


# --- Response schema (only what is consumed) ---


class _MessageContent(BaseModel):
    content: str | None = None


class _Choice(BaseModel):
    message: _MessageContent


class _ChatResponse(BaseModel):
    choices: list[_Choice]
    model: str | None = None
    usage: dict[str, Any] | None = None


class OpenRouterProvider:
    """Provider for an OpenAI-compatible ``/chat/completions`` endpoint."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize with the endpoint base URL.

        Args:
            base_url: Host and API prefix; ``/chat/completions`` is appended.
            timeout_s: Per-request timeout in seconds.
            transport: Optional httpx transport (tests pass a MockTransport).
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def url(self) -> str:
        return f"{self.base_url}{COMPLETIONS_PATH}"

    def _get_client(self) -> httpx.AsyncClient:
        """Lazily initialize and return the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_s),
                transport=self._transport,
            )
        return self._client

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        """POST the request and decode ``choices[0].message.content``."""
        if not request.api_key:
            raise MissingCredentialError(
                "No API key configured",
                hint="Set OPENROUTER_API_KEY or save an API key in settings.",
                provider=PROVIDER_NAME,
            )

        headers = {
            "Authorization": f"Bearer {request.api_key}",
            "Content-Type": "application/json",
        }
        log.debug(
            "POST %s model=%s messages=%d",
            self.url,
            request.model,
            len(request.messages),
        )
        started = time.perf_counter()
        try:
            response = await self._get_client().post(
                self.url, json=request.payload(), headers=headers
            )
        except asyncio.CancelledError:
            raise
        except httpx.HTTPError as e:
            raise wrap_transport_error(e, provider=PROVIDER_NAME) from e
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        body = _json_or_none(response)
        if not response.is_success:
            log.warning(
                "Completion failed: status=%d latency=%dms",
                response.status_code,
                elapsed_ms,
            )
            raise upstream_error(
                response.status_code,
                body,
                provider=PROVIDER_NAME,
                reason=response.reason_phrase or None,
            )

        if not isinstance(body, dict):
            raise MalformedResponseError(
                "Response body is not a JSON object", provider=PROVIDER_NAME
            )
        if "choices" not in body:
            err = upstream_error_from_payload(body, provider=PROVIDER_NAME)
            if err is not None:
                raise err
        try:
            parsed = _ChatResponse.model_validate(body)
        except ValidationError as e:
            raise MalformedResponseError(
                f"Unexpected response shape: {e.error_count()} validation error(s)",
                provider=PROVIDER_NAME,
            ) from e

        text = parsed.choices[0].message.content if parsed.choices else None
        usage = _int_usage(parsed.usage)
        log.debug(
            "Completion ok: model=%s latency=%dms usage=%s",
            parsed.model or request.model,
            elapsed_ms,
            usage,
        )
        return CompletionResponse(
            text=text or None,
            model=parsed.model or request.model,
            usage=usage,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client if it was opened."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _int_usage(raw: dict[str, Any] | None) -> dict[str, int]:
    if not raw:
        return {}
    return {
        k: v for k, v in raw.items() if isinstance(v, int) and not isinstance(v, bool)
    }
