"""Shared provider-side error helpers.

Map transport exceptions and non-success responses into the ``APIError``
subclasses the coordinator turns into error turns.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import httpx

from chatcamp.errors import APIError, TransportError, UpstreamError

if TYPE_CHECKING:
    from collections.abc import Mapping


def _auth_hint(status_code: int | None) -> str | None:
    """Generate a hint for auth errors where naming the setting is useful."""
    if status_code in {401, 403}:
        return "Check the API key (set OPENROUTER_API_KEY or save one in settings)."
    if status_code == 402:
        return "The account has run out of credits for this model."
    if status_code == 429:
        return "The provider is rate limiting requests; wait a moment and resend."
    return None


def extract_error_message(body: Any) -> str | None:
    """Pull a human-readable message out of an error body.

    Accepts ``{"error": {"message": ...}}``, ``{"error": "..."}`` and
    ``{"message": ...}``.
    """
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    if isinstance(error, str) and error.strip():
        return error.strip()
    message = body.get("message")
    if isinstance(message, str) and message.strip():
        return message.strip()
    return None


def upstream_error(
    status_code: int | None,
    body: Any,
    *,
    provider: str,
    reason: str | None = None,
) -> UpstreamError:
    """Build an ``UpstreamError`` for a failed HTTP exchange."""
    detail = extract_error_message(body) or reason or "request failed"
    status_note = f" (status={status_code})" if isinstance(status_code, int) else ""
    return UpstreamError(
        f"{provider} returned an error{status_note}: {detail}",
        hint=_auth_hint(status_code),
        status_code=status_code,
        provider=provider,
    )


def upstream_error_from_payload(
    payload: Mapping[str, Any], *, provider: str
) -> UpstreamError | None:
    """Return an error for a 2xx body that carries an ``error`` object.

    Some gateways report upstream model failures with a success status and
    an error body instead of choices.
    """
    error = payload.get("error")
    if error is None:
        return None
    code = error.get("code") if isinstance(error, dict) else None
    status_code = code if isinstance(code, int) and 100 <= code <= 599 else None
    return upstream_error(status_code, payload, provider=provider)


def wrap_transport_error(exc: BaseException, *, provider: str) -> APIError:
    """Map an httpx transport exception into ``TransportError``."""
    if isinstance(exc, asyncio.CancelledError):
        raise exc

    # Already wrapped; fill in missing context only.
    if isinstance(exc, APIError):
        if exc.provider is None:
            exc.provider = provider
        return exc

    if isinstance(exc, httpx.TimeoutException):
        return TransportError(
            f"{provider} request timed out",
            hint="The provider did not answer in time; try again.",
            provider=provider,
        )
    cause = str(exc) or type(exc).__name__
    return TransportError(
        f"Could not reach {provider}: {cause}",
        hint="Check the network connection.",
        provider=provider,
    )
