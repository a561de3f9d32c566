"""OpenRouter provider characterization tests.

These pin the exact request shape sent to the endpoint and the mapping of
each failure mode onto the error taxonomy, using ``httpx.MockTransport``.
"""

from __future__ import annotations

import httpx
import pytest

from chatcamp.errors import (
    MalformedResponseError,
    MissingCredentialError,
    TransportError,
    UpstreamError,
)
from chatcamp.providers.models import ChatMessage, CompletionRequest
from chatcamp.providers.openrouter import OpenRouterProvider
from tests.helpers import RecordingHandler, completion_body, json_reply

pytestmark = pytest.mark.unit

MODEL = "google/gemini-2.0-flash-exp:free"


def _request(api_key: str | None = "sk-test") -> CompletionRequest:
    return CompletionRequest(
        model=MODEL,
        messages=(
            ChatMessage(role="system", content="Be kind."),
            ChatMessage(role="user", content="Hi"),
        ),
        api_key=api_key,
    )


def _provider(handler: RecordingHandler) -> OpenRouterProvider:
    return OpenRouterProvider(
        "https://openrouter.test/api/v1/", transport=handler.transport()
    )


@pytest.mark.asyncio
async def test_request_shape() -> None:
    handler = json_reply(200, completion_body("Hello!"))
    provider = _provider(handler)

    await provider.complete(_request())
    await provider.aclose()

    sent = handler.requests[-1]
    assert sent.method == "POST"
    assert str(sent.url) == "https://openrouter.test/api/v1/chat/completions"
    assert sent.headers["Authorization"] == "Bearer sk-test"
    assert sent.headers["Content-Type"] == "application/json"
    assert handler.last_json() == {
        "model": MODEL,
        "messages": [
            {"role": "system", "content": "Be kind."},
            {"role": "user", "content": "Hi"},
        ],
    }


@pytest.mark.asyncio
async def test_success_reads_first_choice_and_usage() -> None:
    body = completion_body("Hello!")
    body["choices"].append({"message": {"content": "ignored"}})
    provider = _provider(json_reply(200, body))

    response = await provider.complete(_request())

    assert response.text == "Hello!"
    assert response.usage == {
        "prompt_tokens": 12,
        "completion_tokens": 3,
        "total_tokens": 15,
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        completion_body(choices=[]),
        completion_body(None),
        {"choices": [{"message": {}}]},
    ],
)
async def test_no_choice_content_yields_none(body: dict) -> None:
    provider = _provider(json_reply(200, body))

    response = await provider.complete(_request())

    assert response.text is None


@pytest.mark.asyncio
async def test_missing_key_sends_nothing() -> None:
    handler = json_reply(200, completion_body())
    provider = _provider(handler)

    with pytest.raises(MissingCredentialError) as exc:
        await provider.complete(_request(api_key=None))

    assert handler.requests == []
    assert "API key" in str(exc.value)


@pytest.mark.asyncio
async def test_server_error_maps_to_upstream_error() -> None:
    provider = _provider(
        json_reply(500, {"error": {"message": "Internal Server Error", "code": 500}})
    )

    with pytest.raises(UpstreamError) as exc:
        await provider.complete(_request())

    assert exc.value.status_code == 500
    assert "status=500" in str(exc.value)
    assert "Internal Server Error" in str(exc.value)


@pytest.mark.asyncio
async def test_unauthorized_carries_credential_hint() -> None:
    provider = _provider(
        json_reply(401, {"error": {"message": "No auth credentials found"}})
    )

    with pytest.raises(UpstreamError) as exc:
        await provider.complete(_request())

    assert exc.value.status_code == 401
    assert exc.value.hint is not None
    assert "OPENROUTER_API_KEY" in exc.value.hint


@pytest.mark.asyncio
async def test_non_json_error_body_uses_reason_phrase() -> None:
    handler = RecordingHandler(lambda _req: httpx.Response(502, text="<html>bad</html>"))

    with pytest.raises(UpstreamError, match="Bad Gateway"):
        await _provider(handler).complete(_request())


@pytest.mark.asyncio
async def test_success_status_with_error_body_is_upstream_error() -> None:
    provider = _provider(
        json_reply(200, {"error": {"message": "Provider returned error", "code": 429}})
    )

    with pytest.raises(UpstreamError) as exc:
        await provider.complete(_request())

    assert exc.value.status_code == 429


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "respond",
    [
        lambda _req: httpx.Response(200, text="not json"),
        lambda _req: httpx.Response(200, json=["choices"]),
        lambda _req: httpx.Response(200, json={"object": "chat.completion"}),
        lambda _req: httpx.Response(200, json={"choices": [{"text": "legacy"}]}),
    ],
)
async def test_undecodable_body_is_malformed(respond) -> None:
    with pytest.raises(MalformedResponseError):
        await _provider(RecordingHandler(respond)).complete(_request())


@pytest.mark.asyncio
async def test_timeout_maps_to_transport_error() -> None:
    def respond(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(TransportError, match="timed out"):
        await _provider(RecordingHandler(respond)).complete(_request())


@pytest.mark.asyncio
async def test_connect_error_maps_to_transport_error() -> None:
    def respond(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Name or service not known", request=request)

    with pytest.raises(TransportError, match="Could not reach openrouter"):
        await _provider(RecordingHandler(respond)).complete(_request())


@pytest.mark.asyncio
async def test_aclose_is_safe_without_client() -> None:
    provider = OpenRouterProvider()
    await provider.aclose()
    await provider.aclose()
