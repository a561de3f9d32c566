"""Test helpers (small, reusable doubles).

Keep this file tiny and purpose-built: it exists to prevent test suites from
growing lots of one-off provider classes as coverage expands.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
import json
from typing import Any

import httpx

from chatcamp.providers.models import CompletionRequest, CompletionResponse


@dataclass
class ScriptedProvider:
    """Provider that returns a scripted sequence of replies/exceptions.

    Strings become reply text; ``None`` means "no choices". An empty script
    answers ``"ok"``.
    """

    script: list[str | None | CompletionResponse | BaseException] = field(
        default_factory=list
    )
    requests: list[CompletionRequest] = field(default_factory=list)
    closed: bool = False

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        self.requests.append(request)
        if not self.script:
            return CompletionResponse(text="ok", model=request.model)
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, CompletionResponse):
            return item
        return CompletionResponse(text=item, model=request.model)

    async def aclose(self) -> None:
        self.closed = True


@dataclass
class GateProvider(ScriptedProvider):
    """ScriptedProvider with an explicit barrier for in-flight tests."""

    started: asyncio.Event = field(default_factory=asyncio.Event)
    release: asyncio.Event = field(default_factory=asyncio.Event)

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        self.started.set()
        await self.release.wait()
        return await super().complete(request)


def completion_body(content: str | None = "Hello!", **extra: Any) -> dict[str, Any]:
    """Build a chat-completions response body."""
    body: dict[str, Any] = {
        "id": "gen-1",
        "model": "google/gemini-2.0-flash-exp:free",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 12, "completion_tokens": 3, "total_tokens": 15},
    }
    body.update(extra)
    return body


@dataclass
class RecordingHandler:
    """httpx.MockTransport handler that records requests and replays a response."""

    respond: Callable[[httpx.Request], httpx.Response]
    requests: list[httpx.Request] = field(default_factory=list)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def last_json(self) -> Any:
        return json.loads(self.requests[-1].content)


def json_reply(status_code: int, body: Any) -> RecordingHandler:
    """Handler answering every request with *body* as JSON."""
    return RecordingHandler(lambda _req: httpx.Response(status_code, json=body))
