"""Test helpers (small, reusable doubles).

Keep this file tiny and purpose-built: mock transports and canned bodies
shared by the endpoint tests.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
import json
from typing import Any

import httpx

from openrouter_client import OpenRouterClient, ReadyClient

TEST_API_KEY = "sk-or-test-key"


class RecordingStream(httpx.AsyncByteStream):
    """Async byte stream that records how far it was read and whether it closed.

    Optionally raises ``error`` after the last fragment, e.g. a mid-stream
    ``httpx.ReadTimeout``.
    """

    def __init__(
        self, fragments: Iterable[bytes], *, error: BaseException | None = None
    ) -> None:
        self.fragments = list(fragments)
        self.error = error
        self.reads = 0
        self.closed = False

    async def __aiter__(self):
        for fragment in self.fragments:
            self.reads += 1
            yield fragment
        if self.error is not None:
            raise self.error

    async def aclose(self) -> None:
        self.closed = True


def sse(*payloads: Any, done: bool = True) -> bytes:
    """Frame payloads as ``data:`` events, ending with ``[DONE]`` by default."""
    lines = []
    for payload in payloads:
        text = payload if isinstance(payload, str) else json.dumps(payload)
        lines.append(f"data: {text}\n\n")
    if done:
        lines.append("data: [DONE]\n\n")
    return "".join(lines).encode("utf-8")


def chunk_doc(content: str, *, finish_reason: str | None = None, **extra: Any) -> dict[str, Any]:
    """Return one chat completion chunk document."""
    doc: dict[str, Any] = {
        "id": "gen-1",
        "model": "openai/gpt-4o",
        "choices": [
            {"index": 0, "delta": {"content": content}, "finish_reason": finish_reason}
        ],
    }
    doc.update(extra)
    return doc


def chat_body(content: str | None = "Hello!", **message: Any) -> dict[str, Any]:
    """Return a non-streaming chat completion body."""
    return {
        "id": "gen-1",
        "model": "openai/gpt-4o",
        "created": 1700000000,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content, **message},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 5, "completion_tokens": 2, "total_tokens": 7},
    }


@dataclass
class RecordingHandler:
    """MockTransport handler that records requests and replays responses.

    ``responses`` items are ``httpx.Response`` objects, exceptions to raise,
    or callables taking the request. The last item repeats once exhausted.
    """

    responses: list[Any] = field(default_factory=list)
    requests: list[httpx.Request] = field(default_factory=list)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self.responses)) - 1
        item = self.responses[index]
        if isinstance(item, BaseException):
            raise item
        if callable(item) and not isinstance(item, httpx.Response):
            return item(request)
        return item

    @property
    def calls(self) -> int:
        return len(self.requests)

    def last_json(self) -> Any:
        return json.loads(self.requests[-1].content)


def make_ready_client(
    handler: Callable[[httpx.Request], httpx.Response], **settings: Any
) -> ReadyClient:
    """Build a ready client whose requests go to ``handler``."""
    stage = OpenRouterClient().with_base_url().with_transport(
        httpx.MockTransport(handler)
    )
    for name, value in settings.items():
        stage = getattr(stage, f"with_{name}")(value)
    return stage.with_api_key(TEST_API_KEY)
