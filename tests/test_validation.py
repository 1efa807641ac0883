"""Token estimation and context-length guard tests."""

from __future__ import annotations

import pytest

from openrouter_client import (
    MAX_TOKENS,
    ContextLengthExceeded,
    Message,
    RequestBuilder,
    ToolDefinition,
    check_token_limits,
    estimate_request_tokens,
)

pytestmark = pytest.mark.unit


def _payload(text: str, tools: list[ToolDefinition] | None = None):
    builder = RequestBuilder("openai/gpt-4o", [Message.user(text)])
    if tools:
        builder = builder.with_tools(tools)
    return builder.build()


def test_estimate_grows_with_content() -> None:
    short = estimate_request_tokens(_payload("hi"))
    long = estimate_request_tokens(_payload("hi " * 400))

    assert short > 0
    assert long > short


def test_tools_add_to_estimate() -> None:
    tool = ToolDefinition(
        name="search",
        description="Search the web",
        parameters={"type": "object", "properties": {"q": {"type": "string"}}},
    )

    assert estimate_request_tokens(_payload("hi", [tool])) > estimate_request_tokens(
        _payload("hi")
    )


def test_small_request_fits_default_limit() -> None:
    check_token_limits(_payload("hello"))


def test_oversized_request_raises() -> None:
    payload = _payload("x" * (MAX_TOKENS * 4 + 100))

    with pytest.raises(ContextLengthExceeded) as exc:
        check_token_limits(payload)
    assert exc.value.limit == MAX_TOKENS
    assert exc.value.estimated_tokens > MAX_TOKENS


def test_custom_limit() -> None:
    with pytest.raises(ContextLengthExceeded):
        check_token_limits(_payload("x" * 400), limit=50)
