"""Internal request validation and token estimation helpers.

These checks run when a request is finalized so that malformed
conversations fail before any network I/O, with the offending index in the
error message.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from openrouter_client.errors import ConfigurationError, ContextLengthExceeded

if TYPE_CHECKING:
    from collections.abc import Sequence

    from openrouter_client.messages import Message
    from openrouter_client.request import RequestPayload
    from openrouter_client.tools import ToolDefinition

#: Default ceiling used by check_token_limits.
MAX_TOKENS = 32_000

# Rough heuristic: ~4 characters per token.
_CHARS_PER_TOKEN = 4
_ROLE_TOKENS = 3
_TOOL_OVERHEAD_TOKENS = 10
_REQUEST_OVERHEAD_TOKENS = 10


def validate_request(model: str, messages: Sequence[Message]) -> None:
    """Validate the base request fields every payload needs."""
    if not isinstance(model, str) or not model.strip():
        raise ConfigurationError(
            "Model ID cannot be empty",
            hint="Pass a model identifier such as 'openai/gpt-4o'.",
        )
    if not messages:
        raise ConfigurationError(
            "Messages cannot be empty",
            hint="Pass at least one Message, e.g. Message.user('Hello').",
        )
    for i, message in enumerate(messages):
        validate_message(message, i)


def validate_message(message: Message, index: int) -> None:
    """Validate the content and tool-call shape of one message."""
    if not message.content.strip() and not message.tool_calls:
        raise ConfigurationError(
            f"Message at index {index} must have either non-empty content or tool_calls"
        )
    if message.role == "tool" and not message.tool_call_id:
        raise ConfigurationError(
            f"Tool message at index {index} is missing tool_call_id",
            hint="Use Message.tool(content, tool_call_id=...).",
        )
    if not message.tool_calls:
        return
    if message.role != "assistant":
        raise ConfigurationError(
            f"Message at index {index} has tool_calls but role is "
            f"{message.role!r}, not 'assistant'"
        )
    for tc_idx, tc in enumerate(message.tool_calls):
        if not tc.id.strip():
            raise ConfigurationError(
                f"Tool call {tc_idx} at message {index} has empty id"
            )
        if tc.type != "function":
            raise ConfigurationError(
                f"Tool call {tc_idx} at message {index} has invalid type: "
                f"{tc.type!r}. Must be 'function'"
            )
        if not tc.function.name.strip():
            raise ConfigurationError(
                f"Function name in tool call {tc_idx} at message {index} cannot be empty"
            )


def estimate_message_tokens(message: Message) -> int:
    """Estimate the tokens one message contributes (rough approximation)."""
    tokens = _ROLE_TOKENS + len(message.content) // _CHARS_PER_TOKEN
    for tc in message.tool_calls or ():
        tokens += (
            len(tc.function.name) // _CHARS_PER_TOKEN
            + len(tc.function.arguments) // _CHARS_PER_TOKEN
            + _TOOL_OVERHEAD_TOKENS
        )
    return tokens


def estimate_tool_tokens(tool: ToolDefinition) -> int:
    params = json.dumps(tool.to_dict()["function"]["parameters"])
    return (
        len(tool.name) // _CHARS_PER_TOKEN
        + len(tool.description or "") // _CHARS_PER_TOKEN
        + len(params) // _CHARS_PER_TOKEN
        + _TOOL_OVERHEAD_TOKENS
    )


def estimate_request_tokens(payload: RequestPayload) -> int:
    """Estimate the prompt tokens of a finalized payload."""
    total = _REQUEST_OVERHEAD_TOKENS
    total += sum(estimate_message_tokens(m) for m in payload.messages)
    total += sum(estimate_tool_tokens(t) for t in payload.tools or ())
    return total


def check_token_limits(payload: RequestPayload, limit: int = MAX_TOKENS) -> None:
    """Raise ContextLengthExceeded when the estimate exceeds ``limit``."""
    estimated = estimate_request_tokens(payload)
    if estimated > limit:
        raise ContextLengthExceeded(payload.model, estimated, limit)
