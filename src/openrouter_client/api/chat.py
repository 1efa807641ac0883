"""Chat completions, streaming and non-streaming."""

from __future__ import annotations

from contextlib import aclosing
import json
import logging
from typing import TYPE_CHECKING

from openrouter_client._http import CHAT_COMPLETIONS_PATH
from openrouter_client.errors import SchemaValidationError
from openrouter_client.request import RequestBuilder
from openrouter_client.responses import ChatCompletionResponse, parse_response
from openrouter_client.streaming import decode_stream

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable

    from openrouter_client.messages import Message
    from openrouter_client.request import RequestPayload
    from openrouter_client.responses import StreamChunk
    from openrouter_client.tools import ToolDefinition
    from openrouter_client.transport import Transport

logger = logging.getLogger(__name__)

_TOOL_CALLS_SCHEMA = "tool_calls"


class ChatAPI:
    """Chat completion calls over a shared transport."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    def builder(self, model: str, messages: Iterable[Message]) -> RequestBuilder:
        """Return an interactive builder; structured output is rejected on it."""
        return RequestBuilder(model, tuple(messages), interactive=True)

    async def chat_completion(self, request: RequestPayload) -> ChatCompletionResponse:
        """Send a non-streaming request and return the full response."""
        payload = request.with_stream(False) if request.stream else request
        data = await self._transport.request_json(
            "POST", CHAT_COMPLETIONS_PATH, body=payload.to_json()
        )
        return parse_response(ChatCompletionResponse, data)

    async def chat_completion_stream(
        self, request: RequestPayload
    ) -> AsyncIterator[StreamChunk]:
        """Stream a completion as chunks, in the order the server sent them.

        The stream flag is forced on. Closing the iterator early releases the
        connection.

        Raises:
            TransportError: On network failures, including mid-stream timeouts.
            ProtocolError: On malformed or truncated framing.
            APIError: On an error status or an error event mid-stream.
        """
        payload = request.with_stream(True)
        count = 0
        async with self._transport.stream(
            CHAT_COMPLETIONS_PATH, payload.to_json()
        ) as fragments:
            async with aclosing(decode_stream(fragments, strict=True)) as chunks:
                async for chunk in chunks:
                    count += 1
                    yield chunk
        logger.debug("Stream for %s finished after %d chunks", payload.model, count)

    def validate_tool_calls(
        self,
        response: ChatCompletionResponse,
        tools: Iterable[ToolDefinition] | None = None,
    ) -> None:
        """Check the tool calls a response requested.

        Each call must be of type ``function`` with JSON-object arguments.
        When ``tools`` is given, the function must be one of them.

        Raises:
            SchemaValidationError: On the first invalid call.
        """
        known = {t.name for t in tools} if tools is not None else None
        for c_idx, choice in enumerate(response.choices):
            for t_idx, call in enumerate(choice.message.tool_calls or ()):
                path = f"choices[{c_idx}].message.tool_calls[{t_idx}]"
                if call.type != "function":
                    raise SchemaValidationError(
                        f"Invalid tool call kind: {call.type!r}. Expected 'function'",
                        schema_name=_TOOL_CALLS_SCHEMA,
                        path=f"{path}.type",
                    )
                if known is not None and call.function.name not in known:
                    raise SchemaValidationError(
                        f"Model called undeclared tool {call.function.name!r}",
                        schema_name=_TOOL_CALLS_SCHEMA,
                        path=f"{path}.function.name",
                    )
                try:
                    arguments = json.loads(call.function.arguments or "{}")
                except json.JSONDecodeError as e:
                    raise SchemaValidationError(
                        f"Tool call arguments are not valid JSON: {e}",
                        schema_name=_TOOL_CALLS_SCHEMA,
                        path=f"{path}.function.arguments",
                    ) from e
                if not isinstance(arguments, dict):
                    raise SchemaValidationError(
                        "Tool call arguments must be a JSON object",
                        schema_name=_TOOL_CALLS_SCHEMA,
                        path=f"{path}.function.arguments",
                    )
