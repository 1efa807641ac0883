"""Plain text completions."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from openrouter_client._http import COMPLETIONS_PATH
from openrouter_client.errors import ConfigurationError
from openrouter_client.responses import CompletionResponse, parse_response

if TYPE_CHECKING:
    from openrouter_client.transport import Transport


class CompletionAPI:
    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    async def text_completion(
        self, model: str, prompt: str, **params: Any
    ) -> CompletionResponse:
        """Complete ``prompt``; extra ``params`` (temperature, ...) go on the wire."""
        if not model or not model.strip():
            raise ConfigurationError("Model ID cannot be empty")
        if "stream" in params:
            raise ConfigurationError(
                "Text completions do not support streaming",
                hint="Use ChatAPI.chat_completion_stream() for streamed output.",
            )
        body = {"model": model, "prompt": prompt, **params}
        data = await self._transport.request_json(
            "POST",
            COMPLETIONS_PATH,
            body=json.dumps(body, ensure_ascii=False).encode("utf-8"),
        )
        return parse_response(CompletionResponse, data)
