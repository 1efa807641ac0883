"""Web search."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from openrouter_client._http import WEB_SEARCH_PATH
from openrouter_client.errors import ConfigurationError
from openrouter_client.responses import WebSearchResponse, parse_response

if TYPE_CHECKING:
    from openrouter_client.transport import Transport


class WebSearchAPI:
    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    async def search(
        self, query: str, *, num_results: int | None = None
    ) -> WebSearchResponse:
        if not query or not query.strip():
            raise ConfigurationError("Search query cannot be empty")
        if num_results is not None and num_results < 1:
            raise ConfigurationError(f"num_results must be >= 1, got {num_results}")
        body: dict[str, Any] = {"query": query}
        if num_results is not None:
            body["num_results"] = num_results
        data = await self._transport.request_json(
            "POST", WEB_SEARCH_PATH, body=json.dumps(body).encode("utf-8")
        )
        return parse_response(WebSearchResponse, data)
