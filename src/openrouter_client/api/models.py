"""Model listing and capability lookup."""

from __future__ import annotations

from typing import TYPE_CHECKING

from openrouter_client._http import MODELS_PATH
from openrouter_client.responses import ModelsResponse, parse_response

if TYPE_CHECKING:
    from openrouter_client.responses import ModelInfo
    from openrouter_client.transport import Transport


class ModelsAPI:
    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    async def list_models(
        self, *, capability: str | None = None, provider: str | None = None
    ) -> list[ModelInfo]:
        """List available models, optionally filtered server-side."""
        params: dict[str, str] = {}
        if capability is not None:
            params["capability"] = capability
        if provider is not None:
            params["provider"] = provider
        data = await self._transport.request_json(
            "GET", MODELS_PATH, params=params or None
        )
        return parse_response(ModelsResponse, data).data

    async def get_model(self, model_id: str) -> ModelInfo | None:
        """Return the listing entry for ``model_id``, or None if absent.

        The result can be passed to ``StructuredAPI.generate(model_info=...)``
        for the structured-output pre-flight check.
        """
        for model in await self.list_models():
            if model.id == model_id:
                return model
        return None
