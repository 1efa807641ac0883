"""Schema-constrained chat completions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from openrouter_client._http import CHAT_COMPLETIONS_PATH
from openrouter_client.errors import ConfigurationError
from openrouter_client.request import RequestBuilder
from openrouter_client.responses import ChatCompletionResponse, parse_response
from openrouter_client.validator import ResponseValidator

if TYPE_CHECKING:
    from collections.abc import Iterable

    from openrouter_client.messages import Message
    from openrouter_client.request import RequestPayload
    from openrouter_client.responses import ModelInfo
    from openrouter_client.structured import StructuredOutputSpec
    from openrouter_client.transport import Transport
    from openrouter_client.validator import ValidationOutcome

logger = logging.getLogger(__name__)


class StructuredAPI:
    """Request JSON Schema output and validate what comes back."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    async def generate(
        self,
        model: str,
        messages: Iterable[Message],
        spec: StructuredOutputSpec,
        *,
        model_info: ModelInfo | None = None,
    ) -> ValidationOutcome:
        """Build a structured request and return the validated outcome.

        Raises:
            StructuredOutputNotSupported: If ``model_info`` shows the model
                cannot produce structured output. No request is sent.
            SchemaValidationError: If the response does not match and the
                spec has no fallback.
        """
        payload = (
            RequestBuilder(model, tuple(messages))
            .with_structured_output(spec)
            .build()
        )
        return await self.generate_from(payload, model_info=model_info)

    async def generate_from(
        self, payload: RequestPayload, *, model_info: ModelInfo | None = None
    ) -> ValidationOutcome:
        """Send a builder-made payload that carries a structured output spec."""
        spec = payload.structured_output
        if spec is None:
            raise ConfigurationError(
                "Payload has no structured output attached",
                hint="Call with_structured_output(spec) on the builder first.",
            )
        validator = ResponseValidator(spec)
        validator.preflight(payload.model, model_info)

        request = payload.with_stream(False) if payload.stream else payload
        data = await self._transport.request_json(
            "POST", CHAT_COMPLETIONS_PATH, body=request.to_json()
        )
        response = parse_response(ChatCompletionResponse, data)
        logger.debug("Validating %s response against %s", payload.model, spec.name)
        return validator.validate(response.text)
