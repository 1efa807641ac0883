"""Typed response models.

Responses are validated with Pydantic so that shape problems surface as one
exception type at the decode boundary. Unknown fields are kept (``extra``)
because the service adds fields over time.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from openrouter_client.errors import APIError
from openrouter_client.messages import FunctionCall, ToolCall


class _ResponseModel(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)


class Usage(_ResponseModel):
    """Token usage statistics."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class FunctionCallModel(_ResponseModel):
    name: str
    arguments: str = "{}"


class ToolCallModel(_ResponseModel):
    id: str
    type: str = "function"
    function: FunctionCallModel

    def to_tool_call(self) -> ToolCall:
        """Convert to a request-side ToolCall for echoing back in history."""
        return ToolCall(
            id=self.id,
            type=self.type,
            function=FunctionCall(
                name=self.function.name, arguments=self.function.arguments
            ),
        )


class ResponseMessage(_ResponseModel):
    role: str = "assistant"
    content: str | None = None
    tool_calls: list[ToolCallModel] | None = None


class Choice(_ResponseModel):
    index: int = 0
    message: ResponseMessage
    finish_reason: str | None = None
    native_finish_reason: str | None = None


class ChatCompletionResponse(_ResponseModel):
    """A complete (non-streaming) chat completion."""

    id: str
    model: str | None = None
    created: int | None = None
    choices: list[Choice]
    usage: Usage | None = None

    @property
    def text(self) -> str:
        """Content of the first choice, or ``""``."""
        if not self.choices:
            return ""
        return self.choices[0].message.content or ""


# --- Streaming ---


class Delta(_ResponseModel):
    """The incremental part of one streamed choice."""

    role: str | None = None
    content: str | None = None
    # Partial tool-call fragments; ids and names arrive only on the first.
    tool_calls: list[dict[str, Any]] | None = None


class StreamChoice(_ResponseModel):
    index: int = 0
    delta: Delta = Field(default_factory=Delta)
    finish_reason: str | None = None
    native_finish_reason: str | None = None


class StreamChunk(_ResponseModel):
    """One partial response from an event stream.

    Chunks of one call form an ordered sequence. ``usage`` normally appears
    only on the terminal chunk.
    """

    id: str = ""
    model: str | None = None
    created: int | None = None
    choices: list[StreamChoice] = Field(default_factory=list)
    usage: Usage | None = None

    @property
    def content(self) -> str:
        """Content delta of the first choice, or ``""``."""
        if not self.choices:
            return ""
        return self.choices[0].delta.content or ""

    @property
    def finish_reason(self) -> str | None:
        if not self.choices:
            return None
        return self.choices[0].finish_reason


# --- Text completions ---


class CompletionChoice(_ResponseModel):
    text: str
    index: int | None = None
    finish_reason: str | None = None


class CompletionResponse(_ResponseModel):
    id: str | None = None
    model: str | None = None
    choices: list[CompletionChoice]
    usage: Usage | None = None

    @property
    def text(self) -> str:
        if not self.choices:
            return ""
        return self.choices[0].text


# --- Models ---

# Parameters that indicate JSON Schema response support.
_STRUCTURED_PARAMETERS = frozenset({"structured_outputs", "response_format"})


class ModelInfo(_ResponseModel):
    """Information about one model."""

    id: str
    name: str | None = None
    description: str | None = None
    context_length: int | None = None
    #: Request parameters the model accepts (e.g. ``"tools"``).
    supported_parameters: list[str] | None = None
    capabilities: list[str] | None = None
    formatting: list[str] | None = None

    def supports_structured_output(self) -> bool | None:
        """Return whether JSON Schema output is supported, or None if unknown."""
        if self.supported_parameters is not None:
            return bool(_STRUCTURED_PARAMETERS.intersection(self.supported_parameters))
        if self.formatting is not None:
            return "json" in {f.lower() for f in self.formatting}
        return None

    def supports_tools(self) -> bool | None:
        if self.supported_parameters is not None:
            return "tools" in self.supported_parameters
        if self.capabilities is not None:
            return "tool" in {c.lower() for c in self.capabilities}
        return None


class ModelsResponse(_ResponseModel):
    data: list[ModelInfo] = Field(validation_alias=AliasChoices("data", "models"))


# --- Web search ---


class WebSearchResult(_ResponseModel):
    title: str
    url: str
    snippet: str | None = None


class WebSearchResponse(_ResponseModel):
    query: str
    results: list[WebSearchResult]
    total_results: int = 0


ResponseT = TypeVar("ResponseT", bound=BaseModel)


def parse_response(model: type[ResponseT], data: Any) -> ResponseT:
    """Validate a decoded JSON body as ``model``.

    Raises:
        APIError: If the body does not have the expected shape.
    """
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise APIError(
            f"Unexpected {model.__name__} shape: {e.error_count()} error(s)",
            retryable=False,
        ) from e
