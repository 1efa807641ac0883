"""Request construction: an immutable builder and the payload it produces.

The builder layers optional extensions (tools, structured output, provider
routing, fallback models, generation parameters) onto a base request of a
model and a message list. Every ``with_*`` call returns a new builder, so
one builder state can be finalized any number of times. Finalizing never
touches the network.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import json
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from openrouter_client._validation import validate_request
from openrouter_client.errors import ConfigurationError, UnsupportedOperation
from openrouter_client.messages import Message
from openrouter_client.routing import ProviderPreferences
from openrouter_client.structured import StructuredOutputSpec
from openrouter_client.tools import ToolDefinition, ensure_unique_names

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from openrouter_client.tools import ToolChoice

# Payload keys owned by dedicated builder methods.
_RESERVED_KEYS = frozenset(
    {
        "model",
        "messages",
        "stream",
        "tools",
        "tool_choice",
        "response_format",
        "provider",
        "models",
        "transforms",
    }
)


def _empty_params() -> Mapping[str, Any]:
    return MappingProxyType({})


@dataclass(frozen=True)
class RequestPayload:
    """A finalized, immutable request.

    Only attached extensions appear on the wire; unset fields are omitted
    rather than sent as null.
    """

    model: str
    messages: tuple[Message, ...]
    stream: bool | None = None
    tools: tuple[ToolDefinition, ...] | None = None
    tool_choice: ToolChoice | None = None
    structured_output: StructuredOutputSpec | None = None
    provider: ProviderPreferences | None = None
    models: tuple[str, ...] | None = None
    transforms: tuple[str, ...] | None = None
    params: Mapping[str, Any] = field(default_factory=_empty_params)
    #: Built for the interactive chat path (no structured output).
    interactive: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Return the wire document."""
        data: dict[str, Any] = {
            "model": self.model,
            "messages": [m.to_dict() for m in self.messages],
        }
        if self.stream is not None:
            data["stream"] = self.stream
        if self.tools is not None:
            data["tools"] = [t.to_dict() for t in self.tools]
        if self.tool_choice is not None:
            data["tool_choice"] = self.tool_choice
        if self.structured_output is not None:
            data["response_format"] = self.structured_output.response_format()
        if self.provider is not None:
            data["provider"] = self.provider.to_dict()
        if self.models is not None:
            data["models"] = list(self.models)
        if self.transforms is not None:
            data["transforms"] = list(self.transforms)
        data.update(self.params)
        return data

    def to_json(self) -> bytes:
        """Serialize deterministically; equal payloads give equal bytes."""
        return json.dumps(
            self.to_dict(), ensure_ascii=False, separators=(",", ":")
        ).encode("utf-8")

    def with_stream(self, stream: bool) -> RequestPayload:
        """Return a copy with the stream flag set."""
        return replace(self, stream=stream)


@dataclass(frozen=True)
class RequestBuilder:
    """Compose a request from a model, messages, and optional extensions.

    Example:
        payload = (
            RequestBuilder("openai/gpt-4o", [Message.user("Hi")])
            .with_provider_preferences(ProviderPreferences(sort="price"))
            .streaming(True)
            .build()
        )
    """

    model: str
    messages: tuple[Message, ...]
    #: Interactive chat builders reject structured output.
    interactive: bool = False
    stream: bool | None = None
    tools: tuple[ToolDefinition, ...] | None = None
    tool_choice: ToolChoice | None = None
    structured_output: StructuredOutputSpec | None = None
    provider: ProviderPreferences | None = None
    models: tuple[str, ...] | None = None
    transforms: tuple[str, ...] | None = None
    params: Mapping[str, Any] = field(default_factory=_empty_params)

    def __post_init__(self) -> None:
        """Freeze the message sequence and check element types."""
        messages = tuple(self.messages)
        for i, message in enumerate(messages):
            if not isinstance(message, Message):
                raise ConfigurationError(
                    f"messages[{i}] must be a Message, got {type(message).__name__}",
                    hint="Use Message.user('...'), Message.system('...'), etc.",
                )
        object.__setattr__(self, "messages", messages)

    def with_tools(
        self,
        tools: Iterable[ToolDefinition],
        *,
        tool_choice: ToolChoice | None = None,
    ) -> RequestBuilder:
        """Attach tool definitions (names must be unique)."""
        return replace(self, tools=ensure_unique_names(tools), tool_choice=tool_choice)

    def with_structured_output(self, spec: StructuredOutputSpec) -> RequestBuilder:
        """Attach a JSON Schema response format.

        Raises:
            UnsupportedOperation: On an interactive chat builder.
        """
        if self.interactive:
            raise UnsupportedOperation(
                "Structured output is not available on the interactive chat path",
                hint=(
                    "Use ReadyClient.chat_request_builder() or "
                    "ReadyClient.structured() for schema-constrained responses."
                ),
            )
        if not isinstance(spec, StructuredOutputSpec):
            raise ConfigurationError(
                f"Expected StructuredOutputSpec, got {type(spec).__name__}"
            )
        return replace(self, structured_output=spec)

    def with_provider_preferences(self, prefs: ProviderPreferences) -> RequestBuilder:
        """Attach provider routing preferences (sent under ``provider``)."""
        if not isinstance(prefs, ProviderPreferences):
            raise ConfigurationError(
                f"Expected ProviderPreferences, got {type(prefs).__name__}"
            )
        return replace(self, provider=prefs)

    def with_fallback_models(self, models: Iterable[str]) -> RequestBuilder:
        """Attach models to try, in order, if the primary is unavailable."""
        return replace(self, models=tuple(models))

    def with_transforms(self, transforms: Iterable[str]) -> RequestBuilder:
        """Attach message transforms (e.g. ``"middle-out"``)."""
        return replace(self, transforms=tuple(transforms))

    def with_params(self, **params: Any) -> RequestBuilder:
        """Set generation parameters such as ``temperature`` or ``max_tokens``.

        Later calls override earlier values key by key.
        """
        reserved = sorted(_RESERVED_KEYS.intersection(params))
        if reserved:
            raise ConfigurationError(
                f"Parameters {reserved} have dedicated builder methods",
                hint="Use with_tools(), with_structured_output(), streaming(), etc.",
            )
        merged = {**self.params, **params}
        return replace(self, params=MappingProxyType(merged))

    def streaming(self, stream: bool = True) -> RequestBuilder:
        """Mark the request as streaming or non-streaming."""
        return replace(self, stream=bool(stream))

    def build(self) -> RequestPayload:
        """Validate and return the immutable payload. No I/O happens here."""
        validate_request(self.model, self.messages)
        return RequestPayload(
            model=self.model,
            messages=self.messages,
            stream=self.stream,
            tools=self.tools,
            tool_choice=self.tool_choice,
            structured_output=self.structured_output,
            provider=self.provider,
            models=self.models,
            transforms=self.transforms,
            params=self.params,
            interactive=self.interactive,
        )
