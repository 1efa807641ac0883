"""Request builder and payload serialization tests."""

from __future__ import annotations

import json

from hypothesis import given, settings
from hypothesis import strategies as st
from pydantic import BaseModel
import pytest

from openrouter_client import (
    ConfigurationError,
    FunctionCall,
    Message,
    ProviderPreferences,
    RequestBuilder,
    StructuredOutputSpec,
    ToolCall,
    ToolDefinition,
    UnsupportedOperation,
    function_choice,
)
from openrouter_client.api import ChatAPI
from openrouter_client.structured import to_strict_schema

pytestmark = pytest.mark.unit

MODEL = "openai/gpt-4o"
MOVIE_SCHEMA = {
    "type": "object",
    "properties": {"title": {"type": "string"}, "year": {"type": "integer"}},
}


def _builder(**kwargs) -> RequestBuilder:
    return RequestBuilder(MODEL, [Message.user("Hello")], **kwargs)


def test_bare_payload_has_only_model_and_messages() -> None:
    data = _builder().build().to_dict()

    assert data == {"model": MODEL, "messages": [{"role": "user", "content": "Hello"}]}


def test_wire_keys_mirror_attachments() -> None:
    weather = ToolDefinition(
        name="get_weather",
        description="Look up weather",
        parameters={"type": "object", "properties": {"city": {"type": "string"}}},
    )
    payload = (
        _builder()
        .with_tools([weather], tool_choice="auto")
        .with_structured_output(StructuredOutputSpec(name="movie", schema=MOVIE_SCHEMA))
        .with_provider_preferences(ProviderPreferences(order=["openai", "azure"]))
        .with_fallback_models(["anthropic/claude-3-haiku"])
        .with_transforms(["middle-out"])
        .with_params(temperature=0.2, max_tokens=64)
        .streaming()
        .build()
    )

    data = payload.to_dict()

    assert set(data) == {
        "model",
        "messages",
        "stream",
        "tools",
        "tool_choice",
        "response_format",
        "provider",
        "models",
        "transforms",
        "temperature",
        "max_tokens",
    }
    assert data["stream"] is True
    assert data["tools"][0] == {
        "type": "function",
        "function": {
            "name": "get_weather",
            "description": "Look up weather",
            "parameters": {"type": "object", "properties": {"city": {"type": "string"}}},
        },
    }
    assert data["provider"] == {"order": ["openai", "azure"]}
    assert data["models"] == ["anthropic/claude-3-haiku"]
    assert data["response_format"]["type"] == "json_schema"
    assert data["response_format"]["json_schema"]["name"] == "movie"
    assert data["response_format"]["json_schema"]["strict"] is True


def test_optional_fields_are_omitted_not_null() -> None:
    payload = _builder().with_params(temperature=0.5).build()
    raw = payload.to_json().decode("utf-8")

    assert "null" not in raw
    assert "stream" not in json.loads(raw)


def test_building_twice_gives_identical_bytes() -> None:
    builder = (
        _builder()
        .with_tools([ToolDefinition(name="lookup")])
        .with_provider_preferences(ProviderPreferences(sort="latency"))
        .with_params(top_p=0.9)
    )

    assert builder.build().to_json() == builder.build().to_json()


@given(
    temperature=st.floats(min_value=0, max_value=2, allow_nan=False),
    text=st.text(min_size=1).filter(lambda s: s.strip()),
)
@settings(max_examples=10, deadline=None, derandomize=True)
def test_equal_builders_serialize_identically(temperature: float, text: str) -> None:
    def build() -> bytes:
        return (
            RequestBuilder(MODEL, [Message.user(text)])
            .with_params(temperature=temperature)
            .build()
            .to_json()
        )

    assert build() == build()


def test_with_calls_return_new_builders() -> None:
    base = _builder()
    streaming = base.streaming()

    assert streaming is not base
    assert base.stream is None
    assert streaming.stream is True


def test_latest_call_wins() -> None:
    payload = (
        _builder()
        .with_fallback_models(["a/one"])
        .with_fallback_models(["b/two"])
        .streaming(True)
        .streaming(False)
        .build()
    )

    assert payload.models == ("b/two",)
    assert payload.to_dict()["stream"] is False


def test_with_params_merges_by_key() -> None:
    payload = _builder().with_params(temperature=0.1, top_p=0.5).with_params(temperature=0.9).build()

    assert payload.to_dict()["temperature"] == 0.9
    assert payload.to_dict()["top_p"] == 0.5


@pytest.mark.parametrize("key", ["model", "messages", "stream", "tools", "response_format"])
def test_with_params_rejects_reserved_keys(key: str) -> None:
    with pytest.raises(ConfigurationError, match="dedicated builder methods"):
        _builder().with_params(**{key: "x"})


def test_duplicate_tool_names_are_rejected() -> None:
    tools = [ToolDefinition(name="search"), ToolDefinition(name="search")]

    with pytest.raises(ConfigurationError, match="Duplicate function name"):
        _builder().with_tools(tools)


def test_named_tool_choice() -> None:
    payload = (
        _builder()
        .with_tools([ToolDefinition(name="search")], tool_choice=function_choice("search"))
        .build()
    )

    assert payload.to_dict()["tool_choice"] == {
        "type": "function",
        "function": {"name": "search"},
    }


# =============================================================================
# Interactive path
# =============================================================================


def test_interactive_builder_rejects_structured_output() -> None:
    builder = ChatAPI(transport=None).builder(MODEL, [Message.user("hi")])  # type: ignore[arg-type]
    spec = StructuredOutputSpec(name="movie", schema=MOVIE_SCHEMA)

    with pytest.raises(UnsupportedOperation) as exc:
        builder.with_structured_output(spec)
    assert exc.value.hint is not None


def test_interactive_builder_accepts_other_extensions() -> None:
    builder = ChatAPI(transport=None).builder(MODEL, [Message.user("hi")])  # type: ignore[arg-type]

    payload = builder.with_tools([ToolDefinition(name="search")]).streaming().build()

    assert payload.interactive is True
    assert "tools" in payload.to_dict()


# =============================================================================
# Validation at build()
# =============================================================================


def test_empty_model_is_rejected() -> None:
    with pytest.raises(ConfigurationError, match="Model ID cannot be empty"):
        RequestBuilder("  ", [Message.user("hi")]).build()


def test_empty_messages_are_rejected() -> None:
    with pytest.raises(ConfigurationError, match="Messages cannot be empty"):
        RequestBuilder(MODEL, []).build()


def test_blank_message_is_rejected_with_index() -> None:
    with pytest.raises(ConfigurationError, match="index 1"):
        RequestBuilder(MODEL, [Message.user("hi"), Message.user("  ")]).build()


def test_tool_message_needs_tool_call_id() -> None:
    with pytest.raises(ConfigurationError, match="missing tool_call_id"):
        RequestBuilder(MODEL, [Message(role="tool", content="42")]).build()


def test_tool_calls_only_on_assistant() -> None:
    call = ToolCall(id="call_1", function=FunctionCall(name="search"))
    message = Message(role="user", content="hi", tool_calls=(call,))

    with pytest.raises(ConfigurationError, match="not 'assistant'"):
        RequestBuilder(MODEL, [message]).build()


def test_tool_round_trip_conversation_is_valid() -> None:
    call = ToolCall(id="call_1", function=FunctionCall(name="search", arguments='{"q":"x"}'))
    messages = [
        Message.user("find x"),
        Message.assistant(tool_calls=[call]),
        Message.tool("result", tool_call_id="call_1"),
    ]

    data = RequestBuilder(MODEL, messages).build().to_dict()

    assert data["messages"][1]["tool_calls"][0]["id"] == "call_1"
    assert data["messages"][2] == {"role": "tool", "content": "result", "tool_call_id": "call_1"}


def test_unknown_role_is_rejected() -> None:
    with pytest.raises(ConfigurationError, match="Invalid message role"):
        Message(role="robot", content="beep")  # type: ignore[arg-type]


def test_non_message_items_are_rejected() -> None:
    with pytest.raises(ConfigurationError, match=r"messages\[0\]"):
        RequestBuilder(MODEL, [{"role": "user", "content": "hi"}])  # type: ignore[list-item]


# =============================================================================
# Structured output schemas
# =============================================================================


class Movie(BaseModel):
    title: str
    year: int


def test_pydantic_schema_is_emitted() -> None:
    spec = StructuredOutputSpec(name="movie", schema=Movie)
    schema = spec.response_format()["json_schema"]["schema"]

    assert set(schema["properties"]) == {"title", "year"}
    assert schema["additionalProperties"] is False


def test_strict_schema_closes_nested_objects() -> None:
    schema = {
        "type": "object",
        "properties": {
            "cast": {
                "type": "array",
                "items": {"type": "object", "properties": {"name": {"type": "string"}}},
            }
        },
    }

    strict = to_strict_schema(schema)

    assert strict["required"] == ["cast"]
    item = strict["properties"]["cast"]["items"]
    assert item["additionalProperties"] is False
    assert item["required"] == ["name"]
    assert "additionalProperties" not in schema


def test_strict_schema_keeps_explicit_required() -> None:
    schema = {
        "type": "object",
        "properties": {"title": {"type": "string"}, "year": {"type": "integer"}},
        "required": ["title"],
    }

    strict = to_strict_schema(schema)

    assert strict["required"] == ["title"]
    assert strict["additionalProperties"] is False


@pytest.mark.parametrize("schema", [[{"type": "object"}], "object", None])
def test_strict_schema_rejects_non_object(schema) -> None:
    with pytest.raises(ConfigurationError, match="must be a JSON object") as exc:
        to_strict_schema(schema)
    assert exc.value.hint is not None


def test_non_strict_schema_is_sent_verbatim() -> None:
    spec = StructuredOutputSpec(name="movie", schema=MOVIE_SCHEMA, strict=False)

    assert spec.response_format()["json_schema"]["schema"] == MOVIE_SCHEMA


@pytest.mark.parametrize("name", ["", "   "])
def test_structured_spec_requires_name(name: str) -> None:
    with pytest.raises(ConfigurationError):
        StructuredOutputSpec(name=name, schema=MOVIE_SCHEMA)


def test_structured_spec_rejects_bad_schema() -> None:
    with pytest.raises(ConfigurationError, match="schema must be"):
        StructuredOutputSpec(name="movie", schema="not a schema")  # type: ignore[arg-type]
