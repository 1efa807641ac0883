"""Conversation messages and the tool calls they may carry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from openrouter_client.errors import ConfigurationError

Role = Literal["system", "user", "assistant", "tool"]
ROLES: frozenset[str] = frozenset({"system", "user", "assistant", "tool"})


@dataclass(frozen=True)
class FunctionCall:
    """The function a model asked to invoke, with JSON-encoded arguments."""

    name: str
    arguments: str = "{}"

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "arguments": self.arguments}


@dataclass(frozen=True)
class ToolCall:
    """A tool call requested by the model."""

    id: str
    function: FunctionCall
    type: str = "function"

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "type": self.type, "function": self.function.to_dict()}


@dataclass(frozen=True)
class Message:
    """A single conversation turn.

    Ordering is the caller's; messages are sent exactly as given.
    """

    role: Role
    content: str = ""
    name: str | None = None
    tool_call_id: str | None = None
    tool_calls: tuple[ToolCall, ...] | None = None

    def __post_init__(self) -> None:
        """Reject roles outside the closed set and non-string content."""
        if self.role not in ROLES:
            raise ConfigurationError(
                f"Invalid message role: {self.role!r}",
                hint="Use one of 'system', 'user', 'assistant', 'tool'.",
            )
        if not isinstance(self.content, str):
            raise ConfigurationError(
                f"Message content must be a string, got {type(self.content).__name__}"
            )
        if self.tool_calls is not None and not isinstance(self.tool_calls, tuple):
            object.__setattr__(self, "tool_calls", tuple(self.tool_calls))

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str, *, name: str | None = None) -> Message:
        return cls(role="user", content=content, name=name)

    @classmethod
    def assistant(
        cls,
        content: str = "",
        *,
        tool_calls: list[ToolCall] | tuple[ToolCall, ...] | None = None,
    ) -> Message:
        return cls(
            role="assistant",
            content=content,
            tool_calls=tuple(tool_calls) if tool_calls is not None else None,
        )

    @classmethod
    def tool(cls, content: str, *, tool_call_id: str) -> Message:
        """Build the message that returns a tool's output to the model."""
        return cls(role="tool", content=content, tool_call_id=tool_call_id)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the wire, omitting unset optional fields."""
        data: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.name is not None:
            data["name"] = self.name
        if self.tool_call_id is not None:
            data["tool_call_id"] = self.tool_call_id
        if self.tool_calls is not None:
            data["tool_calls"] = [tc.to_dict() for tc in self.tool_calls]
        return data
