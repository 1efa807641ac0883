"""Tool (function) definitions for tool calling."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal

from openrouter_client.errors import ConfigurationError

ToolChoice = Literal["none", "auto", "required"] | dict[str, Any]


@dataclass(frozen=True)
class ToolDefinition:
    """A callable function the model may invoke.

    ``parameters`` is a JSON Schema object describing the arguments.
    """

    name: str
    parameters: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({"type": "object", "properties": {}})
    )
    description: str | None = None

    def __post_init__(self) -> None:
        """Validate name and parameter shape early."""
        if not isinstance(self.name, str) or not self.name.strip():
            raise ConfigurationError(
                "Tool name cannot be empty",
                hint="Pass ToolDefinition(name='get_weather', parameters={...}).",
            )
        if not isinstance(self.parameters, Mapping):
            raise ConfigurationError(
                f"Parameters for tool {self.name!r} must be a JSON object",
            )
        if not isinstance(self.parameters, MappingProxyType):
            object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))

    def to_dict(self) -> dict[str, Any]:
        function: dict[str, Any] = {"name": self.name}
        if self.description is not None:
            function["description"] = self.description
        function["parameters"] = _thaw(self.parameters)
        return {"type": "function", "function": function}


def function_choice(name: str) -> dict[str, Any]:
    """Return a tool_choice forcing the model to call ``name``."""
    return {"type": "function", "function": {"name": name}}


def ensure_unique_names(tools: Iterable[ToolDefinition]) -> tuple[ToolDefinition, ...]:
    """Return ``tools`` as a tuple, rejecting duplicate names."""
    seen: set[str] = set()
    result: list[ToolDefinition] = []
    for i, tool in enumerate(tools):
        if not isinstance(tool, ToolDefinition):
            raise ConfigurationError(
                f"tools[{i}] must be a ToolDefinition, got {type(tool).__name__}",
            )
        if tool.name in seen:
            raise ConfigurationError(
                f"Duplicate function name {tool.name!r} in tools",
                hint="Tool names must be unique within one request.",
            )
        seen.add(tool.name)
        result.append(tool)
    return tuple(result)


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_thaw(v) for v in value]
    return value
