"""Structured output: JSON Schema response formats."""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from openrouter_client.errors import ConfigurationError

SchemaInput = type[BaseModel] | dict[str, Any]


@dataclass(frozen=True)
class StructuredOutputSpec:
    """Request a response that conforms to a JSON Schema.

    Example:
        spec = StructuredOutputSpec(
            name="movie",
            schema={"type": "object", "properties": {"title": {"type": "string"}}},
        )
    """

    #: Identifies the output type to the model and in validation errors.
    name: str
    #: Pydantic ``BaseModel`` subclass or JSON Schema dict.
    schema: SchemaInput
    strict: bool = True
    #: Check the response against ``schema`` once it arrives.
    validate: bool = True
    #: On validation failure return the raw body instead of raising.
    #: Ignored when ``validate`` is False.
    fallback: bool = False

    def __post_init__(self) -> None:
        """Validate shapes early for clear errors."""
        if not isinstance(self.name, str) or not self.name.strip():
            raise ConfigurationError(
                "Structured output name cannot be empty",
                hint="Pass StructuredOutputSpec(name='movie', schema={...}).",
            )
        if not (
            isinstance(self.schema, dict)
            or (isinstance(self.schema, type) and issubclass(self.schema, BaseModel))
        ):
            raise ConfigurationError(
                "schema must be a Pydantic model class or JSON schema dict",
                hint="Pass a BaseModel subclass or a dict following JSON Schema.",
            )

    def schema_json(self) -> dict[str, Any]:
        """Return the JSON Schema document for the wire."""
        if isinstance(self.schema, dict):
            return deepcopy(self.schema)
        return self.schema.model_json_schema()

    def schema_model(self) -> type[BaseModel] | None:
        """Return the Pydantic schema class when one was provided."""
        if isinstance(self.schema, type) and issubclass(self.schema, BaseModel):
            return self.schema
        return None

    def effective_schema(self) -> dict[str, Any]:
        """Return the schema as sent, strict-normalized when ``strict``."""
        schema = self.schema_json()
        if self.strict:
            schema = to_strict_schema(schema)
        return schema

    def response_format(self) -> dict[str, Any]:
        """Return the ``response_format`` payload field."""
        return {
            "type": "json_schema",
            "json_schema": {
                "name": self.name,
                "strict": self.strict,
                "schema": self.effective_schema(),
            },
        }


def to_strict_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``schema`` with every object closed.

    OpenRouter rejects strict ``json_schema`` formats whose objects accept
    extra keys, so each object node (``type: object`` or anything carrying
    ``properties``) gets ``additionalProperties: false``. Nodes without an
    explicit ``required`` list get one naming all their properties. The input
    is left untouched.

    Raises:
        ConfigurationError: If ``schema`` is not a JSON object.
    """
    if not isinstance(schema, dict):
        raise ConfigurationError(
            "Strict response_format schema must be a JSON object, "
            f"got {type(schema).__name__}",
            hint="Pass a dict schema or a pydantic model class.",
        )
    return _close_objects(schema)


def _close_objects(node: Any) -> Any:
    if isinstance(node, list):
        return [_close_objects(item) for item in node]
    if not isinstance(node, dict):
        return deepcopy(node)

    closed = {key: _close_objects(value) for key, value in node.items()}
    if closed.get("type") != "object" and "properties" not in closed:
        return closed
    properties = closed.get("properties", {})
    if not isinstance(properties, dict):
        return closed
    closed["additionalProperties"] = False
    closed.setdefault("required", list(properties))
    return closed
