"""Check completed responses against a structured-output schema."""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from openrouter_client.errors import SchemaValidationError, StructuredOutputNotSupported

if TYPE_CHECKING:
    from openrouter_client.responses import ModelInfo
    from openrouter_client.structured import StructuredOutputSpec

logger = logging.getLogger(__name__)

_JSON_TYPES: dict[str, tuple[type, ...]] = {
    "object": (dict,),
    "array": (list,),
    "string": (str,),
    "integer": (int,),
    "number": (int, float),
    "boolean": (bool,),
    "null": (type(None),),
}


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of checking one response body.

    ``data`` holds the decoded (or model-validated) value when ``valid`` is
    True. ``raw`` always holds the body as received.
    """

    valid: bool
    raw: Any
    data: Any = None
    #: Human-readable reason when ``valid`` is False.
    error: str | None = None
    path: str | None = None


class ResponseValidator:
    """Validate responses for one ``StructuredOutputSpec``."""

    def __init__(self, spec: StructuredOutputSpec) -> None:
        self.spec = spec

    def preflight(self, model_id: str, model_info: ModelInfo | None = None) -> None:
        """Fail fast when the model is known not to support structured output.

        Unknown capability (no ``model_info``, or no capability data in it)
        defers the check to response time.

        Raises:
            StructuredOutputNotSupported: If capabilities exclude it.
        """
        if model_info is None:
            return
        supported = model_info.supports_structured_output()
        if supported is False:
            raise StructuredOutputNotSupported(
                model_id,
                hint="Pick a model whose supported_parameters include response_format.",
            )
        if supported is None:
            logger.debug("Structured output support unknown for %s", model_id)

    def validate(self, body: Any) -> ValidationOutcome:
        """Check ``body`` (JSON text or a decoded value) against the schema.

        Raises:
            SchemaValidationError: On mismatch when fallback is disabled.
        """
        spec = self.spec
        if isinstance(body, (str, bytes)):
            try:
                data = json.loads(body)
            except json.JSONDecodeError as e:
                if not spec.validate:
                    return ValidationOutcome(valid=True, raw=body, data=body)
                return self._fail(body, f"Response is not valid JSON: {e}", None, e)
        else:
            data = body

        if not spec.validate:
            return ValidationOutcome(valid=True, raw=body, data=data)

        model = spec.schema_model()
        if model is not None:
            try:
                return ValidationOutcome(
                    valid=True, raw=body, data=model.model_validate(data)
                )
            except ValidationError as e:
                first = e.errors()[0]
                path = _format_path(first.get("loc", ()))
                return self._fail(body, first.get("msg", str(e)), path, e)

        problem = check_schema(data, spec.effective_schema())
        if problem is None:
            return ValidationOutcome(valid=True, raw=body, data=data)
        path, detail = problem
        return self._fail(body, detail, path, None)

    def _fail(
        self,
        body: Any,
        detail: str,
        path: str | None,
        cause: Exception | None,
    ) -> ValidationOutcome:
        name = self.spec.name
        if self.spec.fallback:
            logger.debug("Schema %s failed (%s); returning raw body", name, detail)
            return ValidationOutcome(valid=False, raw=body, error=detail, path=path)
        location = f" at {path}" if path else ""
        raise SchemaValidationError(
            f"Response does not match schema {name!r}{location}: {detail}",
            schema_name=name,
            path=path,
            hint="Set fallback=True on the spec to receive the raw body instead.",
        ) from cause


def check_schema(
    value: Any, schema: dict[str, Any], path: str = "$"
) -> tuple[str, str] | None:
    """Return ``(path, detail)`` for the first mismatch, or None.

    Covers the keywords structured output relies on: ``type``, ``enum``,
    ``properties``, ``required``, ``additionalProperties: false`` and
    ``items``.
    """
    expected = schema.get("type")
    if expected is not None:
        types = [expected] if isinstance(expected, str) else list(expected)
        if not any(_is_type(value, t) for t in types):
            return path, f"expected {' or '.join(types)}, got {_type_name(value)}"

    if "enum" in schema and value not in schema["enum"]:
        return path, f"{value!r} is not one of {schema['enum']!r}"

    if isinstance(value, dict):
        properties = schema.get("properties", {})
        for key in schema.get("required", ()):
            if key not in value:
                return f"{path}.{key}", "required property is missing"
        if schema.get("additionalProperties") is False:
            extra = sorted(set(value) - set(properties))
            if extra:
                return f"{path}.{extra[0]}", "additional property is not allowed"
        for key, sub_schema in properties.items():
            if key in value and isinstance(sub_schema, dict):
                problem = check_schema(value[key], sub_schema, f"{path}.{key}")
                if problem is not None:
                    return problem

    if isinstance(value, list) and isinstance(schema.get("items"), dict):
        for i, item in enumerate(value):
            problem = check_schema(item, schema["items"], f"{path}[{i}]")
            if problem is not None:
                return problem

    return None


def _is_type(value: Any, name: str) -> bool:
    python_types = _JSON_TYPES.get(name)
    if python_types is None:
        return True
    # bool is an int subclass but not a JSON number.
    if isinstance(value, bool) and name in ("integer", "number"):
        return False
    return isinstance(value, python_types)


def _type_name(value: Any) -> str:
    for name, python_types in _JSON_TYPES.items():
        if name in ("integer", "number") and isinstance(value, bool):
            continue
        if isinstance(value, python_types):
            return name
    return type(value).__name__


def _format_path(loc: tuple[Any, ...]) -> str:
    path = "$"
    for part in loc:
        path += f"[{part}]" if isinstance(part, int) else f".{part}"
    return path
