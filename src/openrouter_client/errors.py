"""Exception hierarchy for openrouter-client."""

from __future__ import annotations

from typing import Any


class OpenRouterError(Exception):
    """Base exception for all openrouter-client errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(OpenRouterError):
    """Client configuration or request construction was invalid."""


class MissingCredentialError(ConfigurationError):
    """No API key could be found."""


class TransportError(OpenRouterError):
    """The HTTP transport failed (DNS, TLS, connect, read, timeout).

    The underlying httpx exception is kept as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        phase: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.phase = phase


class ProtocolError(OpenRouterError):
    """The event stream was malformed, truncated, or carried undecodable data."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        line: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.line = line


class APIError(OpenRouterError):
    """The remote service reported a failure.

    ``retryable`` mirrors the status code class for callers that implement
    their own retry policy; this library never retries.
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        status_code: int | None = None,
        code: str | int | None = None,
        metadata: dict[str, Any] | None = None,
        retryable: bool | None = None,
        retry_after_s: float | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.status_code = status_code
        self.code = code
        self.metadata = metadata
        self.retryable = retryable
        self.retry_after_s = retry_after_s


class RateLimitError(APIError):
    """Rate limit exceeded (HTTP 429)."""


class UnsupportedOperation(OpenRouterError):
    """An attachment is not valid for the requested call shape."""


class StructuredOutputNotSupported(OpenRouterError):
    """The target model cannot produce structured (JSON Schema) output."""

    def __init__(self, model: str, *, hint: str | None = None) -> None:
        super().__init__(
            f"Structured output not supported by model {model!r}", hint=hint
        )
        self.model = model


class SchemaValidationError(OpenRouterError):
    """A response did not conform to the requested schema."""

    def __init__(
        self,
        message: str,
        *,
        schema_name: str,
        path: str | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.schema_name = schema_name
        self.path = path


class ContextLengthExceeded(OpenRouterError):
    """A request's estimated token count exceeds the allowed context."""

    def __init__(self, model: str, estimated_tokens: int, limit: int) -> None:
        super().__init__(
            f"Estimated token count ({estimated_tokens}) exceeds maximum "
            f"context length ({limit}) for model {model!r}",
            hint="Trim the conversation or pick a model with a larger context.",
        )
        self.model = model
        self.estimated_tokens = estimated_tokens
        self.limit = limit
