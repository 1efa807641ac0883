"""openrouter-client: an async client for the OpenRouter completion service.

Public API:
    - OpenRouterClient: staged configuration ending in a ReadyClient
    - RequestBuilder / RequestPayload: immutable request construction
    - StreamDecoder / decode_stream: incremental event-stream decoding
    - ResponseValidator / StructuredOutputSpec: schema-checked responses
"""

from __future__ import annotations

import logging

from openrouter_client._validation import (
    MAX_TOKENS,
    check_token_limits,
    estimate_request_tokens,
)
from openrouter_client.api import (
    ChatAPI,
    CompletionAPI,
    ModelsAPI,
    StructuredAPI,
    WebSearchAPI,
)
from openrouter_client.client import (
    AddressSetClient,
    OpenRouterClient,
    ReadyClient,
    UnconfiguredClient,
)
from openrouter_client.config import ClientConfig
from openrouter_client.errors import (
    APIError,
    ConfigurationError,
    ContextLengthExceeded,
    MissingCredentialError,
    OpenRouterError,
    ProtocolError,
    RateLimitError,
    SchemaValidationError,
    StructuredOutputNotSupported,
    TransportError,
    UnsupportedOperation,
)
from openrouter_client.messages import FunctionCall, Message, ToolCall
from openrouter_client.request import RequestBuilder, RequestPayload
from openrouter_client.responses import (
    ChatCompletionResponse,
    CompletionResponse,
    ModelInfo,
    StreamChunk,
    Usage,
    WebSearchResponse,
)
from openrouter_client.routing import (
    DataCollection,
    ModelCoverageProfile,
    ModelGroups,
    PredefinedProfile,
    ProviderPreferences,
    ProviderSort,
    Quantization,
    RouterConfig,
)
from openrouter_client.streaming import (
    StreamAccumulator,
    StreamDecoder,
    decode_fragments,
    decode_stream,
)
from openrouter_client.structured import StructuredOutputSpec
from openrouter_client.tools import ToolDefinition, function_choice
from openrouter_client.validator import ResponseValidator, ValidationOutcome

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("openrouter-client")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("openrouter_client").addHandler(logging.NullHandler())

__all__ = [
    "MAX_TOKENS",
    "APIError",
    "AddressSetClient",
    "ChatAPI",
    "ChatCompletionResponse",
    "ClientConfig",
    "CompletionAPI",
    "CompletionResponse",
    "ConfigurationError",
    "ContextLengthExceeded",
    "DataCollection",
    "FunctionCall",
    "Message",
    "MissingCredentialError",
    "ModelCoverageProfile",
    "ModelGroups",
    "ModelInfo",
    "ModelsAPI",
    "OpenRouterClient",
    "OpenRouterError",
    "PredefinedProfile",
    "ProtocolError",
    "ProviderPreferences",
    "ProviderSort",
    "Quantization",
    "RateLimitError",
    "ReadyClient",
    "RequestBuilder",
    "RequestPayload",
    "ResponseValidator",
    "RouterConfig",
    "SchemaValidationError",
    "StreamAccumulator",
    "StreamChunk",
    "StreamDecoder",
    "StructuredAPI",
    "StructuredOutputNotSupported",
    "StructuredOutputSpec",
    "ToolCall",
    "ToolDefinition",
    "TransportError",
    "UnconfiguredClient",
    "UnsupportedOperation",
    "Usage",
    "ValidationOutcome",
    "WebSearchAPI",
    "WebSearchResponse",
    "check_token_limits",
    "decode_fragments",
    "decode_stream",
    "estimate_request_tokens",
    "function_choice",
]
