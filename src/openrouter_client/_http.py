"""HTTP constants shared by the configuration and transport layers."""

from __future__ import annotations

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1/"
DEFAULT_TIMEOUT_S = 30.0

CHAT_COMPLETIONS_PATH = "chat/completions"
COMPLETIONS_PATH = "completions"
MODELS_PATH = "models"
WEB_SEARCH_PATH = "web/search"

# Status codes a caller may reasonably retry. Reported on APIError only.
RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({408, 409, 429, 500, 502, 503, 504})
