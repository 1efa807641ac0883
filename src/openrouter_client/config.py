"""Configuration: frozen client settings and credential discovery."""

from __future__ import annotations

from dataclasses import dataclass
import os

from dotenv import load_dotenv
import httpx

from openrouter_client._http import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_S
from openrouter_client.errors import ConfigurationError, MissingCredentialError

# Checked in order; the first non-empty value wins.
API_KEY_ENV_VARS: tuple[str, ...] = ("OPENROUTER_API_KEY", "OR_API_KEY")
BASE_URL_ENV_VAR = "OPENROUTER_BASE_URL"

_FORBIDDEN_HEADER_CHARS = frozenset("\r\n\x00")


@dataclass(frozen=True)
class ClientConfig:
    """Immutable connection settings shared by every request of a client.

    ``base_url`` is set once the address stage has been passed and
    ``api_key`` only on a ready client; earlier stages leave them ``None``.
    """

    base_url: str | None = None
    api_key: str | None = None
    #: Sent as ``HTTP-Referer`` for app attribution.
    http_referer: str | None = None
    #: Sent as ``X-Title`` for app attribution.
    site_title: str | None = None
    #: Sent as ``X-User-ID``.
    user_id: str | None = None
    timeout_s: float = DEFAULT_TIMEOUT_S

    def __post_init__(self) -> None:
        """Validate scalar fields early for clear errors."""
        if isinstance(self.timeout_s, bool) or not isinstance(
            self.timeout_s, (int, float)
        ):
            raise ConfigurationError(
                f"timeout_s must be a number, got {type(self.timeout_s).__name__}",
                hint="Pass with_timeout(30.0).",
            )
        if self.timeout_s <= 0:
            raise ConfigurationError(
                f"timeout_s must be > 0, got {self.timeout_s}",
                hint="The timeout bounds each whole call, in seconds.",
            )

    def build_headers(self) -> dict[str, str]:
        """Return the default headers every request carries."""
        headers = {"Content-Type": "application/json"}
        if self.api_key is not None:
            headers["Authorization"] = f"Bearer {self.api_key}"
        if self.http_referer is not None:
            headers["HTTP-Referer"] = self.http_referer
        if self.site_title is not None:
            headers["X-Title"] = self.site_title
        if self.user_id is not None:
            headers["X-User-ID"] = self.user_id
        for name, value in headers.items():
            check_header_value(name, value)
        return headers

    def __str__(self) -> str:
        """Return a redacted representation safe for logs."""
        return (
            f"ClientConfig(base_url={self.base_url!r}, "
            f"api_key={'[REDACTED]' if self.api_key else None}, "
            f"http_referer={self.http_referer!r}, site_title={self.site_title!r}, "
            f"user_id={self.user_id!r}, timeout_s={self.timeout_s!r})"
        )

    __repr__ = __str__


def validate_base_url(base_url: str) -> str:
    """Return ``base_url`` if it is an absolute http(s) URL ending in ``/``.

    The trailing slash keeps relative path joining unambiguous:
    ``https://host/api/v1/`` + ``chat/completions`` never drops ``v1``.

    Raises:
        ConfigurationError: If the URL is malformed, relative, or lacks the
            trailing slash.
    """
    if not isinstance(base_url, str) or not base_url.strip():
        raise ConfigurationError(
            "base_url must be a non-empty string",
            hint=f"Pass a URL such as {DEFAULT_BASE_URL!r}.",
        )
    candidate = base_url.strip()
    try:
        url = httpx.URL(candidate)
    except httpx.InvalidURL as e:
        raise ConfigurationError(f"Invalid base URL {candidate!r}: {e}") from e

    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigurationError(
            f"Invalid base URL {candidate!r}: expected an absolute http(s) URL",
            hint=f"Pass a URL such as {DEFAULT_BASE_URL!r}.",
        )
    if url.query or url.fragment:
        raise ConfigurationError(
            f"Invalid base URL {candidate!r}: query strings and fragments are not allowed",
        )
    if not candidate.endswith("/"):
        raise ConfigurationError(
            f"Invalid base URL {candidate!r}: path must end with '/'",
            hint=f"Use {candidate + '/'!r}.",
        )
    return candidate


def check_header_value(name: str, value: str) -> None:
    """Reject header values that cannot be sent on the wire."""
    if not isinstance(value, str):
        raise ConfigurationError(
            f"Header {name} must be a string, got {type(value).__name__}"
        )
    if any(ch in _FORBIDDEN_HEADER_CHARS for ch in value):
        raise ConfigurationError(
            f"Invalid {name} header: control characters are not allowed",
        )
    if not value.isascii():
        raise ConfigurationError(
            f"Invalid {name} header: value must be ASCII",
        )


def load_api_key_from_env() -> str:
    """Return the API key from ``OPENROUTER_API_KEY`` or ``OR_API_KEY``.

    A ``.env`` file in the working directory is loaded first; variables
    already present in the environment take precedence over it.

    Raises:
        MissingCredentialError: If neither variable holds a non-empty value.
    """
    load_dotenv()
    for env_var in API_KEY_ENV_VARS:
        value = os.environ.get(env_var, "").strip()
        if value:
            return value
    raise MissingCredentialError(
        "API key not found in environment",
        hint=f"Set {' or '.join(API_KEY_ENV_VARS)}.",
    )


def base_url_from_env() -> str:
    """Return ``OPENROUTER_BASE_URL`` when set, else the public endpoint."""
    value = os.environ.get(BASE_URL_ENV_VAR, "").strip()
    return value or DEFAULT_BASE_URL
