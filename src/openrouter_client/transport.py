"""HTTP transport over a pooled ``httpx.AsyncClient``.

The transport owns connection pooling, TLS and timeouts. This module only
maps its failures onto the library's error types:

- network, TLS and timeout failures become ``TransportError``;
- non-2xx responses become ``APIError`` (``RateLimitError`` for 429).
"""

from __future__ import annotations

from contextlib import aclosing, asynccontextmanager
import json
import logging
from typing import TYPE_CHECKING, Any

import httpx

from openrouter_client._http import RETRYABLE_STATUS_CODES
from openrouter_client.errors import (
    APIError,
    ConfigurationError,
    RateLimitError,
    TransportError,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Mapping

    from openrouter_client.config import ClientConfig

logger = logging.getLogger(__name__)

_MAX_ERROR_TEXT = 500


class Transport:
    """A reusable handle to the remote service.

    Safe to share across concurrent calls; it holds no per-call state.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @classmethod
    def create(
        cls,
        config: ClientConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Transport:
        """Build the pooled client from a config.

        Raises:
            ConfigurationError: If the client cannot be constructed.
        """
        headers = config.build_headers()
        try:
            client = httpx.AsyncClient(
                base_url=config.base_url or "",
                headers=headers,
                timeout=config.timeout_s,
                transport=transport,
            )
        except (TypeError, ValueError, httpx.HTTPError) as e:
            raise ConfigurationError(
                f"Failed to build HTTP client: {e}",
                hint="Check the base URL, timeout and header settings.",
            ) from e
        return cls(client)

    @property
    def closed(self) -> bool:
        return self._client.is_closed

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request_json(
        self,
        method: str,
        path: str,
        *,
        body: bytes | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        Raises:
            TransportError: On network, TLS or timeout failures.
            APIError: On a non-2xx status or an undecodable success body.
        """
        logger.debug("%s %s", method, path)
        try:
            response = await self._client.request(
                method, path, content=body, params=params
            )
        except httpx.RequestError as e:
            raise _wrap_transport_error(e, phase="request") from e

        logger.debug("%s %s -> %d", method, path, response.status_code)
        if response.is_error:
            raise error_from_response(
                response.status_code, response.content, response.headers
            )
        return _decode_success_body(response)

    @asynccontextmanager
    async def stream(self, path: str, body: bytes) -> AsyncIterator[AsyncIterator[bytes]]:
        """Open a streaming POST and yield its byte fragments.

        The response is closed when the context exits, including when the
        consumer stops early or is cancelled.

        Raises:
            TransportError: On network, TLS or timeout failures, including
                failures while reading fragments.
            APIError: If the server answers with a non-2xx status.
        """
        request = self._client.build_request(
            "POST", path, content=body, headers={"Accept": "text/event-stream"}
        )
        logger.debug("POST %s (stream)", path)
        try:
            response = await self._client.send(request, stream=True)
        except httpx.RequestError as e:
            raise _wrap_transport_error(e, phase="connect") from e

        try:
            if response.is_error:
                try:
                    content = await response.aread()
                except (httpx.RequestError, httpx.StreamError) as e:
                    raise _wrap_transport_error(e, phase="read") from e
                raise error_from_response(
                    response.status_code, content, response.headers
                )
            async with aclosing(_read_fragments(response)) as fragments:
                yield fragments
        finally:
            await response.aclose()
            logger.debug("Closed stream for %s", path)


async def _read_fragments(response: httpx.Response) -> AsyncIterator[bytes]:
    try:
        async for fragment in response.aiter_bytes():
            yield fragment
    except (httpx.RequestError, httpx.StreamError) as e:
        raise _wrap_transport_error(e, phase="read") from e


def _wrap_transport_error(exc: Exception, *, phase: str) -> TransportError:
    hint = None
    if isinstance(exc, httpx.TimeoutException):
        hint = "Increase the client timeout with with_timeout()."
    elif isinstance(exc, httpx.ConnectError):
        hint = "Check network connectivity and the base URL."
    cause = str(exc) or type(exc).__name__
    return TransportError(f"HTTP {phase} failed: {cause}", hint=hint, phase=phase)


def _decode_success_body(response: httpx.Response) -> Any:
    if not response.content.strip():
        raise APIError(
            "Empty response body", status_code=response.status_code, retryable=False
        )
    try:
        document = json.loads(response.content)
    except json.JSONDecodeError as e:
        raise APIError(
            f"Response body is not valid JSON: {e}",
            status_code=response.status_code,
            retryable=False,
        ) from e
    if isinstance(document, dict) and isinstance(document.get("error"), dict):
        # Failures are sometimes reported with a 2xx status.
        raise error_from_response(
            _error_status(document["error"], response.status_code),
            response.content,
            response.headers,
        )
    return document


def _error_status(error: dict[str, Any], default: int) -> int:
    code = error.get("code")
    if isinstance(code, int) and 400 <= code <= 599:
        return code
    return default


def error_from_response(
    status_code: int, content: bytes, headers: Mapping[str, str]
) -> APIError:
    """Map an error response onto ``APIError`` with retry metadata.

    Understands the service's ``{"error": {"code", "message", "metadata"}}``
    body and falls back to the raw text otherwise.
    """
    message = f"HTTP {status_code}"
    code: str | int | None = None
    metadata: dict[str, Any] | None = None
    try:
        document = json.loads(content) if content else None
    except (json.JSONDecodeError, UnicodeDecodeError):
        document = None

    if isinstance(document, dict) and "error" in document:
        error = document["error"]
        if isinstance(error, dict):
            message = str(error.get("message") or message)
            code = error.get("code")
            raw_metadata = error.get("metadata")
            if isinstance(raw_metadata, dict):
                metadata = raw_metadata
        elif error:
            message = str(error)
    elif content:
        text = content.decode("utf-8", errors="replace").strip()
        if text:
            message = f"{message}: {text[:_MAX_ERROR_TEXT]}"

    retry_after_s = _parse_retry_after(headers.get("Retry-After"))
    retryable = status_code in RETRYABLE_STATUS_CODES or retry_after_s is not None
    err_cls: type[APIError] = RateLimitError if status_code == 429 else APIError
    return err_cls(
        f"OpenRouter API error (status={status_code}): {message}",
        hint=_status_hint(status_code),
        status_code=status_code,
        code=code,
        metadata=metadata,
        retryable=retryable,
        retry_after_s=retry_after_s,
    )


def _parse_retry_after(raw: str | None) -> float | None:
    if raw is None or not raw.strip():
        return None
    try:
        seconds = float(raw)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def _status_hint(status_code: int) -> str | None:
    if status_code in {401, 403}:
        return "Check the API key (try setting OPENROUTER_API_KEY)."
    if status_code == 402:
        return "The account has insufficient credits."
    if status_code == 429:
        return "Rate limited; wait before retrying."
    return None
