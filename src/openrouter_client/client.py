"""Client configuration stages.

A client is configured in three stages, each its own type:

    UnconfiguredClient --with_base_url--> AddressSetClient --with_api_key--> ReadyClient

Completion operations exist only on ``ReadyClient``, so calling them on an
earlier stage fails with ``AttributeError`` before any I/O happens. Every
stage is immutable; setters return a new object.

Example:
    async with (
        OpenRouterClient()
        .with_base_url()
        .with_timeout(60)
        .with_api_key(key)
    ) as client:
        payload = client.chat_request_builder([Message.user("Hi")]).build()
        response = await client.chat().chat_completion(payload)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
from typing import TYPE_CHECKING, Any

from openrouter_client._http import DEFAULT_BASE_URL
from openrouter_client.api import (
    ChatAPI,
    CompletionAPI,
    ModelsAPI,
    StructuredAPI,
    WebSearchAPI,
)
from openrouter_client.config import (
    ClientConfig,
    base_url_from_env,
    check_header_value,
    load_api_key_from_env,
    validate_base_url,
)
from openrouter_client.errors import ConfigurationError
from openrouter_client.request import RequestBuilder
from openrouter_client.routing import (
    ModelCoverageProfile,
    PredefinedProfile,
    ProviderPreferences,
    RouterConfig,
)
from openrouter_client.transport import Transport

if TYPE_CHECKING:
    from collections.abc import Iterable

    import httpx

    from openrouter_client.messages import Message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnconfiguredClient:
    """Initial stage: no address and no credentials."""

    def with_base_url(self, url: str = DEFAULT_BASE_URL) -> AddressSetClient:
        """Validate ``url`` and advance to the address stage.

        Raises:
            ConfigurationError: If ``url`` is not an absolute http(s) URL
                whose path ends with ``/``.
        """
        base_url = validate_base_url(url)
        logger.debug("Base URL set to %s", base_url)
        return AddressSetClient(config=ClientConfig(base_url=base_url))


OpenRouterClient = UnconfiguredClient


@dataclass(frozen=True)
class AddressSetClient:
    """Address stage: optional settings may be adjusted before the key."""

    config: ClientConfig
    router: RouterConfig = field(default_factory=RouterConfig)
    #: Custom httpx transport (mock transports in tests, proxies, etc.).
    transport: httpx.AsyncBaseTransport | None = field(default=None, repr=False)

    def with_timeout(self, timeout_s: float) -> AddressSetClient:
        """Set the per-call timeout in seconds."""
        return replace(self, config=replace(self.config, timeout_s=timeout_s))

    def with_http_referer(self, referer: str) -> AddressSetClient:
        check_header_value("HTTP-Referer", referer)
        return replace(self, config=replace(self.config, http_referer=referer))

    def with_site_title(self, title: str) -> AddressSetClient:
        check_header_value("X-Title", title)
        return replace(self, config=replace(self.config, site_title=title))

    def with_user_id(self, user_id: str) -> AddressSetClient:
        check_header_value("X-User-ID", user_id)
        return replace(self, config=replace(self.config, user_id=user_id))

    def with_model_coverage_profile(
        self, profile: ModelCoverageProfile | PredefinedProfile | str
    ) -> AddressSetClient:
        """Choose the primary and fallback models for built requests.

        Accepts a custom profile, a predefined one, or a predefined name
        such as ``"lowest_cost"``.
        """
        if isinstance(profile, str) and not isinstance(profile, PredefinedProfile):
            try:
                profile = PredefinedProfile(profile)
            except ValueError:
                allowed = ", ".join(repr(p.value) for p in PredefinedProfile)
                raise ConfigurationError(
                    f"Unknown model coverage profile: {profile!r}",
                    hint=f"Use a ModelCoverageProfile or one of {allowed}.",
                ) from None
        if not isinstance(profile, (ModelCoverageProfile, PredefinedProfile)):
            raise ConfigurationError(
                f"Expected a coverage profile, got {type(profile).__name__}"
            )
        return replace(self, router=replace(self.router, profile=profile))

    def with_provider_preferences(self, prefs: ProviderPreferences) -> AddressSetClient:
        """Set provider preferences applied to every built request."""
        if not isinstance(prefs, ProviderPreferences):
            raise ConfigurationError(
                f"Expected ProviderPreferences, got {type(prefs).__name__}"
            )
        return replace(self, router=replace(self.router, provider_preferences=prefs))

    def with_transport(self, transport: httpx.AsyncBaseTransport) -> AddressSetClient:
        return replace(self, transport=transport)

    def with_api_key(self, api_key: str) -> ReadyClient:
        """Set the credential, build the transport, and advance to Ready.

        Raises:
            ConfigurationError: If the key is empty or not header-safe, or if
                the HTTP client cannot be built.
        """
        if not isinstance(api_key, str) or not api_key.strip():
            raise ConfigurationError(
                "API key cannot be empty",
                hint="Pass your OpenRouter key, or use ReadyClient.from_env().",
            )
        key = api_key.strip()
        check_header_value("Authorization", key)
        config = replace(self.config, api_key=key)
        transport = Transport.create(config, transport=self.transport)
        logger.debug("Client ready: %s", config)
        return ReadyClient(config=config, router=self.router, transport=transport)


@dataclass(frozen=True)
class ReadyClient:
    """Final stage: credentials set and transport built.

    Safe to share across concurrent tasks. Use as an async context manager,
    or call :meth:`aclose`, to release pooled connections.
    """

    config: ClientConfig
    router: RouterConfig
    transport: Transport = field(repr=False)

    @classmethod
    def from_env(
        cls,
        *,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> ReadyClient:
        """Build a ready client from environment variables.

        Reads ``OPENROUTER_API_KEY`` (or ``OR_API_KEY``) and, when
        ``base_url`` is not given, ``OPENROUTER_BASE_URL``.

        Raises:
            MissingCredentialError: If no API key is set.
        """
        api_key = load_api_key_from_env()
        stage = UnconfiguredClient().with_base_url(base_url or base_url_from_env())
        if transport is not None:
            stage = stage.with_transport(transport)
        return stage.with_api_key(api_key)

    def chat(self) -> ChatAPI:
        return ChatAPI(self.transport)

    def structured(self) -> StructuredAPI:
        return StructuredAPI(self.transport)

    def completions(self) -> CompletionAPI:
        return CompletionAPI(self.transport)

    def models(self) -> ModelsAPI:
        return ModelsAPI(self.transport)

    def web_search(self) -> WebSearchAPI:
        return WebSearchAPI(self.transport)

    def chat_request_builder(self, messages: Iterable[Message]) -> RequestBuilder:
        """Start a request pre-populated from the routing configuration.

        The primary model comes from the coverage profile (or the default
        model); fallbacks and provider preferences are attached when set.
        """
        builder = RequestBuilder(self.router.primary_model(), tuple(messages))
        fallbacks = self.router.fallback_models()
        if fallbacks:
            builder = builder.with_fallback_models(fallbacks)
        if self.router.provider_preferences is not None:
            builder = builder.with_provider_preferences(self.router.provider_preferences)
        return builder

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> ReadyClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
