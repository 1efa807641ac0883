"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration, and automatic API
test skipping. All fixtures here are autouse unless noted.
"""

from __future__ import annotations

import logging
import os

import pytest

# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    monkeypatch.setattr(
        "openrouter_client.config.load_dotenv", lambda *_args, **_kwargs: False
    )


@pytest.fixture(autouse=True)
def isolate_openrouter_env(request, monkeypatch):
    """Ensure a clean credential environment for each test.

    Clears OPENROUTER_* and OR_API_KEY to prevent test pollution.
    Opt-out: @pytest.mark.allow_env_pollution or @pytest.mark.api
    """
    if request.node.get_closest_marker("allow_env_pollution") or (
        "api" in request.node.keywords
    ):
        return

    for key in list(os.environ.keys()):
        if key.startswith("OPENROUTER_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("OR_API_KEY", raising=False)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# =============================================================================
# Pytest Hooks
# =============================================================================

API_TESTS_REASON = "API tests require ENABLE_API_TESTS=1"


def _api_tests_enabled() -> bool:
    return bool(os.getenv("ENABLE_API_TESTS"))


def pytest_collection_modifyitems(items):
    """Automatically skip API tests when not explicitly enabled."""
    if _api_tests_enabled():
        return
    skip_api = pytest.mark.skip(reason=API_TESTS_REASON)
    for item in items:
        if "api" in item.keywords:
            item.add_marker(skip_api)


# =============================================================================
# Shared Fixtures
# =============================================================================

# Cheap model used for API tests.
_API_TEST_MODEL = "openai/gpt-4o-mini"


@pytest.fixture
def openrouter_api_key():
    """Return OPENROUTER_API_KEY or skip the test if unavailable."""
    key = os.getenv("OPENROUTER_API_KEY")
    if not key:
        pytest.skip("OPENROUTER_API_KEY not set")
    return key


@pytest.fixture
def api_test_model():
    """Return the model to use for API tests."""
    return _API_TEST_MODEL


@pytest.fixture
def model_id() -> str:
    return "openai/gpt-4o"
