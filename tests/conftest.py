"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration, marker-based API
test skipping, and small store/client fixtures.
"""

from __future__ import annotations

from contextlib import suppress
import logging
import os

import pytest

from chatcamp.credentials import CredentialStore
from chatcamp.storage import MemoryStorage
from chatcamp.store import ConversationStore

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
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_provider_env(request, monkeypatch):
    """Ensure a clean environment for each test.

    Clears OPENROUTER_* and CHATCAMP_* env vars to prevent test pollution.
    Opt-out: @pytest.mark.allow_env_pollution or @pytest.mark.api
    """
    if request.node.get_closest_marker("allow_env_pollution") or (
        "api" in request.node.keywords
    ):
        return

    for key in list(os.environ.keys()):
        if key.startswith(("OPENROUTER_", "CHATCAMP_")):
            monkeypatch.delenv(key, raising=False)


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


@pytest.fixture
def storage() -> MemoryStorage:
    """Fresh in-memory key-value storage."""
    return MemoryStorage()


@pytest.fixture
def store(storage: MemoryStorage) -> ConversationStore:
    """Conversation store over the in-memory storage."""
    return ConversationStore(storage)


@pytest.fixture
def credentials(storage: MemoryStorage) -> CredentialStore:
    """Credential store preloaded with a test key."""
    return CredentialStore(storage, default="test-key")
