"""Configuration boundary tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from chatcamp._http import DEFAULT_BASE_URL, DEFAULT_MODEL
from chatcamp.config import Config
from chatcamp.errors import ConfigurationError

pytestmark = pytest.mark.unit


def test_defaults_without_environment() -> None:
    cfg = Config()
    assert cfg.api_key is None
    assert cfg.model == DEFAULT_MODEL
    assert cfg.base_url == DEFAULT_BASE_URL
    assert cfg.timeout_s == 30.0
    assert cfg.use_mock is False
    assert isinstance(cfg.storage_path, Path)
    assert "~" not in str(cfg.storage_path)


def test_config_auto_resolves_api_key_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """API key should be auto-resolved from environment."""
    monkeypatch.setenv("OPENROUTER_API_KEY", "env-key")

    cfg = Config()

    assert cfg.api_key == "env-key"


def test_explicit_api_key_takes_precedence(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENROUTER_API_KEY", "env-key")

    cfg = Config(api_key="explicit-key")

    assert cfg.api_key == "explicit-key"


def test_blank_api_key_means_unset() -> None:
    assert Config(api_key="   ").api_key is None


def test_env_overrides_for_model_base_url_and_storage(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("CHATCAMP_MODEL", "openai/gpt-4o-mini")
    monkeypatch.setenv("CHATCAMP_BASE_URL", "http://localhost:8080/v1/")
    monkeypatch.setenv("CHATCAMP_STORAGE_PATH", str(tmp_path / "s.json"))

    cfg = Config()

    assert cfg.model == "openai/gpt-4o-mini"
    assert cfg.base_url == "http://localhost:8080/v1"
    assert cfg.storage_path == tmp_path / "s.json"


def test_invalid_timeout_raises_with_hint() -> None:
    with pytest.raises(ConfigurationError, match="timeout_s") as exc:
        Config(timeout_s=0)
    assert exc.value.hint is not None


def test_invalid_base_url_raises() -> None:
    with pytest.raises(ConfigurationError, match="base_url"):
        Config(base_url="openrouter.ai/api/v1")


def test_repr_redacts_api_key() -> None:
    cfg = Config(api_key="sk-secret")
    assert "sk-secret" not in repr(cfg)
    assert "[REDACTED]" in str(cfg)
