"""Configuration: frozen Config resolved from arguments and environment."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from dotenv import load_dotenv

from chatcamp._http import DEFAULT_BASE_URL, DEFAULT_MODEL, DEFAULT_TIMEOUT_S
from chatcamp.errors import ConfigurationError

load_dotenv()

API_KEY_ENV_VAR = "OPENROUTER_API_KEY"
MODEL_ENV_VAR = "CHATCAMP_MODEL"
BASE_URL_ENV_VAR = "CHATCAMP_BASE_URL"
STORAGE_PATH_ENV_VAR = "CHATCAMP_STORAGE_PATH"

DEFAULT_STORAGE_PATH = Path("~/.chatcamp/storage.json")

DEFAULT_SYSTEM_INSTRUCTION = (
    "You are a friendly coding-camp tutor helping beginners learn to build "
    "apps. Explain ideas step by step in plain language, prefer short "
    "examples over long listings, and encourage the learner to try things "
    "themselves. If you are unsure about something, say so."
)


@dataclass(frozen=True)
class Config:
    """Immutable configuration for a chat client.

    Unset fields are auto-resolved from the environment (a ``.env`` file is
    loaded at import). The model is fixed for the life of the client; there
    is no runtime model selection.

    Example:
        config = Config()
        # API key is resolved from OPENROUTER_API_KEY when present
    """

    #: Auto-resolved from ``OPENROUTER_API_KEY`` when *None*.
    api_key: str | None = None
    model: str | None = None
    base_url: str | None = None
    storage_path: Path | str | None = None
    system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION
    timeout_s: float = DEFAULT_TIMEOUT_S
    use_mock: bool = False

    def __post_init__(self) -> None:
        """Auto-resolve environment-backed fields and validate."""
        if self.api_key is None:
            object.__setattr__(self, "api_key", os.environ.get(API_KEY_ENV_VAR))
        if self.api_key is not None:
            key = self.api_key.strip()
            object.__setattr__(self, "api_key", key or None)

        if self.model is None:
            object.__setattr__(
                self, "model", os.environ.get(MODEL_ENV_VAR) or DEFAULT_MODEL
            )
        if self.base_url is None:
            object.__setattr__(
                self, "base_url", os.environ.get(BASE_URL_ENV_VAR) or DEFAULT_BASE_URL
            )
        if self.storage_path is None:
            raw = os.environ.get(STORAGE_PATH_ENV_VAR)
            object.__setattr__(
                self, "storage_path", Path(raw) if raw else DEFAULT_STORAGE_PATH
            )
        object.__setattr__(
            self, "storage_path", Path(self.storage_path).expanduser()
        )

        if not str(self.model).strip():
            raise ConfigurationError(
                "model must be a non-empty identifier",
                hint=f"Unset {MODEL_ENV_VAR} to use {DEFAULT_MODEL!r}.",
            )
        if not str(self.base_url).startswith(("http://", "https://")):
            raise ConfigurationError(
                f"base_url must be an http(s) URL, got {self.base_url!r}",
                hint=f"The default is {DEFAULT_BASE_URL!r}.",
            )
        object.__setattr__(self, "base_url", str(self.base_url).rstrip("/"))
        if self.timeout_s <= 0:
            raise ConfigurationError(
                f"timeout_s must be > 0, got {self.timeout_s}",
                hint="This bounds how long a single exchange may wait for a reply.",
            )

    def __str__(self) -> str:
        """Return a redacted, developer-friendly representation."""
        return (
            f"Config(model={self.model!r}, base_url={self.base_url!r}, "
            f"api_key={'[REDACTED]' if self.api_key else None}, "
            f"storage_path={str(self.storage_path)!r}, use_mock={self.use_mock})"
        )

    __repr__ = __str__
