"""Small HTTP-related constants shared across chatcamp.

This module is intentionally tiny to avoid circular imports and drift.
"""

from __future__ import annotations

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
COMPLETIONS_PATH = "/chat/completions"
DEFAULT_MODEL = "google/gemini-2.0-flash-exp:free"
DEFAULT_TIMEOUT_S = 30.0

# Literal reply used when the provider answers without any choice content.
NO_RESPONSE_TEXT = "No response"
