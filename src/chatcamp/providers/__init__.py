"""Provider implementations."""

from .base import Provider
from .mock import MockProvider
from .models import ChatMessage, CompletionRequest, CompletionResponse
from .openrouter import OpenRouterProvider

__all__ = [
    "ChatMessage",
    "CompletionRequest",
    "CompletionResponse",
    "MockProvider",
    "OpenRouterProvider",
    "Provider",
]
