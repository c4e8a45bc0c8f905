"""Provider implementations."""

from app.ai.providers.base import ChatClient, ChatMessage, ChatResult
from app.ai.providers.openrouter import OpenRouterClient

__all__ = ["ChatClient", "ChatMessage", "ChatResult", "OpenRouterClient"]
