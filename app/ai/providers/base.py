"""Base interfaces for chat-completion providers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

ChatMessage = dict[str, str]


@dataclass(frozen=True)
class ChatResult:
  """First-choice completion returned by a provider."""

  content: str
  model: str
  usage: dict[str, int] | None = None


class ChatClient(Protocol):
  """Contract for the LLM client used by the pipeline agents."""

  async def chat(self, messages: list[ChatMessage], *, model: str, temperature: float, max_tokens: int) -> ChatResult:
    """Send a chat completion request and return the first choice."""
