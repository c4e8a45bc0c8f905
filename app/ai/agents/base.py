"""Base class for AI agents."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from app.ai.providers.base import ChatClient, ChatMessage, ChatResult

UsageSink = Callable[[dict[str, Any]], None] | None


class BaseAgent:
  """Base agent with shared dependencies."""

  name: str

  def __init__(self, *, client: ChatClient, model: str, use: UsageSink = None) -> None:
    self._client = client
    self._model = model
    self._usage_sink = use

  @property
  def model(self) -> str:
    return self._model

  async def _complete(self, messages: list[ChatMessage], *, purpose: str, temperature: float, max_tokens: int) -> ChatResult:
    result = await self._client.chat(messages, model=self._model, temperature=temperature, max_tokens=max_tokens)
    self._record_usage(purpose=purpose, usage=result.usage)
    return result

  def _record_usage(self, *, purpose: str, usage: dict[str, int] | None) -> None:
    if not usage or not self._usage_sink:
      return
    payload = {"model": self._model, "agent": self.name, "purpose": purpose, **usage}
    self._usage_sink(payload)
