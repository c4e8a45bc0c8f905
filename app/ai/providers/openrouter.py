"""OpenRouter chat client using the openai SDK."""

from __future__ import annotations

import logging

import openai
from openai import AsyncOpenAI

from app.ai.providers.base import ChatMessage, ChatResult
from app.config import Settings
from app.core.errors import GenerationError, MalformedResponseError

logger = logging.getLogger(__name__)


class OpenRouterClient:
  """Chat-completion client for OpenRouter's OpenAI-compatible API."""

  def __init__(self, api_key: str | None, *, base_url: str = "https://openrouter.ai/api/v1", http_referer: str | None = None, title: str | None = None) -> None:
    if not api_key:
      raise ValueError("OPENROUTER_API_KEY environment variable is required")

    # OpenRouter uses the OpenAI-compatible API; we add optional attribution headers.
    default_headers: dict[str, str] = {}
    if http_referer:
      default_headers["HTTP-Referer"] = http_referer
    if title:
      default_headers["X-Title"] = title

    self._client = AsyncOpenAI(api_key=api_key, base_url=base_url, default_headers=default_headers or None)

  @classmethod
  def from_settings(cls, settings: Settings) -> OpenRouterClient:
    return cls(settings.openrouter_api_key, base_url=settings.openrouter_base_url, http_referer=settings.openrouter_http_referer, title=settings.openrouter_title)

  async def chat(self, messages: list[ChatMessage], *, model: str, temperature: float, max_tokens: int) -> ChatResult:
    """Run one completion and return the first choice."""
    try:
      response = await self._client.chat.completions.create(model=model, messages=messages, temperature=temperature, max_tokens=max_tokens)
    except openai.OpenAIError as exc:
      raise GenerationError(f"OpenRouter request failed: {exc}") from exc

    if not response.choices:
      raise MalformedResponseError("OpenRouter returned no choices")

    content = response.choices[0].message.content or ""
    if not content.strip():
      raise MalformedResponseError("OpenRouter returned an empty completion")
    logger.debug("OpenRouter response (%s):\n%s", model, content)

    usage = None
    if response.usage:
      usage = {"prompt_tokens": response.usage.prompt_tokens, "completion_tokens": response.usage.completion_tokens, "total_tokens": response.usage.total_tokens}

    return ChatResult(content=content, model=response.model or model, usage=usage)
