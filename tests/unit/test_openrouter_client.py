from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from app.ai.providers.openrouter import OpenRouterClient
from app.core.errors import GenerationError, MalformedResponseError


def _completion(content: str | None, *, usage: bool = True) -> SimpleNamespace:
  return SimpleNamespace(
    choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
    model="anthropic/claude-3.5-haiku",
    usage=SimpleNamespace(prompt_tokens=120, completion_tokens=30, total_tokens=150) if usage else None,
  )


def _client_with(create: AsyncMock) -> OpenRouterClient:
  with patch("app.ai.providers.openrouter.AsyncOpenAI") as sdk_cls:
    sdk = MagicMock()
    sdk.chat.completions.create = create
    sdk_cls.return_value = sdk
    return OpenRouterClient("sk-test", http_referer="https://certforge.example.com", title="CertForge")


def test_requires_api_key() -> None:
  with pytest.raises(ValueError):
    OpenRouterClient(None)


def test_sends_attribution_headers() -> None:
  with patch("app.ai.providers.openrouter.AsyncOpenAI") as sdk_cls:
    OpenRouterClient("sk-test", base_url="https://router.test/v1", http_referer="https://certforge.example.com", title="CertForge")

  kwargs = sdk_cls.call_args.kwargs
  assert kwargs["base_url"] == "https://router.test/v1"
  assert kwargs["default_headers"] == {"HTTP-Referer": "https://certforge.example.com", "X-Title": "CertForge"}


@pytest.mark.anyio
async def test_chat_returns_first_choice_and_usage() -> None:
  create = AsyncMock(return_value=_completion('{"isValid": true}'))
  client = _client_with(create)

  result = await client.chat([{"role": "user", "content": "hi"}], model="anthropic/claude-3.5-haiku", temperature=0.3, max_tokens=1000)

  assert result.content == '{"isValid": true}'
  assert result.usage == {"prompt_tokens": 120, "completion_tokens": 30, "total_tokens": 150}
  assert create.await_args.kwargs["temperature"] == 0.3
  assert create.await_args.kwargs["max_tokens"] == 1000


@pytest.mark.anyio
async def test_empty_completion_is_malformed() -> None:
  client = _client_with(AsyncMock(return_value=_completion("   ", usage=False)))

  with pytest.raises(MalformedResponseError):
    await client.chat([{"role": "user", "content": "hi"}], model="m", temperature=0.5, max_tokens=10)


@pytest.mark.anyio
async def test_provider_errors_become_generation_errors() -> None:
  request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
  client = _client_with(AsyncMock(side_effect=openai.APIConnectionError(request=request)))

  with pytest.raises(GenerationError, match="OpenRouter request failed"):
    await client.chat([{"role": "user", "content": "hi"}], model="m", temperature=0.5, max_tokens=10)
