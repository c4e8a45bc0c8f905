from __future__ import annotations

import msgspec
import pytest

from app.ai.agents.generator import GeneratorAgent
from app.ai.backoff import retry_with_backoff
from app.core.errors import GenerationError, GenerationExhaustedError, MalformedResponseError


class _RecordingSleep:
  def __init__(self) -> None:
    self.delays: list[float] = []

  async def __call__(self, delay: float) -> None:
    self.delays.append(delay)


@pytest.mark.anyio
async def test_generate_batch_attaches_ids_and_metadata(chat_client_cls, question_reply, research) -> None:
  client = chat_client_cls(script=[question_reply("hard")])
  agent = GeneratorAgent(client=client, model="generator-model")

  questions = await agent.generate_batch(research, 1, "hard")

  assert len(questions) == 1
  question = questions[0]
  assert question.id.startswith("q_")
  assert question.objective_id == "obj-1"
  assert question.objective == "Networking Concepts"
  assert question.difficulty == "hard"
  assert question.metadata.model == "generator-model"
  assert question.metadata.research_based is True
  assert question.metadata.was_fixed is False
  assert client.calls[0]["temperature"] == 0.8
  assert client.calls[0]["max_tokens"] == 3000


@pytest.mark.anyio
async def test_generate_batch_defaults_missing_difficulty(chat_client_cls, research) -> None:
  reply = msgspec.json.encode(
    {"questions": [{"question": "What does DHCP assign to clients?", "options": ["A) IP addresses", "B) MAC addresses", "C) Serial numbers", "D) Cable types"], "correctAnswer": "A"}]}
  ).decode()
  agent = GeneratorAgent(client=chat_client_cls(script=[reply]), model="generator-model")

  question = await agent.generate_single(research, "easy")

  assert question.difficulty == "easy"
  assert question.explanation == ""


@pytest.mark.anyio
async def test_generate_batch_rejects_empty_envelope(chat_client_cls, research) -> None:
  agent = GeneratorAgent(client=chat_client_cls(script=['{"questions": []}']), model="generator-model")

  with pytest.raises(MalformedResponseError):
    await agent.generate_batch(research, 1, "medium")


@pytest.mark.anyio
async def test_generate_batch_requires_positive_count(chat_client_cls, research) -> None:
  agent = GeneratorAgent(client=chat_client_cls(script=[]), model="generator-model")

  with pytest.raises(ValueError):
    await agent.generate_batch(research, 0, "medium")


@pytest.mark.anyio
async def test_generate_with_retry_recovers_after_failures(chat_client_cls, question_reply, research) -> None:
  sleep = _RecordingSleep()
  client = chat_client_cls(script=[GenerationError("rate limited"), "not json at all", question_reply()])
  agent = GeneratorAgent(client=client, model="generator-model", sleep=sleep)

  questions = await agent.generate_with_retry(research, 1, "medium")

  assert len(questions) == 1
  assert len(client.calls) == 3
  assert sleep.delays == [2.0, 4.0]


@pytest.mark.anyio
async def test_generate_with_retry_exhausts(chat_client_cls, research) -> None:
  sleep = _RecordingSleep()
  client = chat_client_cls(script=[GenerationError("down")] * 3)
  agent = GeneratorAgent(client=client, model="generator-model", sleep=sleep)

  with pytest.raises(GenerationExhaustedError) as exc_info:
    await agent.generate_with_retry(research, 1, "medium", max_retries=3)

  assert exc_info.value.attempts == 3
  assert str(exc_info.value.last_error) == "down"
  assert len(client.calls) == 3
  assert sleep.delays == [2.0, 4.0]


@pytest.mark.anyio
async def test_retry_with_backoff_does_not_sleep_on_success() -> None:
  sleep = _RecordingSleep()

  async def succeed() -> str:
    return "done"

  assert await retry_with_backoff(succeed, max_attempts=3, sleep=sleep) == "done"
  assert sleep.delays == []


@pytest.mark.anyio
async def test_retry_with_backoff_rejects_zero_attempts() -> None:
  async def succeed() -> str:
    return "done"

  with pytest.raises(ValueError):
    await retry_with_backoff(succeed, max_attempts=0)
