"""Generator agent: turns a research brief into multiple-choice questions."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime

from app.ai.agents.base import BaseAgent, UsageSink
from app.ai.agents.prompts import GENERATOR_SYSTEM_PROMPT, render_generation_prompt
from app.ai.backoff import Sleep, retry_with_backoff
from app.ai.decoding import decode_llm_json
from app.ai.pipeline.contracts import GeneratedQuestion, QuestionEnvelope, QuestionMetadata, RequestedDifficulty, ResearchResult
from app.ai.providers.base import ChatClient
from app.core.errors import MalformedResponseError
from app.utils.ids import generate_question_id

logger = logging.getLogger(__name__)


class GeneratorAgent(BaseAgent):
  """Generate certification questions for one objective."""

  name = "Generator"

  def __init__(self, *, client: ChatClient, model: str, use: UsageSink = None, backoff_seconds: float = 2.0, sleep: Sleep = asyncio.sleep) -> None:
    super().__init__(client=client, model=model, use=use)
    self._backoff_seconds = backoff_seconds
    self._sleep = sleep

  async def generate_batch(self, research: ResearchResult, count: int, difficulty: RequestedDifficulty) -> list[GeneratedQuestion]:
    if count < 1:
      raise ValueError("count must be >= 1")

    prompt = render_generation_prompt(research, count, difficulty)
    logger.debug("Generation prompt for %s:\n%s", research.objective_id, prompt)
    messages = [{"role": "system", "content": GENERATOR_SYSTEM_PROMPT}, {"role": "user", "content": prompt}]
    response = await self._complete(messages, purpose="generate", temperature=0.8, max_tokens=3000)
    envelope = decode_llm_json(response.content, QuestionEnvelope)
    if not envelope.questions:
      raise MalformedResponseError("Generator returned no questions")

    generated_at = datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    metadata = QuestionMetadata(generated_at=generated_at, model=self._model)
    return [
      GeneratedQuestion(
        id=generate_question_id(),
        question=draft.question,
        options=list(draft.options),
        correct_answer=draft.correct_answer,
        explanation=draft.explanation,
        difficulty=draft.difficulty or difficulty,
        objective_id=research.objective_id,
        objective=research.objective_title,
        metadata=metadata,
      )
      for draft in envelope.questions
    ]

  async def generate_single(self, research: ResearchResult, difficulty: RequestedDifficulty) -> GeneratedQuestion:
    questions = await self.generate_batch(research, 1, difficulty)
    return questions[0]

  async def generate_with_retry(self, research: ResearchResult, count: int, difficulty: RequestedDifficulty, max_retries: int = 3) -> list[GeneratedQuestion]:
    """Retry generate_batch with exponential backoff; raises GenerationExhaustedError."""
    return await retry_with_backoff(
      lambda: self.generate_batch(research, count, difficulty),
      max_attempts=max_retries,
      base_seconds=self._backoff_seconds,
      sleep=self._sleep,
      label=f"Generation for {research.objective_id}",
    )
