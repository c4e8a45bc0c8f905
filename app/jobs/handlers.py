"""Queue message handlers for the question generation pipeline."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from app.ai.agents.generator import GeneratorAgent
from app.ai.agents.researcher import ResearcherAgent
from app.ai.agents.validator import ValidatorAgent
from app.ai.backoff import Sleep
from app.ai.providers.base import ChatClient
from app.ai.utils.cost import calculate_total_cost
from app.config import Settings
from app.jobs.fanout import plan_difficulties
from app.jobs.models import AddCost, AddGenerationTime, AddValidationTime, GenerateJob, IncrementGenerated, IncrementProcessedObjectives, ObjectiveJob, ProgressUpdate, SetStatus
from app.jobs.progress import ProgressAggregator
from app.services.tasks.interface import QuestionQueue
from app.storage.catalog_repo import CatalogRepository
from app.storage.research_cache import ResearchCache

logger = logging.getLogger(__name__)

# Repaired questions are accepted only above this score.
REPAIRED_ACCEPT_SCORE = 70


def _elapsed_ms(started: float) -> int:
  return int((time.perf_counter() - started) * 1000)


def _drain_cost(usage: list[dict[str, Any]]) -> list[ProgressUpdate]:
  """Price the collected usage and empty the list."""
  cost = calculate_total_cost(usage)
  usage.clear()
  return [AddCost(usd=cost)] if cost > 0 else []


class ObjectiveJobHandler:
  """Research one objective and fan out one generate message per question."""

  def __init__(self, *, progress: ProgressAggregator, queue: QuestionQueue, client: ChatClient, cache: ResearchCache, catalog: CatalogRepository, settings: Settings) -> None:
    self._progress = progress
    self._queue = queue
    self._client = client
    self._cache = cache
    self._catalog = catalog
    self._settings = settings

  async def handle(self, job: ObjectiveJob) -> None:
    logger.info("Processing objective job %s for objective %s", job.job_id, job.objective_id)
    usage: list[dict[str, Any]] = []
    try:
      await self._progress.update(job.job_id, SetStatus(status="processing"))

      researcher = ResearcherAgent(client=self._client, model=self._settings.research_model, cache=self._cache, catalog=self._catalog, ttl_seconds=self._settings.research_cache_ttl_seconds, use=usage.append)
      research = await researcher.research(job.objective_id)

      difficulties = plan_difficulties(job.per_objective_count, job.difficulty)
      messages = [GenerateJob(job_id=job.job_id, objective_id=job.objective_id, research=research, difficulty=difficulty, model_id=job.model_id) for difficulty in difficulties]
      if messages:
        await self._queue.send_batch(messages)

      await self._progress.update(job.job_id, IncrementProcessedObjectives(by=1), *_drain_cost(usage))
      logger.info("Queued %d generation jobs for objective %s", len(messages), job.objective_id)
    except Exception as exc:
      logger.error("Failed to process objective job %s", job.job_id, exc_info=True)
      await self._progress.add_error(job.job_id, f"Objective {job.objective_id}: {exc}")
      raise


class GenerationJobHandler:
  """Generate, validate, and record exactly one question."""

  def __init__(self, *, progress: ProgressAggregator, client: ChatClient, settings: Settings, sleep: Sleep = asyncio.sleep) -> None:
    self._progress = progress
    self._client = client
    self._settings = settings
    self._sleep = sleep

  async def handle(self, job: GenerateJob) -> None:
    logger.info("Generating question for objective %s (job %s)", job.objective_id, job.job_id)
    usage: list[dict[str, Any]] = []
    model_id = job.model_id or self._settings.default_model
    generator = GeneratorAgent(client=self._client, model=model_id, use=usage.append, backoff_seconds=self._settings.generation_backoff_seconds, sleep=self._sleep)
    validator = ValidatorAgent(client=self._client, model=self._settings.validator_model, use=usage.append, batch_size=self._settings.validation_batch_size)
    try:
      started = time.perf_counter()
      question = (await generator.generate_with_retry(job.research, 1, job.difficulty))[0]
      await self._progress.update(job.job_id, IncrementGenerated(by=1), AddGenerationTime(milliseconds=_elapsed_ms(started)), *_drain_cost(usage))

      started = time.perf_counter()
      validation = await validator.validate(question, job.research)
      await self._progress.update(job.job_id, AddValidationTime(milliseconds=_elapsed_ms(started)), *_drain_cost(usage))

      if validation.is_valid or (validation.fixed_question is not None and validation.validation_score > REPAIRED_ACCEPT_SCORE):
        await self._progress.add_valid(job.job_id, validation.fixed_question or question)
        logger.info("Valid question generated for objective %s", job.objective_id)
      else:
        await self._progress.add_invalid(job.job_id, question, validation)
        logger.info("Invalid question generated for objective %s, score: %d", job.objective_id, validation.validation_score)
    except Exception as exc:
      logger.error("Failed to generate question for job %s", job.job_id, exc_info=True)
      # Tokens spent before the failure are still billed.
      if cost := _drain_cost(usage):
        await self._progress.update(job.job_id, *cost)
      await self._progress.add_error(job.job_id, f"Generation failed: {exc}")
      raise
