"""Researcher agent: builds and caches per-objective research briefs."""

from __future__ import annotations

import asyncio
import logging

from app.ai.agents.base import BaseAgent, UsageSink
from app.ai.agents.prompts import RESEARCH_SYSTEM_PROMPT, render_research_prompt
from app.ai.decoding import decode_llm_json
from app.ai.pipeline.contracts import ResearchBrief, ResearchResult
from app.ai.providers.base import ChatClient
from app.config import RESEARCH_CACHE_TTL_SECONDS
from app.core.errors import NotFoundError
from app.storage.catalog_repo import CatalogRepository
from app.storage.research_cache import ResearchCache

logger = logging.getLogger(__name__)


class ResearcherAgent(BaseAgent):
  """Return cached research, or generate it once and write it through."""

  name = "Researcher"

  def __init__(self, *, client: ChatClient, model: str, cache: ResearchCache, catalog: CatalogRepository, ttl_seconds: int = RESEARCH_CACHE_TTL_SECONDS, use: UsageSink = None) -> None:
    super().__init__(client=client, model=model, use=use)
    self._cache = cache
    self._catalog = catalog
    self._ttl_seconds = ttl_seconds

  async def research(self, objective_id: str) -> ResearchResult:
    cached = await self._cache.get(objective_id)
    if cached is not None:
      logger.info("Using cached research for objective %s", objective_id)
      return cached

    objective = await self._catalog.get_objective(objective_id)
    if objective is None:
      raise NotFoundError(f"Objective {objective_id} not found")

    exam = await self._catalog.get_exam(objective.exam_id)
    if exam is None:
      raise NotFoundError(f"Exam {objective.exam_id} not found")

    logger.info("Researching objective %s for exam %s", objective_id, exam.code)
    messages = [{"role": "system", "content": RESEARCH_SYSTEM_PROMPT}, {"role": "user", "content": render_research_prompt(exam, objective)}]
    response = await self._complete(messages, purpose="research", temperature=0.5, max_tokens=2000)
    brief = decode_llm_json(response.content, ResearchBrief)

    result = ResearchResult(
      objective_id=objective.id,
      objective_title=objective.title,
      objective_description=objective.description or "",
      exam_context=f"{exam.name} ({exam.code})",
      key_topics=brief.key_topics,
      practical_applications=brief.practical_applications,
      common_misconceptions=brief.common_misconceptions,
      difficulty_guidelines=brief.difficulty_guidelines,
    )

    # Concurrent misses may both write; the last writer wins.
    await self._cache.put(result, ttl_seconds=self._ttl_seconds)
    return result

  async def research_many(self, objective_ids: list[str]) -> list[ResearchResult]:
    """Research several objectives concurrently, preserving input order."""
    return list(await asyncio.gather(*(self.research(objective_id) for objective_id in objective_ids)))
