"""Storage interface for cached objective research."""

from __future__ import annotations

from typing import Protocol

from app.ai.pipeline.contracts import ResearchResult

RESEARCH_KEY_PREFIX = "research:"


def research_cache_key(objective_id: str) -> str:
  return f"{RESEARCH_KEY_PREFIX}{objective_id}"


class ResearchCache(Protocol):
  """Read-through cache of research briefs keyed by objective."""

  async def get(self, objective_id: str) -> ResearchResult | None:
    """Return the cached brief, or None when missing or expired."""

  async def put(self, result: ResearchResult, *, ttl_seconds: int) -> None:
    """Store the brief, replacing any previous entry."""
