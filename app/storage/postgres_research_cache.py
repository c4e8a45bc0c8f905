"""Postgres-backed research cache with TTL expiry."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

import msgspec
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.ai.pipeline.contracts import ResearchResult
from app.core.database import require_session_factory
from app.schema.pipeline import ResearchCacheEntry
from app.storage.research_cache import research_cache_key

logger = logging.getLogger(__name__)


class PostgresResearchCache:
  """Store research briefs as JSONB rows. Expired rows read as misses."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
    self._session_factory = session_factory or require_session_factory()

  async def get(self, objective_id: str) -> ResearchResult | None:
    now = datetime.now(UTC)
    async with self._session_factory() as session:
      stmt = select(ResearchCacheEntry.value_json).where(ResearchCacheEntry.cache_key == research_cache_key(objective_id), ResearchCacheEntry.expires_at > now)
      result = await session.execute(stmt)
      payload = result.scalar_one_or_none()
    if payload is None:
      return None
    try:
      return msgspec.convert(payload, ResearchResult)
    except msgspec.ValidationError:
      # A stale shape is treated as a miss and overwritten by the next write.
      logger.warning("Discarding unreadable research cache entry for %s", objective_id, exc_info=True)
      return None

  async def put(self, result: ResearchResult, *, ttl_seconds: int) -> None:
    expires_at = datetime.now(UTC) + timedelta(seconds=ttl_seconds)
    payload = msgspec.to_builtins(result)
    key = research_cache_key(result.objective_id)
    stmt = insert(ResearchCacheEntry).values(cache_key=key, value_json=payload, expires_at=expires_at)
    stmt = stmt.on_conflict_do_update(index_elements=["cache_key"], set_={"value_json": payload, "expires_at": expires_at})
    async with self._session_factory() as session:
      await session.execute(stmt)
      await session.commit()
