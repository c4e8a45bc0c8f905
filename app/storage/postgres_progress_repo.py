"""Postgres-backed progress repository with row-level write locks."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import msgspec
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import require_session_factory
from app.jobs.models import ProgressState
from app.schema.pipeline import GenerationProgress


def _to_state(row: GenerationProgress) -> ProgressState:
  return msgspec.convert(row.state_json, ProgressState)


class _PostgresProgressSession:
  """Read-modify-write unit bound to one open transaction."""

  def __init__(self, session: AsyncSession, job_id: str) -> None:
    self._session = session
    self._job_id = job_id

  async def load(self) -> ProgressState | None:
    # Lock the row so writers in other workers queue behind this transaction.
    stmt = select(GenerationProgress).where(GenerationProgress.job_id == self._job_id).with_for_update()
    result = await self._session.execute(stmt)
    row = result.scalar_one_or_none()
    if row is None:
      return None
    return _to_state(row)

  async def save(self, state: ProgressState) -> None:
    payload = msgspec.to_builtins(state)
    stmt = insert(GenerationProgress).values(job_id=state.job_id, exam_id=state.exam_id, status=state.status, state_json=payload)
    stmt = stmt.on_conflict_do_update(index_elements=["job_id"], set_={"exam_id": state.exam_id, "status": state.status, "state_json": payload})
    await self._session.execute(stmt)


class PostgresProgressRepository:
  """Persist progress state as JSONB, one row per job."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
    self._session_factory = session_factory or require_session_factory()

  @asynccontextmanager
  async def session(self, job_id: str) -> AsyncIterator[_PostgresProgressSession]:
    async with self._session_factory() as session:
      async with session.begin():
        yield _PostgresProgressSession(session, job_id)

  async def get(self, job_id: str) -> ProgressState | None:
    async with self._session_factory() as session:
      row = await session.get(GenerationProgress, job_id)
      if row is None:
        return None
      return _to_state(row)
