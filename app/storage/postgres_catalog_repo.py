"""Postgres-backed exam catalog reads."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import require_session_factory
from app.schema.pipeline import Exam, Objective
from app.storage.catalog_repo import ExamRecord, ObjectiveRecord


def _objective_record(row: Objective) -> ObjectiveRecord:
  return ObjectiveRecord(id=row.id, exam_id=row.exam_id, title=row.title, description=row.description)


class PostgresCatalogRepository:
  """Look up exams and objectives with SQLAlchemy."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
    self._session_factory = session_factory or require_session_factory()

  async def get_exam(self, exam_id: str) -> ExamRecord | None:
    async with self._session_factory() as session:
      row = await session.get(Exam, exam_id)
      if row is None:
        return None
      return ExamRecord(id=row.id, code=row.code, name=row.name, description=row.description)

  async def get_objective(self, objective_id: str) -> ObjectiveRecord | None:
    async with self._session_factory() as session:
      row = await session.get(Objective, objective_id)
      if row is None:
        return None
      return _objective_record(row)

  async def list_objectives(self, exam_id: str, objective_ids: list[str] | None = None) -> list[ObjectiveRecord]:
    stmt = select(Objective).where(Objective.exam_id == exam_id)
    if objective_ids:
      # Ids belonging to other exams are silently filtered out.
      stmt = stmt.where(Objective.id.in_(objective_ids))
    stmt = stmt.order_by(Objective.id)
    async with self._session_factory() as session:
      result = await session.execute(stmt)
      return [_objective_record(row) for row in result.scalars().all()]
