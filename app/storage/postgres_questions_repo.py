"""Postgres-backed question bank writes."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import require_session_factory
from app.schema.pipeline import Question
from app.storage.questions_repo import QuestionRecord


class PostgresQuestionsRepository:
  """Insert accepted questions into the `questions` table."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
    self._session_factory = session_factory or require_session_factory()

  async def insert_many(self, records: list[QuestionRecord]) -> None:
    async with self._session_factory() as session:
      for record in records:
        session.add(
          Question(
            id=record.id,
            exam_id=record.exam_id,
            objective_id=record.objective_id,
            question_text=record.question_text,
            question_type=record.question_type,
            options=list(record.options),
            correct_answer=record.correct_answer,
            explanation=record.explanation,
            difficulty=record.difficulty,
            is_active=record.is_active,
            metadata_json=record.metadata,
          )
        )
      await session.commit()
