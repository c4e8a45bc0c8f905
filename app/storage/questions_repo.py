"""Storage interface for the long-term question bank."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(frozen=True)
class QuestionRecord:
  """A question row as written to the bank."""

  id: str
  exam_id: str
  objective_id: str | None
  question_text: str
  question_type: str
  options: list[str]
  correct_answer: str
  explanation: str | None
  difficulty: str | None
  is_active: bool = True
  metadata: dict[str, Any] = field(default_factory=dict)


class QuestionsRepository(Protocol):
  """Repository contract for persisting accepted questions."""

  async def insert_many(self, records: list[QuestionRecord]) -> None:
    """Insert all records in one transaction."""
