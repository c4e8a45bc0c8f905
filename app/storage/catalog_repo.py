"""Read-only access to the exam and objective catalog."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class ExamRecord:
  id: str
  code: str
  name: str
  description: str | None = None


@dataclass(frozen=True)
class ObjectiveRecord:
  id: str
  exam_id: str
  title: str
  description: str | None = None


class CatalogRepository(Protocol):
  """Repository contract for exam catalog lookups."""

  async def get_exam(self, exam_id: str) -> ExamRecord | None:
    """Fetch an exam by identifier."""

  async def get_objective(self, objective_id: str) -> ObjectiveRecord | None:
    """Fetch an objective by identifier."""

  async def list_objectives(self, exam_id: str, objective_ids: list[str] | None = None) -> list[ObjectiveRecord]:
    """List an exam's objectives, optionally restricted to the given ids."""
