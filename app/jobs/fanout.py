"""Difficulty fan-out for objective jobs."""

from __future__ import annotations

import math

from app.ai.pipeline.contracts import Difficulty, RequestedDifficulty


def plan_difficulties(per_objective_count: int, difficulty: RequestedDifficulty) -> list[Difficulty]:
  """Return one concrete difficulty per question to generate.

  "mixed" yields ceil(n/3) easy, ceil(n/3) medium, and the non-negative
  remainder as hard. For n=1 that is one easy and one medium question.
  """
  if per_objective_count <= 0:
    return []
  if difficulty != "mixed":
    return [difficulty] * per_objective_count

  per_difficulty = math.ceil(per_objective_count / 3)
  remaining = max(0, per_objective_count - 2 * per_difficulty)
  return ["easy"] * per_difficulty + ["medium"] * per_difficulty + ["hard"] * remaining
