"""Job submission: resolve objectives, initialize progress, enqueue fan-out."""

from __future__ import annotations

import logging
import math

import msgspec

from app.ai.pipeline.contracts import RequestedDifficulty
from app.core.errors import NoObjectivesError
from app.jobs.models import ObjectiveJob
from app.jobs.progress import ProgressAggregator
from app.services.tasks.interface import QuestionQueue
from app.storage.catalog_repo import CatalogRepository
from app.utils.ids import generate_job_id

logger = logging.getLogger(__name__)


class SubmittedJob(msgspec.Struct, rename="camel"):
  success: bool
  job_id: str
  message: str


async def submit_generation_job(
  *,
  catalog: CatalogRepository,
  progress: ProgressAggregator,
  queue: QuestionQueue,
  exam_id: str,
  user_id: str,
  total_count: int,
  objective_ids: list[str] | None = None,
  difficulty: RequestedDifficulty | None = None,
  model_id: str | None = None,
) -> SubmittedJob:
  """Create a generation job and enqueue one objective message per objective."""
  if total_count < 1:
    raise ValueError("totalCount must be >= 1")

  objectives = await catalog.list_objectives(exam_id, objective_ids or None)
  if not objectives:
    raise NoObjectivesError(f"No objectives found for exam {exam_id}")

  per_objective_count = math.ceil(total_count / len(objectives))
  job_id = generate_job_id()
  await progress.init(job_id, exam_id, user_id, total_objectives=len(objectives), total_questions_requested=total_count)

  jobs = [
    ObjectiveJob(job_id=job_id, exam_id=exam_id, objective_id=objective.id, user_id=user_id, per_objective_count=per_objective_count, difficulty=difficulty or "mixed", model_id=model_id)
    for objective in objectives
  ]
  await queue.send_batch(jobs)
  logger.info("Submitted job %s: %d objectives x %d questions", job_id, len(objectives), per_objective_count)

  return SubmittedJob(success=True, job_id=job_id, message=f"Generating {total_count} questions across {len(objectives)} objectives")
