from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from starlette.responses import Response

from app.api.deps import require_api_token
from app.api.models import GenerateQuestionsRequest, SaveQuestionsRequest, SaveQuestionsResponse, ValidQuestionsResponse
from app.api.msgspec_utils import decode_msgspec_request, encode_msgspec_response
from app.jobs.pipeline import get_progress_aggregator, get_queue
from app.jobs.progress import ProgressAggregator
from app.services.generation import submit_generation_job
from app.services.persistence import save_questions
from app.services.tasks.interface import QuestionQueue
from app.storage.catalog_repo import CatalogRepository
from app.storage.factory import _get_catalog_repo, _get_questions_repo
from app.storage.questions_repo import QuestionsRepository

router = APIRouter(dependencies=[Depends(require_api_token)])
logger = logging.getLogger(__name__)

Progress = Annotated[ProgressAggregator, Depends(get_progress_aggregator)]


@router.post("/generate-questions")
async def generate_questions(
  request: Request, progress: Progress, queue: Annotated[QuestionQueue, Depends(get_queue)], catalog: Annotated[CatalogRepository, Depends(_get_catalog_repo)]
) -> Response:
  """Start a generation job and return its id."""
  body = await decode_msgspec_request(request, GenerateQuestionsRequest)
  submitted = await submit_generation_job(
    catalog=catalog,
    progress=progress,
    queue=queue,
    exam_id=body.exam_id,
    user_id=body.user_id,
    total_count=body.total_count,
    objective_ids=body.objective_ids,
    difficulty=body.difficulty,
    model_id=body.model_id,
  )
  return encode_msgspec_response(submitted)


@router.get("/status/{job_id}")
async def get_status(job_id: str, progress: Progress) -> dict:
  """Return the live progress of a job."""
  return await progress.status(job_id)


@router.get("/questions/{job_id}")
async def get_questions(job_id: str, progress: Progress) -> Response:
  """Return the accepted questions of a job."""
  questions, count = await progress.get_valid_questions(job_id)
  return encode_msgspec_response(ValidQuestionsResponse(questions=questions, count=count))


@router.post("/save-questions")
async def save_job_questions(request: Request, progress: Progress, questions_repo: Annotated[QuestionsRepository, Depends(_get_questions_repo)]) -> Response:
  """Copy a job's accepted questions into the question bank."""
  body = await decode_msgspec_request(request, SaveQuestionsRequest)
  question_ids = await save_questions(progress=progress, questions_repo=questions_repo, job_id=body.job_id, exam_id=body.exam_id)
  return encode_msgspec_response(SaveQuestionsResponse(success=True, saved_count=len(question_ids), question_ids=question_ids))
