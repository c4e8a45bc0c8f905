"""Request and response bodies of the question generation API."""

from __future__ import annotations

from typing import Annotated

import msgspec
from pydantic import BaseModel

from app.ai.pipeline.contracts import GeneratedQuestion, RequestedDifficulty

NonEmptyStr = Annotated[str, msgspec.Meta(min_length=1)]


class GenerateQuestionsRequest(msgspec.Struct, rename="camel", kw_only=True):
  """Body of POST /api/generate-questions."""

  exam_id: NonEmptyStr
  user_id: NonEmptyStr
  total_count: Annotated[int, msgspec.Meta(ge=1)]
  objective_ids: list[NonEmptyStr] | None = None
  difficulty: RequestedDifficulty | None = None
  model_id: str | None = None


class SaveQuestionsRequest(msgspec.Struct, rename="camel", kw_only=True):
  """Body of POST /api/save-questions."""

  job_id: NonEmptyStr
  exam_id: NonEmptyStr


class ValidQuestionsResponse(msgspec.Struct):
  questions: list[GeneratedQuestion]
  count: int


class SaveQuestionsResponse(msgspec.Struct, rename="camel"):
  success: bool
  saved_count: int
  question_ids: list[str]


class TaskAck(BaseModel):
  """Acknowledgement returned to the task queue."""

  status: str
