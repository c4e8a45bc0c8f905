"""Domain models for generation jobs, queue messages, and progress updates."""

from __future__ import annotations

from typing import Literal

import msgspec

from app.ai.pipeline.contracts import Difficulty, GeneratedQuestion, RequestedDifficulty, ResearchResult, ValidationResult

JobStatus = Literal["queued", "processing", "completed", "failed"]
TERMINAL_STATUSES: frozenset[str] = frozenset({"completed", "failed"})


class ProgressMetrics(msgspec.Struct, rename="camel"):
  """Accumulated timings in milliseconds and estimated LLM spend in USD."""

  generation_time: int = 0
  validation_time: int = 0
  total_time: int = 0
  cost_estimate: float = 0.0


class InvalidQuestion(msgspec.Struct, rename="camel"):
  """A rejected question kept for audit together with its validation."""

  question: GeneratedQuestion
  validation: ValidationResult


class ProgressState(msgspec.Struct, rename="camel"):
  """The authoritative progress record for one generation job."""

  job_id: str
  exam_id: str
  user_id: str
  status: JobStatus
  total_objectives: int
  total_questions_requested: int
  started_at: str
  processed_objectives: int = 0
  questions_generated: int = 0
  questions_validated: int = 0
  questions_saved: int = 0
  valid_questions: list[GeneratedQuestion] = msgspec.field(default_factory=list)
  invalid_questions: list[InvalidQuestion] = msgspec.field(default_factory=list)
  errors: list[str] = msgspec.field(default_factory=list)
  completed_at: str | None = None
  metrics: ProgressMetrics = msgspec.field(default_factory=ProgressMetrics)

  @property
  def is_terminal(self) -> bool:
    return self.status in TERMINAL_STATUSES

  def completion_percentage(self) -> int:
    """Return saved/requested as a rounded percentage. May exceed 100."""
    if self.total_questions_requested <= 0:
      return 0
    # Round half up to match the status API contract.
    return int(self.questions_saved * 100 / self.total_questions_requested + 0.5)


# Typed partial updates accepted by the progress aggregator.


class SetStatus(msgspec.Struct, tag="set_status"):
  status: JobStatus


class IncrementProcessedObjectives(msgspec.Struct, tag="processed_objectives"):
  by: int = 1


class IncrementGenerated(msgspec.Struct, tag="questions_generated"):
  by: int = 1


class AddGenerationTime(msgspec.Struct, tag="generation_time"):
  milliseconds: int


class AddValidationTime(msgspec.Struct, tag="validation_time"):
  milliseconds: int


class AddCost(msgspec.Struct, tag="cost_estimate"):
  usd: float


ProgressUpdate = SetStatus | IncrementProcessedObjectives | IncrementGenerated | AddGenerationTime | AddValidationTime | AddCost


# Queue messages, tagged on the `type` field.


class ObjectiveJob(msgspec.Struct, tag_field="type", tag="objective", rename="camel", kw_only=True):
  """Research one objective and fan out its question quota."""

  job_id: str
  exam_id: str
  objective_id: str
  user_id: str
  per_objective_count: int
  difficulty: RequestedDifficulty = "mixed"
  model_id: str | None = None


class GenerateJob(msgspec.Struct, tag_field="type", tag="generate", rename="camel", kw_only=True):
  """Generate and validate exactly one question."""

  job_id: str
  objective_id: str
  research: ResearchResult
  difficulty: Difficulty
  model_id: str | None = None


QueueJob = ObjectiveJob | GenerateJob

_queue_decoder = msgspec.json.Decoder(QueueJob)


def encode_queue_job(job: QueueJob) -> bytes:
  """Serialize a queue message to JSON bytes."""
  return msgspec.json.encode(job)


def decode_queue_job(payload: bytes | str) -> QueueJob:
  """Decode a queue message, raising msgspec.ValidationError on schema mismatch."""
  return _queue_decoder.decode(payload)
