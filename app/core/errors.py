"""Error taxonomy for the question generation pipeline."""

from __future__ import annotations


class PipelineError(Exception):
  """Base class for pipeline errors surfaced to callers or the queue."""


class NotFoundError(PipelineError):
  """Raised when an objective, exam, or job does not exist. Never retried."""


class JobNotFoundError(NotFoundError):
  """Raised when no progress state exists for a job id."""

  def __init__(self, job_id: str) -> None:
    super().__init__(f"Job {job_id} not found")
    self.job_id = job_id


class NotInitializedError(PipelineError):
  """Raised when the progress aggregator is mutated before init."""

  def __init__(self, job_id: str) -> None:
    super().__init__(f"Progress not initialized for job {job_id}")
    self.job_id = job_id


class GenerationError(PipelineError):
  """Raised when an LLM call fails or its output cannot be used."""


class MalformedResponseError(GenerationError):
  """Raised when an LLM response does not decode into the expected schema."""


class GenerationExhaustedError(GenerationError):
  """Raised when every generation attempt failed."""

  def __init__(self, attempts: int, last_error: BaseException | None) -> None:
    super().__init__(f"Failed after {attempts} attempts: {last_error}")
    self.attempts = attempts
    self.last_error = last_error


class NoObjectivesError(PipelineError):
  """Raised when a generation request resolves to zero objectives."""


class NoValidQuestionsError(PipelineError):
  """Raised when a job has no valid questions to persist."""


TERMINAL_ERRORS: tuple[type[Exception], ...] = (NotFoundError, NotInitializedError)
