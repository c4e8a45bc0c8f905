from __future__ import annotations

import asyncio

import pytest

from app.ai.pipeline.contracts import ValidationResult
from app.core.errors import JobNotFoundError, NotInitializedError
from app.jobs.models import AddCost, AddGenerationTime, AddValidationTime, IncrementGenerated, IncrementProcessedObjectives, SetStatus
from app.jobs.progress import MAX_JOB_ERRORS


async def _init(progress, job_id: str = "job_1", *, objectives: int = 2, questions: int = 4):
  return await progress.init(job_id, "exam-1", "user-1", total_objectives=objectives, total_questions_requested=questions)


@pytest.mark.anyio
async def test_init_sets_queued_state(progress) -> None:
  state = await _init(progress)

  assert state.status == "queued"
  assert state.processed_objectives == 0
  assert state.questions_saved == 0
  assert state.started_at.endswith("Z")
  payload = await progress.status("job_1")
  assert payload["status"] == "queued"
  assert payload["totalObjectives"] == 2
  assert payload["completionPercentage"] == 0


@pytest.mark.anyio
async def test_init_overwrites_previous_state(progress, make_question) -> None:
  await _init(progress)
  await progress.add_valid("job_1", make_question())

  await _init(progress, questions=10)

  questions, count = await progress.get_valid_questions("job_1")
  assert count == 0
  assert questions == []


@pytest.mark.anyio
async def test_mutations_before_init_raise(progress, make_question) -> None:
  with pytest.raises(NotInitializedError):
    await progress.update("missing", SetStatus(status="processing"))
  with pytest.raises(NotInitializedError):
    await progress.add_valid("missing", make_question())
  with pytest.raises(NotInitializedError):
    await progress.add_error("missing", "boom")


@pytest.mark.anyio
async def test_reads_of_unknown_job_raise_not_found(progress) -> None:
  with pytest.raises(JobNotFoundError):
    await progress.status("missing")
  with pytest.raises(JobNotFoundError):
    await progress.get_valid_questions("missing")


@pytest.mark.anyio
async def test_increments_accumulate(progress) -> None:
  await _init(progress)

  await progress.update("job_1", IncrementGenerated(by=1), AddGenerationTime(milliseconds=120), AddCost(usd=0.001))
  await progress.update("job_1", IncrementGenerated(by=1), AddGenerationTime(milliseconds=80), AddValidationTime(milliseconds=40), AddCost(usd=0.002))

  payload = await progress.status("job_1")
  assert payload["questionsGenerated"] == 2
  assert payload["metrics"]["generationTime"] == 200
  assert payload["metrics"]["validationTime"] == 40
  assert payload["metrics"]["costEstimate"] == pytest.approx(0.003)


@pytest.mark.anyio
async def test_completes_when_all_objectives_processed(progress) -> None:
  await _init(progress, objectives=2)
  await progress.update("job_1", SetStatus(status="processing"))

  state = await progress.update("job_1", IncrementProcessedObjectives(by=1))
  assert state.status == "processing"
  assert state.completed_at is None

  state = await progress.update("job_1", IncrementProcessedObjectives(by=1))
  assert state.status == "completed"
  assert state.completed_at is not None
  assert state.metrics.total_time >= 0


@pytest.mark.anyio
async def test_completed_status_is_sticky(progress) -> None:
  await _init(progress, objectives=1)
  await progress.update("job_1", IncrementProcessedObjectives(by=1))

  state = await progress.update("job_1", SetStatus(status="processing"), IncrementProcessedObjectives(by=1))

  assert state.status == "completed"
  assert state.processed_objectives == 1


@pytest.mark.anyio
async def test_add_valid_and_invalid_keep_counters_consistent(progress, make_question) -> None:
  await _init(progress)
  rejected = make_question("q_bad")
  validation = ValidationResult(question_id="q_bad", is_valid=False, issues=["Duplicate options detected"], suggestions=[], validation_score=0)

  await progress.add_valid("job_1", make_question("q_good"))
  await progress.add_invalid("job_1", rejected, validation)

  state = await progress.status("job_1")
  assert state["questionsValidated"] == len(state["validQuestions"]) + len(state["invalidQuestions"]) == 2
  assert state["questionsSaved"] == len(state["validQuestions"]) == 1
  assert state["invalidQuestions"][0]["validation"]["issues"] == ["Duplicate options detected"]
  assert state["completionPercentage"] == 25


@pytest.mark.anyio
async def test_concurrent_add_valid_never_loses_updates(progress, make_question) -> None:
  await _init(progress, questions=50)

  await asyncio.gather(*(progress.add_valid("job_1", make_question(f"q_{index}")) for index in range(50)))

  questions, count = await progress.get_valid_questions("job_1")
  payload = await progress.status("job_1")
  assert count == 50
  assert {question.id for question in questions} == {f"q_{index}" for index in range(50)}
  assert payload["questionsValidated"] == 50
  assert payload["questionsSaved"] == 50
  assert payload["completionPercentage"] == 100


@pytest.mark.anyio
async def test_interleaved_valid_and_invalid_calls_hold_invariant(progress, make_question) -> None:
  await _init(progress, questions=20)
  validation = ValidationResult(question_id="q", is_valid=False, issues=["x"], suggestions=[], validation_score=10)
  calls = []
  for index in range(20):
    if index % 3 == 0:
      calls.append(progress.add_invalid("job_1", make_question(f"q_{index}"), validation))
    else:
      calls.append(progress.add_valid("job_1", make_question(f"q_{index}")))

  await asyncio.gather(*calls)

  payload = await progress.status("job_1")
  assert payload["questionsValidated"] == len(payload["validQuestions"]) + len(payload["invalidQuestions"]) == 20


@pytest.mark.anyio
async def test_fails_when_error_count_first_exceeds_limit(progress) -> None:
  await _init(progress)

  for index in range(MAX_JOB_ERRORS):
    state = await progress.add_error("job_1", f"error {index}")
  assert state.status == "queued"

  state = await progress.add_error("job_1", "one too many")
  assert state.status == "failed"
  assert state.completed_at is not None
  failed_at = state.completed_at

  state = await progress.add_error("job_1", "after failure")
  assert state.status == "failed"
  assert state.completed_at == failed_at
  assert len(state.errors) == MAX_JOB_ERRORS + 2


@pytest.mark.anyio
async def test_errors_do_not_reopen_completed_job(progress) -> None:
  await _init(progress, objectives=1)
  await progress.update("job_1", IncrementProcessedObjectives(by=1))

  for index in range(MAX_JOB_ERRORS + 1):
    state = await progress.add_error("job_1", f"late error {index}")

  assert state.status == "completed"


@pytest.mark.anyio
async def test_completion_percentage_can_exceed_one_hundred(progress, make_question) -> None:
  await _init(progress, questions=2)

  for index in range(3):
    await progress.add_valid("job_1", make_question(f"q_{index}"))

  payload = await progress.status("job_1")
  assert payload["completionPercentage"] == 150


@pytest.mark.anyio
async def test_completion_percentage_rounds(progress, make_question) -> None:
  await _init(progress, questions=3)
  await progress.add_valid("job_1", make_question("q_1"))

  payload = await progress.status("job_1")
  assert payload["completionPercentage"] == 33
