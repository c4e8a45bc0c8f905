"""Durable per-job progress aggregation.

Each generation job owns exactly one ``ProgressState`` record. Every mutation
goes through ``ProgressAggregator`` which serializes operations per job id:
an in-process ``asyncio.Lock`` keyed by job id orders callers inside one
worker, and the repository session holds a row lock so workers in other
processes queue behind it. Each operation is a single load, mutate, save
unit, so concurrent ``add_valid`` calls never lose an increment.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import msgspec

from app.ai.pipeline.contracts import GeneratedQuestion, ValidationResult
from app.core.errors import JobNotFoundError, NotInitializedError
from app.jobs.models import (
  AddCost,
  AddGenerationTime,
  AddValidationTime,
  IncrementGenerated,
  IncrementProcessedObjectives,
  InvalidQuestion,
  ProgressState,
  ProgressUpdate,
  SetStatus,
)
from app.storage.progress_repo import ProgressRepository

MAX_JOB_ERRORS = 10

logger = logging.getLogger(__name__)


def _now() -> datetime:
  return datetime.now(UTC)


def _iso(moment: datetime) -> str:
  return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_iso(raw: str) -> datetime:
  return datetime.fromisoformat(raw.replace("Z", "+00:00"))


class ProgressAggregator:
  """Actor-per-key state machine over durable progress records."""

  def __init__(self, repo: ProgressRepository) -> None:
    self._repo = repo
    # Locks are dropped once no operation holds or waits on them.
    self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

  def _lock_for(self, job_id: str) -> asyncio.Lock:
    lock = self._locks.get(job_id)
    if lock is None:
      lock = asyncio.Lock()
      self._locks[job_id] = lock
    return lock

  @asynccontextmanager
  async def _exclusive(self, job_id: str) -> AsyncIterator[tuple[Any, ProgressState]]:
    """Yield the session and current state for one job, failing when uninitialized."""
    lock = self._lock_for(job_id)
    async with lock:
      async with self._repo.session(job_id) as session:
        state = await session.load()
        if state is None:
          raise NotInitializedError(job_id)
        yield session, state

  async def init(self, job_id: str, exam_id: str, user_id: str, total_objectives: int, total_questions_requested: int) -> ProgressState:
    """Create (or overwrite) the progress record for a job."""
    state = ProgressState(
      job_id=job_id,
      exam_id=exam_id,
      user_id=user_id,
      status="queued",
      total_objectives=total_objectives,
      total_questions_requested=total_questions_requested,
      started_at=_iso(_now()),
    )
    async with self._lock_for(job_id):
      async with self._repo.session(job_id) as session:
        await session.save(state)
    logger.info("Initialized progress for job %s (%d objectives, %d questions)", job_id, total_objectives, total_questions_requested)
    return state

  async def update(self, job_id: str, *updates: ProgressUpdate) -> ProgressState:
    """Apply typed partial updates and derive completion."""
    async with self._exclusive(job_id) as (session, state):
      for item in updates:
        _apply_update(state, item)
      _maybe_complete(state)
      await session.save(state)
      return state

  async def add_valid(self, job_id: str, question: GeneratedQuestion) -> ProgressState:
    """Record an accepted question."""
    async with self._exclusive(job_id) as (session, state):
      state.valid_questions.append(question)
      state.questions_validated += 1
      state.questions_saved += 1
      await session.save(state)
      return state

  async def add_invalid(self, job_id: str, question: GeneratedQuestion, validation: ValidationResult) -> ProgressState:
    """Record a rejected question together with its validation result."""
    async with self._exclusive(job_id) as (session, state):
      state.invalid_questions.append(InvalidQuestion(question=question, validation=validation))
      state.questions_validated += 1
      await session.save(state)
      return state

  async def add_error(self, job_id: str, message: str) -> ProgressState:
    """Append an error; too many errors fail the job."""
    async with self._exclusive(job_id) as (session, state):
      state.errors.append(message)
      if len(state.errors) > MAX_JOB_ERRORS and not state.is_terminal:
        state.status = "failed"
        state.completed_at = _iso(_now())
        logger.warning("Job %s failed after %d errors", job_id, len(state.errors))
      await session.save(state)
      return state

  async def status(self, job_id: str) -> dict[str, Any]:
    """Return the stored state plus the derived completion percentage."""
    state = await self._repo.get(job_id)
    if state is None:
      raise JobNotFoundError(job_id)
    payload = msgspec.to_builtins(state)
    payload["completionPercentage"] = state.completion_percentage()
    return payload

  async def get_valid_questions(self, job_id: str) -> tuple[list[GeneratedQuestion], int]:
    """Return accepted questions and their count."""
    state = await self._repo.get(job_id)
    if state is None:
      raise JobNotFoundError(job_id)
    return list(state.valid_questions), len(state.valid_questions)


def _apply_update(state: ProgressState, item: ProgressUpdate) -> None:
  match item:
    case SetStatus(status=status):
      # Terminal states are sticky.
      if not state.is_terminal:
        state.status = status
    case IncrementProcessedObjectives(by=by):
      state.processed_objectives = min(state.processed_objectives + by, state.total_objectives)
    case IncrementGenerated(by=by):
      state.questions_generated += by
    case AddGenerationTime(milliseconds=ms):
      state.metrics.generation_time += ms
    case AddValidationTime(milliseconds=ms):
      state.metrics.validation_time += ms
    case AddCost(usd=usd):
      state.metrics.cost_estimate = round(state.metrics.cost_estimate + usd, 6)
    case _:
      raise TypeError(f"Unsupported progress update: {item!r}")


def _maybe_complete(state: ProgressState) -> None:
  if state.is_terminal or state.processed_objectives < state.total_objectives:
    return
  completed = _now()
  state.status = "completed"
  state.completed_at = _iso(completed)
  state.metrics.total_time = max(int((completed - _parse_iso(state.started_at)).total_seconds() * 1000), 0)
  logger.info("Job %s completed: %d objectives processed", state.job_id, state.processed_objectives)
