"""Storage interfaces for durable job progress state."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Protocol

from app.jobs.models import ProgressState


class ProgressSession(Protocol):
  """One read-modify-write unit over a single job's progress record."""

  async def load(self) -> ProgressState | None:
    """Return the stored state, or None when the job was never initialized."""

  async def save(self, state: ProgressState) -> None:
    """Stage the new state; it becomes durable when the session exits cleanly."""


class ProgressRepository(Protocol):
  """Repository contract for per-job progress records."""

  def session(self, job_id: str) -> AbstractAsyncContextManager[ProgressSession]:
    """Open an exclusive session on one job's record."""

  async def get(self, job_id: str) -> ProgressState | None:
    """Read the current state without taking the write lock."""
