from __future__ import annotations

from typing import Protocol

from app.jobs.models import QueueJob

PROCESS_MESSAGE_PATH = "/internal/tasks/process-message"
TASK_SECRET_HEADER = "X-Certforge-Task-Secret"


class QuestionQueue(Protocol):
  """Interface for enqueuing pipeline messages."""

  async def send_batch(self, jobs: list[QueueJob]) -> None:
    """Enqueue every message; delivery is at-least-once."""
    ...
