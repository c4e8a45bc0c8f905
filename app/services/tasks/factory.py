from __future__ import annotations

from app.config import Settings
from app.services.tasks.interface import QuestionQueue


def get_question_queue(settings: Settings) -> QuestionQueue:
  """Factory to get the configured message queue."""
  if settings.task_service_provider == "gcp":
    from app.services.tasks.gcp import CloudTasksEnqueuer

    return CloudTasksEnqueuer(settings)

  from app.services.tasks.local import LocalHttpEnqueuer

  return LocalHttpEnqueuer(settings)
