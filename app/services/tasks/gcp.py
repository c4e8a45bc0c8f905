from __future__ import annotations

import logging

from google.cloud import tasks_v2

from app.config import Settings
from app.jobs.models import QueueJob, encode_queue_job
from app.services.tasks.interface import PROCESS_MESSAGE_PATH, TASK_SECRET_HEADER, QuestionQueue

logger = logging.getLogger(__name__)


class CloudTasksEnqueuer(QuestionQueue):
  """Enqueues messages to Google Cloud Tasks. Non-2xx responses trigger redelivery."""

  def __init__(self, settings: Settings, client: tasks_v2.CloudTasksAsyncClient | None = None) -> None:
    if not settings.cloud_tasks_queue_path:
      raise RuntimeError("Cloud Tasks queue path not configured.")
    if not settings.base_url:
      raise RuntimeError("Base URL not configured.")
    if not settings.task_secret:
      raise RuntimeError("Task secret not configured.")
    self.settings = settings
    self.client = client or tasks_v2.CloudTasksAsyncClient()

  def _build_task(self, job: QueueJob) -> dict:
    url = f"{self.settings.base_url.rstrip('/')}{PROCESS_MESSAGE_PATH}"
    http_request = {
      "http_method": tasks_v2.HttpMethod.POST,
      "url": url,
      "headers": {"Content-Type": "application/json", TASK_SECRET_HEADER: self.settings.task_secret},
      "body": encode_queue_job(job),
    }
    # Cloud Run requires an OIDC identity when the service is not public.
    if self.settings.cloud_run_invoker_service_account:
      http_request["oidc_token"] = {"service_account_email": self.settings.cloud_run_invoker_service_account, "audience": self.settings.base_url}
    return {"http_request": http_request}

  async def send_batch(self, jobs: list[QueueJob]) -> None:
    """Create one HTTP task per message."""
    parent = self.settings.cloud_tasks_queue_path
    for job in jobs:
      try:
        response = await self.client.create_task(request={"parent": parent, "task": self._build_task(job)})
      except Exception:
        logger.error("Failed to enqueue %s message for job %s", job.__struct_config__.tag, job.job_id, exc_info=True)
        raise
      logger.info("Enqueued task %s for job %s", response.name, job.job_id)
