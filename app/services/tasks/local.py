from __future__ import annotations

import logging
from urllib.parse import urlparse

import httpx

from app.config import Settings
from app.jobs.models import QueueJob, encode_queue_job
from app.services.tasks.interface import PROCESS_MESSAGE_PATH, TASK_SECRET_HEADER, QuestionQueue

logger = logging.getLogger(__name__)

_LOOPBACK_HOSTS = frozenset({"localhost", "127.0.0.1", "::1", "0.0.0.0"})
# Handlers run to completion inside the request, as they would under Cloud Tasks.
_DISPATCH_TIMEOUT_SECONDS = 1800.0


class LocalHttpEnqueuer(QuestionQueue):
  """Delivers messages to the task endpoint over HTTP, standing in for Cloud Tasks in development."""

  def __init__(self, settings: Settings) -> None:
    self.settings = settings

  def _client_for(self, base_url: str) -> httpx.AsyncClient:
    # Loopback targets are this very process; call the app in-process instead of the network.
    if (urlparse(base_url).hostname or "").lower() in _LOOPBACK_HOSTS:
      from app.main import app

      return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=base_url, trust_env=False)
    return httpx.AsyncClient(trust_env=False)

  async def send_batch(self, jobs: list[QueueJob]) -> None:
    """POST each message to the task endpoint, in order."""
    base_url = self.settings.base_url
    if not base_url:
      raise RuntimeError("Base URL not configured, strictly required for LocalHttpEnqueuer.")
    if not self.settings.task_secret:
      raise RuntimeError("Task secret not configured.")

    url = f"{base_url.rstrip('/')}{PROCESS_MESSAGE_PATH}"
    headers = {TASK_SECRET_HEADER: self.settings.task_secret, "content-type": "application/json"}

    async with self._client_for(base_url) as client:
      for job in jobs:
        logger.info("Dispatching %s message for job %s locally to %s", job.__struct_config__.tag, job.job_id, url)
        try:
          response = await client.post(url, content=encode_queue_job(job), headers=headers, timeout=_DISPATCH_TIMEOUT_SECONDS)
        except httpx.RequestError as e:
          logger.error("Failed to dispatch local task for job %s: %s", job.job_id, e)
          raise
        # No local redelivery exists; the consumer has already recorded the failure on the job.
        if response.is_error:
          logger.error("Local task dispatch returned %s for job %s: %s", response.status_code, job.job_id, response.text)
