from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient

from app.jobs.pipeline import build_handler_registry, get_handler_registry, get_progress_aggregator, get_queue
from app.main import app
from app.storage.factory import _get_catalog_repo, _get_questions_repo

@pytest.fixture
def api_headers() -> dict[str, str]:
  return {"authorization": "Bearer test-api-token"}


@pytest.fixture
def task_headers() -> dict[str, str]:
  return {"X-Certforge-Task-Secret": "test-task-secret", "content-type": "application/json"}


@pytest.fixture
def chat_client(chat_client_cls, pipeline_responder):
  return chat_client_cls(responder=pipeline_responder)


@pytest.fixture
def registry(progress, queue, chat_client, research_cache, catalog, settings):
  return build_handler_registry(progress=progress, queue=queue, client=chat_client, cache=research_cache, catalog=catalog, settings=settings)


@pytest.fixture
async def api_client(progress, queue, catalog, questions_repo, registry) -> AsyncIterator[AsyncClient]:
  """HTTP client against the app with in-memory collaborators wired in."""
  app.dependency_overrides[get_progress_aggregator] = lambda: progress
  app.dependency_overrides[get_queue] = lambda: queue
  app.dependency_overrides[_get_catalog_repo] = lambda: catalog
  app.dependency_overrides[_get_questions_repo] = lambda: questions_repo
  app.dependency_overrides[get_handler_registry] = lambda: registry
  try:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
      yield client
  finally:
    app.dependency_overrides.clear()
