"""Process-wide wiring of the aggregator, queue, and message handlers."""

from __future__ import annotations

from functools import lru_cache

from app.ai.providers.base import ChatClient
from app.ai.providers.openrouter import OpenRouterClient
from app.config import Settings, get_settings
from app.jobs.dispatch import MessageHandlerRegistry
from app.jobs.handlers import GenerationJobHandler, ObjectiveJobHandler
from app.jobs.progress import ProgressAggregator
from app.services.tasks.factory import get_question_queue
from app.services.tasks.interface import QuestionQueue
from app.storage.catalog_repo import CatalogRepository
from app.storage.factory import _get_catalog_repo, _get_progress_repo, _get_research_cache
from app.storage.research_cache import ResearchCache


@lru_cache(maxsize=1)
def get_progress_aggregator() -> ProgressAggregator:
  """Return the single aggregator of this process so per-job locks are shared."""
  return ProgressAggregator(_get_progress_repo())


@lru_cache(maxsize=1)
def get_chat_client() -> ChatClient:
  return OpenRouterClient.from_settings(get_settings())


@lru_cache(maxsize=1)
def get_queue() -> QuestionQueue:
  return get_question_queue(get_settings())


def build_handler_registry(*, progress: ProgressAggregator, queue: QuestionQueue, client: ChatClient, cache: ResearchCache, catalog: CatalogRepository, settings: Settings) -> MessageHandlerRegistry:
  """Map each message type to its handler."""
  return MessageHandlerRegistry(
    {
      "objective": ObjectiveJobHandler(progress=progress, queue=queue, client=client, cache=cache, catalog=catalog, settings=settings),
      "generate": GenerationJobHandler(progress=progress, client=client, settings=settings),
    }
  )


@lru_cache(maxsize=1)
def get_handler_registry() -> MessageHandlerRegistry:
  return build_handler_registry(progress=get_progress_aggregator(), queue=get_queue(), client=get_chat_client(), cache=_get_research_cache(), catalog=_get_catalog_repo(), settings=get_settings())
