"""Factories for the Postgres-backed repositories."""

from __future__ import annotations

from functools import lru_cache

from app.storage.catalog_repo import CatalogRepository
from app.storage.progress_repo import ProgressRepository
from app.storage.questions_repo import QuestionsRepository
from app.storage.research_cache import ResearchCache


@lru_cache(maxsize=1)
def _get_progress_repo() -> ProgressRepository:
  from app.storage.postgres_progress_repo import PostgresProgressRepository

  return PostgresProgressRepository()


@lru_cache(maxsize=1)
def _get_catalog_repo() -> CatalogRepository:
  from app.storage.postgres_catalog_repo import PostgresCatalogRepository

  return PostgresCatalogRepository()


@lru_cache(maxsize=1)
def _get_questions_repo() -> QuestionsRepository:
  from app.storage.postgres_questions_repo import PostgresQuestionsRepository

  return PostgresQuestionsRepository()


@lru_cache(maxsize=1)
def _get_research_cache() -> ResearchCache:
  from app.storage.postgres_research_cache import PostgresResearchCache

  return PostgresResearchCache()
