import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.core.database import dispose_engine
from app.core.logging import _initialize_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Set up logging on startup and release database connections on shutdown."""
  from app.config import get_settings

  settings = get_settings()
  logger = logging.getLogger("app.core.lifespan")

  _initialize_logging(settings)
  logger.info("Startup complete - environment=%s task_provider=%s default_model=%s", settings.environment, settings.task_service_provider, settings.default_model)
  if not settings.pg_dsn:
    logger.warning("CERTFORGE_PG_DSN is not set; database-backed endpoints will fail.")
  if not settings.openrouter_api_key:
    logger.warning("OPENROUTER_API_KEY is not set; queue handlers cannot call the LLM.")

  try:
    yield
  finally:
    await dispose_engine()
    logger.info("Shutdown complete.")
