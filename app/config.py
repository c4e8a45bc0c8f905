"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from app.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)

DEFAULT_GENERATOR_MODEL = "anthropic/claude-3.5-haiku"
RESEARCH_CACHE_TTL_SECONDS = 86400


@dataclass(frozen=True)
class Settings:
  """Typed settings for the question generation service."""

  environment: str
  allowed_origins: tuple[str, ...]
  debug: bool
  log_max_bytes: int
  log_backup_count: int
  log_http_4xx: bool
  pg_dsn: str | None
  pg_connect_timeout: int
  openrouter_api_key: str | None
  openrouter_base_url: str
  openrouter_http_referer: str | None
  openrouter_title: str | None
  default_model: str
  research_model: str
  validator_model: str
  research_cache_ttl_seconds: int
  generation_backoff_seconds: float
  validation_batch_size: int
  task_service_provider: str
  cloud_tasks_queue_path: str | None
  base_url: str | None
  task_secret: str | None
  api_token: str | None
  cloud_run_invoker_service_account: str | None


@dataclass(frozen=True)
class DatabaseSettings:
  """Typed settings for database connectivity."""

  debug: bool
  pg_dsn: str | None
  pg_connect_timeout: int


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  if not raw:
    raise ValueError("CERTFORGE_ALLOWED_ORIGINS must be set to one or more origins.")

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]

  if not origins:
    raise ValueError("CERTFORGE_ALLOWED_ORIGINS must include at least one origin.")

  if "*" in origins:
    raise ValueError("CERTFORGE_ALLOWED_ORIGINS must not include wildcard origins.")

  return tuple(origins)


_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _parse_bool(raw: str | None) -> bool:
  return raw is not None and raw.strip().lower() in _TRUTHY


def _positive_int(name: str, default: str) -> int:
  value = int(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")
  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("CERTFORGE_ENV", "development").lower()

  # Toggle verbose error output and diagnostics in non-production environments.
  debug = _parse_bool(os.getenv("CERTFORGE_DEBUG"))

  log_max_bytes = _positive_int("CERTFORGE_LOG_MAX_BYTES", "5242880")  # 5MB default
  log_backup_count = int(os.getenv("CERTFORGE_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("CERTFORGE_LOG_BACKUP_COUNT must be zero or a positive integer.")

  default_model = (os.getenv("CERTFORGE_DEFAULT_MODEL") or DEFAULT_GENERATOR_MODEL).strip()

  research_cache_ttl_seconds = _positive_int("CERTFORGE_RESEARCH_CACHE_TTL_SECONDS", str(RESEARCH_CACHE_TTL_SECONDS))
  validation_batch_size = _positive_int("CERTFORGE_VALIDATION_BATCH_SIZE", "5")

  generation_backoff_seconds = float(os.getenv("CERTFORGE_GENERATION_BACKOFF_SECONDS", "2"))
  if generation_backoff_seconds < 0:
    raise ValueError("CERTFORGE_GENERATION_BACKOFF_SECONDS must not be negative.")

  return Settings(
    environment=environment,
    allowed_origins=_parse_origins(os.getenv("CERTFORGE_ALLOWED_ORIGINS")),
    debug=debug,
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    log_http_4xx=_parse_bool(os.getenv("CERTFORGE_LOG_HTTP_4XX")),
    pg_dsn=os.getenv("CERTFORGE_PG_DSN") or os.getenv("DATABASE_URL"),
    pg_connect_timeout=_positive_int("CERTFORGE_PG_CONNECT_TIMEOUT", "5"),
    openrouter_api_key=_optional_str(os.getenv("OPENROUTER_API_KEY")),
    openrouter_base_url=(os.getenv("OPENROUTER_BASE_URL") or "https://openrouter.ai/api/v1").strip(),
    openrouter_http_referer=_optional_str(os.getenv("OPENROUTER_HTTP_REFERER")),
    openrouter_title=_optional_str(os.getenv("OPENROUTER_TITLE")),
    default_model=default_model,
    research_model=(os.getenv("CERTFORGE_RESEARCH_MODEL") or DEFAULT_GENERATOR_MODEL).strip(),
    validator_model=(os.getenv("CERTFORGE_VALIDATOR_MODEL") or DEFAULT_GENERATOR_MODEL).strip(),
    research_cache_ttl_seconds=research_cache_ttl_seconds,
    generation_backoff_seconds=generation_backoff_seconds,
    validation_batch_size=validation_batch_size,
    task_service_provider=os.getenv("CERTFORGE_TASK_SERVICE_PROVIDER", "local-http").lower(),
    cloud_tasks_queue_path=_optional_str(os.getenv("CERTFORGE_CLOUD_TASKS_QUEUE_PATH")),
    base_url=_optional_str(os.getenv("CERTFORGE_BASE_URL")),
    task_secret=_optional_str(os.getenv("CERTFORGE_TASK_SECRET")),
    api_token=_optional_str(os.getenv("CERTFORGE_API_TOKEN")),
    cloud_run_invoker_service_account=_optional_str(os.getenv("CERTFORGE_CLOUD_RUN_INVOKER_SERVICE_ACCOUNT")),
  )


@lru_cache(maxsize=1)
def get_database_settings() -> DatabaseSettings:
  """Database-only settings, so alembic runs without CORS or LLM configuration."""
  debug = _parse_bool(os.getenv("CERTFORGE_DEBUG"))
  pg_connect_timeout = _positive_int("CERTFORGE_PG_CONNECT_TIMEOUT", "5")
  pg_dsn = os.getenv("CERTFORGE_PG_DSN") or os.getenv("DATABASE_URL")
  return DatabaseSettings(debug=debug, pg_dsn=pg_dsn, pg_connect_timeout=pg_connect_timeout)


def _optional_str(raw: str | None) -> str | None:
  """Treat unset and blank variables alike."""
  value = (raw or "").strip()
  return value or None
