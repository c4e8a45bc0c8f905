from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from app.config import RESEARCH_CACHE_TTL_SECONDS, get_settings


@pytest.fixture(autouse=True)
def _clear_settings_cache():
  get_settings.cache_clear()
  yield
  get_settings.cache_clear()


def test_defaults() -> None:
  with patch.dict(os.environ, {"CERTFORGE_ALLOWED_ORIGINS": "http://localhost:3000"}, clear=True):
    settings = get_settings()

  assert settings.allowed_origins == ("http://localhost:3000",)
  assert settings.research_cache_ttl_seconds == RESEARCH_CACHE_TTL_SECONDS
  assert settings.generation_backoff_seconds == 2.0
  assert settings.validation_batch_size == 5
  assert settings.task_service_provider == "local-http"
  assert settings.openrouter_base_url == "https://openrouter.ai/api/v1"
  assert settings.pg_dsn is None
  assert settings.api_token is None


def test_blank_optional_values_are_none() -> None:
  env = {"CERTFORGE_ALLOWED_ORIGINS": "http://a.test, http://b.test", "CERTFORGE_TASK_SECRET": "   ", "DATABASE_URL": "postgresql://db/certforge"}
  with patch.dict(os.environ, env, clear=True):
    settings = get_settings()

  assert settings.allowed_origins == ("http://a.test", "http://b.test")
  assert settings.task_secret is None
  assert settings.pg_dsn == "postgresql://db/certforge"


@pytest.mark.parametrize(
  "env",
  [
    {},
    {"CERTFORGE_ALLOWED_ORIGINS": "*"},
    {"CERTFORGE_ALLOWED_ORIGINS": "http://localhost:3000", "CERTFORGE_VALIDATION_BATCH_SIZE": "0"},
    {"CERTFORGE_ALLOWED_ORIGINS": "http://localhost:3000", "CERTFORGE_GENERATION_BACKOFF_SECONDS": "-1"},
  ],
)
def test_invalid_configuration_raises(env: dict[str, str]) -> None:
  with patch.dict(os.environ, env, clear=True), pytest.raises(ValueError):
    get_settings()
