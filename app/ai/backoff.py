"""Retry logic with exponential backoff."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from app.core.errors import GenerationExhaustedError

T = TypeVar("T")
Sleep = Callable[[float], Awaitable[None]]
logger = logging.getLogger(__name__)


async def retry_with_backoff(func: Callable[[], Awaitable[T]], *, max_attempts: int, base_seconds: float = 2.0, sleep: Sleep = asyncio.sleep, label: str = "operation") -> T:
  """
  Run ``func`` up to ``max_attempts`` times.

  After failed attempt ``n`` (1-based) waits ``base_seconds ** n`` seconds, except
  after the last attempt. Delays with the defaults: 2s, 4s.
  Raises GenerationExhaustedError carrying the last error.
  """
  if max_attempts < 1:
    raise ValueError("max_attempts must be >= 1")

  last_error: Exception | None = None
  for attempt in range(1, max_attempts + 1):
    try:
      return await func()
    except Exception as exc:  # noqa: BLE001
      last_error = exc
      if attempt == max_attempts:
        break
      delay = base_seconds**attempt
      logger.warning("%s attempt %d/%d failed: %s. Retrying in %ss...", label, attempt, max_attempts, exc, delay)
      await sleep(delay)

  logger.error("%s failed after %d attempts", label, max_attempts)
  raise GenerationExhaustedError(max_attempts, last_error) from last_error
