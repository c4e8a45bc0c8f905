"""Shared FastAPI dependencies for auth."""

from __future__ import annotations

import logging
import secrets
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from app.config import Settings, get_settings
from app.services.tasks.interface import TASK_SECRET_HEADER

logger = logging.getLogger(__name__)

_BEARER_PREFIX = "Bearer "


def _bearer_token(authorization: str | None) -> str | None:
  if not authorization or not authorization.startswith(_BEARER_PREFIX):
    return None
  token = authorization[len(_BEARER_PREFIX) :].strip()
  return token or None


async def require_api_token(settings: Annotated[Settings, Depends(get_settings)], authorization: Annotated[str | None, Header()] = None) -> None:
  """Reject /api requests without the configured bearer token."""
  if not settings.api_token:
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="API authentication is not configured.")
  token = _bearer_token(authorization)
  if token is None or not secrets.compare_digest(token, settings.api_token):
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized", headers={"WWW-Authenticate": "Bearer"})


async def require_task_secret(
  settings: Annotated[Settings, Depends(get_settings)],
  x_certforge_task_secret: Annotated[str | None, Header(alias=TASK_SECRET_HEADER)] = None,
) -> None:
  """Authenticate internal task deliveries with the shared secret header."""
  # Secure-by-default: internal task endpoints must be authenticated to avoid arbitrary job execution.
  if not settings.task_secret:
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Task authentication is not configured.")
  if not secrets.compare_digest(x_certforge_task_secret or "", settings.task_secret):
    logger.warning("Unauthorized access attempt to the task endpoint")
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid task secret.")
