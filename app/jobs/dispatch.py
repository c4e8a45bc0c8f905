"""Dependency-injected queue message dispatch helpers."""

from __future__ import annotations

import logging
from typing import Literal, Protocol

import msgspec

from app.core.errors import TERMINAL_ERRORS
from app.jobs.models import QueueJob, decode_queue_job

logger = logging.getLogger(__name__)

DispatchOutcome = Literal["ok", "dropped"]


class MessageHandler(Protocol):
  """Handler contract for one queue message type."""

  async def handle(self, job: QueueJob) -> None:
    """Process one decoded message. Raising requests redelivery."""


class MessageHandlerRegistry:
  """Registry mapping message types to handlers."""

  def __init__(self, handlers: dict[str, MessageHandler]) -> None:
    self._handlers = handlers

  def resolve(self, message_type: str) -> MessageHandler | None:
    return self._handlers.get(message_type)


async def process_message(payload: bytes | str, registry: MessageHandlerRegistry) -> DispatchOutcome:
  """Decode a queue message and run its handler.

  Undecodable messages, unknown types and terminal errors are acknowledged as
  "dropped" so the queue stops redelivering them. Any other handler failure
  propagates so the queue retries.
  """
  try:
    job = decode_queue_job(payload)
  except msgspec.DecodeError as exc:
    logger.error("Dropping undecodable queue message: %s", exc)
    return "dropped"

  message_type = job.__struct_config__.tag
  handler = registry.resolve(message_type)
  if handler is None:
    logger.error("Dropping message for job %s: no handler for type %s", job.job_id, message_type)
    return "dropped"

  try:
    await handler.handle(job)
  except TERMINAL_ERRORS as exc:
    logger.warning("Dropping %s message for job %s: %s", message_type, job.job_id, exc)
    return "dropped"
  return "ok"
