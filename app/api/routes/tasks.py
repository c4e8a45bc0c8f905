from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from app.api.deps import require_task_secret
from app.api.models import TaskAck
from app.jobs.dispatch import MessageHandlerRegistry, process_message
from app.jobs.pipeline import get_handler_registry

router = APIRouter(prefix="/tasks", tags=["tasks"], dependencies=[Depends(require_task_secret)])
logger = logging.getLogger(__name__)


@router.post("/process-message", status_code=status.HTTP_200_OK, response_model=TaskAck)
async def process_message_task(request: Request, registry: Annotated[MessageHandlerRegistry, Depends(get_handler_registry)]) -> TaskAck | JSONResponse:
  """
  Handler for Cloud Tasks (and local simulation).
  Runs the message to completion; a non-2xx answer makes the queue redeliver it.
  """
  payload = await request.body()
  try:
    outcome = await process_message(payload, registry)
  except Exception:
    logger.error("Task message failed; requesting redelivery", exc_info=True)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"status": "retry"})
  return TaskAck(status=outcome)
