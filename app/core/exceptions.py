import logging
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError

from app.core.errors import NoObjectivesError, NotFoundError, NotInitializedError, NoValidQuestionsError, PipelineError
from app.core.json import MsgspecJSONResponse

logger = logging.getLogger("uvicorn.error")

INTERNAL_ERROR_DETAIL = "Internal Server Error"


def _coerce_json_safe(value: Any) -> Any:
  """Convert values pydantic leaves in error contexts into JSON primitives."""
  match value:
    case None | bool() | int() | float() | str():
      return value
    case dict():
      return {str(key): _coerce_json_safe(item) for key, item in value.items()}
    case list() | tuple() | set():
      return [_coerce_json_safe(item) for item in value]
    case BaseException():
      message = str(value)
      return f"{type(value).__name__}: {message}" if message else type(value).__name__
    case _:
      return str(value)


def _sanitize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
  """Drop raw ``input`` payloads, including those nested in ``ctx``."""
  sanitized: list[dict[str, Any]] = []
  for error in errors:
    scrubbed = {key: value for key, value in error.items() if key != "input"}
    if isinstance(scrubbed.get("ctx"), dict):
      scrubbed["ctx"] = {key: value for key, value in scrubbed["ctx"].items() if key != "input"}
    sanitized.append(_coerce_json_safe(scrubbed))
  return sanitized


def _pipeline_status(exc: PipelineError) -> int:
  if isinstance(exc, NotFoundError):
    return status.HTTP_404_NOT_FOUND
  if isinstance(exc, NoObjectivesError | NoValidQuestionsError | NotInitializedError):
    return status.HTTP_400_BAD_REQUEST
  return status.HTTP_500_INTERNAL_SERVER_ERROR


def _request_id(request: Request) -> str | None:
  return getattr(request.state, "request_id", None)


def _respond(request: Request, status_code: int, detail: Any, headers: dict[str, str] | None = None) -> MsgspecJSONResponse:
  """Render the ``{detail, requestId}`` error body."""
  payload: dict[str, Any] = {"detail": detail}
  # The request id lets callers quote a failure that can be found in the logs.
  request_id = _request_id(request)
  if request_id:
    payload["requestId"] = request_id
  return MsgspecJSONResponse(status_code=status_code, content=payload, headers=headers)


async def global_exception_handler(request: Request, exc: Exception) -> MsgspecJSONResponse:
  """Answer unhandled errors with an opaque 500."""
  logger.error("Unhandled exception request_id=%s path=%s error_type=%s", _request_id(request), request.url.path, type(exc).__name__, exc_info=True)
  return _respond(request, status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_DETAIL)


async def pipeline_exception_handler(request: Request, exc: PipelineError) -> MsgspecJSONResponse:
  """Map pipeline errors to client-facing status codes."""
  status_code = _pipeline_status(exc)
  if status_code >= 500:
    # Generation failures may echo provider output.
    logger.error("Pipeline failure request_id=%s path=%s error_type=%s", _request_id(request), request.url.path, type(exc).__name__, exc_info=True)
    return _respond(request, status_code, INTERNAL_ERROR_DETAIL)

  logger.info("Pipeline error request_id=%s path=%s status_code=%s detail=%s", _request_id(request), request.url.path, status_code, exc)
  return _respond(request, status_code, str(exc))


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> MsgspecJSONResponse:
  errors = _sanitize_validation_errors(exc.errors())
  logger.warning("Request validation failed request_id=%s path=%s method=%s errors=%s", _request_id(request), request.url.path, request.method, errors)
  return _respond(request, status.HTTP_422_UNPROCESSABLE_ENTITY, errors)


async def http_exception_handler(request: Request, exc: HTTPException) -> MsgspecJSONResponse:
  """Render HTTPExceptions; 5xx details stay in the logs."""
  from app.config import get_settings

  if exc.status_code >= 500:
    logger.error("HTTPException request_id=%s path=%s status_code=%s detail=%s", _request_id(request), request.url.path, exc.status_code, exc.detail, exc_info=True)
    return _respond(request, exc.status_code, INTERNAL_ERROR_DETAIL, exc.headers)

  # 4xx logging is opt-in; auth probes would otherwise flood the logs.
  if get_settings().log_http_4xx:
    logger.warning("HTTPException request_id=%s path=%s status_code=%s detail=%s", _request_id(request), request.url.path, exc.status_code, exc.detail)
  return _respond(request, exc.status_code, exc.detail, exc.headers)
