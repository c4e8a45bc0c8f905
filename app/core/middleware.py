import logging
import time
import uuid
from typing import Any

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger("app.core.middleware")

REQUEST_ID_HEADER = "x-request-id"
_MAX_REQUEST_ID_LENGTH = 128


def _request_target(scope: Scope) -> str:
  """Path plus query string, read from the scope so request bodies stay untouched."""
  query = scope.get("query_string", b"").decode("latin-1")
  return f"{scope.get('path', '')}?{query}" if query else scope.get("path", "")


def _resolve_request_id(scope: Scope) -> str:
  """Reuse a caller-supplied id when it is a short printable token, else mint one."""
  candidate = (Headers(scope=scope).get(REQUEST_ID_HEADER) or "").strip()
  if candidate and len(candidate) <= _MAX_REQUEST_ID_LENGTH and candidate.isprintable():
    return candidate
  return str(uuid.uuid4())


class RequestLoggingMiddleware:
  """Tag every HTTP request with an id and log its outcome and latency."""

  def __init__(self, app: ASGIApp) -> None:
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    request_id = _resolve_request_id(scope)
    scope.setdefault("state", {})["request_id"] = request_id
    method = scope.get("method", "UNKNOWN")
    logger.info("Incoming request request_id=%s %s %s", request_id, method, _request_target(scope))

    started = time.perf_counter()
    response_status: dict[str, Any] = {"code": 0}

    async def send_with_request_id(message: Message) -> None:
      if message["type"] == "http.response.start":
        response_status["code"] = message.get("status", 0)
        headers = MutableHeaders(scope=message)
        headers.setdefault(REQUEST_ID_HEADER, request_id)
      await send(message)

    try:
      await self.app(scope, receive, send_with_request_id)
    finally:
      elapsed_ms = (time.perf_counter() - started) * 1000
      logger.info("Response request_id=%s status=%s (took %.2fms)", request_id, response_status["code"], elapsed_ms)
