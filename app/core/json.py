"""Custom JSON handling."""

from __future__ import annotations

from typing import Any

import msgspec
from fastapi.responses import JSONResponse


class MsgspecJSONResponse(JSONResponse):
  """JSONResponse that renders msgspec Structs and plain values with msgspec."""

  def render(self, content: Any) -> bytes:
    return msgspec.json.encode(content)
