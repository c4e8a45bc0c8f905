"""msgspec request decoding and response encoding for the question API."""

from __future__ import annotations

from typing import TypeVar

import msgspec
from fastapi import HTTPException, Request, status
from starlette.responses import Response

_encoder = msgspec.json.Encoder()

T = TypeVar("T", bound=msgspec.Struct)


async def decode_msgspec_request(request: Request, struct_type: type[T]) -> T:
  """Decode a JSON body into ``struct_type``; malformed or mismatched bodies are a 400."""
  payload_bytes = await request.body()
  if not payload_bytes.strip():
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request body is required")
  try:
    return msgspec.json.decode(payload_bytes, type=struct_type)
  except msgspec.ValidationError as exc:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid {struct_type.__name__}: {exc}") from exc
  except msgspec.DecodeError as exc:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Malformed JSON body: {exc}") from exc


def encode_msgspec_response(payload: msgspec.Struct, *, status_code: int = 200) -> Response:
  return Response(content=_encoder.encode(payload), status_code=status_code, media_type="application/json")
