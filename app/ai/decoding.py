"""Schema-validated decoding of LLM replies."""

from __future__ import annotations

import re
from typing import TypeVar

import msgspec

from app.core.errors import MalformedResponseError

T = TypeVar("T")

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")


def strip_json_fences(raw: str) -> str:
  """Remove a surrounding markdown code fence, if any."""
  return _FENCE_RE.sub("", raw.strip()).strip()


def decode_llm_json(content: str, type: type[T]) -> T:  # noqa: A002
  """Decode an LLM reply into ``type``, tolerating fences and surrounding prose.

  Raises MalformedResponseError when no candidate payload matches the schema.
  """
  cleaned = strip_json_fences(content)
  candidates = [cleaned]

  # Fall back to the first balanced object when the model wraps JSON in prose.
  block = _extract_json_block(cleaned)
  if block is not None and block != cleaned:
    candidates.append(block)

  # Trailing commas are the most common syntax slip in model output.
  candidates.extend(_TRAILING_COMMA_RE.sub(r"\1", candidate) for candidate in list(candidates))

  last_error: msgspec.MsgspecError | None = None
  for candidate in candidates:
    try:
      return msgspec.json.decode(candidate, type=type)
    except msgspec.ValidationError as exc:
      # The JSON parsed but does not match the schema; other candidates won't either.
      raise MalformedResponseError(f"Response did not match {type.__name__}: {exc}") from exc
    except msgspec.DecodeError as exc:
      last_error = exc

  raise MalformedResponseError(f"Response is not valid JSON: {last_error}")


def _extract_json_block(raw: str) -> str | None:
  """Locate the first balanced JSON object for recovery parsing."""
  start_index: int | None = None
  depth = 0
  in_string = False
  escape = False

  # Scan the text for a balanced JSON payload while honoring string escapes.
  for index, char in enumerate(raw):
    if start_index is None:
      if char == "{":
        start_index = index
        depth = 1
      continue

    if in_string:
      if escape:
        escape = False
      elif char == "\\":
        escape = True
      elif char == '"':
        in_string = False
      continue

    if char == '"':
      in_string = True
    elif char in "{[":
      depth += 1
    elif char in "}]":
      depth -= 1
      if depth == 0:
        return raw[start_index : index + 1]

  return None
