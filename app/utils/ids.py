"""Identifier utilities."""

from __future__ import annotations

import secrets
import string

_ALPHABET = string.ascii_letters + string.digits + "_-"


def generate_nanoid(size: int = 21) -> str:
  """Return a URL-safe random token in the nanoid alphabet."""
  return "".join(secrets.choice(_ALPHABET) for _ in range(size))


def generate_job_id() -> str:
  """Return a new generation job identifier."""
  return f"job_{generate_nanoid()}"


def generate_question_id() -> str:
  """Return a new question identifier."""
  return f"q_{generate_nanoid()}"
