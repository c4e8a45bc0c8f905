"""Shared data contracts for the question generation pipeline."""

from __future__ import annotations

import re
from typing import Literal

import msgspec

Difficulty = Literal["easy", "medium", "hard"]
RequestedDifficulty = Literal["easy", "medium", "hard", "mixed"]
DIFFICULTIES: tuple[Difficulty, ...] = ("easy", "medium", "hard")
ANSWER_LETTERS: tuple[str, ...] = ("A", "B", "C", "D")

_ANY_LABEL_RE = re.compile(r"^[A-D]\)\s*")
_LETTER_LABEL_RES = {letter: re.compile(rf"^{letter}\)\s*") for letter in ANSWER_LETTERS}


def option_letter(index: int) -> str | None:
  return ANSWER_LETTERS[index] if 0 <= index < len(ANSWER_LETTERS) else None


def has_option_label(option: str, letter: str) -> bool:
  """True when ``option`` starts with ``letter)``."""
  return (option or "").startswith(f"{letter})")


def strip_option_label(option: str, letter: str | None = None) -> str:
  """Drop a leading "A) " style label; only ``letter``'s label when given."""
  pattern = _ANY_LABEL_RE if letter is None else _LETTER_LABEL_RES[letter]
  return pattern.sub("", option or "", count=1)


class DifficultyGuidelines(msgspec.Struct, frozen=True):
  """What makes a question easy, medium, or hard for one objective."""

  easy: str
  medium: str
  hard: str

  def for_level(self, difficulty: str) -> str:
    if difficulty == "mixed":
      return "Mix of easy, medium, and hard questions"
    return getattr(self, difficulty, self.medium)


class ResearchResult(msgspec.Struct, frozen=True, rename="camel"):
  """Research brief for a single objective. Immutable once cached."""

  objective_id: str
  objective_title: str
  objective_description: str
  exam_context: str
  key_topics: list[str]
  practical_applications: list[str]
  common_misconceptions: list[str]
  difficulty_guidelines: DifficultyGuidelines


class QuestionMetadata(msgspec.Struct, frozen=True, rename="camel"):
  """Generation provenance attached to every question."""

  generated_at: str
  model: str
  research_based: bool = True
  was_fixed: bool = False
  fixed_at: str | None = None


class GeneratedQuestion(msgspec.Struct, frozen=True, rename="camel"):
  """Candidate multiple-choice question produced by the generator."""

  id: str
  question: str
  options: list[str]
  correct_answer: str
  explanation: str
  difficulty: str
  objective_id: str
  objective: str
  metadata: QuestionMetadata


class ValidationResult(msgspec.Struct, frozen=True, rename="camel"):
  """Outcome of validating one question. Created once and never mutated."""

  question_id: str
  is_valid: bool
  issues: list[str]
  suggestions: list[str]
  validation_score: int
  fixed_question: GeneratedQuestion | None = None


# LLM response schemas. Every model reply is decoded into one of these before use.


class ResearchBrief(msgspec.Struct, rename="camel"):
  """Research payload requested from the LLM."""

  key_topics: list[str]
  practical_applications: list[str]
  common_misconceptions: list[str]
  difficulty_guidelines: DifficultyGuidelines


class QuestionDraft(msgspec.Struct, rename="camel"):
  """One question as returned by the LLM before ids and metadata are attached."""

  question: str
  options: list[str]
  correct_answer: str
  explanation: str = ""
  difficulty: str | None = None


class QuestionEnvelope(msgspec.Struct):
  """The `{questions: [...]}` envelope returned by the generator prompt."""

  questions: list[QuestionDraft]


class SemanticReview(msgspec.Struct, rename="camel"):
  """LLM judgement of question quality."""

  is_valid: bool
  issues: list[str] = msgspec.field(default_factory=list)
  suggestions: list[str] = msgspec.field(default_factory=list)


class QuestionPatch(msgspec.Struct, rename="camel"):
  """Repaired question fields. Missing fields keep the original value."""

  question: str | None = None
  options: list[str] | None = None
  correct_answer: str | None = None
  explanation: str | None = None
  difficulty: str | None = None
