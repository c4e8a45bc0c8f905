"""Validator agent: structural checks, semantic review, and one repair pass."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

import msgspec

from app.ai.agents.base import BaseAgent, UsageSink
from app.ai.agents.prompts import REPAIR_SYSTEM_PROMPT, REVIEW_SYSTEM_PROMPT, render_repair_prompt
from app.ai.decoding import decode_llm_json
from app.ai.pipeline.contracts import ANSWER_LETTERS, DIFFICULTIES, GeneratedQuestion, QuestionPatch, ResearchResult, SemanticReview, ValidationResult, has_option_label, strip_option_label
from app.ai.providers.base import ChatClient
from app.core.errors import GenerationError

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 5
REPAIR_SCORE_THRESHOLD = 50
CRITICAL_SUGGESTION = "Fix critical formatting issues before AI validation"


@dataclass
class StructuralReport:
  critical: list[str] = field(default_factory=list)
  warnings: list[str] = field(default_factory=list)


def _normalize_option(option: str) -> str:
  return " ".join(strip_option_label(option).split()).lower()


def run_structural_checks(question: GeneratedQuestion) -> StructuralReport:
  """Check formatting rules that need no model call."""
  report = StructuralReport()

  text = question.question or ""
  if len(text.strip()) < 10:
    report.critical.append("Question text is too short or missing")
  if len(text) > 500:
    report.warnings.append("Question text may be too long")

  options = question.options or []
  if len(options) != 4:
    report.critical.append("Question must have exactly 4 options")
  else:
    for index, option in enumerate(options):
      letter = ANSWER_LETTERS[index]
      if not option or len(option.strip()) < 2:
        report.critical.append(f"Option {letter} is too short or missing")
      if not has_option_label(option, letter):
        report.warnings.append(f"Option {index + 1} should start with {letter})")
    if len({_normalize_option(option or "") for option in options}) < 4:
      report.critical.append("Duplicate options detected")

  if question.correct_answer not in ANSWER_LETTERS:
    report.critical.append("Correct answer must be A, B, C, or D")

  if not question.explanation or len(question.explanation.strip()) < 20:
    report.critical.append("Explanation is too short or missing")

  if question.difficulty not in DIFFICULTIES:
    report.warnings.append("Invalid difficulty level")

  return report


def calculate_score(report: StructuralReport, review: SemanticReview) -> int:
  score = 100
  score -= 20 * len(report.critical)
  score -= 5 * len(report.warnings)
  score -= 10 * len(review.issues)
  if not review.is_valid:
    score -= 20
  return max(0, min(100, score))


class ValidatorAgent(BaseAgent):
  """Validate generated questions and attempt a single repair."""

  name = "Validator"

  def __init__(self, *, client: ChatClient, model: str, use: UsageSink = None, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
    super().__init__(client=client, model=model, use=use)
    self._batch_size = batch_size

  async def validate(self, question: GeneratedQuestion, research: ResearchResult) -> ValidationResult:
    report = run_structural_checks(question)
    if report.critical:
      logger.info("Question %s failed structural checks: %s", question.id, report.critical)
      return ValidationResult(question_id=question.id, is_valid=False, issues=report.critical, suggestions=[CRITICAL_SUGGESTION], validation_score=0)

    review = await self._review(question)
    issues = [*report.warnings, *review.issues]
    is_valid = review.is_valid and not issues
    score = calculate_score(report, review)

    fixed_question = None
    if not is_valid and score > REPAIR_SCORE_THRESHOLD:
      fixed_question = await self._attempt_fix(question, issues, review.suggestions)

    return ValidationResult(question_id=question.id, is_valid=is_valid, issues=issues, suggestions=review.suggestions, validation_score=score, fixed_question=fixed_question)

  async def validate_batch(self, questions: list[GeneratedQuestion], research: ResearchResult) -> list[ValidationResult]:
    """Validate in groups, awaiting each group before starting the next."""
    results: list[ValidationResult] = []
    for start in range(0, len(questions), self._batch_size):
      group = questions[start : start + self._batch_size]
      results.extend(await asyncio.gather(*(self.validate(question, research) for question in group)))
    return results

  async def _review(self, question: GeneratedQuestion) -> SemanticReview:
    messages = [{"role": "system", "content": REVIEW_SYSTEM_PROMPT}, {"role": "user", "content": msgspec.json.encode(question).decode()}]
    response = await self._complete(messages, purpose="validate", temperature=0.3, max_tokens=1000)
    return decode_llm_json(response.content, SemanticReview)

  async def _attempt_fix(self, question: GeneratedQuestion, issues: list[str], suggestions: list[str]) -> GeneratedQuestion | None:
    messages = [{"role": "system", "content": REPAIR_SYSTEM_PROMPT}, {"role": "user", "content": render_repair_prompt(question, issues, suggestions)}]
    try:
      response = await self._complete(messages, purpose="repair", temperature=0.3, max_tokens=1500)
      patch = decode_llm_json(response.content, QuestionPatch)
    except GenerationError:
      logger.warning("Failed to fix question %s", question.id, exc_info=True)
      return None

    changes = {name: value for name in patch.__struct_fields__ if (value := getattr(patch, name)) is not None}
    fixed_at = datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    metadata = msgspec.structs.replace(question.metadata, was_fixed=True, fixed_at=fixed_at)
    logger.info("Repaired question %s (fields: %s)", question.id, sorted(changes))
    return msgspec.structs.replace(question, **changes, metadata=metadata)
