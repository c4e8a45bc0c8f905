"""Persist a job's accepted questions into the question bank."""

from __future__ import annotations

import logging

import msgspec

from app.ai.pipeline.contracts import GeneratedQuestion, option_letter, strip_option_label
from app.core.errors import NoValidQuestionsError
from app.jobs.progress import ProgressAggregator
from app.storage.questions_repo import QuestionRecord, QuestionsRepository
from app.utils.ids import generate_question_id

logger = logging.getLogger(__name__)

QUESTION_TYPE = "multiple_choice"


def to_question_record(question: GeneratedQuestion, exam_id: str) -> QuestionRecord:
  return QuestionRecord(
    id=generate_question_id(),
    exam_id=exam_id,
    objective_id=question.objective_id,
    question_text=question.question,
    question_type=QUESTION_TYPE,
    options=[strip_option_label(option, option_letter(index)) for index, option in enumerate(question.options)],
    correct_answer=question.correct_answer,
    explanation=question.explanation,
    difficulty=question.difficulty,
    metadata=msgspec.to_builtins(question.metadata),
  )


async def save_questions(*, progress: ProgressAggregator, questions_repo: QuestionsRepository, job_id: str, exam_id: str) -> list[str]:
  """Insert every valid question of a job; returns the new question ids."""
  questions, count = await progress.get_valid_questions(job_id)
  if count == 0:
    raise NoValidQuestionsError("No valid questions to save")

  records = [to_question_record(question, exam_id) for question in questions]
  await questions_repo.insert_many(records)
  logger.info("Saved %d questions from job %s into exam %s", len(records), job_id, exam_id)
  return [record.id for record in records]
