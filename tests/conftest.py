"""Shared fixtures and in-memory collaborators for pipeline tests."""

from __future__ import annotations

import asyncio
import os
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import replace

os.environ.setdefault("CERTFORGE_ALLOWED_ORIGINS", "http://localhost:3000")
os.environ.setdefault("CERTFORGE_API_TOKEN", "test-api-token")
os.environ.setdefault("CERTFORGE_TASK_SECRET", "test-task-secret")

import msgspec  # noqa: E402
import pytest  # noqa: E402

from app.ai.agents.prompts import GENERATOR_SYSTEM_PROMPT, REPAIR_SYSTEM_PROMPT, RESEARCH_SYSTEM_PROMPT, REVIEW_SYSTEM_PROMPT  # noqa: E402
from app.ai.pipeline.contracts import DifficultyGuidelines, GeneratedQuestion, QuestionMetadata, ResearchResult  # noqa: E402
from app.ai.providers.base import ChatMessage, ChatResult  # noqa: E402
from app.config import Settings, get_settings  # noqa: E402
from app.jobs.dispatch import MessageHandlerRegistry, process_message  # noqa: E402
from app.jobs.models import ProgressState, QueueJob, encode_queue_job  # noqa: E402
from app.jobs.progress import ProgressAggregator  # noqa: E402
from app.storage.catalog_repo import ExamRecord, ObjectiveRecord  # noqa: E402
from app.storage.questions_repo import QuestionRecord  # noqa: E402

Responder = Callable[[list[ChatMessage], str], str]


@pytest.fixture
def anyio_backend() -> str:
  return "asyncio"


class _InMemoryProgressSession:
  def __init__(self, repo: InMemoryProgressRepo, job_id: str) -> None:
    self._repo = repo
    self._job_id = job_id
    self.pending: bytes | None = None

  async def load(self) -> ProgressState | None:
    # Yield so unsynchronized callers would interleave between load and save.
    await asyncio.sleep(0)
    raw = self._repo.rows.get(self._job_id)
    return None if raw is None else msgspec.json.decode(raw, type=ProgressState)

  async def save(self, state: ProgressState) -> None:
    await asyncio.sleep(0)
    self.pending = msgspec.json.encode(state)


class InMemoryProgressRepo:
  """Stores serialized progress rows; writes land only when a session exits cleanly."""

  def __init__(self) -> None:
    self.rows: dict[str, bytes] = {}

  @asynccontextmanager
  async def session(self, job_id: str) -> AsyncIterator[_InMemoryProgressSession]:
    session = _InMemoryProgressSession(self, job_id)
    yield session
    if session.pending is not None:
      self.rows[job_id] = session.pending

  async def get(self, job_id: str) -> ProgressState | None:
    raw = self.rows.get(job_id)
    return None if raw is None else msgspec.json.decode(raw, type=ProgressState)


class InMemoryResearchCache:
  def __init__(self) -> None:
    self.entries: dict[str, ResearchResult] = {}
    self.ttls: dict[str, int] = {}

  async def get(self, objective_id: str) -> ResearchResult | None:
    return self.entries.get(f"research:{objective_id}")

  async def put(self, result: ResearchResult, *, ttl_seconds: int) -> None:
    key = f"research:{result.objective_id}"
    self.entries[key] = result
    self.ttls[key] = ttl_seconds


class InMemoryCatalog:
  def __init__(self, exams: list[ExamRecord] | None = None, objectives: list[ObjectiveRecord] | None = None) -> None:
    self.exams = {exam.id: exam for exam in exams or []}
    self.objectives = {objective.id: objective for objective in objectives or []}

  async def get_exam(self, exam_id: str) -> ExamRecord | None:
    return self.exams.get(exam_id)

  async def get_objective(self, objective_id: str) -> ObjectiveRecord | None:
    return self.objectives.get(objective_id)

  async def list_objectives(self, exam_id: str, objective_ids: list[str] | None = None) -> list[ObjectiveRecord]:
    matches = [objective for objective in self.objectives.values() if objective.exam_id == exam_id]
    if objective_ids:
      matches = [objective for objective in matches if objective.id in objective_ids]
    return matches


class InMemoryQuestionsRepo:
  def __init__(self) -> None:
    self.records: list[QuestionRecord] = []

  async def insert_many(self, records: list[QuestionRecord]) -> None:
    self.records.extend(records)


class RecordingQueue:
  """Queue double that records messages and optionally delivers them inline."""

  def __init__(self) -> None:
    self.sent: list[QueueJob] = []
    self.registry: MessageHandlerRegistry | None = None
    self.outcomes: list[str] = []

  async def send_batch(self, jobs: list[QueueJob]) -> None:
    self.sent.extend(jobs)
    if self.registry is None:
      return
    for job in jobs:
      self.outcomes.append(await process_message(encode_queue_job(job), self.registry))


class ScriptedChatClient:
  """Chat client double answering from a responder function or a fixed script."""

  def __init__(self, responder: Responder | None = None, script: list[str | Exception] | None = None, usage: dict[str, int] | None = None) -> None:
    self._responder = responder
    self._script = list(script or [])
    self._usage = usage
    self.calls: list[dict] = []

  async def chat(self, messages: list[ChatMessage], *, model: str, temperature: float, max_tokens: int) -> ChatResult:
    self.calls.append({"messages": messages, "model": model, "temperature": temperature, "max_tokens": max_tokens})
    if self._responder is not None:
      content = self._responder(messages, model)
    else:
      item = self._script.pop(0)
      if isinstance(item, Exception):
        raise item
      content = item
    return ChatResult(content=content, model=model, usage=self._usage)

  def calls_for(self, system_prompt: str) -> list[dict]:
    return [call for call in self.calls if call["messages"][0]["content"] == system_prompt]


RESEARCH_REPLY = msgspec.json.encode(
  {
    "keyTopics": ["Subnetting", "VLANs"],
    "practicalApplications": ["Segmenting an office network"],
    "commonMisconceptions": ["VLANs provide encryption"],
    "difficultyGuidelines": {"easy": "Recall facts", "medium": "Apply concepts", "hard": "Troubleshoot scenarios"},
  }
).decode()


def question_reply(difficulty: str = "medium") -> str:
  return msgspec.json.encode(
    {
      "questions": [
        {
          "question": "Which device separates broadcast domains by default?",
          "options": ["A) Hub", "B) Router", "C) Repeater", "D) Unmanaged switch"],
          "correctAnswer": "B",
          "explanation": "Routers do not forward broadcasts, so each interface is its own broadcast domain.",
          "difficulty": difficulty,
          "objective": "Networking",
        }
      ]
    }
  ).decode()


VALID_REVIEW = '{"isValid": true, "issues": [], "suggestions": []}'


def pipeline_responder(messages: list[ChatMessage], model: str) -> str:
  """Answer each agent's system prompt with a well-formed reply."""
  system = messages[0]["content"]
  if system == RESEARCH_SYSTEM_PROMPT:
    return RESEARCH_REPLY
  if system == GENERATOR_SYSTEM_PROMPT:
    return question_reply()
  if system == REVIEW_SYSTEM_PROMPT:
    return VALID_REVIEW
  if system == REPAIR_SYSTEM_PROMPT:
    return '{"explanation": "Routers terminate broadcast domains on every interface."}'
  raise AssertionError(f"Unexpected system prompt: {system[:40]}")


@pytest.fixture
def settings() -> Settings:
  return replace(get_settings(), default_model="anthropic/claude-3.5-haiku", research_model="anthropic/claude-3.5-haiku", validator_model="anthropic/claude-3.5-haiku")


@pytest.fixture
def progress_repo() -> InMemoryProgressRepo:
  return InMemoryProgressRepo()


@pytest.fixture
def progress(progress_repo: InMemoryProgressRepo) -> ProgressAggregator:
  return ProgressAggregator(progress_repo)


@pytest.fixture
def research_cache() -> InMemoryResearchCache:
  return InMemoryResearchCache()


@pytest.fixture
def catalog() -> InMemoryCatalog:
  exam = ExamRecord(id="exam-1", code="N10-009", name="CompTIA Network+")
  objectives = [
    ObjectiveRecord(id="obj-1", exam_id="exam-1", title="Networking Concepts", description="Explain networking concepts"),
    ObjectiveRecord(id="obj-2", exam_id="exam-1", title="Network Security", description=None),
    ObjectiveRecord(id="obj-other", exam_id="exam-2", title="Other exam objective"),
  ]
  return InMemoryCatalog(exams=[exam], objectives=objectives)


@pytest.fixture
def questions_repo() -> InMemoryQuestionsRepo:
  return InMemoryQuestionsRepo()


@pytest.fixture
def queue() -> RecordingQueue:
  return RecordingQueue()


@pytest.fixture
def research() -> ResearchResult:
  return ResearchResult(
    objective_id="obj-1",
    objective_title="Networking Concepts",
    objective_description="Explain networking concepts",
    exam_context="CompTIA Network+ (N10-009)",
    key_topics=["Subnetting", "VLANs"],
    practical_applications=["Segmenting an office network"],
    common_misconceptions=["VLANs provide encryption"],
    difficulty_guidelines=DifficultyGuidelines(easy="Recall facts", medium="Apply concepts", hard="Troubleshoot scenarios"),
  )


def make_question(question_id: str = "q_1", **overrides: object) -> GeneratedQuestion:
  fields: dict[str, object] = {
    "id": question_id,
    "question": "Which device separates broadcast domains by default?",
    "options": ["A) Hub", "B) Router", "C) Repeater", "D) Unmanaged switch"],
    "correct_answer": "B",
    "explanation": "Routers do not forward broadcasts, so each interface is its own broadcast domain.",
    "difficulty": "medium",
    "objective_id": "obj-1",
    "objective": "Networking Concepts",
    "metadata": QuestionMetadata(generated_at="2026-01-01T00:00:00.000Z", model="anthropic/claude-3.5-haiku"),
  }
  fields.update(overrides)
  return GeneratedQuestion(**fields)


@pytest.fixture(name="make_question")
def make_question_fixture() -> Callable[..., GeneratedQuestion]:
  return make_question


@pytest.fixture(name="pipeline_responder")
def pipeline_responder_fixture() -> Responder:
  return pipeline_responder


@pytest.fixture(name="question_reply")
def question_reply_fixture() -> Callable[[str], str]:
  return question_reply


@pytest.fixture(name="research_reply")
def research_reply_fixture() -> str:
  return RESEARCH_REPLY


@pytest.fixture(name="chat_client_cls")
def chat_client_cls_fixture() -> type[ScriptedChatClient]:
  return ScriptedChatClient
