from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, String, Text, func, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class Exam(Base):
  __tablename__ = "exams"

  id: Mapped[str] = mapped_column(String, primary_key=True)
  code: Mapped[str] = mapped_column(String, nullable=False)
  name: Mapped[str] = mapped_column(String, nullable=False)
  description: Mapped[str | None] = mapped_column(Text, nullable=True)
  is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))


class Objective(Base):
  __tablename__ = "objectives"

  id: Mapped[str] = mapped_column(String, primary_key=True)
  exam_id: Mapped[str] = mapped_column(ForeignKey("exams.id"), nullable=False, index=True)
  title: Mapped[str] = mapped_column(String, nullable=False)
  description: Mapped[str | None] = mapped_column(Text, nullable=True)
  weight: Mapped[float | None] = mapped_column(Float, nullable=True)


class Question(Base):
  __tablename__ = "questions"

  id: Mapped[str] = mapped_column(String, primary_key=True)
  exam_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
  objective_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
  question_text: Mapped[str] = mapped_column(Text, nullable=False)
  question_type: Mapped[str] = mapped_column(String, nullable=False)
  options: Mapped[list] = mapped_column(JSONB, nullable=False)
  correct_answer: Mapped[str] = mapped_column(String, nullable=False)
  explanation: Mapped[str | None] = mapped_column(Text, nullable=True)
  difficulty: Mapped[str | None] = mapped_column(String, nullable=True)
  is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
  metadata_json: Mapped[dict | None] = mapped_column("metadata", JSONB, nullable=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ResearchCacheEntry(Base):
  __tablename__ = "research_cache"
  __table_args__ = (Index("ix_research_cache_expires_at", "expires_at"),)

  cache_key: Mapped[str] = mapped_column(String, primary_key=True)
  value_json: Mapped[dict] = mapped_column(JSONB, nullable=False)
  expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class GenerationProgress(Base):
  __tablename__ = "generation_progress"

  job_id: Mapped[str] = mapped_column(String, primary_key=True)
  exam_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
  status: Mapped[str] = mapped_column(String, nullable=False, index=True)
  state_json: Mapped[dict] = mapped_column(JSONB, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
