"""Create exam catalog, question bank, research cache, and progress tables.

Revision ID: 8f3a2c1d4e5b
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "8f3a2c1d4e5b"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
  """Upgrade schema."""
  op.create_table(
    "exams",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("code", sa.String(), nullable=False),
    sa.Column("name", sa.String(), nullable=False),
    sa.Column("description", sa.Text(), nullable=True),
    sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_table(
    "objectives",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("exam_id", sa.String(), nullable=False),
    sa.Column("title", sa.String(), nullable=False),
    sa.Column("description", sa.Text(), nullable=True),
    sa.Column("weight", sa.Float(), nullable=True),
    sa.ForeignKeyConstraint(["exam_id"], ["exams.id"]),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_objectives_exam_id"), "objectives", ["exam_id"], unique=False)

  op.create_table(
    "questions",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("exam_id", sa.String(), nullable=False),
    sa.Column("objective_id", sa.String(), nullable=True),
    sa.Column("question_text", sa.Text(), nullable=False),
    sa.Column("question_type", sa.String(), nullable=False),
    sa.Column("options", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    sa.Column("correct_answer", sa.String(), nullable=False),
    sa.Column("explanation", sa.Text(), nullable=True),
    sa.Column("difficulty", sa.String(), nullable=True),
    sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
    sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_questions_exam_id"), "questions", ["exam_id"], unique=False)
  op.create_index(op.f("ix_questions_objective_id"), "questions", ["objective_id"], unique=False)

  op.create_table(
    "research_cache",
    sa.Column("cache_key", sa.String(), nullable=False),
    sa.Column("value_json", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.PrimaryKeyConstraint("cache_key"),
  )
  op.create_index("ix_research_cache_expires_at", "research_cache", ["expires_at"], unique=False)

  op.create_table(
    "generation_progress",
    sa.Column("job_id", sa.String(), nullable=False),
    sa.Column("exam_id", sa.String(), nullable=False),
    sa.Column("status", sa.String(), nullable=False),
    sa.Column("state_json", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.PrimaryKeyConstraint("job_id"),
  )
  op.create_index(op.f("ix_generation_progress_exam_id"), "generation_progress", ["exam_id"], unique=False)
  op.create_index(op.f("ix_generation_progress_status"), "generation_progress", ["status"], unique=False)


def downgrade() -> None:
  """Downgrade schema."""
  op.drop_index(op.f("ix_generation_progress_status"), table_name="generation_progress")
  op.drop_index(op.f("ix_generation_progress_exam_id"), table_name="generation_progress")
  op.drop_table("generation_progress")
  op.drop_index("ix_research_cache_expires_at", table_name="research_cache")
  op.drop_table("research_cache")
  op.drop_index(op.f("ix_questions_objective_id"), table_name="questions")
  op.drop_index(op.f("ix_questions_exam_id"), table_name="questions")
  op.drop_table("questions")
  op.drop_index(op.f("ix_objectives_exam_id"), table_name="objectives")
  op.drop_table("objectives")
  op.drop_table("exams")
