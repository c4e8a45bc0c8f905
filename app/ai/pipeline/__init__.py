"""Pipeline contracts shared by agents, jobs, and storage."""

from app.ai.pipeline.contracts import GeneratedQuestion, QuestionMetadata, ResearchResult, ValidationResult

__all__ = ["GeneratedQuestion", "QuestionMetadata", "ResearchResult", "ValidationResult"]
