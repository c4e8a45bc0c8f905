"""Schema package exports."""

from .pipeline import Exam, GenerationProgress, Objective, Question, ResearchCacheEntry

__all__ = ["Exam", "GenerationProgress", "Objective", "Question", "ResearchCacheEntry"]
