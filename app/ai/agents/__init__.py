"""Agent implementations."""

from app.ai.agents.base import BaseAgent
from app.ai.agents.generator import GeneratorAgent
from app.ai.agents.researcher import ResearcherAgent
from app.ai.agents.validator import ValidatorAgent

__all__ = ["BaseAgent", "GeneratorAgent", "ResearcherAgent", "ValidatorAgent"]
