"""Prompt builders for the question pipeline agents."""

from __future__ import annotations

import msgspec

from app.ai.pipeline.contracts import GeneratedQuestion, ResearchResult
from app.storage.catalog_repo import ExamRecord, ObjectiveRecord

RESEARCH_SYSTEM_PROMPT = "You are an expert in IT certification exam content."

GENERATOR_SYSTEM_PROMPT = """You are an expert IT certification exam question generator. Generate high-quality questions that test practical knowledge.

Return your response as valid JSON with this structure:
{
  "questions": [
    {
      "question": "Question text",
      "options": ["A) Option 1", "B) Option 2", "C) Option 3", "D) Option 4"],
      "correctAnswer": "A",
      "explanation": "Detailed explanation",
      "difficulty": "easy|medium|hard",
      "objective": "Learning objective"
    }
  ]
}"""

REVIEW_SYSTEM_PROMPT = """Analyze this exam question for quality issues. Respond with JSON:
{
  "isValid": true/false,
  "issues": ["List of problems"],
  "suggestions": ["List of improvements"]
}"""

REPAIR_SYSTEM_PROMPT = "Fix the exam question maintaining the same format."


def _bullets(items: list[str]) -> str:
  return "\n".join(f"- {item}" for item in items)


def render_research_prompt(exam: ExamRecord, objective: ObjectiveRecord) -> str:
  return f"""You are researching the certification exam objective for question generation.

Exam: {exam.name} ({exam.code})
Objective: {objective.title}
Description: {objective.description or "N/A"}

Provide comprehensive research about this objective including:
1. Key topics and concepts that should be tested
2. Practical real-world applications
3. Common misconceptions or tricky areas
4. Guidelines for different difficulty levels

Format your response as JSON:
{{
  "keyTopics": ["topic1", "topic2", ...],
  "practicalApplications": ["application1", "application2", ...],
  "commonMisconceptions": ["misconception1", "misconception2", ...],
  "difficultyGuidelines": {{
    "easy": "What makes a question easy for this topic",
    "medium": "What makes a question medium difficulty",
    "hard": "What makes a question challenging"
  }}
}}"""


def render_generation_prompt(research: ResearchResult, count: int, difficulty: str) -> str:
  description = f"DESCRIPTION: {research.objective_description}" if research.objective_description else ""
  guideline = research.difficulty_guidelines.for_level(difficulty)
  return f"""Generate {count} high-quality certification exam questions based on this research:

EXAM CONTEXT: {research.exam_context}
OBJECTIVE: {research.objective_title}
{description}

KEY TOPICS TO COVER:
{_bullets(research.key_topics)}

PRACTICAL APPLICATIONS:
{_bullets(research.practical_applications)}

COMMON MISCONCEPTIONS TO TEST:
{_bullets(research.common_misconceptions)}

DIFFICULTY LEVEL: {difficulty}
DIFFICULTY GUIDELINE: {guideline}

REQUIREMENTS:
1. Questions must test practical, real-world knowledge
2. Include scenario-based questions when appropriate
3. Each question must have exactly 4 options (A, B, C, D)
4. Only one correct answer per question
5. Explanations should teach the concept, not just state the answer
6. Vary question types (direct, scenario, troubleshooting, best practice)
7. Ensure questions align with the {difficulty} difficulty level

Generate exactly {count} questions following the specified format."""


def render_repair_prompt(question: GeneratedQuestion, issues: list[str], suggestions: list[str]) -> str:
  original = msgspec.json.format(msgspec.json.encode(question), indent=2).decode()
  return f"""Fix this exam question based on the issues and suggestions:

ORIGINAL QUESTION:
{original}

ISSUES FOUND:
{_bullets(issues)}

SUGGESTIONS:
{_bullets(suggestions)}

Return the fixed question in the same JSON format."""
