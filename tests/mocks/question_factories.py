"""Builders for question bank fixtures."""

from typing import List

from quizhub.database.models import McqContent, ProgramTraceContent, Question, QuestionOption
from quizhub.utils.ids import new_id


def make_mcq(
    category_id: str,
    text: str,
    options: List[str],
    correct: str,
    difficulty: str = "medium",
    points: int = 1,
    status: str = "active",
) -> Question:
    """Build an MCQ whose correct option is the one whose text equals ``correct``."""
    return Question(
        id=new_id(),
        text=text,
        category_id=category_id,
        content=McqContent(
            options=[QuestionOption(text=o, is_correct=(o == correct)) for o in options]
        ),
        correct_answer=correct,
        difficulty=difficulty,
        points=points,
        explanation=f"The answer is {correct}",
        status=status,
    )


def make_program_question(category_id: str, language: str = "python") -> Question:
    return Question(
        id=new_id(),
        text="What does this program print?",
        category_id=category_id,
        content=ProgramTraceContent(
            code_snippet="print(1 + 1)",
            language=language,
            expected_output="2",
        ),
        correct_answer="2",
        status="active",
    )
