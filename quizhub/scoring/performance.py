"""Performance metrics for attempt history and submission grading."""

from typing import List, Optional

from ..database.models import (
    DifficultyTally,
    PerformanceMetrics,
    QuestionAnalysis,
    QuizSession,
    ReviewCriterion,
)
from .session_score import round_half_up

# (minimum percentage, letter) from best to worst
GRADE_THRESHOLDS = [
    (90, "A+"),
    (85, "A"),
    (80, "A-"),
    (75, "B+"),
    (70, "B"),
    (65, "B-"),
    (60, "C+"),
    (55, "C"),
    (50, "C-"),
    (45, "D+"),
    (40, "D"),
]

# (maximum average seconds per question, label)
TIME_EFFICIENCY_THRESHOLDS = [
    (30, "Excellent"),
    (60, "Good"),
    (90, "Average"),
    (120, "Slow"),
]

SUBMISSION_GRADE_THRESHOLDS = [(90, "A"), (80, "B"), (70, "C"), (60, "D")]


def build_question_analysis(session: QuizSession) -> List[QuestionAnalysis]:
    """One entry per snapshotted question, marking skipped ones."""
    analysis = []
    for question in session.questions:
        answer = session.find_answer(question.question_id)
        analysis.append(
            QuestionAnalysis(
                question_id=question.question_id,
                question_text=question.question_text,
                difficulty=question.difficulty,
                points=question.points,
                selected_answer=answer.selected_answer if answer else None,
                correct_answer=question.correct_answer,
                is_correct=answer.is_correct if answer else False,
                time_spent=answer.time_spent if answer else 0,
                was_skipped=answer is None,
            )
        )
    return analysis


def calculate_performance(analysis: List[QuestionAnalysis]) -> PerformanceMetrics:
    """Timing and per-difficulty metrics from a question analysis.

    Only positive time values count towards average, fastest and slowest.
    Skipped questions are not counted as attempted.
    """
    metrics = PerformanceMetrics()

    times = [qa.time_spent for qa in analysis if qa.time_spent and qa.time_spent > 0]
    if times:
        metrics.average_time_per_question = round_half_up(sum(times) / len(times))
        metrics.fastest_question = min(times)
        metrics.slowest_question = max(times)

    for qa in analysis:
        if qa.was_skipped:
            continue
        tally = metrics.difficulty_breakdown.setdefault(qa.difficulty, DifficultyTally())
        tally.attempted += 1
        if qa.is_correct:
            tally.correct += 1

    return metrics


def performance_grade(percentage: int) -> str:
    """Letter grade for an attempt percentage."""
    for minimum, letter in GRADE_THRESHOLDS:
        if percentage >= minimum:
            return letter
    return "F"


def time_efficiency(average_time_per_question: float) -> str:
    """Label for the average seconds spent per question."""
    for maximum, label in TIME_EFFICIENCY_THRESHOLDS:
        if average_time_per_question <= maximum:
            return label
    return "Very Slow"


def criteria_total(criteria: List[ReviewCriterion]) -> Optional[int]:
    """Percentage earned across rubric criteria, or None without criteria."""
    max_total = sum(c.max_score for c in criteria)
    if not criteria or max_total <= 0:
        return None
    return round_half_up(sum(c.score for c in criteria) / max_total * 100)


def submission_grade(score: Optional[int]) -> Optional[str]:
    """Letter grade for a reviewed submission score."""
    if score is None:
        return None
    for minimum, letter in SUBMISSION_GRADE_THRESHOLDS:
        if score >= minimum:
            return letter
    return "F"
