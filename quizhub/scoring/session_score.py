"""Score and timing calculations for quiz sessions.

Everything here is a pure function of a session's snapshot and answers, so
the session service can recompute the score after every mutation.
"""

import math
from datetime import datetime
from typing import List

from ..database.models import QuizSession, SessionAnswer, SessionQuestion, SessionScore

DEFAULT_POINTS = 1


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (33.5 -> 34)."""
    return int(math.floor(value + 0.5))


def compute_score(
    questions: List[SessionQuestion], answers: List[SessionAnswer]
) -> SessionScore:
    """Compute the score summary for a set of questions and answers.

    Percentage is based on the count of correct answers, not on points.

    Args:
        questions: The session's question snapshot
        answers: Recorded answers, at most one per question

    Returns:
        SessionScore with counts, points and percentage
    """
    total_questions = len(questions)
    correct = sum(1 for a in answers if a.is_correct)
    incorrect = sum(1 for a in answers if not a.is_correct)

    points_by_question = {
        q.question_id: (q.points if q.points else DEFAULT_POINTS) for q in questions
    }
    total_points = sum(points_by_question.values())
    earned_points = sum(
        points_by_question.get(a.question_id, DEFAULT_POINTS)
        for a in answers
        if a.is_correct
    )

    percentage = (
        round_half_up(correct / total_questions * 100) if total_questions > 0 else 0
    )

    return SessionScore(
        total_questions=total_questions,
        correct_answers=correct,
        incorrect_answers=incorrect,
        unanswered_questions=total_questions - len(answers),
        total_points=total_points,
        earned_points=earned_points,
        percentage=percentage,
    )


def is_expired(session: QuizSession, now: datetime) -> bool:
    """Whether more than the time limit has elapsed since the session started."""
    return (now - session.started_at).total_seconds() > session.time_limit


def time_remaining(session: QuizSession, now: datetime) -> int:
    """Whole seconds left before the session expires, never negative."""
    elapsed = (now - session.started_at).total_seconds()
    return max(0, math.floor(session.time_limit - elapsed))
