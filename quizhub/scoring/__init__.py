"""Scoring and performance calculations for QuizHub."""

from .performance import (
    build_question_analysis,
    calculate_performance,
    criteria_total,
    performance_grade,
    submission_grade,
    time_efficiency,
)
from .session_score import compute_score, is_expired, time_remaining

__all__ = [
    "build_question_analysis",
    "calculate_performance",
    "compute_score",
    "criteria_total",
    "is_expired",
    "performance_grade",
    "submission_grade",
    "time_efficiency",
    "time_remaining",
]
