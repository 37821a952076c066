"""Conversion of models into the camelCase JSON the API returns.

Students get a reduced view of questions, sessions, challenges and
submissions: anything that would reveal an answer or a reviewer's internals
is stripped before the payload leaves the server.
"""

from dataclasses import fields, is_dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..database.models import (
    AttemptHistory,
    ChallengeSubmission,
    CodingChallenge,
    CodingSubmission,
    Question,
    QuizSession,
    SessionAnswer,
    SessionQuestion,
)
from ..scoring import criteria_total, performance_grade, submission_grade, time_efficiency
from ..services.base import Page, Principal
from ..utils.timeutil import to_iso


class ValueMap(dict):
    """A mapping keyed by data values (statuses, kinds) whose keys stay as-is."""


def camel_key(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def to_camel(value: Any) -> Any:
    """Recursively convert models, mappings and timestamps to JSON-ready data."""
    if isinstance(value, Page):
        return {"items": to_camel(value.items), "pagination": pagination(value)}
    if is_dataclass(value) and not isinstance(value, type):
        return {camel_key(f.name): to_camel(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, ValueMap):
        return ValueMap((k, to_camel(v)) for k, v in value.items())
    if isinstance(value, dict):
        return {camel_key(k) if isinstance(k, str) else k: to_camel(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_camel(v) for v in value]
    if isinstance(value, datetime):
        return to_iso(value)
    return value


def pagination(page: Page) -> Dict[str, Any]:
    return {
        "currentPage": page.page,
        "totalPages": page.total_pages,
        "totalItems": page.total,
        "hasNext": page.has_next,
        "hasPrev": page.has_prev,
    }


def paged(page: Page, key: str, view=to_camel) -> Dict[str, Any]:
    """Render a page as ``{key: [...], pagination: {...}}``."""
    return {key: [view(item) for item in page.items], "pagination": pagination(page)}


# ============================================================================
# Questions
# ============================================================================


def question_view(question: Question, principal: Optional[Principal] = None) -> Dict[str, Any]:
    """A question; students never see the answer, explanation or stats."""
    data = to_camel(question)
    data["type"] = question.kind
    data["stats"]["successRate"] = question.stats.success_rate
    if principal is not None and principal.is_admin:
        return data

    for key in ("correctAnswer", "explanation", "stats", "createdBy"):
        data.pop(key, None)
    content = data.get("content") or {}
    for option in content.get("options", []):
        option.pop("isCorrect", None)
    content.pop("expectedOutput", None)
    content.pop("testCases", None)
    return data


# ============================================================================
# Quiz sessions
# ============================================================================


def _session_question(question: SessionQuestion, reveal: bool) -> Dict[str, Any]:
    data = to_camel(question)
    data["type"] = data.pop("kind")
    if not reveal:
        data.pop("correctAnswer", None)
        data.pop("explanation", None)
        for option in data["options"]:
            option.pop("isCorrect", None)
    if data.get("codeSnippet") is None:
        data.pop("codeSnippet", None)
        data.pop("language", None)
    return data


def session_view(session: QuizSession, reveal: bool = False) -> Dict[str, Any]:
    """A quiz session.

    Args:
        reveal: Include correct answers and explanations (finished sessions)
    """
    return {
        "id": session.id,
        "sessionId": session.session_id,
        "userId": session.user_id,
        "categoryId": session.category_id,
        "questions": [_session_question(q, reveal) for q in session.questions],
        "answers": to_camel(session.answers),
        "startedAt": to_iso(session.started_at),
        "completedAt": to_iso(session.completed_at) if session.completed_at else None,
        "timeLimit": session.time_limit,
        "timeRemaining": session.time_remaining,
        "status": session.status,
        "difficulty": session.difficulty,
        "score": to_camel(session.score),
        "settings": to_camel(session.settings),
        "duration": session.duration,
    }


def answer_view(question: SessionQuestion, answer: SessionAnswer, session: QuizSession) -> Dict[str, Any]:
    """Outcome of one answer; the correct answer is revealed once answered."""
    return {
        "questionId": answer.question_id,
        "selectedAnswer": answer.selected_answer,
        "isCorrect": answer.is_correct,
        "correctAnswer": question.correct_answer,
        "explanation": question.explanation,
        "timeSpent": answer.time_spent,
        "score": to_camel(session.score),
        "timeRemaining": session.time_remaining,
    }


def results_view(session: QuizSession) -> Dict[str, Any]:
    """Final score with a per-question breakdown."""
    breakdown: List[Dict[str, Any]] = []
    for question in session.questions:
        answer = session.find_answer(question.question_id)
        breakdown.append(
            {
                "questionId": question.question_id,
                "questionText": question.question_text,
                "selectedAnswer": answer.selected_answer if answer else None,
                "correctAnswer": question.correct_answer,
                "isCorrect": answer.is_correct if answer else False,
                "explanation": question.explanation,
                "points": question.points,
                "timeSpent": answer.time_spent if answer else 0,
            }
        )
    data = session_view(session, reveal=True)
    data["results"] = breakdown
    data["performanceGrade"] = performance_grade(session.score.percentage)
    return data


# ============================================================================
# Attempt history
# ============================================================================


def attempt_view(attempt: AttemptHistory) -> Dict[str, Any]:
    data = to_camel(attempt)
    data["performance"]["difficultyBreakdown"] = to_camel(
        ValueMap(attempt.performance.difficulty_breakdown)
    )
    data["performanceGrade"] = performance_grade(attempt.score.percentage)
    data["timeEfficiency"] = time_efficiency(
        attempt.performance.average_time_per_question
    )
    return data


# ============================================================================
# Coding challenges and submissions
# ============================================================================


def challenge_view(challenge: CodingChallenge, principal: Optional[Principal] = None) -> Dict[str, Any]:
    """A challenge; students don't see the reference solution or stats."""
    data = to_camel(challenge)
    if principal is not None and principal.is_admin:
        data["stats"]["approvalRate"] = challenge.stats.approval_rate
        return data
    for key in ("referenceSolution", "stats", "createdBy", "lastModifiedBy"):
        data.pop(key, None)
    return data


def _with_review_summary(data: Dict[str, Any], submission: Any, principal: Optional[Principal]) -> Dict[str, Any]:
    review = submission.review
    if review is not None:
        data["review"]["totalScore"] = criteria_total(review.criteria)
        data["review"]["grade"] = submission_grade(review.score)
        if principal is None or not principal.is_admin:
            data["review"].pop("reviewedBy", None)
    return data


def submission_view(submission: ChallengeSubmission, principal: Optional[Principal] = None) -> Dict[str, Any]:
    return _with_review_summary(to_camel(submission), submission, principal)


def coding_submission_view(
    submission: CodingSubmission, principal: Optional[Principal] = None
) -> Dict[str, Any]:
    return _with_review_summary(to_camel(submission), submission, principal)
