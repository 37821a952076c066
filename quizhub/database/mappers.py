"""Row-to-model mappers and JSON column codecs for database operations."""

import json
from dataclasses import asdict, is_dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..utils.timeutil import parse_datetime, to_iso
from .models import (
    AttemptHistory,
    Category,
    ChallengeExample,
    ChallengeStats,
    ChallengeSubmission,
    CodingChallenge,
    CodingContent,
    CodingSubmission,
    DifficultyTally,
    Improvement,
    McqContent,
    PerformanceMetrics,
    ProgramTestCase,
    ProgramTraceContent,
    Question,
    QuestionAnalysis,
    QuestionContent,
    QuestionKind,
    QuestionOption,
    QuestionStats,
    QuizSession,
    ReviewComment,
    ReviewCriterion,
    SelfAssessment,
    SessionAnswer,
    SessionQuestion,
    SessionScore,
    SessionSettings,
    SubmissionReview,
    User,
)


def _parse_datetime(value: Any) -> Optional[datetime]:
    """Parse a datetime value from SQLite.

    Timestamps are stored as UTC ISO-8601 strings.
    """
    return parse_datetime(value)


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return to_iso(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def dump_json(value: Any) -> Optional[str]:
    """Serialize a dataclass (or list of them) for a JSON column."""
    if value is None:
        return None
    if is_dataclass(value):
        value = asdict(value)
    elif isinstance(value, list):
        value = [asdict(item) if is_dataclass(item) else item for item in value]
    return json.dumps(value, default=_json_default)


def _load(value: Optional[str], default: Any) -> Any:
    if value is None or value == "":
        return default
    return json.loads(value)


# ============================================================================
# Nested document codecs
# ============================================================================


def options_from_list(data: List[Dict[str, Any]]) -> List[QuestionOption]:
    """Build option models from stored dictionaries."""
    return [
        QuestionOption(text=o.get("text", ""), is_correct=bool(o.get("is_correct", False)))
        for o in data
    ]


def content_from_dict(kind: str, data: Dict[str, Any]) -> QuestionContent:
    """Build the content variant for a question kind."""
    if kind == QuestionKind.MCQ:
        return McqContent(options=options_from_list(data.get("options", [])))
    if kind == QuestionKind.PROGRAM_TRACE:
        return ProgramTraceContent(
            code_snippet=data.get("code_snippet", ""),
            language=data.get("language", "javascript"),
            expected_output=data.get("expected_output", ""),
            test_cases=[ProgramTestCase(**tc) for tc in data.get("test_cases", [])],
            analysis_type=data.get("analysis_type", "output"),
            hints=list(data.get("hints", [])),
        )
    if kind == QuestionKind.CODING:
        return CodingContent(
            language=data.get("language", "javascript"),
            starter_code=data.get("starter_code", ""),
            hints=list(data.get("hints", [])),
        )
    raise ValueError(f"Unknown question kind: {kind}")


def score_from_dict(data: Dict[str, Any]) -> SessionScore:
    return SessionScore(**data) if data else SessionScore()


def review_from_dict(data: Optional[Dict[str, Any]]) -> Optional[SubmissionReview]:
    if not data:
        return None
    return SubmissionReview(
        reviewed_by=data["reviewed_by"],
        reviewed_at=_parse_datetime(data.get("reviewed_at")),
        score=data["score"],
        feedback=data.get("feedback", ""),
        comments=[ReviewComment(**c) for c in data.get("comments", [])],
        criteria=[ReviewCriterion(**c) for c in data.get("criteria", [])],
    )


def _session_question_from_dict(data: Dict[str, Any]) -> SessionQuestion:
    return SessionQuestion(
        question_id=data["question_id"],
        question_text=data["question_text"],
        correct_answer=data["correct_answer"],
        options=options_from_list(data.get("options", [])),
        explanation=data.get("explanation", ""),
        difficulty=data.get("difficulty", "medium"),
        points=data.get("points", 1),
        kind=data.get("kind", QuestionKind.MCQ),
        code_snippet=data.get("code_snippet"),
        language=data.get("language"),
    )


def _session_answer_from_dict(data: Dict[str, Any]) -> SessionAnswer:
    return SessionAnswer(
        question_id=data["question_id"],
        selected_answer=data["selected_answer"],
        is_correct=bool(data["is_correct"]),
        time_spent=data.get("time_spent", 0),
        answered_at=_parse_datetime(data.get("answered_at")),
    )


def _performance_from_dict(data: Dict[str, Any]) -> PerformanceMetrics:
    breakdown = {
        level: DifficultyTally(**tally)
        for level, tally in data.get("difficulty_breakdown", {}).items()
    }
    metrics = PerformanceMetrics(
        average_time_per_question=data.get("average_time_per_question", 0),
        fastest_question=data.get("fastest_question", 0),
        slowest_question=data.get("slowest_question", 0),
    )
    metrics.difficulty_breakdown.update(breakdown)
    return metrics


# ============================================================================
# Row mappers
# ============================================================================


def row_to_user(row: Any) -> User:
    """Convert database row to User model."""
    return User(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        role=row["role"],
        is_active=bool(row["is_active"]),
        created_at=_parse_datetime(row["created_at"]),
        updated_at=_parse_datetime(row["updated_at"]),
    )


def row_to_category(row: Any) -> Category:
    """Convert database row to Category model."""
    return Category(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        icon=row["icon"],
        color=row["color"],
        is_active=bool(row["is_active"]),
        question_count=row["question_count"],
        difficulty=row["difficulty"],
        estimated_time=row["estimated_time"],
        created_by=row["created_by"],
        created_at=_parse_datetime(row["created_at"]),
        updated_at=_parse_datetime(row["updated_at"]),
    )


def row_to_question(row: Any) -> Question:
    """Convert database row to Question model."""
    return Question(
        id=row["id"],
        text=row["text"],
        category_id=row["category_id"],
        content=content_from_dict(row["kind"], _load(row["content"], {})),
        correct_answer=row["correct_answer"],
        difficulty=row["difficulty"],
        points=row["points"],
        explanation=row["explanation"],
        tags=_load(row["tags"], []),
        status=row["status"],
        created_by=row["created_by"],
        stats=QuestionStats(
            total_attempts=row["total_attempts"],
            correct_attempts=row["correct_attempts"],
            average_time=row["average_time"],
        ),
        created_at=_parse_datetime(row["created_at"]),
        updated_at=_parse_datetime(row["updated_at"]),
    )


def row_to_quiz_session(row: Any) -> QuizSession:
    """Convert database row to QuizSession model."""
    return QuizSession(
        id=row["id"],
        session_id=row["session_id"],
        user_id=row["user_id"],
        category_id=row["category_id"],
        questions=[_session_question_from_dict(q) for q in _load(row["questions"], [])],
        answers=[_session_answer_from_dict(a) for a in _load(row["answers"], [])],
        status=row["status"],
        started_at=_parse_datetime(row["started_at"]),
        completed_at=_parse_datetime(row["completed_at"]),
        time_limit=row["time_limit"],
        time_remaining=row["time_remaining"],
        score=score_from_dict(_load(row["score"], {})),
        difficulty=row["difficulty"],
        settings=SessionSettings(**_load(row["settings"], {})),
        created_at=_parse_datetime(row["created_at"]),
        updated_at=_parse_datetime(row["updated_at"]),
    )


def row_to_attempt_history(row: Any) -> AttemptHistory:
    """Convert database row to AttemptHistory model."""
    return AttemptHistory(
        id=row["id"],
        user_id=row["user_id"],
        session_ref=row["session_ref"],
        session_id=row["session_id"],
        category_id=row["category_id"],
        completed_at=_parse_datetime(row["completed_at"]),
        duration=row["duration"],
        status=row["status"],
        score=score_from_dict(_load(row["score"], {})),
        performance=_performance_from_dict(_load(row["performance"], {})),
        question_analysis=[
            QuestionAnalysis(**qa) for qa in _load(row["question_analysis"], [])
        ],
        improvement=Improvement(**_load(row["improvement"], {})),
        created_at=_parse_datetime(row["created_at"]),
    )


def row_to_coding_challenge(row: Any) -> CodingChallenge:
    """Convert database row to CodingChallenge model."""
    return CodingChallenge(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        problem_statement=row["problem_statement"],
        difficulty=row["difficulty"],
        points=row["points"],
        time_limit=row["time_limit"],
        examples=[ChallengeExample(**e) for e in _load(row["examples"], [])],
        constraints=_load(row["constraints"], []),
        hints=_load(row["hints"], []),
        tags=_load(row["tags"], []),
        sample_input=row["sample_input"],
        sample_output=row["sample_output"],
        reference_solution=row["reference_solution"],
        language=row["language"],
        category_id=row["category_id"],
        status=row["status"],
        is_active=bool(row["is_active"]),
        created_by=row["created_by"],
        last_modified_by=row["last_modified_by"],
        stats=ChallengeStats(**_load(row["stats"], {})),
        created_at=_parse_datetime(row["created_at"]),
        updated_at=_parse_datetime(row["updated_at"]),
    )


def row_to_challenge_submission(row: Any) -> ChallengeSubmission:
    """Convert database row to ChallengeSubmission model."""
    return ChallengeSubmission(
        id=row["id"],
        challenge_id=row["challenge_id"],
        student_id=row["student_id"],
        code=row["code"],
        language=row["language"],
        status=row["status"],
        review=review_from_dict(_load(row["review"], None)),
        time_spent=row["time_spent"],
        started_at=_parse_datetime(row["started_at"]),
        submitted_at=_parse_datetime(row["submitted_at"]),
        version=row["version"],
        is_latest=bool(row["is_latest"]),
        self_assessment=SelfAssessment(**_load(row["self_assessment"], {})),
        created_at=_parse_datetime(row["created_at"]),
        updated_at=_parse_datetime(row["updated_at"]),
    )


def row_to_coding_submission(row: Any) -> CodingSubmission:
    """Convert database row to CodingSubmission model."""
    return CodingSubmission(
        id=row["id"],
        challenge_id=row["challenge_id"],
        student_id=row["student_id"],
        code=row["code"],
        language=row["language"],
        status=row["status"],
        review=review_from_dict(_load(row["review"], None)),
        submitted_at=_parse_datetime(row["submitted_at"]),
        time_spent=row["time_spent"],
        attempt_number=row["attempt_number"],
        created_at=_parse_datetime(row["created_at"]),
        updated_at=_parse_datetime(row["updated_at"]),
    )
