"""Attempt history records, statistics, analytics and export."""

import csv
import io
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

import aiosqlite

from ..constants import (
    ANALYTICS_MAX_PERIOD_DAYS,
    ERROR_ATTEMPT_FORBIDDEN,
    ERROR_ATTEMPT_NOT_FOUND,
    ERROR_CATEGORY_NOT_FOUND,
    ERROR_HISTORY_EXISTS,
    ERROR_HISTORY_SESSION_NOT_FOUND,
    EXPORT_CSV_HEADER,
    EXPORT_FORMATS,
    HISTORY_SORT_FIELDS,
    RECENT_ATTEMPTS_LIMIT,
    TOP_PERFORMERS_LIMIT,
    TRENDS_DEFAULT_DAYS,
)
from ..database.models import AttemptHistory, Improvement, QuizSession
from ..scoring import build_question_analysis, calculate_performance, performance_grade
from ..utils.errors import (
    ForbiddenError,
    HistoryAlreadyExistsError,
    NotFoundError,
    ValidationError,
)
from ..utils.ids import new_id
from .base import BaseService, Clock, FieldErrors, Page, Principal, require_admin
from .quiz_session_service import expire_if_due

if TYPE_CHECKING:
    from ..config import Config
    from ..database.repositories import (
        AttemptHistoryRepository,
        CategoryRepository,
        QuizSessionRepository,
    )

logger = logging.getLogger(__name__)


@dataclass
class ExportResult:
    """An attempt export in the requested format."""

    format: str
    content: Union[str, Dict[str, Any]]
    filename: str


def _round(value: Optional[float], digits: int = 2) -> float:
    return round(value, digits) if value is not None else 0


def format_duration(seconds: int) -> str:
    """Format seconds as m:ss."""
    minutes, secs = divmod(max(0, int(seconds or 0)), 60)
    return f"{minutes}:{secs:02d}"


class AttemptHistoryService(BaseService):
    """Service deriving history records and analytics from finished sessions."""

    def __init__(
        self,
        history_repo: "AttemptHistoryRepository",
        session_repo: "QuizSessionRepository",
        category_repo: "CategoryRepository",
        config: "Config",
        clock: Optional[Clock] = None,
    ):
        super().__init__(config, clock)
        self.history_repo = history_repo
        self.session_repo = session_repo
        self.category_repo = category_repo

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create_from_session(self, principal: Principal, session_id: str) -> AttemptHistory:
        """Create the history record for one of the caller's finished sessions.

        Raises:
            NotFoundError: If the session is unknown, not owned or still running
            HistoryAlreadyExistsError: If the session already has a record
        """
        session = await self.session_repo.get_for_user(session_id, principal.user_id)
        if session is not None:
            await expire_if_due(self.session_repo, session, self.clock())
        if session is None or not session.is_terminal:
            raise NotFoundError(ERROR_HISTORY_SESSION_NOT_FOUND)
        return await self.record_session(session)

    async def record_session(self, session: QuizSession) -> AttemptHistory:
        """Build and store the history record of a terminal session."""
        if await self.history_repo.exists_for_session(session.session_id):
            raise HistoryAlreadyExistsError(ERROR_HISTORY_EXISTS)

        # Expired sessions never got a completion time; use their deadline
        completed_at = session.completed_at or (
            session.started_at + timedelta(seconds=session.time_limit)
        )
        duration = int((completed_at - session.started_at).total_seconds())

        analysis = build_question_analysis(session)
        history = AttemptHistory(
            id=new_id(),
            user_id=session.user_id,
            session_ref=session.id,
            session_id=session.session_id,
            category_id=session.category_id,
            completed_at=completed_at,
            duration=duration,
            status=session.status,
            score=session.score,
            performance=calculate_performance(analysis),
            question_analysis=analysis,
            improvement=await self._improvement(session, completed_at, duration),
        )

        try:
            await self.history_repo.create(history)
        except aiosqlite.IntegrityError as e:
            raise HistoryAlreadyExistsError(ERROR_HISTORY_EXISTS) from e

        logger.info(
            f"Attempt history recorded for session {session.session_id} "
            f"({session.status}, {session.score.percentage}%)"
        )
        return history

    async def _improvement(
        self, session: QuizSession, completed_at: datetime, duration: int
    ) -> Improvement:
        """Compare against the previous attempt and the best one in the category."""
        previous = await self.history_repo.get_previous(
            session.user_id, session.category_id, completed_at
        )
        best = await self.history_repo.get_best_percentage(
            session.user_id, session.category_id, completed_at
        )
        percentage = session.score.percentage

        improvement = Improvement(
            is_personal_best=best is None or percentage > best,
            previous_best=best or 0,
        )
        if previous is not None:
            improvement.score_change = percentage - previous.score.percentage
            improvement.time_change = duration - previous.duration
        return improvement

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_attempts(
        self,
        principal: Principal,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        category_id: Optional[str] = None,
        status: Optional[str] = None,
        sort_by: str = "completedAt",
        sort_order: str = "desc",
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Page[AttemptHistory]:
        """The caller's attempts with filters and sorting."""
        errors = FieldErrors()
        errors.choice("sortBy", sort_by, HISTORY_SORT_FIELDS)
        errors.choice("sortOrder", sort_order, ("asc", "desc"))
        errors.raise_if_any()

        page, limit, skip = self.page_params(page, limit)
        attempts, total = await self.history_repo.find(
            user_id=principal.user_id,
            category_id=category_id,
            status=status,
            start_date=start_date,
            end_date=end_date,
            sort_by=sort_by,
            descending=sort_order == "desc",
            skip=skip,
            limit=limit,
        )
        return Page(items=attempts, total=total, page=page, limit=limit)

    async def get_attempt(self, principal: Principal, attempt_id: str) -> AttemptHistory:
        """A single attempt; only its owner or an admin may read it."""
        attempt = await self.history_repo.get_by_id(attempt_id)
        if attempt is None:
            raise NotFoundError(ERROR_ATTEMPT_NOT_FOUND)
        if attempt.user_id != principal.user_id and not principal.is_admin:
            raise ForbiddenError(ERROR_ATTEMPT_FORBIDDEN)
        return attempt

    async def get_user_stats(
        self, principal: Principal, category_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Aggregate stats, 30-day daily trends and the latest attempts."""
        aggregate = await self.history_repo.get_user_aggregate(principal.user_id, category_id)
        since = self.clock() - timedelta(days=TRENDS_DEFAULT_DAYS)
        trends = await self.history_repo.get_daily_trends(principal.user_id, since, category_id)
        recent, _ = await self.history_repo.find(
            user_id=principal.user_id, category_id=category_id, limit=RECENT_ATTEMPTS_LIMIT
        )

        stats = {
            "total_attempts": aggregate["total_attempts"],
            "average_score": _round(aggregate["average_score"]),
            "best_score": aggregate["best_score"] or 0,
            "worst_score": aggregate["worst_score"] or 0,
            "total_time_spent": aggregate["total_time_spent"],
            "average_time_per_attempt": _round(aggregate["average_time_per_attempt"], 0),
            "completed_attempts": aggregate["completed_attempts"],
            "abandoned_attempts": aggregate["abandoned_attempts"],
            "expired_attempts": aggregate["expired_attempts"],
        }
        return {
            "stats": stats,
            "trends": [self._trend_point(t) for t in trends],
            "recent_attempts": recent,
        }

    async def get_category_stats(self, principal: Principal, category_id: str) -> Dict[str, Any]:
        """Category-wide aggregates and top performers (admin only)."""
        require_admin(principal)
        if await self.category_repo.get_by_id(category_id) is None:
            raise NotFoundError(ERROR_CATEGORY_NOT_FOUND)

        aggregate = await self.history_repo.get_category_aggregate(category_id)
        performers = await self.history_repo.get_top_performers(category_id, TOP_PERFORMERS_LIMIT)
        return {
            "category_stats": {
                "total_attempts": aggregate["total_attempts"],
                "unique_users": aggregate["unique_users"],
                "average_score": _round(aggregate["average_score"]),
                "best_score": aggregate["best_score"] or 0,
                "average_time": _round(aggregate["average_time"], 0),
            },
            "top_performers": [
                {
                    "user_id": p["user_id"],
                    "average_score": _round(p["average_score"]),
                    "best_score": p["best_score"],
                    "total_attempts": p["total_attempts"],
                }
                for p in performers
            ],
        }

    async def get_performance_analytics(
        self,
        principal: Principal,
        category_id: Optional[str] = None,
        period: int = TRENDS_DEFAULT_DAYS,
    ) -> Dict[str, Any]:
        """Trends, per-difficulty results and timing over the last `period` days."""
        errors = FieldErrors()
        errors.number("period", period, 1, ANALYTICS_MAX_PERIOD_DAYS)
        errors.raise_if_any()

        since = self.clock() - timedelta(days=period)
        trends = await self.history_repo.get_daily_trends(principal.user_id, since, category_id)
        difficulty = await self.history_repo.get_difficulty_analysis(
            principal.user_id, since, category_id
        )
        timing = await self.history_repo.get_time_analysis(principal.user_id, since, category_id)

        return {
            "period": period,
            "trends": [self._trend_point(t) for t in trends],
            "difficulty_analysis": [
                {
                    "difficulty": d["difficulty"],
                    "total_questions": d["total_questions"],
                    "correct_answers": d["correct_answers"],
                    "accuracy": _round(d["correct_answers"] / d["total_questions"] * 100)
                    if d["total_questions"]
                    else 0,
                    "average_time": _round(d["average_time"]),
                }
                for d in difficulty
            ],
            "time_analysis": {
                "average_time": _round(timing["average_time"]),
                "fastest_time": timing["fastest_time"] or 0,
                "slowest_time": timing["slowest_time"] or 0,
                "average_time_per_question": _round(timing["average_time_per_question"]),
            },
        }

    @staticmethod
    def _trend_point(row: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "date": row["day"],
            "attempts": row["attempts"],
            "average_score": _round(row["average_score"]),
            "total_time": row["total_time"],
        }

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    async def export(
        self,
        principal: Principal,
        fmt: str = "json",
        category_id: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> ExportResult:
        """Export the caller's attempts as JSON data or CSV text."""
        if fmt not in EXPORT_FORMATS:
            raise ValidationError.for_field("format", "Format must be json or csv")

        attempts, total = await self.history_repo.find(
            user_id=principal.user_id,
            category_id=category_id,
            start_date=start_date,
            end_date=end_date,
            limit=None,
        )
        now = self.clock()
        stamp = now.strftime("%Y-%m-%d")

        if fmt == "json":
            return ExportResult(
                format="json",
                content={
                    "attempts": attempts,
                    "export_date": now,
                    "total_attempts": total,
                },
                filename=f"quiz-attempts-{stamp}.json",
            )

        names = await self.category_repo.get_names(list({a.category_id for a in attempts}))
        return ExportResult(
            format="csv",
            content=self._to_csv(attempts, names),
            filename=f"quiz-attempts-{stamp}.csv",
        )

    @staticmethod
    def _to_csv(attempts: List[AttemptHistory], category_names: Dict[str, str]) -> str:
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(EXPORT_CSV_HEADER)

        for attempt in attempts:
            writer.writerow(
                [
                    attempt.completed_at.strftime("%Y-%m-%d"),
                    category_names.get(attempt.category_id, "Unknown"),
                    f"{attempt.score.percentage}%",
                    f"{attempt.score.correct_answers}/{attempt.score.total_questions}",
                    format_duration(attempt.duration),
                    attempt.status,
                    performance_grade(attempt.score.percentage),
                ]
            )

        return output.getvalue()
