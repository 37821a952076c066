"""Quiz session engine: selection, answering, scoring and lifecycle.

Sessions expire lazily. Every read or write of an in-progress session first
checks whether its time limit has elapsed and, if so, persists the session as
expired before doing anything else.
"""

import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from ..constants import (
    DIFFICULTY_MIXED,
    ERROR_CATEGORY_INACTIVE,
    ERROR_NO_ACTIVE_SESSION,
    ERROR_NO_QUESTIONS,
    ERROR_QUESTION_NOT_IN_SESSION,
    ERROR_RESULTS_NOT_FOUND,
    ERROR_SESSION_ACTIVE,
    ERROR_SESSION_EXPIRED,
    ERROR_SESSION_NOT_ACTIVE,
    MAX_TIME_SPENT_PER_ANSWER,
    SELECTED_ANSWER_MAX_LENGTH,
    SESSION_DIFFICULTIES,
)
from ..database.models import (
    McqContent,
    ProgramTraceContent,
    Question,
    QuestionKind,
    QuestionOption,
    QuizSession,
    SessionAnswer,
    SessionQuestion,
    SessionSettings,
    SessionStatus,
)
from ..scoring import compute_score, is_expired, time_remaining
from ..utils.errors import (
    NoQuestionsAvailableError,
    NotFoundError,
    SessionAlreadyActiveError,
    SessionExpiredError,
    ValidationError,
)
from ..utils.ids import generate_session_id, new_id
from .base import BaseService, Clock, FieldErrors, Page, Principal

if TYPE_CHECKING:
    from ..config import Config
    from ..database.repositories import (
        CategoryRepository,
        QuestionRepository,
        QuizSessionRepository,
    )
    from .attempt_history_service import AttemptHistoryService

logger = logging.getLogger(__name__)

# Question kinds that can be answered with a single string
SELECTABLE_KINDS = (QuestionKind.MCQ, QuestionKind.PROGRAM_TRACE)


async def expire_if_due(
    session_repo: "QuizSessionRepository", session: QuizSession, now: datetime
) -> bool:
    """Persist an in-progress session as expired once its time limit has passed.

    Returns:
        True if the session was expired by this call
    """
    if session.status != SessionStatus.IN_PROGRESS or not is_expired(session, now):
        return False

    session.status = SessionStatus.EXPIRED
    session.time_remaining = 0
    session.score = compute_score(session.questions, session.answers)
    await session_repo.save(session)
    logger.info(f"Quiz session {session.session_id} expired")
    return True


def snapshot_question(question: Question) -> SessionQuestion:
    """Copy the parts of a question needed to present and score it."""
    content = question.content
    snapshot = SessionQuestion(
        question_id=question.id,
        question_text=question.text,
        correct_answer=question.correct_answer,
        explanation=question.explanation,
        difficulty=question.difficulty,
        points=question.points or 1,
        kind=question.kind,
    )
    if isinstance(content, McqContent):
        snapshot.options = [QuestionOption(o.text, o.is_correct) for o in content.options]
    elif isinstance(content, ProgramTraceContent):
        snapshot.code_snippet = content.code_snippet
        snapshot.language = content.language
    return snapshot


@dataclass
class AnswerResult:
    """Outcome of recording an answer."""

    session: QuizSession
    question: SessionQuestion
    answer: SessionAnswer


class QuizSessionService(BaseService):
    """Service running timed quiz sessions.

    Args:
        rng: Random source used to shuffle the candidate pool
    """

    def __init__(
        self,
        session_repo: "QuizSessionRepository",
        question_repo: "QuestionRepository",
        category_repo: "CategoryRepository",
        history_service: "AttemptHistoryService",
        config: "Config",
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
    ):
        super().__init__(config, clock)
        self.session_repo = session_repo
        self.question_repo = question_repo
        self.category_repo = category_repo
        self.history_service = history_service
        self.rng = rng or random.Random()

    async def start_session(
        self,
        principal: Principal,
        category_id: str,
        difficulty: Optional[str] = None,
        time_limit: Optional[int] = None,
        question_count: Optional[int] = None,
        question_type: str = QuestionKind.MCQ,
        settings: Optional[SessionSettings] = None,
    ) -> QuizSession:
        """Start a new session for the caller in a category.

        Raises:
            ValidationError: If limits are out of range
            NotFoundError: If the category is missing or inactive
            SessionAlreadyActiveError: If an unexpired session is in progress
            NoQuestionsAvailableError: If no active question matches
        """
        quiz = self.config.quiz
        time_limit = quiz.default_time_limit if time_limit is None else time_limit
        question_count = quiz.default_question_count if question_count is None else question_count
        difficulty = difficulty or DIFFICULTY_MIXED

        errors = FieldErrors()
        errors.number("timeLimit", time_limit, quiz.min_time_limit, quiz.max_time_limit)
        errors.number(
            "questionCount", question_count, quiz.min_question_count, quiz.max_question_count
        )
        errors.choice("difficulty", difficulty, SESSION_DIFFICULTIES)
        errors.choice("questionType", question_type, SELECTABLE_KINDS)
        errors.raise_if_any()

        category = await self.category_repo.get_by_id(category_id)
        if category is None or not category.is_active:
            raise NotFoundError(ERROR_CATEGORY_INACTIVE)

        now = self.clock()
        existing = await self.session_repo.get_in_progress(principal.user_id, category_id)
        if existing is not None and not await expire_if_due(self.session_repo, existing, now):
            raise SessionAlreadyActiveError(
                ERROR_SESSION_ACTIVE,
                data={
                    "session_id": existing.session_id,
                    "time_remaining": time_remaining(existing, now),
                },
            )

        candidates = await self.question_repo.find_candidates(
            category_id,
            kind=question_type,
            difficulty=None if difficulty == DIFFICULTY_MIXED else difficulty,
            limit=question_count * quiz.candidate_pool_factor,
        )
        if not candidates:
            raise NoQuestionsAvailableError(ERROR_NO_QUESTIONS)

        self.rng.shuffle(candidates)
        questions = [snapshot_question(q) for q in candidates[:question_count]]

        session = QuizSession(
            id=new_id(),
            session_id=generate_session_id(now),
            user_id=principal.user_id,
            category_id=category_id,
            questions=questions,
            started_at=now,
            time_limit=time_limit,
            time_remaining=time_limit,
            score=compute_score(questions, []),
            difficulty=difficulty,
            settings=settings or SessionSettings(),
        )
        await self.session_repo.create(session)
        logger.info(
            f"Quiz session {session.session_id} started by {principal.user_id} "
            f"with {len(questions)} questions"
        )
        return session

    async def get_active_session(self, principal: Principal, category_id: str) -> QuizSession:
        """The caller's running session for a category.

        Raises:
            NotFoundError: If there is none
            SessionExpiredError: If it ran out of time since it was last seen
        """
        session = await self.session_repo.get_in_progress(principal.user_id, category_id)
        if session is None:
            raise NotFoundError(ERROR_NO_ACTIVE_SESSION)

        now = self.clock()
        if await expire_if_due(self.session_repo, session, now):
            raise SessionExpiredError(ERROR_SESSION_EXPIRED, data={"score": session.score})
        session.time_remaining = time_remaining(session, now)
        return session

    async def _load_active(self, principal: Principal, session_id: str) -> QuizSession:
        """Load an owned in-progress session, applying lazy expiry."""
        session = await self.session_repo.get_for_user(session_id, principal.user_id)
        if session is None or session.status != SessionStatus.IN_PROGRESS:
            raise NotFoundError(ERROR_SESSION_NOT_ACTIVE)
        if await expire_if_due(self.session_repo, session, self.clock()):
            raise SessionExpiredError(ERROR_SESSION_EXPIRED, data={"score": session.score})
        return session

    async def submit_answer(
        self,
        principal: Principal,
        session_id: str,
        question_id: str,
        selected_answer: str,
        time_spent: int = 0,
    ) -> AnswerResult:
        """Record (or overwrite) the answer to one question and rescore.

        Correctness is exact string equality with the snapshot's answer.
        """
        errors = FieldErrors()
        errors.check(
            isinstance(selected_answer, str)
            and 1 <= len(selected_answer) <= SELECTED_ANSWER_MAX_LENGTH,
            "selectedAnswer",
            f"Selected answer must be between 1 and {SELECTED_ANSWER_MAX_LENGTH} characters",
        )
        errors.number("timeSpent", time_spent, 0, MAX_TIME_SPENT_PER_ANSWER)
        errors.raise_if_any()

        session = await self._load_active(principal, session_id)
        question = session.find_question(question_id)
        if question is None:
            raise ValidationError.for_field("questionId", ERROR_QUESTION_NOT_IN_SESSION)

        now = self.clock()
        is_correct = selected_answer == question.correct_answer
        answer = session.find_answer(question_id)
        if answer is None:
            answer = SessionAnswer(
                question_id=question_id,
                selected_answer=selected_answer,
                is_correct=is_correct,
                time_spent=time_spent,
                answered_at=now,
            )
            session.answers.append(answer)
        else:
            answer.selected_answer = selected_answer
            answer.is_correct = is_correct
            answer.time_spent = time_spent
            answer.answered_at = now

        session.score = compute_score(session.questions, session.answers)
        session.time_remaining = time_remaining(session, now)
        await self.session_repo.save(session)
        return AnswerResult(session=session, question=question, answer=answer)

    async def _finish(self, session: QuizSession, status: str) -> QuizSession:
        now = self.clock()
        session.status = status
        session.completed_at = now
        session.time_remaining = time_remaining(session, now)
        session.score = compute_score(session.questions, session.answers)
        await self.session_repo.save(session)
        return session

    async def complete_session(self, principal: Principal, session_id: str) -> QuizSession:
        """Finish a session, then update question stats and record history.

        Stats and history are best-effort: failures are logged and the
        completed session is returned regardless.
        """
        session = await self._load_active(principal, session_id)
        await self._finish(session, SessionStatus.COMPLETED)
        logger.info(
            f"Quiz session {session.session_id} completed with {session.score.percentage}%"
        )

        for answer in session.answers:
            try:
                await self.question_repo.record_attempt(
                    answer.question_id, answer.is_correct, answer.time_spent
                )
            except Exception as e:
                logger.error(f"Failed to update stats for question {answer.question_id}: {e}")

        try:
            await self.history_service.record_session(session)
        except Exception:
            logger.exception(f"Failed to create attempt history for {session.session_id}")

        return session

    async def abandon_session(self, principal: Principal, session_id: str) -> QuizSession:
        """Give up on a running session."""
        session = await self._load_active(principal, session_id)
        await self._finish(session, SessionStatus.ABANDONED)
        logger.info(f"Quiz session {session.session_id} abandoned")
        return session

    async def get_results(self, principal: Principal, session_id: str) -> QuizSession:
        """Results of a finished session.

        A running session past its deadline is expired by this read and
        returned; one still within its time limit has no results yet.
        """
        session = await self.session_repo.get_for_user(session_id, principal.user_id)
        if session is None:
            raise NotFoundError(ERROR_RESULTS_NOT_FOUND)
        await expire_if_due(self.session_repo, session, self.clock())
        if not session.is_terminal:
            raise NotFoundError(ERROR_RESULTS_NOT_FOUND)
        return session

    async def get_history(
        self,
        principal: Principal,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        category_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Page[QuizSession]:
        """The caller's finished sessions, most recent first.

        Running sessions past their deadline are expired first so they show up.
        """
        if status is not None and status not in SessionStatus.TERMINAL:
            raise ValidationError.for_field("status", "Status must be completed, abandoned or expired")
        page, limit, skip = self.page_params(page, limit)

        now = self.clock()
        for running in await self.session_repo.find_in_progress_for_user(principal.user_id):
            await expire_if_due(self.session_repo, running, now)

        sessions, total = await self.session_repo.find_terminal_for_user(
            principal.user_id, category_id, status, skip, limit
        )
        return Page(items=sessions, total=total, page=page, limit=limit)
