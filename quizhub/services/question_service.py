"""Question bank service: validation, listings and lifecycle."""

import logging
import random
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..constants import (
    ANALYSIS_TYPES,
    ERROR_CATEGORY_NOT_FOUND,
    ERROR_MCQ_ANSWER_MISMATCH,
    ERROR_MCQ_MIN_OPTIONS,
    ERROR_MCQ_ONE_CORRECT,
    ERROR_PROGRAM_OUTPUT,
    ERROR_PROGRAM_SNIPPET,
    ERROR_QUESTION_NOT_FOUND,
    EXPLANATION_MAX_LENGTH,
    MAX_POINTS,
    MIN_MCQ_OPTIONS,
    MIN_POINTS,
    OPTION_TEXT_MAX_LENGTH,
    PROGRAM_LANGUAGES,
    QUESTION_DIFFICULTIES,
    QUESTION_TEXT_MAX_LENGTH,
)
from ..database.models import (
    CodingContent,
    McqContent,
    ProgramTraceContent,
    Question,
    QuestionContent,
    QuestionKind,
    QuestionStatus,
)
from ..utils.errors import NotFoundError, ValidationError
from ..utils.ids import new_id
from .base import BaseService, Clock, FieldErrors, Page, Principal, require_admin

if TYPE_CHECKING:
    from ..config import Config
    from ..database.repositories import CategoryRepository, QuestionRepository

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = {
    "text",
    "category_id",
    "content",
    "correct_answer",
    "difficulty",
    "points",
    "explanation",
    "tags",
    "status",
}


def validate_question(question: Question) -> None:
    """Check a question's common fields and its kind-specific invariants.

    Raises:
        ValidationError: With one entry per failed rule
    """
    errors = FieldErrors()
    errors.text("text", question.text, QUESTION_TEXT_MAX_LENGTH, label="Question text")
    errors.choice("difficulty", question.difficulty, QUESTION_DIFFICULTIES)
    errors.number("points", question.points, MIN_POINTS, MAX_POINTS)
    errors.choice("status", question.status, QuestionStatus.ALL)
    errors.check(
        bool(question.correct_answer and question.correct_answer.strip()),
        "correctAnswer",
        "Correct answer is required",
    )
    errors.check(
        len(question.explanation or "") <= EXPLANATION_MAX_LENGTH,
        "explanation",
        f"Explanation cannot exceed {EXPLANATION_MAX_LENGTH} characters",
    )

    content = question.content
    if isinstance(content, McqContent):
        _validate_mcq(content, question.correct_answer, errors)
    elif isinstance(content, ProgramTraceContent):
        errors.check(bool(content.code_snippet.strip()), "programQuestion.codeSnippet", ERROR_PROGRAM_SNIPPET)
        errors.check(
            bool(content.expected_output.strip()), "programQuestion.expectedOutput", ERROR_PROGRAM_OUTPUT
        )
        errors.choice("programQuestion.language", content.language, PROGRAM_LANGUAGES)
        errors.choice("programQuestion.analysisType", content.analysis_type, ANALYSIS_TYPES)
    elif isinstance(content, CodingContent):
        errors.choice("codingQuestion.language", content.language, PROGRAM_LANGUAGES)

    errors.raise_if_any()


def _validate_mcq(content: McqContent, correct_answer: str, errors: FieldErrors) -> None:
    if len(content.options) < MIN_MCQ_OPTIONS:
        errors.add("options", ERROR_MCQ_MIN_OPTIONS)
        return

    for option in content.options:
        if not option.text or not option.text.strip():
            errors.add("options", "Option text is required")
            return
        if len(option.text) > OPTION_TEXT_MAX_LENGTH:
            errors.add("options", f"Option text cannot exceed {OPTION_TEXT_MAX_LENGTH} characters")
            return

    correct_options = [o for o in content.options if o.is_correct]
    if len(correct_options) != 1:
        errors.add("options", ERROR_MCQ_ONE_CORRECT)
        return

    if correct_options[0].text != correct_answer:
        errors.add("correctAnswer", ERROR_MCQ_ANSWER_MISMATCH)


class QuestionService(BaseService):
    """Service for the question bank."""

    def __init__(
        self,
        question_repo: "QuestionRepository",
        category_repo: "CategoryRepository",
        config: "Config",
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
    ):
        super().__init__(config, clock)
        self.question_repo = question_repo
        self.category_repo = category_repo
        self.rng = rng or random.Random()

    async def _require_category(self, category_id: str) -> None:
        if not category_id or await self.category_repo.get_by_id(category_id) is None:
            raise ValidationError.for_field("category", ERROR_CATEGORY_NOT_FOUND)

    async def get(self, question_id: str, principal: Optional[Principal] = None) -> Question:
        """Get a question. Non-admins can only see active questions."""
        question = await self.question_repo.get_by_id(question_id)
        if question is None:
            raise NotFoundError(ERROR_QUESTION_NOT_FOUND)
        if principal is not None and not principal.is_admin and question.status != QuestionStatus.ACTIVE:
            raise NotFoundError(ERROR_QUESTION_NOT_FOUND)
        return question

    async def list_for_category(
        self,
        category_id: str,
        kind: Optional[str] = None,
        difficulty: Optional[str] = None,
        language: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Page[Question]:
        """Active questions of a category in random order.

        When a program language is requested but no program-trace question
        uses it, every program-trace question of the category is returned.
        """
        if await self.category_repo.get_by_id(category_id) is None:
            raise NotFoundError(ERROR_CATEGORY_NOT_FOUND)
        page, limit, skip = self.page_params(page, limit)

        language_filter = language if language and kind == QuestionKind.PROGRAM_TRACE else None
        questions, total = await self.question_repo.find_for_category(
            category_id, kind, difficulty, language_filter, skip, limit
        )
        if language_filter and total == 0:
            logger.info(
                f"No {language} questions in category {category_id}, "
                "falling back to all program questions"
            )
            questions, total = await self.question_repo.find_for_category(
                category_id, kind, difficulty, None, skip, limit
            )

        self.rng.shuffle(questions)
        return Page(items=questions, total=total, page=page, limit=limit)

    async def search(
        self,
        principal: Principal,
        category_id: Optional[str] = None,
        difficulty: Optional[str] = None,
        kind: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Page[Question]:
        """Admin listing with filters and free-text search."""
        require_admin(principal)
        page, limit, skip = self.page_params(page, limit)
        questions, total = await self.question_repo.search(
            category_id, difficulty, kind, status, search, skip, limit
        )
        return Page(items=questions, total=total, page=page, limit=limit)

    async def create(
        self,
        principal: Principal,
        text: str,
        category_id: str,
        content: QuestionContent,
        correct_answer: str,
        difficulty: str = "medium",
        points: int = 1,
        explanation: str = "",
        tags: Optional[List[str]] = None,
        status: str = QuestionStatus.DRAFT,
    ) -> Question:
        """Validate and store a new question."""
        require_admin(principal)
        question = Question(
            id=new_id(),
            text=(text or "").strip(),
            category_id=category_id,
            content=content,
            correct_answer=correct_answer,
            difficulty=difficulty,
            points=points,
            explanation=explanation or "",
            tags=[t.strip() for t in (tags or []) if t and t.strip()],
            status=status,
            created_by=principal.user_id,
        )
        validate_question(question)
        await self._require_category(category_id)

        await self.question_repo.create(question)
        await self.category_repo.refresh_question_count(category_id)
        logger.info(f"Question {question.id} ({question.kind}) created by {principal.user_id}")
        return question

    async def update(
        self, principal: Principal, question_id: str, changes: Dict[str, Any]
    ) -> Question:
        """Apply a partial update and re-validate the merged question."""
        require_admin(principal)
        question = await self.get(question_id)
        previous_category = question.category_id

        for key, value in changes.items():
            if key not in _EDITABLE_FIELDS:
                raise ValidationError.for_field(key, f"Field {key} cannot be updated")
            setattr(question, key, value)

        validate_question(question)
        if question.category_id != previous_category:
            await self._require_category(question.category_id)

        await self.question_repo.update(question)
        await self.category_repo.refresh_question_count(question.category_id)
        if question.category_id != previous_category:
            await self.category_repo.refresh_question_count(previous_category)
        return question

    async def delete(self, principal: Principal, question_id: str) -> bool:
        """Delete a question.

        A question referenced by any session snapshot or attempt history is
        deactivated instead of removed.

        Returns:
            True if the question was hard-deleted, False if it was deactivated
        """
        require_admin(principal)
        question = await self.get(question_id)

        if await self.question_repo.is_referenced(question_id):
            question.status = QuestionStatus.INACTIVE
            await self.question_repo.update(question)
            hard_deleted = False
            logger.info(f"Question {question_id} is referenced; deactivated instead of deleted")
        else:
            await self.question_repo.delete(question_id)
            hard_deleted = True

        await self.category_repo.refresh_question_count(question.category_id)
        return hard_deleted

    async def toggle_status(self, principal: Principal, question_id: str) -> Question:
        """Switch between active and inactive. Drafts become active."""
        require_admin(principal)
        question = await self.get(question_id)
        if question.status == QuestionStatus.ACTIVE:
            question.status = QuestionStatus.INACTIVE
        else:
            question.status = QuestionStatus.ACTIVE
        await self.question_repo.update(question)
        await self.category_repo.refresh_question_count(question.category_id)
        return question

    async def get_stats(self, principal: Principal) -> Dict[str, Any]:
        """Bank-wide counts by status, difficulty and kind."""
        require_admin(principal)
        return {
            "overall": await self.question_repo.get_overall_stats(),
            "by_difficulty": await self.question_repo.count_by("difficulty"),
            "by_type": await self.question_repo.count_by("kind"),
        }
