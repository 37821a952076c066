"""Scenario-based tests for question bank management."""

import pytest

from quizhub.constants import (
    ERROR_MCQ_ANSWER_MISMATCH,
    ERROR_MCQ_MIN_OPTIONS,
    ERROR_MCQ_ONE_CORRECT,
)
from quizhub.database.models import McqContent, ProgramTraceContent, QuestionOption
from quizhub.utils.errors import ForbiddenError, NotFoundError, ValidationError
from tests.mocks import make_program_question


def options(*texts, correct=None):
    return McqContent(options=[QuestionOption(t, t == correct) for t in texts])


class TestQuestionValidationScenarios:
    """Test scenarios for creating questions."""

    @pytest.mark.asyncio
    async def test_scenario_admin_creates_mcq(
        self, server, admin_principal, sample_category
    ):
        """
        Scenario: An admin adds a multiple choice question

        Given: A valid MCQ with one correct option
        When: The admin creates it as active
        Then: It is stored and the category's question count goes up
        """
        question = await server.question_service.create(
            admin_principal,
            text="Which keyword declares a constant?",
            category_id=sample_category.id,
            content=options("var", "let", "const", correct="const"),
            correct_answer="const",
            tags=[" es6 ", ""],
            status="active",
        )

        stored = await server.question_repo.get_by_id(question.id)
        assert stored.kind == "mcq"
        assert stored.tags == ["es6"]
        assert stored.created_by == admin_principal.user_id
        category = await server.category_repo.get_by_id(sample_category.id)
        assert category.question_count == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "content,answer,message",
        [
            (options("only", correct="only"), "only", ERROR_MCQ_MIN_OPTIONS),
            (options("a", "b", correct=None), "a", ERROR_MCQ_ONE_CORRECT),
            (
                McqContent(options=[QuestionOption("a", True), QuestionOption("b", True)]),
                "a",
                ERROR_MCQ_ONE_CORRECT,
            ),
            (options("a", "b", correct="a"), "b", ERROR_MCQ_ANSWER_MISMATCH),
        ],
    )
    async def test_scenario_invalid_mcq_is_rejected(
        self, server, admin_principal, sample_category, content, answer, message
    ):
        """
        Scenario: Malformed multiple choice questions

        Given: Too few options, no or several correct options, or an answer
            that differs from the correct option
        When: The admin creates the question
        Then: It is rejected with the matching message
        """
        with pytest.raises(ValidationError) as exc_info:
            await server.question_service.create(
                admin_principal,
                text="Pick one",
                category_id=sample_category.id,
                content=content,
                correct_answer=answer,
            )

        assert message in [e["message"] for e in exc_info.value.errors]

    @pytest.mark.asyncio
    async def test_scenario_program_question_needs_snippet(
        self, server, admin_principal, sample_category
    ):
        with pytest.raises(ValidationError):
            await server.question_service.create(
                admin_principal,
                text="What is printed?",
                category_id=sample_category.id,
                content=ProgramTraceContent(code_snippet="", language="python", expected_output="1"),
                correct_answer="1",
            )

    @pytest.mark.asyncio
    async def test_scenario_unknown_category(self, server, admin_principal):
        with pytest.raises(ValidationError):
            await server.question_service.create(
                admin_principal,
                text="Orphan?",
                category_id="missing",
                content=options("a", "b", correct="a"),
                correct_answer="a",
            )

    @pytest.mark.asyncio
    async def test_scenario_student_cannot_create(
        self, server, student_principal, sample_category
    ):
        with pytest.raises(ForbiddenError):
            await server.question_service.create(
                student_principal,
                text="Sneaky?",
                category_id=sample_category.id,
                content=options("a", "b", correct="a"),
                correct_answer="a",
            )

    @pytest.mark.asyncio
    async def test_scenario_update_revalidates(
        self, server, admin_principal, sample_questions
    ):
        """
        Scenario: Changing the answer of an MCQ without updating its options

        Given: An MCQ whose correct option is "4"
        When: The admin changes only the correct answer to "5"
        Then: The update is rejected because it no longer matches the options
        """
        question = sample_questions[0]

        with pytest.raises(ValidationError):
            await server.question_service.update(
                admin_principal, question.id, {"correct_answer": "5"}
            )


class TestQuestionLifecycleScenarios:
    """Test scenarios for deleting, toggling and listing questions."""

    @pytest.mark.asyncio
    async def test_scenario_unused_question_is_deleted(
        self, server, admin_principal, sample_questions
    ):
        question = sample_questions[0]

        hard_deleted = await server.question_service.delete(admin_principal, question.id)

        assert hard_deleted
        assert await server.question_repo.get_by_id(question.id) is None

    @pytest.mark.asyncio
    async def test_scenario_used_question_is_deactivated(
        self, server, admin_principal, student_principal, sample_category, sample_questions
    ):
        """
        Scenario: Deleting a question that appears in a quiz

        Given: A session whose snapshot contains the easy question
        When: The admin deletes that question
        Then: It is kept as inactive so the session's history stays intact
        And: New quizzes no longer select it
        """
        session = await server.quiz_service.start_session(
            student_principal, sample_category.id, difficulty="easy"
        )
        question_id = session.questions[0].question_id
        await server.quiz_service.abandon_session(student_principal, session.session_id)

        hard_deleted = await server.question_service.delete(admin_principal, question_id)

        assert not hard_deleted
        stored = await server.question_repo.get_by_id(question_id)
        assert stored.status == "inactive"
        candidates = await server.question_repo.find_candidates(sample_category.id, "mcq", "easy", 10)
        assert candidates == []

    @pytest.mark.asyncio
    async def test_scenario_students_cannot_see_inactive_questions(
        self, server, admin_principal, student_principal, sample_questions
    ):
        question = sample_questions[0]
        await server.question_service.toggle_status(admin_principal, question.id)

        with pytest.raises(NotFoundError):
            await server.question_service.get(question.id, student_principal)

        fetched = await server.question_service.get(question.id, admin_principal)
        assert fetched.status == "inactive"

    @pytest.mark.asyncio
    async def test_scenario_program_language_fallback(
        self, server, question_repository, sample_category
    ):
        """
        Scenario: Asking for program questions in a language nobody wrote

        Given: Two Python program-trace questions
        When: A student lists program questions for Java
        Then: All program questions of the category are returned instead
        """
        for _ in range(2):
            await question_repository.create(make_program_question(sample_category.id, "python"))

        page = await server.question_service.list_for_category(
            sample_category.id, kind="program-trace", language="java"
        )

        assert page.total == 2
        assert all(q.content.language == "python" for q in page.items)

    @pytest.mark.asyncio
    async def test_scenario_bank_stats(self, server, admin_principal, sample_questions):
        stats = await server.question_service.get_stats(admin_principal)

        assert stats["overall"]["total_questions"] == 3
        assert stats["overall"]["active_questions"] == 3
        assert stats["by_difficulty"] == {"easy": 1, "medium": 1, "hard": 1}
        assert stats["by_type"] == {"mcq": 3}
