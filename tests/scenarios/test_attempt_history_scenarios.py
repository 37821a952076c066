"""Scenario-based tests for attempt history, statistics and export."""

import csv
import io

import pytest

from quizhub.constants import EXPORT_CSV_HEADER
from quizhub.utils.errors import (
    ForbiddenError,
    HistoryAlreadyExistsError,
    NotFoundError,
    ValidationError,
)


async def finish_quiz(server, principal, category, questions, correct_count, clock, seconds=60):
    """Run a full quiz answering the first ``correct_count`` questions correctly."""
    answers = {q.id: q.correct_answer for q in questions}
    session = await server.quiz_service.start_session(
        principal, category.id, question_count=len(questions)
    )
    for index, question in enumerate(session.questions):
        selected = answers[question.question_id] if index < correct_count else "wrong"
        await server.quiz_service.submit_answer(
            principal, session.session_id, question.question_id, selected, time_spent=10
        )
    clock.advance(seconds)
    return await server.quiz_service.complete_session(principal, session.session_id)


class TestHistoryCreationScenarios:
    """Test scenarios for creating history records."""

    @pytest.mark.asyncio
    async def test_scenario_completed_quiz_has_history(
        self, server, student_principal, sample_category, sample_questions, clock
    ):
        """
        Scenario: History is created automatically on completion

        Given: A student who completes a quiz with two of three correct
        When: They list their attempts
        Then: One attempt with 67% and a question analysis is listed
        """
        await finish_quiz(server, student_principal, sample_category, sample_questions, 2, clock)

        page = await server.history_service.list_attempts(student_principal)

        assert page.total == 1
        attempt = page.items[0]
        assert attempt.score.percentage == 67
        assert attempt.duration == 60
        assert len(attempt.question_analysis) == 3
        assert attempt.performance.average_time_per_question == 10
        assert attempt.improvement.is_personal_best
        assert attempt.improvement.previous_best == 0

    @pytest.mark.asyncio
    async def test_scenario_duplicate_history_is_rejected(
        self, server, student_principal, sample_category, sample_questions, clock
    ):
        """
        Scenario: Creating history twice for the same session

        Given: A completed session that already has a history record
        When: The student asks to create it again
        Then: The request is rejected
        """
        session = await finish_quiz(
            server, student_principal, sample_category, sample_questions, 3, clock
        )

        with pytest.raises(HistoryAlreadyExistsError):
            await server.history_service.create_from_session(
                student_principal, session.session_id
            )

    @pytest.mark.asyncio
    async def test_scenario_history_for_expired_session(
        self, server, student_principal, sample_category, sample_questions, clock
    ):
        """
        Scenario: Recording an attempt that ran out of time

        Given: A session whose 60 second limit passed unnoticed
        When: The student creates its history record
        Then: The session is expired and completion is taken as its deadline
        """
        session = await server.quiz_service.start_session(
            student_principal, sample_category.id, time_limit=60
        )
        clock.advance(500)

        history = await server.history_service.create_from_session(
            student_principal, session.session_id
        )

        assert history.status == "expired"
        assert history.duration == 60
        assert all(qa.was_skipped for qa in history.question_analysis)

    @pytest.mark.asyncio
    async def test_scenario_history_for_running_session(
        self, server, student_principal, sample_category, sample_questions
    ):
        """
        Scenario: Recording a session that is still running

        Given: An in-progress session within its time limit
        When: The student creates its history record
        Then: The session is not found as a finished session
        """
        session = await server.quiz_service.start_session(student_principal, sample_category.id)

        with pytest.raises(NotFoundError):
            await server.history_service.create_from_session(
                student_principal, session.session_id
            )

    @pytest.mark.asyncio
    async def test_scenario_improvement_and_personal_best(
        self, server, student_principal, sample_category, sample_questions, clock
    ):
        """
        Scenario: Improving, then repeating a best score

        Given: A first attempt at 33%
        When: The student scores 100% and then 100% again
        Then: The second attempt is a personal best improving by 67 points
        And: The third equals but does not beat the best
        """
        await finish_quiz(server, student_principal, sample_category, sample_questions, 1, clock)
        clock.advance(60)
        await finish_quiz(server, student_principal, sample_category, sample_questions, 3, clock, 30)
        clock.advance(60)
        await finish_quiz(server, student_principal, sample_category, sample_questions, 3, clock)

        page = await server.history_service.list_attempts(student_principal, sort_order="asc")
        first, second, third = page.items

        assert first.score.percentage == 33
        assert second.improvement.score_change == 67
        assert second.improvement.time_change == -30
        assert second.improvement.is_personal_best
        assert second.improvement.previous_best == 33
        assert not third.improvement.is_personal_best
        assert third.improvement.previous_best == 100


class TestHistoryAccessScenarios:
    """Test scenarios for reading attempts."""

    @pytest.mark.asyncio
    async def test_scenario_other_student_cannot_read_attempt(
        self, server, student_principal, other_student, admin_principal,
        sample_category, sample_questions, clock,
    ):
        """
        Scenario: Reading someone else's attempt

        Given: An attempt owned by student-1
        When: student-2 and an admin request it
        Then: student-2 is forbidden and the admin can read it
        """
        await finish_quiz(server, student_principal, sample_category, sample_questions, 1, clock)
        attempt = (await server.history_service.list_attempts(student_principal)).items[0]

        with pytest.raises(ForbiddenError):
            await server.history_service.get_attempt(other_student, attempt.id)

        fetched = await server.history_service.get_attempt(admin_principal, attempt.id)
        assert fetched.id == attempt.id

    @pytest.mark.asyncio
    async def test_scenario_invalid_sort_field(self, server, student_principal):
        with pytest.raises(ValidationError):
            await server.history_service.list_attempts(student_principal, sort_by="name")


class TestStatisticsScenarios:
    """Test scenarios for aggregate statistics."""

    @pytest.mark.asyncio
    async def test_scenario_user_stats(
        self, server, student_principal, sample_category, sample_questions, clock
    ):
        """
        Scenario: A student reviews their progress

        Given: One completed attempt at 100% and one abandoned session
        When: They request their stats
        Then: Totals, best and worst scores and status counts reflect both
        """
        await finish_quiz(server, student_principal, sample_category, sample_questions, 3, clock)
        session = await server.quiz_service.start_session(student_principal, sample_category.id)
        clock.advance(20)
        await server.quiz_service.abandon_session(student_principal, session.session_id)
        await server.history_service.create_from_session(student_principal, session.session_id)

        result = await server.history_service.get_user_stats(student_principal)

        stats = result["stats"]
        assert stats["total_attempts"] == 2
        assert stats["best_score"] == 100
        assert stats["worst_score"] == 0
        assert stats["average_score"] == 50
        assert stats["total_time_spent"] == 80
        assert stats["completed_attempts"] == 1
        assert stats["abandoned_attempts"] == 1
        assert len(result["recent_attempts"]) == 2
        assert sum(t["attempts"] for t in result["trends"]) == 2

    @pytest.mark.asyncio
    async def test_scenario_category_stats_are_admin_only(
        self, server, student_principal, other_student, admin_principal,
        sample_category, sample_questions, clock,
    ):
        """
        Scenario: An admin reviews a category

        Given: Two students who each completed a quiz
        When: A student and then an admin request category stats
        Then: The student is forbidden and the admin sees both users
        """
        await finish_quiz(server, student_principal, sample_category, sample_questions, 3, clock)
        await finish_quiz(server, other_student, sample_category, sample_questions, 0, clock)

        with pytest.raises(ForbiddenError):
            await server.history_service.get_category_stats(student_principal, sample_category.id)

        result = await server.history_service.get_category_stats(
            admin_principal, sample_category.id
        )

        assert result["category_stats"]["total_attempts"] == 2
        assert result["category_stats"]["unique_users"] == 2
        assert result["category_stats"]["average_score"] == 50
        assert result["top_performers"][0]["user_id"] == student_principal.user_id

    @pytest.mark.asyncio
    async def test_scenario_performance_analytics(
        self, server, student_principal, sample_category, sample_questions, clock
    ):
        """
        Scenario: Per-difficulty analytics

        Given: An attempt where every question was answered in 10 seconds
        When: The student requests analytics for the last 30 days
        Then: Each difficulty shows one question with its accuracy
        """
        await finish_quiz(server, student_principal, sample_category, sample_questions, 3, clock)

        result = await server.history_service.get_performance_analytics(student_principal)

        by_difficulty = {d["difficulty"]: d for d in result["difficulty_analysis"]}
        assert set(by_difficulty) == {"easy", "medium", "hard"}
        assert all(d["accuracy"] == 100 for d in by_difficulty.values())
        assert result["time_analysis"]["average_time"] == 60

    @pytest.mark.asyncio
    async def test_scenario_analytics_period_bounds(self, server, student_principal):
        with pytest.raises(ValidationError):
            await server.history_service.get_performance_analytics(student_principal, period=0)


class TestExportScenarios:
    """Test scenarios for exporting attempts."""

    @pytest.mark.asyncio
    async def test_scenario_csv_export(
        self, server, student_principal, sample_category, sample_questions, clock
    ):
        """
        Scenario: Exporting attempts as CSV

        Given: A completed attempt with two of three correct in 65 seconds
        When: The student exports as CSV
        Then: The header and row match the documented columns
        """
        await finish_quiz(
            server, student_principal, sample_category, sample_questions, 2, clock, seconds=65
        )

        result = await server.history_service.export(student_principal, "csv")

        rows = list(csv.reader(io.StringIO(result.content)))
        assert rows[0] == EXPORT_CSV_HEADER
        assert rows[1] == [
            "2024-03-01",
            "JavaScript Basics",
            "67%",
            "2/3",
            "1:05",
            "completed",
            "B-",
        ]
        assert result.filename.endswith(".csv")

    @pytest.mark.asyncio
    async def test_scenario_json_export(
        self, server, student_principal, sample_category, sample_questions, clock
    ):
        await finish_quiz(server, student_principal, sample_category, sample_questions, 1, clock)

        result = await server.history_service.export(student_principal, "json")

        assert result.content["total_attempts"] == 1
        assert len(result.content["attempts"]) == 1

    @pytest.mark.asyncio
    async def test_scenario_unknown_export_format(self, server, student_principal):
        with pytest.raises(ValidationError):
            await server.history_service.export(student_principal, "xml")
