"""Scenario-based tests for the timed quiz session flow.

These tests walk a student through starting a quiz, answering questions,
running out of time and finishing, checking the score and state after each
step.
"""

import pytest

from quizhub.database.models import SessionStatus
from quizhub.utils.errors import (
    NoQuestionsAvailableError,
    NotFoundError,
    SessionAlreadyActiveError,
    SessionExpiredError,
    ValidationError,
)


def answers_by_id(questions):
    return {q.id: q.correct_answer for q in questions}


class TestStartSessionScenarios:
    """Test scenarios for starting a quiz session."""

    @pytest.mark.asyncio
    async def test_scenario_student_starts_quiz(
        self, server, student_principal, sample_category, sample_questions, clock
    ):
        """
        Scenario: A student starts a quiz in a category with three questions

        Given: An active category with three active MCQs
        When: The student starts a three-question quiz with a 10 minute limit
        Then: The session is in progress with the full time remaining
        And: The score starts with every question unanswered
        """
        session = await server.quiz_service.start_session(
            student_principal, sample_category.id, time_limit=600, question_count=3
        )

        assert session.status == SessionStatus.IN_PROGRESS
        assert session.session_id.startswith("quiz_")
        assert session.started_at == clock.now
        assert session.time_remaining == 600
        assert len(session.questions) == 3
        assert session.score.total_questions == 3
        assert session.score.unanswered_questions == 3
        assert session.score.total_points == 6
        assert session.score.percentage == 0

    @pytest.mark.asyncio
    async def test_scenario_quiz_uses_fewer_questions_when_bank_is_small(
        self, server, student_principal, sample_category, sample_questions
    ):
        """
        Scenario: The category has fewer questions than requested

        Given: Three active questions
        When: The student asks for ten
        Then: The session contains the three that exist
        """
        session = await server.quiz_service.start_session(
            student_principal, sample_category.id, question_count=10
        )

        assert len(session.questions) == 3

    @pytest.mark.asyncio
    async def test_scenario_filter_by_difficulty(
        self, server, student_principal, sample_category, sample_questions
    ):
        """
        Scenario: A student asks for hard questions only

        Given: One question of each difficulty
        When: The student starts a quiz with difficulty "hard"
        Then: Only the hard question is selected
        """
        session = await server.quiz_service.start_session(
            student_principal, sample_category.id, difficulty="hard", question_count=5
        )

        assert [q.difficulty for q in session.questions] == ["hard"]

    @pytest.mark.asyncio
    async def test_scenario_second_start_is_rejected_while_active(
        self, server, student_principal, sample_category, sample_questions, clock
    ):
        """
        Scenario: A student tries to start a second quiz in the same category

        Given: A running session
        When: The student starts another one five minutes later
        Then: The request is rejected with the running session's id and time left
        """
        first = await server.quiz_service.start_session(
            student_principal, sample_category.id, time_limit=600
        )
        clock.advance(300)

        with pytest.raises(SessionAlreadyActiveError) as exc_info:
            await server.quiz_service.start_session(student_principal, sample_category.id)

        assert exc_info.value.data["session_id"] == first.session_id
        assert exc_info.value.data["time_remaining"] == 300

    @pytest.mark.asyncio
    async def test_scenario_stale_session_is_replaced(
        self, server, student_principal, sample_category, sample_questions, clock
    ):
        """
        Scenario: A student comes back after their previous quiz ran out of time

        Given: A session whose time limit passed without any request
        When: The student starts a new quiz
        Then: The old session is stored as expired and a new one starts
        """
        first = await server.quiz_service.start_session(
            student_principal, sample_category.id, time_limit=60
        )
        clock.advance(61)

        second = await server.quiz_service.start_session(student_principal, sample_category.id)

        stored = await server.session_repo.get_by_session_id(first.session_id)
        assert stored.status == SessionStatus.EXPIRED
        assert stored.time_remaining == 0
        assert second.session_id != first.session_id

    @pytest.mark.asyncio
    async def test_scenario_inactive_category(
        self, server, student_principal, inactive_category
    ):
        """
        Scenario: A student tries a deactivated category

        Given: An inactive category
        When: The student starts a quiz in it
        Then: The category is reported as not found or inactive
        """
        with pytest.raises(NotFoundError):
            await server.quiz_service.start_session(student_principal, inactive_category.id)

    @pytest.mark.asyncio
    async def test_scenario_no_questions(self, server, student_principal, sample_category):
        """
        Scenario: A category without questions

        Given: An active category with no active questions
        When: The student starts a quiz
        Then: No questions are available
        """
        with pytest.raises(NoQuestionsAvailableError):
            await server.quiz_service.start_session(student_principal, sample_category.id)

    @pytest.mark.asyncio
    async def test_scenario_out_of_range_limits(
        self, server, student_principal, sample_category, sample_questions
    ):
        """
        Scenario: Invalid quiz settings

        Given: Time limit below one minute and zero questions
        When: The student starts a quiz
        Then: Both fields are reported
        """
        with pytest.raises(ValidationError) as exc_info:
            await server.quiz_service.start_session(
                student_principal, sample_category.id, time_limit=30, question_count=0
            )

        fields = {e["field"] for e in exc_info.value.errors}
        assert fields == {"timeLimit", "questionCount"}


class TestAnswerScenarios:
    """Test scenarios for answering questions and scoring."""

    @pytest.mark.asyncio
    async def test_scenario_all_correct_scores_full_marks(
        self, server, student_principal, sample_category, sample_questions
    ):
        """
        Scenario: A student answers every question correctly

        Given: A three-question session
        When: The student answers all three correctly and submits
        Then: The score is 100% with every point earned
        """
        correct = answers_by_id(sample_questions)
        session = await server.quiz_service.start_session(
            student_principal, sample_category.id, question_count=3
        )
        for question in session.questions:
            result = await server.quiz_service.submit_answer(
                student_principal, session.session_id, question.question_id,
                correct[question.question_id], time_spent=10,
            )
            assert result.answer.is_correct

        finished = await server.quiz_service.complete_session(student_principal, session.session_id)

        assert finished.status == SessionStatus.COMPLETED
        assert finished.score.correct_answers == 3
        assert finished.score.earned_points == 6
        assert finished.score.percentage == 100

    @pytest.mark.asyncio
    async def test_scenario_partial_answers(
        self, server, student_principal, sample_category, sample_questions
    ):
        """
        Scenario: One right, one wrong, one skipped

        Given: A three-question session
        When: The student answers one correctly, one incorrectly and skips one
        Then: The percentage counts questions, not points, and rounds to 33
        """
        correct = answers_by_id(sample_questions)
        session = await server.quiz_service.start_session(
            student_principal, sample_category.id, question_count=3
        )
        first, second, _ = session.questions

        await server.quiz_service.submit_answer(
            student_principal, session.session_id, first.question_id, correct[first.question_id]
        )
        result = await server.quiz_service.submit_answer(
            student_principal, session.session_id, second.question_id, "definitely wrong"
        )

        score = result.session.score
        assert score.correct_answers == 1
        assert score.incorrect_answers == 1
        assert score.unanswered_questions == 1
        assert score.earned_points == first.points
        assert score.percentage == 33

    @pytest.mark.asyncio
    async def test_scenario_changing_an_answer(
        self, server, student_principal, sample_category, sample_questions
    ):
        """
        Scenario: A student changes their mind

        Given: A wrong answer to a question
        When: The student answers the same question again correctly
        Then: Only the latest answer counts
        """
        correct = answers_by_id(sample_questions)
        session = await server.quiz_service.start_session(
            student_principal, sample_category.id, question_count=3
        )
        question = session.questions[0]

        await server.quiz_service.submit_answer(
            student_principal, session.session_id, question.question_id, "nope"
        )
        result = await server.quiz_service.submit_answer(
            student_principal, session.session_id, question.question_id,
            correct[question.question_id],
        )

        assert len(result.session.answers) == 1
        assert result.answer.is_correct
        assert result.session.score.correct_answers == 1
        assert result.session.score.incorrect_answers == 0

    @pytest.mark.asyncio
    async def test_scenario_answers_match_exactly(
        self, server, student_principal, sample_category, sample_questions
    ):
        """
        Scenario: An answer differing only in whitespace

        Given: A question whose answer is "4"
        When: The student answers " 4"
        Then: The answer is marked incorrect
        """
        session = await server.quiz_service.start_session(
            student_principal, sample_category.id, difficulty="easy"
        )
        question = session.questions[0]

        result = await server.quiz_service.submit_answer(
            student_principal, session.session_id, question.question_id, " 4"
        )

        assert not result.answer.is_correct

    @pytest.mark.asyncio
    async def test_scenario_question_not_in_session(
        self, server, student_principal, sample_category, sample_questions
    ):
        """
        Scenario: Answering a question that was not selected

        Given: A session restricted to the easy question
        When: The student answers the hard question
        Then: The answer is rejected as invalid
        """
        session = await server.quiz_service.start_session(
            student_principal, sample_category.id, difficulty="easy"
        )
        hard = next(q for q in sample_questions if q.difficulty == "hard")

        with pytest.raises(ValidationError):
            await server.quiz_service.submit_answer(
                student_principal, session.session_id, hard.id, "true"
            )

    @pytest.mark.asyncio
    async def test_scenario_other_student_cannot_answer(
        self, server, student_principal, other_student, sample_category, sample_questions
    ):
        """
        Scenario: Someone else's session

        Given: A session belonging to student-1
        When: student-2 tries to answer in it
        Then: The session is not found for them
        """
        session = await server.quiz_service.start_session(student_principal, sample_category.id)

        with pytest.raises(NotFoundError):
            await server.quiz_service.submit_answer(
                other_student, session.session_id, session.questions[0].question_id, "4"
            )


class TestExpiryScenarios:
    """Test scenarios for lazily expiring sessions."""

    @pytest.mark.asyncio
    async def test_scenario_answer_after_deadline(
        self, server, student_principal, sample_category, sample_questions, clock
    ):
        """
        Scenario: A student answers after the time limit

        Given: A session with a 60 second limit
        When: The student answers 61 seconds after starting
        Then: The session expires and the answer is rejected
        And: Further answers report the session as no longer active
        """
        session = await server.quiz_service.start_session(
            student_principal, sample_category.id, time_limit=60
        )
        question_id = session.questions[0].question_id
        clock.advance(61)

        with pytest.raises(SessionExpiredError) as exc_info:
            await server.quiz_service.submit_answer(
                student_principal, session.session_id, question_id, "4"
            )
        assert exc_info.value.data["score"].total_questions == len(session.questions)

        stored = await server.session_repo.get_by_session_id(session.session_id)
        assert stored.status == SessionStatus.EXPIRED
        assert stored.answers == []

        with pytest.raises(NotFoundError):
            await server.quiz_service.submit_answer(
                student_principal, session.session_id, question_id, "4"
            )

    @pytest.mark.asyncio
    async def test_scenario_answer_exactly_at_deadline(
        self, server, student_principal, sample_category, sample_questions, clock
    ):
        """
        Scenario: An answer arriving exactly at the limit

        Given: A session with a 60 second limit
        When: The student answers exactly 60 seconds in
        Then: The answer is accepted with no time remaining
        """
        session = await server.quiz_service.start_session(
            student_principal, sample_category.id, time_limit=60
        )
        clock.advance(60)

        result = await server.quiz_service.submit_answer(
            student_principal, session.session_id, session.questions[0].question_id, "x"
        )

        assert result.session.status == SessionStatus.IN_PROGRESS
        assert result.session.time_remaining == 0

    @pytest.mark.asyncio
    async def test_scenario_active_session_reports_expiry(
        self, server, student_principal, sample_category, sample_questions, clock
    ):
        """
        Scenario: Resuming a quiz that ran out of time

        Given: A session past its deadline
        When: The student fetches their active session
        Then: The session is expired on that read
        """
        await server.quiz_service.start_session(
            student_principal, sample_category.id, time_limit=60
        )
        clock.advance(120)

        with pytest.raises(SessionExpiredError):
            await server.quiz_service.get_active_session(student_principal, sample_category.id)

        with pytest.raises(NotFoundError):
            await server.quiz_service.get_active_session(student_principal, sample_category.id)

    @pytest.mark.asyncio
    async def test_scenario_results_of_stale_session(
        self, server, student_principal, sample_category, sample_questions, clock
    ):
        """
        Scenario: Asking for results of a quiz that silently timed out

        Given: A running session nobody touched past its limit
        When: The student asks for its results
        Then: The session is expired and its results are returned
        """
        session = await server.quiz_service.start_session(
            student_principal, sample_category.id, time_limit=60
        )

        with pytest.raises(NotFoundError):
            await server.quiz_service.get_results(student_principal, session.session_id)

        clock.advance(90)
        results = await server.quiz_service.get_results(student_principal, session.session_id)

        assert results.status == SessionStatus.EXPIRED


class TestCompletionScenarios:
    """Test scenarios for finishing sessions."""

    @pytest.mark.asyncio
    async def test_scenario_completion_records_history_and_stats(
        self, server, student_principal, sample_category, sample_questions, clock
    ):
        """
        Scenario: Completing a quiz updates question stats and history

        Given: A session with one correct answer taking 12 seconds
        When: The student submits the quiz
        Then: That question's attempt counters are incremented
        And: An attempt history record exists for the session
        """
        correct = answers_by_id(sample_questions)
        session = await server.quiz_service.start_session(
            student_principal, sample_category.id, difficulty="easy"
        )
        question_id = session.questions[0].question_id
        await server.quiz_service.submit_answer(
            student_principal, session.session_id, question_id, correct[question_id], time_spent=12
        )
        clock.advance(30)

        finished = await server.quiz_service.complete_session(student_principal, session.session_id)

        assert finished.completed_at == clock.now
        assert finished.duration == 30
        question = await server.question_repo.get_by_id(question_id)
        assert question.stats.total_attempts == 1
        assert question.stats.correct_attempts == 1
        assert question.stats.average_time == 12
        assert await server.history_repo.exists_for_session(session.session_id)

    @pytest.mark.asyncio
    async def test_scenario_history_failure_does_not_fail_completion(
        self, server, student_principal, sample_category, sample_questions, monkeypatch
    ):
        """
        Scenario: History storage breaks during completion

        Given: A history service that raises
        When: The student completes their quiz
        Then: The session is still completed
        """
        async def broken(session):
            raise RuntimeError("history store unavailable")

        monkeypatch.setattr(server.history_service, "record_session", broken)
        session = await server.quiz_service.start_session(student_principal, sample_category.id)

        finished = await server.quiz_service.complete_session(student_principal, session.session_id)

        assert finished.status == SessionStatus.COMPLETED
        stored = await server.session_repo.get_by_session_id(session.session_id)
        assert stored.status == SessionStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_scenario_abandon_then_answer(
        self, server, student_principal, sample_category, sample_questions, clock
    ):
        """
        Scenario: A student gives up

        Given: A running session
        When: The student abandons it and then tries to answer
        Then: The session is abandoned and the answer is rejected
        And: A new quiz can be started in the same category
        """
        session = await server.quiz_service.start_session(student_principal, sample_category.id)
        clock.advance(45)

        abandoned = await server.quiz_service.abandon_session(student_principal, session.session_id)
        assert abandoned.status == SessionStatus.ABANDONED
        assert abandoned.duration == 45

        with pytest.raises(NotFoundError):
            await server.quiz_service.submit_answer(
                student_principal, session.session_id, session.questions[0].question_id, "4"
            )
        with pytest.raises(NotFoundError):
            await server.quiz_service.complete_session(student_principal, session.session_id)

        again = await server.quiz_service.start_session(student_principal, sample_category.id)
        assert again.status == SessionStatus.IN_PROGRESS

    @pytest.mark.asyncio
    async def test_scenario_session_history_lists_finished_sessions(
        self, server, student_principal, sample_category, sample_questions, clock
    ):
        """
        Scenario: Browsing past sessions

        Given: One abandoned session and one running session
        When: The student lists their session history
        Then: Only the finished session appears
        """
        first = await server.quiz_service.start_session(student_principal, sample_category.id)
        await server.quiz_service.abandon_session(student_principal, first.session_id)
        clock.advance(10)
        await server.quiz_service.start_session(student_principal, sample_category.id)

        page = await server.quiz_service.get_history(student_principal)

        assert page.total == 1
        assert page.items[0].session_id == first.session_id
        assert not page.has_next

    @pytest.mark.asyncio
    async def test_scenario_session_history_expires_stale_sessions(
        self, server, student_principal, sample_category, sample_questions, clock
    ):
        """
        Scenario: A forgotten quiz shows up in the history

        Given: A session left running past its 30 minute limit
        When: The student lists their session history
        Then: The session is listed as expired and stored that way
        """
        session = await server.quiz_service.start_session(student_principal, sample_category.id)
        clock.advance(minutes=31)

        page = await server.quiz_service.get_history(student_principal)

        assert page.total == 1
        assert page.items[0].session_id == session.session_id
        assert page.items[0].status == SessionStatus.EXPIRED
        stored = await server.session_repo.get_by_session_id(session.session_id)
        assert stored.status == SessionStatus.EXPIRED
