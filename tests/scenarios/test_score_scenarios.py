"""Scenario-based tests for the pure scoring and grading functions."""

from datetime import datetime, timedelta, timezone

import pytest

from quizhub.database.models import (
    QuizSession,
    ReviewCriterion,
    SessionAnswer,
    SessionQuestion,
)
from quizhub.scoring import (
    build_question_analysis,
    calculate_performance,
    compute_score,
    criteria_total,
    is_expired,
    performance_grade,
    submission_grade,
    time_efficiency,
    time_remaining,
)

START = datetime(2024, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


def snapshot(question_id: str, points: int = 1, difficulty: str = "medium") -> SessionQuestion:
    return SessionQuestion(
        question_id=question_id,
        question_text=f"Question {question_id}",
        correct_answer="A",
        difficulty=difficulty,
        points=points,
    )


def answer(question_id: str, is_correct: bool, time_spent: int = 0) -> SessionAnswer:
    return SessionAnswer(
        question_id=question_id,
        selected_answer="A" if is_correct else "B",
        is_correct=is_correct,
        time_spent=time_spent,
    )


class TestComputeScoreScenarios:
    """Test scenarios for the session score summary."""

    def test_scenario_empty_session(self):
        """
        Scenario: A session with no questions

        Given: No questions and no answers
        When: The score is computed
        Then: Every count is zero and the percentage does not divide by zero
        """
        score = compute_score([], [])

        assert score.total_questions == 0
        assert score.percentage == 0

    def test_scenario_points_and_percentage_are_independent(self):
        """
        Scenario: A heavily weighted question answered correctly

        Given: Questions worth 1, 1 and 8 points
        When: Only the 8-point question is answered correctly
        Then: 8 of 10 points are earned but the percentage is one in three
        """
        questions = [snapshot("q1"), snapshot("q2"), snapshot("q3", points=8)]

        score = compute_score(questions, [answer("q3", True)])

        assert score.total_points == 10
        assert score.earned_points == 8
        assert score.percentage == 33
        assert score.unanswered_questions == 2

    def test_scenario_missing_points_default_to_one(self):
        """
        Scenario: A snapshot without points

        Given: A question whose points are zero
        When: It is answered correctly
        Then: It counts as one point
        """
        score = compute_score([snapshot("q1", points=0)], [answer("q1", True)])

        assert score.total_points == 1
        assert score.earned_points == 1

    @pytest.mark.parametrize(
        "correct,total,expected",
        [(2, 3, 67), (1, 8, 13), (5, 8, 63), (1, 6, 17)],
    )
    def test_scenario_percentage_rounds_half_up(self, correct, total, expected):
        """
        Scenario: Percentages that need rounding

        Given: A number of correct answers out of a total
        When: The score is computed
        Then: The percentage is rounded to the nearest whole number
        """
        questions = [snapshot(f"q{i}") for i in range(total)]
        answers = [answer(f"q{i}", i < correct) for i in range(total)]

        assert compute_score(questions, answers).percentage == expected


class TestTimingScenarios:
    """Test scenarios for expiry and remaining time."""

    def make_session(self, time_limit: int) -> QuizSession:
        return QuizSession(
            id="s1",
            session_id="quiz_1_abc",
            user_id="u1",
            category_id="c1",
            questions=[],
            started_at=START,
            time_limit=time_limit,
            time_remaining=time_limit,
        )

    def test_scenario_deadline_is_inclusive(self):
        """
        Scenario: Checking expiry around the deadline

        Given: A 60 second session
        When: Exactly 60 seconds and then 60.5 seconds have elapsed
        Then: It is still running at 60 and expired just after
        """
        session = self.make_session(60)

        assert not is_expired(session, START + timedelta(seconds=60))
        assert is_expired(session, START + timedelta(seconds=60.5))

    def test_scenario_remaining_time_is_floored_and_clamped(self):
        session = self.make_session(60)

        assert time_remaining(session, START + timedelta(seconds=10.7)) == 49
        assert time_remaining(session, START + timedelta(seconds=300)) == 0


class TestPerformanceScenarios:
    """Test scenarios for history performance metrics and grades."""

    def test_scenario_skipped_and_untimed_questions(self):
        """
        Scenario: Metrics for a mixed attempt

        Given: An easy question answered correctly in 20s, a hard one wrong
            in 40s, and a medium question answered with no time recorded
            and one skipped
        When: Performance is calculated
        Then: Timing ignores the untimed answer and skipped questions
        And: Skipped questions are not counted as attempted
        """
        session = QuizSession(
            id="s1",
            session_id="quiz_1_abc",
            user_id="u1",
            category_id="c1",
            questions=[
                snapshot("q1", difficulty="easy"),
                snapshot("q2", difficulty="hard"),
                snapshot("q3", difficulty="medium"),
                snapshot("q4", difficulty="medium"),
            ],
            started_at=START,
            time_limit=600,
            time_remaining=600,
            answers=[answer("q1", True, 20), answer("q2", False, 40), answer("q3", True, 0)],
        )

        analysis = build_question_analysis(session)
        metrics = calculate_performance(analysis)

        assert [qa.was_skipped for qa in analysis] == [False, False, False, True]
        assert metrics.average_time_per_question == 30
        assert metrics.fastest_question == 20
        assert metrics.slowest_question == 40
        assert metrics.difficulty_breakdown["easy"].attempted == 1
        assert metrics.difficulty_breakdown["easy"].correct == 1
        assert metrics.difficulty_breakdown["hard"].correct == 0
        assert metrics.difficulty_breakdown["medium"].attempted == 1

    @pytest.mark.parametrize(
        "percentage,grade",
        [(100, "A+"), (90, "A+"), (89, "A"), (72, "B"), (40, "D"), (39, "F")],
    )
    def test_scenario_performance_grades(self, percentage, grade):
        assert performance_grade(percentage) == grade

    @pytest.mark.parametrize(
        "seconds,label",
        [(30, "Excellent"), (31, "Good"), (90, "Average"), (120, "Slow"), (121, "Very Slow")],
    )
    def test_scenario_time_efficiency(self, seconds, label):
        assert time_efficiency(seconds) == label

    def test_scenario_rubric_totals(self):
        """
        Scenario: A review with rubric criteria

        Given: Criteria scoring 8/10 and 9/10
        When: The total is computed
        Then: It is 85 percent, graded B for an 85 review score
        """
        criteria = [
            ReviewCriterion(name="Correctness", score=8, max_score=10),
            ReviewCriterion(name="Style", score=9, max_score=10),
        ]

        assert criteria_total(criteria) == 85
        assert criteria_total([]) is None
        assert submission_grade(85) == "B"
        assert submission_grade(None) is None
