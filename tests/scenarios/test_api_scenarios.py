"""Scenario-based tests for the HTTP API and its response envelope."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from quizhub.api import create_app
from tests.mocks import auth_headers

ANSWERS = {"2 + 2 = ?": "4", "typeof null?": "object", "[] == ![] ?": "true"}


@pytest_asyncio.fixture
async def client(config, test_database, clock, rng):
    """An HTTP client talking to the app in-process."""
    app = create_app(config, database=test_database, clock=clock, rng=rng)
    # ASGITransport does not run the lifespan
    await app.state.server.setup()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http


async def start_quiz(client, principal, category_id):
    return await client.post(
        "/api/quiz-sessions/start",
        json={"categoryId": category_id},
        headers=auth_headers(principal),
    )


class TestEnvelopeScenarios:
    """Test scenarios for authentication and error envelopes."""

    @pytest.mark.asyncio
    async def test_scenario_missing_principal_is_rejected(self, client, sample_category):
        """
        Scenario: A request without user headers

        Given: No X-User-Id header
        When: Starting a quiz
        Then: The API answers 401 in the standard envelope
        """
        response = await client.post(
            "/api/quiz-sessions/start", json={"categoryId": sample_category.id}
        )

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Authentication required"
        assert "data" not in body

    @pytest.mark.asyncio
    async def test_scenario_malformed_body_is_a_validation_error(
        self, client, student_principal
    ):
        response = await client.post(
            "/api/quiz-sessions/start", json={}, headers=auth_headers(student_principal)
        )

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Validation failed"
        assert body["errors"][0]["field"] == "categoryId"

    @pytest.mark.asyncio
    async def test_scenario_health(self, client):
        response = await client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "OK"
        assert response.json()["data"]["database"] == "connected"


class TestQuizFlowScenarios:
    """Test scenarios for a quiz played over HTTP."""

    @pytest.mark.asyncio
    async def test_scenario_start_hides_answers(
        self, client, student_principal, sample_category, sample_questions
    ):
        """
        Scenario: A student starts a quiz

        Given: A category with three active questions
        When: The student starts a session
        Then: The session is created and no answers leak to the client
        """
        response = await start_quiz(client, student_principal, sample_category.id)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status"] == "in_progress"
        assert data["timeRemaining"] == 1800
        assert len(data["questions"]) == 3
        for question in data["questions"]:
            assert "correctAnswer" not in question
            assert "explanation" not in question
            assert all("isCorrect" not in o for o in question["options"])

    @pytest.mark.asyncio
    async def test_scenario_second_start_points_at_running_session(
        self, client, student_principal, sample_category, sample_questions
    ):
        first = await start_quiz(client, student_principal, sample_category.id)
        second = await start_quiz(client, student_principal, sample_category.id)

        assert second.status_code == 400
        assert second.json()["data"]["sessionId"] == first.json()["data"]["sessionId"]

    @pytest.mark.asyncio
    async def test_scenario_answer_after_time_limit(
        self, client, clock, student_principal, sample_category, sample_questions
    ):
        """
        Scenario: Answering after the clock ran out

        Given: A running session with the default 30 minute limit
        When: The student answers 31 minutes later
        Then: The API answers 410 and the session is expired
        """
        started = (await start_quiz(client, student_principal, sample_category.id)).json()["data"]
        clock.advance(minutes=31)

        response = await client.post(
            f"/api/quiz-sessions/{started['sessionId']}/answer",
            json={
                "questionId": started["questions"][0]["questionId"],
                "selectedAnswer": "4",
            },
            headers=auth_headers(student_principal),
        )

        assert response.status_code == 410
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_scenario_full_quiz_lands_in_history(
        self, client, clock, student_principal, other_student, sample_category, sample_questions
    ):
        """
        Scenario: A student answers everything correctly and submits

        Given: A running session
        When: Every question is answered correctly and the quiz is submitted
        Then: Results show 100%, the attempt is listed and other students cannot read it
        """
        headers = auth_headers(student_principal)
        started = (await start_quiz(client, student_principal, sample_category.id)).json()["data"]

        for question in started["questions"]:
            clock.advance(seconds=20)
            answer = await client.post(
                f"/api/quiz-sessions/{started['sessionId']}/answer",
                json={
                    "questionId": question["questionId"],
                    "selectedAnswer": ANSWERS[question["questionText"]],
                    "timeSpent": 20,
                },
                headers=headers,
            )
            assert answer.status_code == 200
            assert answer.json()["data"]["isCorrect"] is True

        results = await client.post(
            f"/api/quiz-sessions/{started['sessionId']}/submit", headers=headers
        )
        assert results.status_code == 200
        assert results.json()["data"]["score"]["percentage"] == 100
        assert results.json()["data"]["performanceGrade"] == "A+"

        listing = await client.get("/api/attempt-history", headers=headers)
        attempts = listing.json()["data"]["attempts"]
        assert len(attempts) == 1
        assert listing.json()["data"]["pagination"]["totalItems"] == 1

        foreign = await client.get(
            f"/api/attempt-history/{attempts[0]['id']}", headers=auth_headers(other_student)
        )
        assert foreign.status_code == 403


class TestCatalogScenarios:
    """Test scenarios for public reads and exports."""

    @pytest.mark.asyncio
    async def test_scenario_categories_are_public(
        self, client, sample_category, inactive_category
    ):
        response = await client.get("/api/categories")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["count"] == 1
        assert data["categories"][0]["name"] == "JavaScript Basics"

    @pytest.mark.asyncio
    async def test_scenario_student_cannot_create_category(self, client, student_principal):
        response = await client.post(
            "/api/categories",
            json={"name": "Rust", "description": "Ownership"},
            headers=auth_headers(student_principal),
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_scenario_csv_export(self, client, student_principal):
        response = await client.get(
            "/api/attempt-history/export",
            params={"format": "csv"},
            headers=auth_headers(student_principal),
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "quiz-attempts-2024-03-01.csv" in response.headers["content-disposition"]
