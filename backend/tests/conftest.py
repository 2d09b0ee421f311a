"""
ExamFlow - Test Configuration
Pytest fixtures and configuration for testing
"""
from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from examflow.api.deps import get_scoring_oracle
from examflow.core.database import Base, get_db
from examflow.main import app
from examflow.services.scoring import ScoringRequest, ScoringResult


# Test database URL (use SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

DEFAULT_PASSWORD = "TestPass123!"


class FakeScoringOracle:
    """Scoring oracle double: returns canned results or raises a canned error."""

    def __init__(self):
        self.results: list[ScoringResult] | None = None
        self.error: Exception | None = None
        self.calls: list[list[ScoringRequest]] = []

    async def evaluate(self, requests: list[ScoringRequest]) -> list[ScoringResult]:
        self.calls.append(requests)
        if self.error is not None:
            raise self.error
        if self.results is not None:
            return self.results
        return [ScoringResult(awarded_marks=r.points, feedback="Full marks") for r in requests]


@pytest_asyncio.fixture(scope="function")
async def session_maker() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Fresh schema on a per-test engine."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Session for inspecting database state directly from a test."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def fake_oracle() -> FakeScoringOracle:
    return FakeScoringOracle()


@pytest_asyncio.fixture(scope="function")
async def client(session_maker, fake_oracle) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database session and scoring oracle overrides."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_scoring_oracle] = lambda: fake_oracle

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def sample_setter_data() -> dict[str, Any]:
    """Sample setter registration data."""
    return {
        "email": "setter@example.com",
        "password": DEFAULT_PASSWORD,
        "role": "SETTER",
    }


@pytest.fixture
def sample_taker_data() -> dict[str, Any]:
    """Sample taker registration data."""
    return {
        "email": "taker@example.com",
        "password": DEFAULT_PASSWORD,
        "role": "TAKER",
    }


@pytest.fixture
def register_and_login(client: AsyncClient):
    """Factory: register an account, log it in and return auth headers."""

    async def _register_and_login(email: str, role: str) -> dict[str, str]:
        response = await client.post("/api/v1/auth/register", json={
            "email": email,
            "password": DEFAULT_PASSWORD,
            "role": role,
        })
        assert response.status_code == 201, response.text

        response = await client.post("/api/v1/auth/login", json={
            "email": email,
            "password": DEFAULT_PASSWORD,
            "role": role,
        })
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _register_and_login


@pytest_asyncio.fixture
async def setter_headers(register_and_login, sample_setter_data) -> dict[str, str]:
    return await register_and_login(sample_setter_data["email"], "SETTER")


@pytest_asyncio.fixture
async def taker_headers(register_and_login, sample_taker_data) -> dict[str, str]:
    return await register_and_login(sample_taker_data["email"], "TAKER")


@pytest.fixture
def sample_exam_data() -> dict[str, Any]:
    """MCQ worth 10 (key "B") plus an essay worth 15."""
    return {
        "title": "Physics Midterm",
        "description": "Mechanics and energy",
        "passcode": "newton42",
        "duration_minutes": 45,
        "questions": [
            {
                "text": "Which quantity is conserved in an elastic collision?",
                "type": "MULTIPLE_CHOICE",
                "points": 10,
                "options": [
                    {"id": "A", "text": "Only momentum"},
                    {"id": "B", "text": "Momentum and kinetic energy"},
                    {"id": "C", "text": "Only kinetic energy"},
                ],
                "correct_answer": "B",
            },
            {
                "text": "Explain the work-energy theorem.",
                "type": "ESSAY",
                "points": 15,
            },
        ],
    }


@pytest.fixture
def create_exam(client: AsyncClient, sample_exam_data):
    """Factory: create an exam as a setter and return the response body."""

    async def _create_exam(headers: dict[str, str], **overrides) -> dict[str, Any]:
        payload = {**sample_exam_data, **overrides}
        response = await client.post("/api/v1/exams", json=payload, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _create_exam


def find_option_id(exam: dict[str, Any], question_index: int, text: str) -> str:
    """Persisted id of the option with ``text`` in an exam response."""
    for option in exam["questions"][question_index]["options"]:
        if option["text"] == text:
            return option["id"]
    raise KeyError(text)


@pytest.fixture
def option_id():
    return find_option_id


@pytest.fixture
def submit_exam(client: AsyncClient):
    """Factory: submit answers as a taker and return the raw response."""

    async def _submit_exam(
        exam: dict[str, Any],
        headers: dict[str, str],
        answers: list[dict[str, Any]] | None = None,
        passcode: str | None = None,
    ):
        if answers is None:
            answers = [
                {
                    "question_id": exam["questions"][0]["id"],
                    "answer": find_option_id(exam, 0, "Momentum and kinetic energy"),
                },
                {
                    "question_id": exam["questions"][1]["id"],
                    "answer": "Net work equals the change in kinetic energy.",
                },
            ]
        return await client.post("/api/v1/submissions", json={
            "exam_id": exam["id"],
            "passcode": passcode if passcode is not None else exam["passcode"],
            "answers": answers,
        }, headers=headers)

    return _submit_exam
