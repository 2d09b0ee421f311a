"""
ExamFlow - Submission Recorder Tests
"""
import asyncio
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from examflow.models.submission import Submission, UserAnswer


async def _count(db_session: AsyncSession, model) -> int:
    result = await db_session.execute(select(func.count(model.id)))
    return result.scalar()


@pytest.mark.asyncio
async def test_submit_exam(
    client: AsyncClient, setter_headers, taker_headers, create_exam, submit_exam, db_session
):
    exam = await create_exam(setter_headers)

    response = await submit_exam(exam, taker_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert data["submission_id"]
    assert data["submitted_at"]

    assert await _count(db_session, Submission) == 1
    # One answer row per exam question
    assert await _count(db_session, UserAnswer) == 2


@pytest.mark.asyncio
async def test_duplicate_submission_is_rejected(
    client: AsyncClient, setter_headers, taker_headers, create_exam, submit_exam, db_session
):
    exam = await create_exam(setter_headers)

    first = await submit_exam(exam, taker_headers)
    assert first.status_code == 201

    second = await submit_exam(exam, taker_headers)
    assert second.status_code == 409
    detail = second.json()["detail"]
    assert detail["error"] == "duplicate_submission"
    assert detail["message"] == "You have already submitted this exam"

    assert await _count(db_session, Submission) == 1


@pytest.mark.asyncio
async def test_concurrent_submissions_record_once(
    client: AsyncClient, setter_headers, taker_headers, create_exam, submit_exam, db_session
):
    exam = await create_exam(setter_headers)

    responses = await asyncio.gather(*(submit_exam(exam, taker_headers) for _ in range(4)))

    assert sorted(r.status_code for r in responses) == [201, 409, 409, 409]
    for response in responses:
        if response.status_code == 409:
            assert response.json()["detail"]["error"] == "duplicate_submission"
    assert await _count(db_session, Submission) == 1
    assert await _count(db_session, UserAnswer) == 2


@pytest.mark.asyncio
async def test_database_rejects_second_submission_row(
    client: AsyncClient, setter_headers, taker_headers, create_exam, submit_exam, db_session
):
    exam = await create_exam(setter_headers)
    assert (await submit_exam(exam, taker_headers)).status_code == 201
    taker_id = (await client.get("/api/v1/auth/me", headers=taker_headers)).json()["id"]

    db_session.add(Submission(
        exam_id=uuid.UUID(exam["id"]),
        taker_id=uuid.UUID(taker_id),
        submitted_at=datetime.now(timezone.utc),
    ))
    with pytest.raises(IntegrityError):
        await db_session.commit()
    await db_session.rollback()

    assert await _count(db_session, Submission) == 1


@pytest.mark.asyncio
async def test_option_id_matches_regardless_of_case(
    client: AsyncClient, setter_headers, taker_headers, create_exam, submit_exam, option_id
):
    exam = await create_exam(setter_headers)
    key_id = option_id(exam, 0, "Momentum and kinetic energy")

    response = await submit_exam(exam, taker_headers, answers=[
        {"question_id": exam["questions"][0]["id"], "answer": key_id.upper()},
    ])
    assert response.status_code == 201
    submission_id = response.json()["submission_id"]

    view = (await client.get(f"/api/v1/submissions/{submission_id}", headers=setter_headers)).json()
    mcq = view["questions"][0]
    assert mcq["user_answer"] == key_id
    assert mcq["user_answer_text"] == "Momentum and kinetic energy"


@pytest.mark.asyncio
async def test_other_taker_can_submit_same_exam(
    client: AsyncClient, setter_headers, taker_headers, register_and_login, create_exam, submit_exam, db_session
):
    exam = await create_exam(setter_headers)
    other_taker = await register_and_login("second.taker@example.com", "TAKER")

    assert (await submit_exam(exam, taker_headers)).status_code == 201
    assert (await submit_exam(exam, other_taker)).status_code == 201
    assert await _count(db_session, Submission) == 2


@pytest.mark.asyncio
async def test_submit_before_open_at(
    client: AsyncClient, setter_headers, taker_headers, create_exam, submit_exam, db_session
):
    open_at = datetime.now(timezone.utc) + timedelta(hours=1)
    exam = await create_exam(setter_headers, open_at=open_at.isoformat())

    response = await submit_exam(exam, taker_headers)
    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "exam_not_yet_open"

    assert await _count(db_session, Submission) == 0


@pytest.mark.asyncio
async def test_submit_after_open_at(
    client: AsyncClient, setter_headers, taker_headers, create_exam, submit_exam
):
    open_at = datetime.now(timezone.utc) - timedelta(minutes=5)
    exam = await create_exam(setter_headers, open_at=open_at.isoformat())

    response = await submit_exam(exam, taker_headers)
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_submit_with_wrong_passcode(
    client: AsyncClient, setter_headers, taker_headers, create_exam, submit_exam, db_session
):
    exam = await create_exam(setter_headers)

    response = await submit_exam(exam, taker_headers, passcode="guess")
    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "access_denied"
    assert await _count(db_session, Submission) == 0


@pytest.mark.asyncio
async def test_submit_not_on_allow_list(
    client: AsyncClient, setter_headers, taker_headers, create_exam, submit_exam, db_session
):
    exam = await create_exam(setter_headers, allowed_taker_emails=["invited@example.com"])

    response = await submit_exam(exam, taker_headers)
    assert response.status_code == 403
    assert await _count(db_session, Submission) == 0


@pytest.mark.asyncio
async def test_submit_unknown_exam(client: AsyncClient, taker_headers):
    response = await client.post("/api/v1/submissions", json={
        "exam_id": "00000000-0000-0000-0000-000000000000",
        "passcode": "whatever",
        "answers": [],
    }, headers=taker_headers)
    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "exam_not_found"


@pytest.mark.asyncio
async def test_submit_invalid_option(
    client: AsyncClient, setter_headers, taker_headers, create_exam, submit_exam, db_session
):
    exam = await create_exam(setter_headers)

    response = await submit_exam(exam, taker_headers, answers=[
        {"question_id": exam["questions"][0]["id"], "answer": "B"},
    ])
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "invalid_input"
    assert await _count(db_session, Submission) == 0


@pytest.mark.asyncio
async def test_submit_answer_for_foreign_question(
    client: AsyncClient, setter_headers, taker_headers, create_exam, submit_exam
):
    exam = await create_exam(setter_headers)
    other = await create_exam(setter_headers, title="Another Exam")

    response = await submit_exam(exam, taker_headers, answers=[
        {"question_id": other["questions"][1]["id"], "answer": "Off topic"},
    ])
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_submit_repeated_question(
    client: AsyncClient, setter_headers, taker_headers, create_exam, submit_exam
):
    exam = await create_exam(setter_headers)
    essay_id = exam["questions"][1]["id"]

    response = await submit_exam(exam, taker_headers, answers=[
        {"question_id": essay_id, "answer": "First"},
        {"question_id": essay_id, "answer": "Second"},
    ])
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_setter_cannot_submit(client: AsyncClient, setter_headers, create_exam, submit_exam):
    exam = await create_exam(setter_headers)
    response = await submit_exam(exam, setter_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_submission_view_for_setter(
    client: AsyncClient, setter_headers, taker_headers, create_exam, submit_exam, sample_taker_data
):
    exam = await create_exam(setter_headers)
    # Only the MCQ is answered; the essay is left blank
    submitted = await submit_exam(exam, taker_headers, answers=[
        {
            "question_id": exam["questions"][0]["id"],
            "answer": exam["questions"][0]["options"][0]["id"],
        },
    ])
    submission_id = submitted.json()["submission_id"]

    response = await client.get(f"/api/v1/exams/{exam['id']}/submissions", headers=setter_headers)
    assert response.status_code == 200
    rows = response.json()
    assert len(rows) == 1
    assert rows[0]["submission_id"] == submission_id
    assert rows[0]["email"] == sample_taker_data["email"]
    assert rows[0]["is_evaluated"] is False
    assert rows[0]["evaluated_score"] is None

    response = await client.get(f"/api/v1/submissions/{submission_id}", headers=setter_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["max_score"] == 25
    assert data["is_evaluated"] is False
    mcq, essay = data["questions"]
    assert mcq["user_answer_text"] == "Only momentum"
    assert mcq["awarded_marks"] is None
    assert essay["user_answer"] is None


@pytest.mark.asyncio
async def test_submission_view_is_owner_only(
    client: AsyncClient, setter_headers, taker_headers, register_and_login, create_exam, submit_exam
):
    exam = await create_exam(setter_headers)
    submission_id = (await submit_exam(exam, taker_headers)).json()["submission_id"]
    other_headers = await register_and_login("other.setter@example.com", "SETTER")

    response = await client.get(f"/api/v1/submissions/{submission_id}", headers=other_headers)
    assert response.status_code == 403

    response = await client.get(
        "/api/v1/submissions/00000000-0000-0000-0000-000000000000",
        headers=setter_headers,
    )
    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "submission_not_found"
