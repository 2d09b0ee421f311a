"""
ExamFlow - Exam API
Endpoints for exam authoring (setters) and exam discovery/access (takers)
"""
import uuid

from fastapi import APIRouter, status

from examflow.api.deps import CurrentSetter, CurrentTaker, DbSession, http_error
from examflow.core.database import as_utc
from examflow.schemas.exam import (
    ActionResult,
    AvailableExam,
    ExamAttendee,
    ExamCreate,
    ExamResponse,
    ExamSummary,
    ExamUpdate,
    PasscodeRequest,
    PasscodeVerifyResponse,
    TakerExamView,
)
from examflow.schemas.submission import SubmissionListItem
from examflow.services.errors import ExamWorkflowError
from examflow.services.exam import ExamService, is_exam_open
from examflow.services.submission import SubmissionService

router = APIRouter(prefix="/exams", tags=["Exams"])


# ============================================================================
# Setter endpoints
# ============================================================================

@router.post("", response_model=ExamResponse, status_code=status.HTTP_201_CREATED)
async def create_exam(
    request: ExamCreate,
    current_user: CurrentSetter,
    db: DbSession,
):
    """Create an exam with its questions, options and answer key."""
    exam = await ExamService(db).create_exam(current_user, request)
    return ExamResponse.model_validate(exam)


@router.get("/mine", response_model=list[ExamSummary])
async def list_my_exams(
    current_user: CurrentSetter,
    db: DbSession,
):
    """List the caller's exams with question, score and submission counts."""
    return await ExamService(db).list_setter_exams(current_user)


@router.get("/{exam_id}", response_model=ExamResponse)
async def get_exam(
    exam_id: uuid.UUID,
    current_user: CurrentSetter,
    db: DbSession,
):
    """Get the full exam, including passcode and answer key, for its owner."""
    try:
        exam = await ExamService(db).get_owned_exam(current_user, exam_id)
    except ExamWorkflowError as e:
        raise http_error(e)
    return ExamResponse.model_validate(exam)


@router.put("/{exam_id}", response_model=ExamResponse)
async def update_exam(
    exam_id: uuid.UUID,
    request: ExamUpdate,
    current_user: CurrentSetter,
    db: DbSession,
):
    """Edit an exam. Providing questions replaces the whole question list."""
    try:
        exam = await ExamService(db).update_exam(current_user, exam_id, request)
    except ExamWorkflowError as e:
        raise http_error(e)
    return ExamResponse.model_validate(exam)


@router.delete("/{exam_id}", response_model=ActionResult)
async def delete_exam(
    exam_id: uuid.UUID,
    current_user: CurrentSetter,
    db: DbSession,
):
    """Delete an exam that nobody has submitted yet."""
    try:
        await ExamService(db).delete_exam(current_user, exam_id)
    except ExamWorkflowError as e:
        raise http_error(e)
    return ActionResult(message="Exam deleted successfully.")


@router.get("/{exam_id}/submissions", response_model=list[SubmissionListItem])
async def list_exam_submissions(
    exam_id: uuid.UUID,
    current_user: CurrentSetter,
    db: DbSession,
):
    """Submissions for one of the caller's exams, newest first."""
    try:
        return await SubmissionService(db).list_exam_submissions(current_user, exam_id)
    except ExamWorkflowError as e:
        raise http_error(e)


@router.get("/{exam_id}/attendees", response_model=list[ExamAttendee])
async def list_exam_attendees(
    exam_id: uuid.UUID,
    current_user: CurrentSetter,
    db: DbSession,
):
    """Takers who submitted one of the caller's exams."""
    try:
        return await ExamService(db).list_attendees(current_user, exam_id)
    except ExamWorkflowError as e:
        raise http_error(e)


# ============================================================================
# Taker endpoints
# ============================================================================

@router.get("", response_model=list[AvailableExam])
async def list_available_exams(
    current_user: CurrentTaker,
    db: DbSession,
):
    """Exams the caller may take, flagged as open/not yet open and submitted."""
    return await ExamService(db).list_available_exams(current_user)


@router.post("/{exam_id}/verify-passcode", response_model=PasscodeVerifyResponse)
async def verify_passcode(
    exam_id: uuid.UUID,
    request: PasscodeRequest,
    current_user: CurrentTaker,
    db: DbSession,
):
    """Check an exam passcode and report when the exam opens."""
    try:
        exam = await ExamService(db).verify_passcode(exam_id, current_user, request.passcode)
    except ExamWorkflowError as e:
        raise http_error(e)
    return PasscodeVerifyResponse(
        exam_open_at=as_utc(exam.open_at),
        is_open=is_exam_open(exam),
    )


@router.post("/{exam_id}/access", response_model=TakerExamView)
async def access_exam(
    exam_id: uuid.UUID,
    request: PasscodeRequest,
    current_user: CurrentTaker,
    db: DbSession,
):
    """
    Hand the exam to a taker once the allow-list, passcode and open time
    checks pass. Answer keys are never included.
    """
    try:
        exam = await ExamService(db).get_exam_for_taker(exam_id, current_user, request.passcode)
    except ExamWorkflowError as e:
        raise http_error(e)
    return TakerExamView.model_validate(exam)
