"""
ExamFlow - Submission API
Endpoints for submitting exams and evaluating submissions
"""
import uuid

from fastapi import APIRouter, status

from examflow.api.deps import CurrentSetter, CurrentTaker, DbSession, Oracle, http_error
from examflow.core.database import as_utc
from examflow.models.submission import Submission
from examflow.schemas.submission import (
    EvaluationRequest,
    EvaluationResponse,
    SubmissionForEvaluation,
    SubmissionResponse,
    SubmitRequest,
)
from examflow.services.errors import ExamWorkflowError
from examflow.services.evaluation import EvaluationService
from examflow.services.scoring import ManualScoringStrategy
from examflow.services.submission import SubmissionService

router = APIRouter(prefix="/submissions", tags=["Submissions"])


def _evaluation_response(submission: Submission, message: str) -> EvaluationResponse:
    return EvaluationResponse(
        message=message,
        submission_id=submission.id,
        is_evaluated=submission.is_evaluated,
        evaluated_score=submission.evaluated_score,
        max_score=submission.exam.max_score,
        evaluation_method=submission.evaluation_method,
    )


@router.post("", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
async def submit_exam(
    request: SubmitRequest,
    current_user: CurrentTaker,
    db: DbSession,
):
    """
    Submit answers for an exam. Each taker gets exactly one submission per
    exam; evaluation happens later.
    """
    try:
        submission = await SubmissionService(db).submit(
            taker=current_user,
            exam_id=request.exam_id,
            answers=request.answers,
            passcode=request.passcode,
        )
    except ExamWorkflowError as e:
        raise http_error(e)

    return SubmissionResponse(
        message="Exam submitted successfully!",
        submission_id=submission.id,
        submitted_at=as_utc(submission.submitted_at),
    )


@router.get("/{submission_id}", response_model=SubmissionForEvaluation)
async def get_submission_for_evaluation(
    submission_id: uuid.UUID,
    current_user: CurrentSetter,
    db: DbSession,
):
    """Questions, the taker's answers and the current marks for review."""
    try:
        return await SubmissionService(db).get_submission_for_evaluation(current_user, submission_id)
    except ExamWorkflowError as e:
        raise http_error(e)


@router.put("/{submission_id}/evaluation", response_model=EvaluationResponse)
async def save_evaluation(
    submission_id: uuid.UUID,
    request: EvaluationRequest,
    current_user: CurrentSetter,
    db: DbSession,
):
    """
    Save (or overwrite) the setter's marks. The total score is recomputed
    from the per-question marks.
    """
    strategy = ManualScoringStrategy()
    try:
        submission = await EvaluationService(db).save_evaluation(
            current_user,
            submission_id,
            strategy.score(request.evaluated_answers),
            method=strategy.method,
        )
    except ExamWorkflowError as e:
        raise http_error(e)
    return _evaluation_response(submission, "Evaluation saved successfully!")


@router.post("/{submission_id}/auto-evaluate", response_model=EvaluationResponse)
async def auto_evaluate(
    submission_id: uuid.UUID,
    current_user: CurrentSetter,
    db: DbSession,
    oracle: Oracle,
):
    """Score the submission with the AI oracle. On failure, manual evaluation stays available."""
    try:
        submission = await EvaluationService(db).auto_evaluate(current_user, submission_id, oracle)
    except ExamWorkflowError as e:
        raise http_error(e)
    return _evaluation_response(submission, "Submission evaluated automatically.")
