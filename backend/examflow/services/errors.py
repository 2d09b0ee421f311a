"""
ExamFlow - Service Errors
Error taxonomy shared by the exam workflow services
"""
import uuid

from fastapi import status


class ExamWorkflowError(Exception):
    """Base error for every exam workflow failure."""

    code = "error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict:
        """Structured body returned to the presentation layer."""
        return {"success": False, "error": self.code, "message": self.message}


class NotFoundError(ExamWorkflowError):
    """Exam, question or submission does not exist."""
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class AccessDeniedError(ExamWorkflowError):
    """Ownership, allow-list, passcode or role mismatch."""
    code = "access_denied"
    status_code = status.HTTP_403_FORBIDDEN


class AlreadyExistsError(ExamWorkflowError):
    """Uniqueness violation, e.g. a second submission or account."""
    code = "already_exists"
    status_code = status.HTTP_409_CONFLICT


class InvalidInputError(ExamWorkflowError):
    """Schema or range validation failure."""
    code = "invalid_input"
    status_code = status.HTTP_400_BAD_REQUEST


class ExternalServiceError(ExamWorkflowError):
    """A collaborator outside the database failed."""
    code = "external_service_failure"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class ExamNotFoundError(NotFoundError):
    code = "exam_not_found"

    def __init__(self, exam_id: uuid.UUID | str):
        super().__init__(f"Exam {exam_id} not found")
        self.exam_id = exam_id


class SubmissionNotFoundError(NotFoundError):
    code = "submission_not_found"

    def __init__(self, submission_id: uuid.UUID | str):
        super().__init__(f"Submission {submission_id} not found")
        self.submission_id = submission_id


class ExamNotYetOpenError(AccessDeniedError):
    code = "exam_not_yet_open"

    def __init__(self, open_at):
        super().__init__(f"This exam is not yet open. It opens at {open_at.isoformat()}")
        self.open_at = open_at


class DuplicateSubmissionError(AlreadyExistsError):
    code = "duplicate_submission"

    def __init__(self):
        super().__init__("You have already submitted this exam")


class ExamHasSubmissionsError(AlreadyExistsError):
    """The exam already has submissions, so its questions can no longer change."""
    code = "exam_has_submissions"


class InvalidMarksError(InvalidInputError):
    code = "invalid_marks"

    def __init__(self, question_id: uuid.UUID | str, message: str):
        super().__init__(f"Question {question_id}: {message}")
        self.question_id = question_id

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail["question_id"] = str(self.question_id)
        return detail


class ScoringUnavailableError(ExternalServiceError):
    code = "scoring_unavailable"
