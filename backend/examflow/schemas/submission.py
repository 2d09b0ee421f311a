"""
ExamFlow - Submission Schemas
Pydantic schemas for exam submission and evaluation requests and responses
"""
import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from examflow.models.exam import QuestionType
from examflow.models.submission import EvaluationMethod
from examflow.schemas.exam import QuestionOptionResponse


class AnswerItem(BaseModel):
    """Single answer: free text, or the selected option id for MULTIPLE_CHOICE."""
    question_id: uuid.UUID
    answer: str | None = None


class SubmitRequest(BaseModel):
    """Request to submit an exam."""
    exam_id: uuid.UUID
    passcode: str
    answers: list[AnswerItem] = []


class SubmissionResponse(BaseModel):
    """Response after submitting an exam."""
    success: bool = True
    message: str
    submission_id: uuid.UUID
    submitted_at: datetime


class EvaluatedAnswerInput(BaseModel):
    """Marks for one question. Validated server-side against the question's points."""
    question_id: uuid.UUID
    awarded_marks: float
    feedback: str | None = None


class EvaluationRequest(BaseModel):
    """
    Per-question marks from the setter's review screen.

    No total field: the score is always recomputed from the per-question
    marks.
    """
    evaluated_answers: list[EvaluatedAnswerInput] = Field(default_factory=list)


class EvaluationResponse(BaseModel):
    """Result of a manual or automatic evaluation."""
    success: bool = True
    message: str
    submission_id: uuid.UUID
    is_evaluated: bool
    evaluated_score: float
    max_score: int
    evaluation_method: EvaluationMethod


class SubmissionListItem(BaseModel):
    """Row in the setter's submissions list for an exam."""
    submission_id: uuid.UUID
    taker_id: uuid.UUID
    email: str
    submitted_at: datetime
    is_evaluated: bool
    evaluated_score: float | None = None


class EvaluationQuestion(BaseModel):
    """A question joined with the taker's answer and the current marks."""
    question_id: uuid.UUID
    text: str
    type: QuestionType
    points: int
    options: list[QuestionOptionResponse] = []
    correct_answer: str | None = None
    user_answer: str | None = None
    user_answer_text: str | None = None
    awarded_marks: float | None = None
    feedback: str | None = None


class SubmissionForEvaluation(BaseModel):
    """Detailed submission for the setter's review screen."""
    submission_id: uuid.UUID
    exam_id: uuid.UUID
    exam_title: str
    taker_email: str
    submitted_at: datetime
    is_evaluated: bool
    evaluated_score: float | None = None
    evaluation_method: EvaluationMethod | None = None
    max_score: int
    questions: list[EvaluationQuestion]
