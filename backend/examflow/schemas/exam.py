"""
ExamFlow - Exam Schemas
Pydantic schemas for exam authoring, setter views and taker views
"""
import uuid
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from examflow.models.exam import QuestionType


# ============================================================================
# Authoring payloads
# ============================================================================

class QuestionOptionCreate(BaseModel):
    """An option as sent by the authoring form."""
    id: str | None = Field(default=None, description="Client-side id, only used to resolve the answer key")
    text: Annotated[str, Field(min_length=1)]


class QuestionCreate(BaseModel):
    """A question as sent by the authoring form."""
    text: Annotated[str, Field(min_length=1)]
    type: QuestionType
    options: list[QuestionOptionCreate] = []
    correct_answer: str | None = Field(
        default=None,
        description="Option client id or option text for MULTIPLE_CHOICE, expected text for SHORT_ANSWER"
    )
    points: Annotated[int, Field(ge=0)]

    @model_validator(mode="after")
    def check_options(self) -> "QuestionCreate":
        if self.type == QuestionType.MULTIPLE_CHOICE:
            if not self.options:
                raise ValueError("Multiple choice questions need at least one option")
            if self.correct_answer and self.resolve_correct_option() is None:
                raise ValueError("Correct answer must reference one of the question's options")
        return self

    def resolve_correct_option(self) -> int | None:
        """Index of the option the answer key points at, by client id first, then by text."""
        if not self.correct_answer:
            return None
        for idx, opt in enumerate(self.options):
            if opt.id is not None and opt.id == self.correct_answer:
                return idx
        for idx, opt in enumerate(self.options):
            if opt.text == self.correct_answer:
                return idx
        return None


class ExamBase(BaseModel):
    title: Annotated[str, Field(min_length=3, max_length=255)]
    description: str | None = None
    duration_minutes: Annotated[int, Field(gt=0)] | None = None
    open_at: datetime | None = None


class ExamCreate(ExamBase):
    """Schema for creating an exam with nested questions."""
    passcode: Annotated[str, Field(min_length=4, max_length=255)]
    allowed_taker_emails: list[EmailStr] = []
    questions: list[QuestionCreate] = Field(..., min_length=1)

    @field_validator("allowed_taker_emails")
    @classmethod
    def normalize_emails(cls, v: list[str]) -> list[str]:
        return sorted({e.strip().lower() for e in v})


class ExamUpdate(ExamBase):
    """
    Schema for editing an exam.

    A blank passcode keeps the current one; omitted questions or allow-list
    leave those untouched, a provided list replaces them wholesale.
    """
    passcode: str | None = None
    allowed_taker_emails: list[EmailStr] | None = None
    questions: Annotated[list[QuestionCreate], Field(min_length=1)] | None = None

    @field_validator("passcode")
    @classmethod
    def validate_passcode(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        if len(v) < 4:
            raise ValueError("Passcode must be at least 4 characters")
        return v

    @field_validator("allowed_taker_emails")
    @classmethod
    def normalize_emails(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return None
        return sorted({e.strip().lower() for e in v})


# ============================================================================
# Setter views
# ============================================================================

class QuestionOptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    text: str


class QuestionResponse(BaseModel):
    """Full question including the answer key (owner only)."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    text: str
    type: QuestionType
    points: int
    options: list[QuestionOptionResponse] = []
    correct_answer: str | None = None


class ExamResponse(BaseModel):
    """Full exam as seen by its owner."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    setter_id: uuid.UUID
    title: str
    description: str | None = None
    passcode: str
    duration_minutes: int | None = None
    open_at: datetime | None = None
    allowed_taker_emails: list[str] = []
    questions: list[QuestionResponse]
    max_score: int
    created_at: datetime
    updated_at: datetime


class ExamSummary(BaseModel):
    """Exam row in the setter's management list."""
    id: uuid.UUID
    title: str
    description: str | None = None
    duration_minutes: int | None = None
    open_at: datetime | None = None
    created_at: datetime
    question_count: int
    max_score: int
    submission_count: int


class ExamAttendee(BaseModel):
    """A taker who submitted the exam."""
    taker_id: uuid.UUID
    email: str
    submitted_at: datetime


class ActionResult(BaseModel):
    success: bool = True
    message: str


# ============================================================================
# Taker views
# ============================================================================

class PasscodeRequest(BaseModel):
    passcode: str


class PasscodeVerifyResponse(BaseModel):
    success: bool = True
    exam_open_at: datetime | None = None
    is_open: bool


class TakerQuestion(BaseModel):
    """A question without its answer key."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    text: str
    type: QuestionType
    points: int
    options: list[QuestionOptionResponse] = []


class TakerExamView(BaseModel):
    """Exam content handed to a taker once access checks pass."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str | None = None
    duration_minutes: int | None = None
    open_at: datetime | None = None
    questions: list[TakerQuestion]
    max_score: int


class AvailableExam(BaseModel):
    """Exam card in the taker's list."""
    id: uuid.UUID
    title: str
    description: str | None = None
    duration_minutes: int | None = None
    open_at: datetime | None = None
    question_count: int
    max_score: int
    is_open: bool
    has_submitted: bool
