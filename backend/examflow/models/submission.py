"""
ExamFlow - Submission Models
SQLAlchemy models for taker submissions and their per-question answers/marks
"""
import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from examflow.core.database import Base

if TYPE_CHECKING:
    from examflow.models.exam import Exam, Question
    from examflow.models.user import User


class EvaluationMethod(str, Enum):
    """How the latest evaluation was produced."""
    MANUAL = "MANUAL"
    AUTOMATIC = "AUTOMATIC"


class Submission(Base):
    """
    A taker's one and only attempt at an exam.

    The answer snapshot never changes after creation; only the evaluation
    columns (here and on each UserAnswer) are rewritten by the reconciler.
    """

    __tablename__ = "submissions"
    __table_args__ = (
        UniqueConstraint("exam_id", "taker_id", name="uq_submissions_exam_taker"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    exam_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("exams.id", ondelete="CASCADE"),
        index=True
    )
    taker_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True
    )
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    # Evaluation state
    is_evaluated: Mapped[bool] = mapped_column(Boolean, default=False)
    evaluated_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    evaluated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    evaluation_method: Mapped[EvaluationMethod | None] = mapped_column(String(20), nullable=True)

    # Relationships
    exam: Mapped["Exam"] = relationship("Exam", lazy="selectin")
    taker: Mapped["User"] = relationship("User", lazy="selectin")
    answers: Mapped[list["UserAnswer"]] = relationship(
        "UserAnswer",
        back_populates="submission",
        order_by="UserAnswer.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def answer_for(self, question_id: uuid.UUID) -> "UserAnswer | None":
        for answer in self.answers:
            if answer.question_id == question_id:
                return answer
        return None


class UserAnswer(Base):
    """The taker's answer to one question, plus the marks awarded for it."""

    __tablename__ = "user_answers"
    __table_args__ = (
        UniqueConstraint("submission_id", "question_id", name="uq_user_answers_submission_question"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    submission_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("submissions.id", ondelete="CASCADE"),
        index=True
    )
    question_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("questions.id", ondelete="CASCADE"),
        index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0)

    # Free text, or the chosen option id for MULTIPLE_CHOICE; null if unanswered
    answer: Mapped[str | None] = mapped_column(Text, nullable=True)

    awarded_marks: Mapped[float | None] = mapped_column(Float, nullable=True)
    feedback: Mapped[str | None] = mapped_column(Text, nullable=True)

    submission: Mapped["Submission"] = relationship("Submission", back_populates="answers")
    question: Mapped["Question"] = relationship("Question", lazy="selectin")
