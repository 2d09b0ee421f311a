"""
ExamFlow - Exam Models
SQLAlchemy models for exams, their ordered questions and answer options
"""
import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from examflow.core.database import Base, utcnow


class QuestionType(str, Enum):
    """Supported question formats."""
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    SHORT_ANSWER = "SHORT_ANSWER"
    ESSAY = "ESSAY"


class Exam(Base):
    """An exam authored and owned by a single setter."""

    __tablename__ = "exams"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    setter_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True
    )

    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Shared secret compared verbatim; not a credential
    passcode: Mapped[str] = mapped_column(String(255))

    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    open_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow
    )

    # Relationships
    questions: Mapped[list["Question"]] = relationship(
        "Question",
        back_populates="exam",
        order_by="Question.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    allowed_takers: Mapped[list["ExamAllowedTaker"]] = relationship(
        "ExamAllowedTaker",
        back_populates="exam",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def max_score(self) -> int:
        return sum(q.points for q in self.questions)

    @property
    def allowed_taker_emails(self) -> list[str]:
        return [a.email for a in self.allowed_takers]

    def question_by_id(self, question_id: uuid.UUID) -> "Question | None":
        for question in self.questions:
            if question.id == question_id:
                return question
        return None


class Question(Base):
    """A question belonging to exactly one exam."""

    __tablename__ = "questions"

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
    position: Mapped[int] = mapped_column(Integer, default=0)

    text: Mapped[str] = mapped_column(Text)
    type: Mapped[QuestionType] = mapped_column(String(30))
    points: Mapped[int] = mapped_column(Integer, default=0)

    # Option id for MULTIPLE_CHOICE, free text for SHORT_ANSWER, null for ESSAY
    correct_answer: Mapped[str | None] = mapped_column(Text, nullable=True)

    exam: Mapped["Exam"] = relationship("Exam", back_populates="questions")
    options: Mapped[list["QuestionOption"]] = relationship(
        "QuestionOption",
        back_populates="question",
        order_by="QuestionOption.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def option_by_id(self, option_id: str | None) -> "QuestionOption | None":
        """Match any spelling of the option UUID (case, braces, hyphens)."""
        if not option_id:
            return None
        try:
            wanted = uuid.UUID(option_id.strip())
        except ValueError:
            return None
        for option in self.options:
            if option.id == wanted:
                return option
        return None


class QuestionOption(Base):
    """A selectable option of a multiple-choice question."""

    __tablename__ = "question_options"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    question_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("questions.id", ondelete="CASCADE"),
        index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0)
    text: Mapped[str] = mapped_column(Text)

    question: Mapped["Question"] = relationship("Question", back_populates="options")


class ExamAllowedTaker(Base):
    """Allow-list entry restricting an exam to specific taker emails."""

    __tablename__ = "exam_allowed_takers"
    __table_args__ = (
        UniqueConstraint("exam_id", "email", name="uq_exam_allowed_takers_exam_email"),
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
    email: Mapped[str] = mapped_column(String(255))

    exam: Mapped["Exam"] = relationship("Exam", back_populates="allowed_takers")
