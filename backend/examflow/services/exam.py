"""
ExamFlow - Exam Service
Exam definition store: authoring by setters and access checks for takers
"""
import logging
import uuid
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from examflow.core.database import as_utc, utcnow
from examflow.models.exam import Exam, ExamAllowedTaker, Question, QuestionOption, QuestionType
from examflow.models.submission import Submission
from examflow.models.user import User
from examflow.schemas.exam import (
    AvailableExam,
    ExamAttendee,
    ExamCreate,
    ExamSummary,
    ExamUpdate,
    QuestionCreate,
)
from examflow.services.errors import (
    AccessDeniedError,
    ExamHasSubmissionsError,
    ExamNotFoundError,
    ExamNotYetOpenError,
)

logger = logging.getLogger(__name__)


def is_exam_open(exam: Exam, now: datetime | None = None) -> bool:
    """An exam without open_at is always open."""
    open_at = as_utc(exam.open_at)
    if open_at is None:
        return True
    return open_at <= (now or utcnow())


def is_taker_allowed(exam: Exam, taker: User) -> bool:
    """An empty allow-list admits every taker."""
    emails = exam.allowed_taker_emails
    return not emails or taker.email.lower() in emails


def ensure_taker_access(
    exam: Exam,
    taker: User,
    passcode: str,
    now: datetime | None = None,
) -> None:
    """
    Gate a taker's access to an exam.

    Raises:
        AccessDeniedError: Not on the allow-list, or wrong passcode
        ExamNotYetOpenError: open_at is still in the future
    """
    if not is_taker_allowed(exam, taker):
        raise AccessDeniedError("You are not on the list of takers allowed for this exam")
    if exam.passcode != passcode:
        raise AccessDeniedError("Incorrect passcode")
    if not is_exam_open(exam, now):
        raise ExamNotYetOpenError(as_utc(exam.open_at))


def build_questions(payload: list[QuestionCreate]) -> list[Question]:
    """
    Turn authoring payload into Question rows.

    Option ids are generated here so the MULTIPLE_CHOICE answer key can
    point at the persisted option id instead of the client's id or text.
    """
    questions = []
    for position, q in enumerate(payload):
        options: list[QuestionOption] = []
        correct_answer: str | None = None

        if q.type == QuestionType.MULTIPLE_CHOICE:
            options = [
                QuestionOption(id=uuid.uuid4(), text=opt.text, position=idx)
                for idx, opt in enumerate(q.options)
            ]
            correct_idx = q.resolve_correct_option()
            if correct_idx is not None:
                correct_answer = str(options[correct_idx].id)
        elif q.type == QuestionType.SHORT_ANSWER:
            correct_answer = q.correct_answer or None

        questions.append(Question(
            id=uuid.uuid4(),
            position=position,
            text=q.text,
            type=q.type.value,
            points=q.points,
            correct_answer=correct_answer,
            options=options,
        ))
    return questions


def _sync_allow_list(exam: Exam, emails: list[str]) -> None:
    # Inserts flush before deletes and (exam_id, email) is unique: keep matching rows.
    wanted = set(emails)
    exam.allowed_takers = [a for a in exam.allowed_takers if a.email in wanted]
    present = {a.email for a in exam.allowed_takers}
    for email in emails:
        if email not in present:
            exam.allowed_takers.append(ExamAllowedTaker(email=email))


class ExamService:
    """Service for exam authoring and lookup."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_exam(self, exam_id: uuid.UUID) -> Exam:
        result = await self.db.execute(select(Exam).where(Exam.id == exam_id))
        exam = result.scalar_one_or_none()
        if exam is None:
            raise ExamNotFoundError(exam_id)
        return exam

    async def get_owned_exam(self, setter: User, exam_id: uuid.UUID) -> Exam:
        """Fetch an exam and check the caller owns it."""
        exam = await self.get_exam(exam_id)
        if exam.setter_id != setter.id:
            raise AccessDeniedError("Only the exam's setter can do this")
        return exam

    async def count_submissions(self, exam_id: uuid.UUID) -> int:
        result = await self.db.execute(
            select(func.count(Submission.id)).where(Submission.exam_id == exam_id)
        )
        return result.scalar() or 0

    # ------------------------------------------------------------------
    # Authoring
    # ------------------------------------------------------------------

    async def create_exam(self, setter: User, data: ExamCreate) -> Exam:
        """Create an exam with nested questions and options in one transaction."""
        exam = Exam(
            setter_id=setter.id,
            title=data.title,
            description=data.description,
            passcode=data.passcode,
            duration_minutes=data.duration_minutes,
            open_at=data.open_at,
            questions=build_questions(data.questions),
            allowed_takers=[ExamAllowedTaker(email=e) for e in data.allowed_taker_emails],
        )
        self.db.add(exam)
        await self.db.commit()

        logger.info("Setter %s created exam %s with %d questions", setter.id, exam.id, len(exam.questions))
        return exam

    async def update_exam(self, setter: User, exam_id: uuid.UUID, data: ExamUpdate) -> Exam:
        """
        Edit an exam owned by the caller.

        Questions are replaced wholesale, which would orphan recorded answers,
        so that part is refused once the exam has submissions.
        """
        exam = await self.get_owned_exam(setter, exam_id)

        if data.questions is not None and await self.count_submissions(exam.id) > 0:
            raise ExamHasSubmissionsError(
                "Questions cannot be changed after takers have submitted this exam"
            )

        exam.title = data.title
        exam.description = data.description
        exam.duration_minutes = data.duration_minutes
        exam.open_at = data.open_at
        if data.passcode:
            exam.passcode = data.passcode
        if data.allowed_taker_emails is not None:
            _sync_allow_list(exam, data.allowed_taker_emails)
        if data.questions is not None:
            exam.questions = build_questions(data.questions)
        exam.updated_at = utcnow()

        await self.db.commit()
        logger.info("Setter %s updated exam %s", setter.id, exam.id)
        return exam

    async def delete_exam(self, setter: User, exam_id: uuid.UUID) -> None:
        """Delete an exam with its questions; refused while submissions exist."""
        exam = await self.get_owned_exam(setter, exam_id)

        submission_count = await self.count_submissions(exam.id)
        if submission_count > 0:
            raise ExamHasSubmissionsError(
                f"Exam has {submission_count} submission(s) and cannot be deleted"
            )

        await self.db.delete(exam)
        await self.db.commit()
        logger.info("Setter %s deleted exam %s", setter.id, exam_id)

    async def list_setter_exams(self, setter: User) -> list[ExamSummary]:
        result = await self.db.execute(
            select(Exam)
            .where(Exam.setter_id == setter.id)
            .order_by(Exam.created_at.desc())
        )
        exams = result.scalars().all()
        if not exams:
            return []

        counts_result = await self.db.execute(
            select(Submission.exam_id, func.count(Submission.id))
            .where(Submission.exam_id.in_([e.id for e in exams]))
            .group_by(Submission.exam_id)
        )
        counts = {exam_id: count for exam_id, count in counts_result.all()}

        return [
            ExamSummary(
                id=e.id,
                title=e.title,
                description=e.description,
                duration_minutes=e.duration_minutes,
                open_at=as_utc(e.open_at),
                created_at=as_utc(e.created_at),
                question_count=len(e.questions),
                max_score=e.max_score,
                submission_count=counts.get(e.id, 0),
            )
            for e in exams
        ]

    async def list_attendees(self, setter: User, exam_id: uuid.UUID) -> list[ExamAttendee]:
        """Takers who submitted the caller's exam, earliest first."""
        exam = await self.get_owned_exam(setter, exam_id)
        result = await self.db.execute(
            select(Submission)
            .where(Submission.exam_id == exam.id)
            .order_by(Submission.submitted_at.asc())
        )
        return [
            ExamAttendee(
                taker_id=s.taker_id,
                email=s.taker.email,
                submitted_at=as_utc(s.submitted_at),
            )
            for s in result.scalars().all()
        ]

    # ------------------------------------------------------------------
    # Taker side
    # ------------------------------------------------------------------

    async def verify_passcode(self, exam_id: uuid.UUID, taker: User, passcode: str) -> Exam:
        """
        Allow-list and exact-match passcode check, without the open_at gate.
        The caller reports open_at back to the taker.
        """
        exam = await self.get_exam(exam_id)
        if not is_taker_allowed(exam, taker):
            raise AccessDeniedError("You are not on the list of takers allowed for this exam")
        if exam.passcode != passcode:
            raise AccessDeniedError("Incorrect passcode")
        return exam

    async def get_exam_for_taker(self, exam_id: uuid.UUID, taker: User, passcode: str) -> Exam:
        exam = await self.get_exam(exam_id)
        ensure_taker_access(exam, taker, passcode)
        return exam

    async def list_available_exams(self, taker: User) -> list[AvailableExam]:
        """Every exam the taker may see, with open and already-submitted flags."""
        result = await self.db.execute(select(Exam).order_by(Exam.created_at.desc()))
        exams = [e for e in result.scalars().all() if is_taker_allowed(e, taker)]

        submitted_result = await self.db.execute(
            select(Submission.exam_id).where(Submission.taker_id == taker.id)
        )
        submitted = set(submitted_result.scalars().all())

        now = utcnow()
        return [
            AvailableExam(
                id=e.id,
                title=e.title,
                description=e.description,
                duration_minutes=e.duration_minutes,
                open_at=as_utc(e.open_at),
                question_count=len(e.questions),
                max_score=e.max_score,
                is_open=is_exam_open(e, now),
                has_submitted=e.id in submitted,
            )
            for e in exams
        ]
