"""
ExamFlow - Submission Service
Records a taker's answers as a one-per-exam snapshot and serves setter views of them
"""
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from examflow.core.database import as_utc, utcnow
from examflow.models.exam import Exam, QuestionType
from examflow.models.submission import Submission, UserAnswer
from examflow.models.user import User
from examflow.schemas.exam import QuestionOptionResponse
from examflow.schemas.submission import (
    AnswerItem,
    EvaluationQuestion,
    SubmissionForEvaluation,
    SubmissionListItem,
)
from examflow.services.errors import (
    AccessDeniedError,
    DuplicateSubmissionError,
    InvalidInputError,
    SubmissionNotFoundError,
)
from examflow.services.exam import ExamService, ensure_taker_access

logger = logging.getLogger(__name__)


def normalize_answers(exam: Exam, answers: list[AnswerItem]) -> dict[uuid.UUID, str | None]:
    """
    Validate a taker's answers against the exam and key them by question id.

    Raises:
        InvalidInputError: Unknown question, repeated question, or a
            MULTIPLE_CHOICE answer that is not one of the question's options
    """
    by_question: dict[uuid.UUID, str | None] = {}
    for item in answers:
        question = exam.question_by_id(item.question_id)
        if question is None:
            raise InvalidInputError(f"Question {item.question_id} does not belong to this exam")
        if item.question_id in by_question:
            raise InvalidInputError(f"Question {item.question_id} was answered more than once")

        answer = item.answer if item.answer and item.answer.strip() else None
        if answer is not None and question.type == QuestionType.MULTIPLE_CHOICE:
            option = question.option_by_id(answer)
            if option is None:
                raise InvalidInputError(f"Answer to question {question.id} is not one of its options")
            # Stored in canonical form
            answer = str(option.id)

        by_question[item.question_id] = answer
    return by_question


def resolve_answer_text(question, answer: str | None) -> str | None:
    """Human-readable answer: option text for MULTIPLE_CHOICE, raw text otherwise."""
    if answer is None:
        return None
    if question.type == QuestionType.MULTIPLE_CHOICE:
        option = question.option_by_id(answer)
        return option.text if option else answer
    return answer


class SubmissionService:
    """Service for recording submissions and reading them back."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def submit(
        self,
        taker: User,
        exam_id: uuid.UUID,
        answers: list[AnswerItem],
        passcode: str,
    ) -> Submission:
        """
        Record a taker's only submission for an exam.

        Raises:
            ExamNotFoundError: Unknown exam
            ExamNotYetOpenError: open_at is in the future
            AccessDeniedError: Not allowed, or wrong passcode
            DuplicateSubmissionError: The taker already submitted this exam
            InvalidInputError: Answers don't fit the exam
        """
        now = utcnow()
        exam = await ExamService(self.db).get_exam(exam_id)
        ensure_taker_access(exam, taker, passcode, now)

        existing = await self.db.execute(
            select(Submission.id).where(
                Submission.exam_id == exam.id,
                Submission.taker_id == taker.id,
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise DuplicateSubmissionError()

        by_question = normalize_answers(exam, answers)

        # One row per question so every question can carry marks later
        submission = Submission(
            exam_id=exam.id,
            taker_id=taker.id,
            exam=exam,
            taker=taker,
            submitted_at=now,
            is_evaluated=False,
            answers=[
                UserAnswer(
                    question_id=q.id,
                    question=q,
                    position=q.position,
                    answer=by_question.get(q.id),
                )
                for q in exam.questions
            ],
        )
        self.db.add(submission)
        try:
            await self.db.commit()
        except IntegrityError:
            # A concurrent request won the (exam_id, taker_id) constraint
            await self.db.rollback()
            raise DuplicateSubmissionError()

        logger.info("Taker %s submitted exam %s (submission %s)", taker.id, exam.id, submission.id)
        return submission

    async def get_submission(self, submission_id: uuid.UUID, for_update: bool = False) -> Submission:
        query = select(Submission).where(Submission.id == submission_id)
        if for_update:
            # Reload rows and their selectin collections already in the session
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        submission = result.scalar_one_or_none()
        if submission is None:
            raise SubmissionNotFoundError(submission_id)
        return submission

    async def get_owned_submission(
        self,
        setter: User,
        submission_id: uuid.UUID,
        for_update: bool = False,
    ) -> Submission:
        """Fetch a submission whose exam belongs to the caller."""
        submission = await self.get_submission(submission_id, for_update=for_update)
        if submission.exam.setter_id != setter.id:
            raise AccessDeniedError("Only the exam's setter can evaluate its submissions")
        return submission

    async def list_exam_submissions(self, setter: User, exam_id: uuid.UUID) -> list[SubmissionListItem]:
        exam = await ExamService(self.db).get_owned_exam(setter, exam_id)
        result = await self.db.execute(
            select(Submission)
            .where(Submission.exam_id == exam.id)
            .order_by(Submission.submitted_at.desc())
        )
        return [
            SubmissionListItem(
                submission_id=s.id,
                taker_id=s.taker_id,
                email=s.taker.email,
                submitted_at=as_utc(s.submitted_at),
                is_evaluated=s.is_evaluated,
                evaluated_score=s.evaluated_score,
            )
            for s in result.scalars().all()
        ]

    async def get_submission_for_evaluation(
        self,
        setter: User,
        submission_id: uuid.UUID,
    ) -> SubmissionForEvaluation:
        submission = await self.get_owned_submission(setter, submission_id)
        exam = submission.exam

        questions = []
        for question in exam.questions:
            answer = submission.answer_for(question.id)
            raw = answer.answer if answer else None
            questions.append(EvaluationQuestion(
                question_id=question.id,
                text=question.text,
                type=question.type,
                points=question.points,
                options=[QuestionOptionResponse.model_validate(o) for o in question.options],
                correct_answer=question.correct_answer,
                user_answer=raw,
                user_answer_text=resolve_answer_text(question, raw),
                awarded_marks=answer.awarded_marks if answer else None,
                feedback=answer.feedback if answer else None,
            ))

        return SubmissionForEvaluation(
            submission_id=submission.id,
            exam_id=exam.id,
            exam_title=exam.title,
            taker_email=submission.taker.email,
            submitted_at=as_utc(submission.submitted_at),
            is_evaluated=submission.is_evaluated,
            evaluated_score=submission.evaluated_score,
            evaluation_method=submission.evaluation_method,
            max_score=exam.max_score,
            questions=questions,
        )
