"""
ExamFlow - Evaluation Reconciler
Validates per-question marks, recomputes the total and persists an evaluation.

The total score is never taken from the caller: it is always re-derived from
the per-question marks, which are checked against each question's points
before anything is written.
"""
import logging
import math
import uuid
from dataclasses import dataclass
from numbers import Real

from sqlalchemy.ext.asyncio import AsyncSession

from examflow.core.database import utcnow
from examflow.models.exam import Exam
from examflow.models.submission import EvaluationMethod, Submission, UserAnswer
from examflow.models.user import User
from examflow.services.errors import InvalidMarksError
from examflow.services.scoring import AutomaticScoringStrategy, EvaluatedAnswer, ScoringOracle
from examflow.services.submission import SubmissionService

logger = logging.getLogger(__name__)


@dataclass
class ReconciledEvaluation:
    """Validated marks for every question of an exam plus their sum."""
    marks: dict[uuid.UUID, float]
    feedback: dict[uuid.UUID, str | None]
    total: float
    omitted: list[uuid.UUID]


def reconcile(exam: Exam, evaluated_answers: list[EvaluatedAnswer]) -> ReconciledEvaluation:
    """
    Validate marks against the exam and compute the authoritative total.

    Questions missing from ``evaluated_answers`` get 0 marks and no feedback.

    Raises:
        InvalidMarksError: On the first entry that is not a finite number within
            [0, points], references a question outside the exam, or repeats a
            question
    """
    marks: dict[uuid.UUID, float] = {}
    feedback: dict[uuid.UUID, str | None] = {}

    for item in evaluated_answers:
        question = exam.question_by_id(item.question_id)
        if question is None:
            raise InvalidMarksError(item.question_id, "question does not belong to this exam")
        if item.question_id in marks:
            raise InvalidMarksError(item.question_id, "marks were given more than once")

        value = item.awarded_marks
        if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
            raise InvalidMarksError(item.question_id, "awarded marks must be a finite number")
        if value < 0 or value > question.points:
            raise InvalidMarksError(
                item.question_id,
                f"awarded marks must be between 0 and {question.points}, got {value}",
            )

        marks[item.question_id] = float(value)
        feedback[item.question_id] = item.feedback or None

    omitted = []
    for question in exam.questions:
        if question.id not in marks:
            omitted.append(question.id)
            marks[question.id] = 0.0
            feedback[question.id] = None

    total = math.fsum(marks[q.id] for q in exam.questions)
    return ReconciledEvaluation(marks=marks, feedback=feedback, total=total, omitted=omitted)


class EvaluationService:
    """Service that persists manual and automatic evaluations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.submissions = SubmissionService(db)

    async def save_evaluation(
        self,
        caller: User,
        submission_id: uuid.UUID,
        evaluated_answers: list[EvaluatedAnswer],
        method: EvaluationMethod = EvaluationMethod.MANUAL,
    ) -> Submission:
        """
        Evaluate (or re-evaluate) a submission, all or nothing.

        Raises:
            SubmissionNotFoundError: Unknown submission
            AccessDeniedError: Caller does not own the submission's exam
            InvalidMarksError: Any entry fails validation; nothing is written
        """
        submission = await self.submissions.get_owned_submission(
            caller, submission_id, for_update=True
        )
        exam = submission.exam

        result = reconcile(exam, evaluated_answers)
        if result.omitted:
            logger.warning(
                "Evaluation of submission %s omitted %d question(s); defaulting them to 0 marks",
                submission.id, len(result.omitted),
            )

        for question in exam.questions:
            answer = submission.answer_for(question.id)
            if answer is None:
                answer = UserAnswer(
                    question_id=question.id,
                    question=question,
                    position=question.position,
                    answer=None,
                )
                submission.answers.append(answer)
            answer.awarded_marks = result.marks[question.id]
            answer.feedback = result.feedback[question.id]

        submission.evaluated_score = result.total
        submission.is_evaluated = True
        submission.evaluated_at = utcnow()
        submission.evaluation_method = method.value

        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Submission %s evaluated (%s) by %s: %s/%s",
            submission.id, method.value, caller.id, result.total, exam.max_score,
        )
        return submission

    async def auto_evaluate(
        self,
        caller: User,
        submission_id: uuid.UUID,
        oracle: ScoringOracle,
    ) -> Submission:
        """
        Score a submission with the oracle, then save it like a manual evaluation.

        Raises:
            ScoringUnavailableError: Oracle failure; the submission is untouched
            InvalidMarksError: Oracle output out of range; the submission is untouched
        """
        submission = await self.submissions.get_owned_submission(caller, submission_id)
        strategy = AutomaticScoringStrategy(oracle)
        evaluated = await strategy.score(submission)
        return await self.save_evaluation(caller, submission_id, evaluated, method=strategy.method)
