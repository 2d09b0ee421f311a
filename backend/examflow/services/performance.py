"""
ExamFlow - Performance Service
Read-only exam history and performance statistics for a taker
"""
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from examflow.core.database import as_utc
from examflow.models.submission import Submission
from examflow.schemas.performance import ExamHistoryInfo, ExamScorePoint, PerformanceStats


def to_history_info(submission: Submission) -> ExamHistoryInfo:
    return ExamHistoryInfo(
        submission_id=submission.id,
        exam_id=submission.exam_id,
        exam_title=submission.exam.title,
        submitted_at=as_utc(submission.submitted_at),
        is_evaluated=submission.is_evaluated,
        evaluated_score=submission.evaluated_score if submission.is_evaluated else None,
        max_score=submission.exam.max_score,
    )


def _percentage(score: float, max_score: int) -> float:
    return round(100.0 * score / max_score, 1) if max_score > 0 else 0.0


def aggregate_performance(history: list[ExamHistoryInfo]) -> PerformanceStats:
    """
    Derive statistics from evaluated entries only.

    The average is weighted by max score (total awarded / total possible),
    not a mean of per-exam percentages. The highest scoring exam is the one
    with the largest evaluated score; ties go to the earliest submission.
    """
    evaluated = sorted(
        (h for h in history if h.is_evaluated and h.evaluated_score is not None),
        key=lambda h: h.submitted_at,
    )
    if not evaluated:
        return PerformanceStats()

    total_score = sum(h.evaluated_score for h in evaluated)
    total_max = sum(h.max_score for h in evaluated)
    average = 100.0 * total_score / total_max if total_max > 0 else 0.0

    highest = evaluated[0]
    for entry in evaluated[1:]:
        # Strictly greater keeps the earliest entry on ties
        if entry.evaluated_score > highest.evaluated_score:
            highest = entry

    return PerformanceStats(
        total_exams_taken=len(evaluated),
        average_percentage=round(average, 1),
        highest_scoring_exam=highest,
        breakdown=[
            ExamScorePoint(
                submission_id=h.submission_id,
                exam_title=h.exam_title,
                score=h.evaluated_score,
                max_score=h.max_score,
                percentage=_percentage(h.evaluated_score, h.max_score),
            )
            for h in evaluated
        ],
    )


class PerformanceService:
    """Service for a taker's history and statistics."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_history(self, taker_id: uuid.UUID) -> list[ExamHistoryInfo]:
        """All submissions of the taker, newest first."""
        result = await self.db.execute(
            select(Submission)
            .where(Submission.taker_id == taker_id)
            .order_by(Submission.submitted_at.desc())
        )
        return [to_history_info(s) for s in result.scalars().all()]

    async def get_performance(self, taker_id: uuid.UUID) -> PerformanceStats:
        return aggregate_performance(await self.get_history(taker_id))
