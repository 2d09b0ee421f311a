"""
ExamFlow - Performance Schemas
Pydantic schemas for a taker's exam history and performance statistics
"""
import uuid
from datetime import datetime

from pydantic import BaseModel


class ExamHistoryInfo(BaseModel):
    """A single record in the taker's exam history."""
    submission_id: uuid.UUID
    exam_id: uuid.UUID
    exam_title: str
    submitted_at: datetime
    is_evaluated: bool
    evaluated_score: float | None = None
    max_score: int


class ExamScorePoint(BaseModel):
    """Per-exam score used for the performance chart."""
    submission_id: uuid.UUID
    exam_title: str
    score: float
    max_score: int
    percentage: float


class PerformanceStats(BaseModel):
    """Statistics derived from evaluated submissions only."""
    total_exams_taken: int = 0
    average_percentage: float = 0.0
    highest_scoring_exam: ExamHistoryInfo | None = None
    breakdown: list[ExamScorePoint] = []
