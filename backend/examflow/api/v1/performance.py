"""
ExamFlow - Performance API
Read-only exam history and statistics for the signed-in taker
"""
from fastapi import APIRouter

from examflow.api.deps import CurrentTaker, DbSession
from examflow.schemas.performance import ExamHistoryInfo, PerformanceStats
from examflow.services.performance import PerformanceService

router = APIRouter(prefix="/me", tags=["Performance"])


@router.get("/history", response_model=list[ExamHistoryInfo])
async def get_exam_history(
    current_user: CurrentTaker,
    db: DbSession,
):
    """Get history of exams taken by the caller, newest first."""
    return await PerformanceService(db).get_history(current_user.id)


@router.get("/performance", response_model=PerformanceStats)
async def get_performance(
    current_user: CurrentTaker,
    db: DbSession,
):
    """Average percentage, best exam and per-exam breakdown over evaluated exams."""
    return await PerformanceService(db).get_performance(current_user.id)
