"""ExamFlow - API v1 Router."""
from fastapi import APIRouter

from examflow.api.v1.auth import router as auth_router
from examflow.api.v1.exams import router as exams_router
from examflow.api.v1.submissions import router as submissions_router
from examflow.api.v1.performance import router as performance_router

api_router = APIRouter()

api_router.include_router(auth_router)
api_router.include_router(exams_router)
api_router.include_router(submissions_router)
api_router.include_router(performance_router)
