"""ExamFlow - Services initialization."""
from examflow.services.auth import AuthService, InvalidCredentialsError
from examflow.services.errors import (
    AccessDeniedError,
    AlreadyExistsError,
    DuplicateSubmissionError,
    ExamHasSubmissionsError,
    ExamNotFoundError,
    ExamNotYetOpenError,
    ExamWorkflowError,
    ExternalServiceError,
    InvalidInputError,
    InvalidMarksError,
    NotFoundError,
    ScoringUnavailableError,
    SubmissionNotFoundError,
)
from examflow.services.evaluation import EvaluationService, reconcile
from examflow.services.exam import ExamService
from examflow.services.performance import PerformanceService, aggregate_performance
from examflow.services.scoring import (
    AutomaticScoringStrategy,
    EvaluatedAnswer,
    ManualScoringStrategy,
    ScoringOracle,
    ScoringRequest,
    ScoringResult,
)
from examflow.services.submission import SubmissionService

__all__ = [
    "AuthService",
    "InvalidCredentialsError",
    # Errors
    "ExamWorkflowError",
    "NotFoundError",
    "AccessDeniedError",
    "AlreadyExistsError",
    "InvalidInputError",
    "ExternalServiceError",
    "ExamNotFoundError",
    "SubmissionNotFoundError",
    "ExamNotYetOpenError",
    "DuplicateSubmissionError",
    "ExamHasSubmissionsError",
    "InvalidMarksError",
    "ScoringUnavailableError",
    # Workflow
    "ExamService",
    "SubmissionService",
    "EvaluationService",
    "reconcile",
    "PerformanceService",
    "aggregate_performance",
    # Scoring engine
    "AutomaticScoringStrategy",
    "ManualScoringStrategy",
    "EvaluatedAnswer",
    "ScoringOracle",
    "ScoringRequest",
    "ScoringResult",
]
