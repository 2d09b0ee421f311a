"""ExamFlow - Models initialization."""
from examflow.models.user import User, UserRole
from examflow.models.exam import (
    Exam,
    ExamAllowedTaker,
    Question,
    QuestionOption,
    QuestionType,
)
from examflow.models.submission import (
    EvaluationMethod,
    Submission,
    UserAnswer,
)


__all__ = [
    # User models
    "User",
    "UserRole",
    # Exam definition models
    "Exam",
    "ExamAllowedTaker",
    "Question",
    "QuestionOption",
    "QuestionType",
    # Submission & evaluation models
    "EvaluationMethod",
    "Submission",
    "UserAnswer",
]
