"""
ExamFlow - Scoring Engine
Manual and automatic strategies that both yield per-question marks.

Neither strategy computes a total or validates marks: their output is
untrusted and is handed to the evaluation reconciler.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Protocol

from examflow.models.exam import QuestionType
from examflow.models.submission import EvaluationMethod, Submission
from examflow.schemas.submission import EvaluatedAnswerInput
from examflow.services.errors import ScoringUnavailableError
from examflow.services.submission import resolve_answer_text

logger = logging.getLogger(__name__)


@dataclass
class EvaluatedAnswer:
    """Marks and feedback for one question, before validation."""
    question_id: uuid.UUID
    awarded_marks: float
    feedback: str | None = None


@dataclass
class ScoringRequest:
    """One question/answer/key tuple sent to the scoring oracle."""
    question_text: str
    question_type: str
    points: int
    answer_text: str
    key_text: str


@dataclass
class ScoringResult:
    """Oracle verdict for one ScoringRequest."""
    awarded_marks: float
    feedback: str | None = None


class ScoringOracle(Protocol):
    """
    External evaluator. Returns one result per request, in order.
    May raise on any failure.
    """

    async def evaluate(self, requests: list[ScoringRequest]) -> list[ScoringResult]:
        ...


class ManualScoringStrategy:
    """Marks typed in by the setter on the review screen."""

    method = EvaluationMethod.MANUAL

    def score(self, inputs: list[EvaluatedAnswerInput]) -> list[EvaluatedAnswer]:
        return [
            EvaluatedAnswer(
                question_id=item.question_id,
                awarded_marks=item.awarded_marks,
                feedback=item.feedback,
            )
            for item in inputs
        ]


class AutomaticScoringStrategy:
    """Marks produced by the scoring oracle, one request per exam question."""

    method = EvaluationMethod.AUTOMATIC

    def __init__(self, oracle: ScoringOracle):
        self.oracle = oracle

    @staticmethod
    def build_requests(submission: Submission) -> tuple[list[uuid.UUID], list[ScoringRequest]]:
        """Build oracle requests in exam question order, with option ids resolved to text."""
        question_ids = []
        requests = []
        for question in submission.exam.questions:
            answer = submission.answer_for(question.id)
            raw_answer = answer.answer if answer else None

            if question.type == QuestionType.ESSAY:
                key_text = ""
            else:
                key_text = resolve_answer_text(question, question.correct_answer) or ""

            question_ids.append(question.id)
            requests.append(ScoringRequest(
                question_text=question.text,
                question_type=QuestionType(question.type).value,
                points=question.points,
                answer_text=resolve_answer_text(question, raw_answer) or "",
                key_text=key_text,
            ))
        return question_ids, requests

    async def score(self, submission: Submission) -> list[EvaluatedAnswer]:
        """
        Run the oracle over a submission.

        Raises:
            ScoringUnavailableError: The oracle failed or returned the wrong
                number of results
        """
        question_ids, requests = self.build_requests(submission)
        if not requests:
            return []

        try:
            results = await self.oracle.evaluate(requests)
        except Exception as e:
            logger.warning("Scoring oracle failed for submission %s: %s", submission.id, e)
            raise ScoringUnavailableError(f"Automatic scoring is unavailable: {e}") from e

        if len(results) != len(requests):
            logger.warning(
                "Scoring oracle returned %d results for %d questions (submission %s)",
                len(results), len(requests), submission.id,
            )
            raise ScoringUnavailableError(
                "Automatic scoring returned an incomplete result; evaluate manually instead"
            )

        return [
            EvaluatedAnswer(
                question_id=question_id,
                awarded_marks=result.awarded_marks,
                feedback=result.feedback,
            )
            for question_id, result in zip(question_ids, results)
        ]
