"""
ExamFlow - Scoring Engine Tests
"""
import json
import uuid

import pytest

from examflow.ai.scoring_oracle import LLMScoringOracle
from examflow.models.exam import Exam, Question, QuestionOption
from examflow.models.submission import EvaluationMethod, Submission, UserAnswer
from examflow.schemas.submission import EvaluatedAnswerInput
from examflow.services.errors import ScoringUnavailableError
from examflow.services.scoring import (
    AutomaticScoringStrategy,
    ManualScoringStrategy,
    ScoringRequest,
    ScoringResult,
)


class StubOracle:
    def __init__(self, results=None, error=None):
        self.results = results or []
        self.error = error

    async def evaluate(self, requests):
        if self.error:
            raise self.error
        return self.results


def _submission() -> Submission:
    """MCQ (key B, answered A), short answer, and an unanswered essay."""
    option_a = QuestionOption(id=uuid.uuid4(), position=0, text="Paris")
    option_b = QuestionOption(id=uuid.uuid4(), position=1, text="Lyon")
    mcq = Question(
        id=uuid.uuid4(), position=0, text="Capital of France?", type="MULTIPLE_CHOICE",
        points=2, correct_answer=str(option_a.id), options=[option_a, option_b],
    )
    short = Question(
        id=uuid.uuid4(), position=1, text="Chemical symbol for gold?", type="SHORT_ANSWER",
        points=3, correct_answer="Au", options=[],
    )
    essay = Question(
        id=uuid.uuid4(), position=2, text="Discuss the French Revolution.", type="ESSAY",
        points=10, correct_answer=None, options=[],
    )
    exam = Exam(title="General Knowledge", passcode="quiz", questions=[mcq, short, essay])

    return Submission(
        id=uuid.uuid4(),
        exam=exam,
        answers=[
            UserAnswer(question_id=mcq.id, position=0, answer=str(option_b.id)),
            UserAnswer(question_id=short.id, position=1, answer="Au"),
            UserAnswer(question_id=essay.id, position=2, answer=None),
        ],
    )


def test_build_requests_resolves_text():
    submission = _submission()
    question_ids, requests = AutomaticScoringStrategy.build_requests(submission)

    assert question_ids == [q.id for q in submission.exam.questions]
    mcq, short, essay = requests

    assert mcq.question_type == "MULTIPLE_CHOICE"
    assert mcq.answer_text == "Lyon"
    assert mcq.key_text == "Paris"
    assert mcq.points == 2

    assert short.answer_text == "Au"
    assert short.key_text == "Au"

    assert essay.question_type == "ESSAY"
    assert essay.answer_text == ""
    assert essay.key_text == ""


@pytest.mark.asyncio
async def test_automatic_strategy_maps_results_in_order():
    submission = _submission()
    oracle = StubOracle(results=[
        ScoringResult(awarded_marks=0, feedback="Wrong city"),
        ScoringResult(awarded_marks=3, feedback="Correct"),
        ScoringResult(awarded_marks=0, feedback="No answer"),
    ])
    strategy = AutomaticScoringStrategy(oracle)

    evaluated = await strategy.score(submission)

    assert strategy.method == EvaluationMethod.AUTOMATIC
    assert [e.question_id for e in evaluated] == [q.id for q in submission.exam.questions]
    assert [e.awarded_marks for e in evaluated] == [0, 3, 0]
    assert evaluated[0].feedback == "Wrong city"


@pytest.mark.asyncio
async def test_automatic_strategy_wraps_oracle_failure():
    strategy = AutomaticScoringStrategy(StubOracle(error=ConnectionError("unreachable")))

    with pytest.raises(ScoringUnavailableError):
        await strategy.score(_submission())


@pytest.mark.asyncio
async def test_automatic_strategy_rejects_short_result():
    strategy = AutomaticScoringStrategy(StubOracle(results=[ScoringResult(awarded_marks=1)]))

    with pytest.raises(ScoringUnavailableError):
        await strategy.score(_submission())


def test_manual_strategy_passes_marks_through():
    question_id = uuid.uuid4()
    strategy = ManualScoringStrategy()

    evaluated = strategy.score([
        EvaluatedAnswerInput(question_id=question_id, awarded_marks=4.5, feedback="Nice"),
    ])

    assert strategy.method == EvaluationMethod.MANUAL
    assert len(evaluated) == 1
    assert evaluated[0].question_id == question_id
    assert evaluated[0].awarded_marks == 4.5
    assert evaluated[0].feedback == "Nice"


def test_oracle_prompt_items():
    items = json.loads(LLMScoringOracle.format_items([
        ScoringRequest(
            question_text="Chemical symbol for gold?",
            question_type="SHORT_ANSWER",
            points=3,
            answer_text="Ag",
            key_text="Au",
        ),
        ScoringRequest(
            question_text="Discuss.",
            question_type="ESSAY",
            points=10,
            answer_text="",
            key_text="",
        ),
    ]))

    assert [i["item"] for i in items] == [1, 2]
    assert items[0]["answer_key"] == "Au"
    assert items[0]["student_answer"] == "Ag"
    assert items[1]["answer_key"] is None
