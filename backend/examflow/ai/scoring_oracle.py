"""
ExamFlow - LLM Scoring Oracle
LangChain-based batch scoring of exam answers
"""
import json
import logging

from langchain_core.output_parsers import JsonOutputParser
from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, Field

from examflow.ai.telemetry import get_tracer
from examflow.core.config import settings
from examflow.services.scoring import ScoringRequest, ScoringResult

logger = logging.getLogger(__name__)


class OracleVerdict(BaseModel):
    """Schema for one scored answer."""
    awarded_marks: float = Field(description="Marks between 0 and the question's points")
    feedback: str = Field(description="Short feedback for the taker")


class OracleResponse(BaseModel):
    """Schema for the whole batch, in input order."""
    results: list[OracleVerdict]


class LLMScoringOracle:
    """Score a batch of answers in one LLM call."""

    PROMPT_TEMPLATE = """You are an experienced examiner marking a student's exam.

For each numbered item below you get the question, its type, the maximum
points, the student's answer and, when available, the answer key.
Award marks between 0 and the maximum points for each item; partial credit is
allowed for SHORT_ANSWER and ESSAY questions. An empty answer earns 0.
Give one or two sentences of constructive feedback per item.

Return exactly {count} results, in the same order as the items.

Items:
{items}

{format_instructions}"""

    def __init__(self):
        self._parser = None
        self.prompt = ChatPromptTemplate.from_template(self.PROMPT_TEMPLATE)
        self._llm = None

    @property
    def parser(self):
        if self._parser is None:
            self._parser = JsonOutputParser(pydantic_object=OracleResponse)
        return self._parser

    @property
    def llm(self):
        """Lazy load the LLM based on configuration."""
        if self._llm is None:
            if settings.LLM_PROVIDER == "openai":
                from langchain_openai import ChatOpenAI
                self._llm = ChatOpenAI(
                    model=settings.OPENAI_MODEL,
                    api_key=settings.OPENAI_API_KEY,
                    temperature=0,
                    timeout=settings.LLM_TIMEOUT_SECONDS,
                    max_retries=settings.LLM_MAX_RETRIES,
                )
            else:
                from langchain_anthropic import ChatAnthropic
                self._llm = ChatAnthropic(
                    model=settings.ANTHROPIC_MODEL,
                    api_key=settings.ANTHROPIC_API_KEY,
                    temperature=0,
                    timeout=settings.LLM_TIMEOUT_SECONDS,
                    max_retries=settings.LLM_MAX_RETRIES,
                )
        return self._llm

    @staticmethod
    def format_items(requests: list[ScoringRequest]) -> str:
        items = [
            {
                "item": idx + 1,
                "question": r.question_text,
                "type": r.question_type,
                "max_points": r.points,
                "student_answer": r.answer_text,
                "answer_key": r.key_text or None,
            }
            for idx, r in enumerate(requests)
        ]
        return json.dumps(items, indent=2, ensure_ascii=False)

    async def evaluate(self, requests: list[ScoringRequest]) -> list[ScoringResult]:
        """
        Score ``requests`` and return one result per request.

        Marks are passed through as returned; range checks happen in the
        evaluation reconciler.
        """
        tracer = get_tracer()

        with tracer.start_as_current_span("scoring_oracle.evaluate") as span:
            span.set_attribute("llm.provider", settings.LLM_PROVIDER)
            span.set_attribute("scoring.items", len(requests))

            chain = self.prompt | self.llm | self.parser
            try:
                response = await chain.ainvoke({
                    "count": len(requests),
                    "items": self.format_items(requests),
                    "format_instructions": self.parser.get_format_instructions(),
                })
                parsed = OracleResponse.model_validate(response)
            except Exception as e:
                span.record_exception(e)
                logger.error("Scoring oracle call failed: %s", e)
                raise

            span.set_attribute("scoring.results", len(parsed.results))
            return [
                ScoringResult(awarded_marks=v.awarded_marks, feedback=v.feedback)
                for v in parsed.results
            ]


# Singleton instance
scoring_oracle = LLMScoringOracle()
