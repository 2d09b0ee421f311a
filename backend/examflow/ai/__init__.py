"""ExamFlow - AI module: the LLM-backed scoring oracle and its tracing."""
from examflow.ai.scoring_oracle import LLMScoringOracle, scoring_oracle
from examflow.ai.telemetry import get_tracer, init_telemetry

__all__ = [
    "LLMScoringOracle",
    "scoring_oracle",
    "get_tracer",
    "init_telemetry",
]
